"""Batch FSM similarity evaluation over a workspace.

Every FSM in ``<workspace>/fsm`` is matched to a reference FSM in
``<workspace>/ideal-fsm`` by concept and scored with :func:`compare_fsms`.
The aggregated report is written to ``fsm-similarity-results.json``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from ..constants import (
    DATA_DIR,
    DEFAULT_SIMILARITY_CONCURRENCY,
    EXCELLENT_THRESHOLD,
    FAIR_THRESHOLD,
    FSM_DIR,
    GOOD_THRESHOLD,
    IDEAL_FSM_DIR,
    SIMILARITY_RESULTS_FILE,
    TOP_N,
)
from ..errors import IdealFsmNotFoundError, VizbenchError, WorkspaceError
from ..workspace import format_timestamp
from .matching import ConceptCategories, extract_concept, find_ideal_fsm
from .similarity import compare_fsms

logger = logging.getLogger(__name__)


@dataclass
class BatchStats:
    """Running counters for a batch run."""

    total: int
    completed: int = 0
    success: int = 0
    failed: int = 0
    matched: int = 0
    unmatched: int = 0
    start_time: float = field(default_factory=time.time)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def increment(self, counter: str) -> None:
        with self._lock:
            setattr(self, counter, getattr(self, counter) + 1)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "completed": self.completed,
            "success": self.success,
            "failed": self.failed,
            "matched": self.matched,
            "unmatched": self.unmatched,
            "startTime": int(self.start_time * 1000),
        }


def similarity_distribution(scores: list[float]) -> dict[str, int]:
    """Bucket combined similarities into excellent/good/fair/poor."""
    return {
        "excellent": sum(1 for s in scores if s >= EXCELLENT_THRESHOLD),
        "good": sum(1 for s in scores if GOOD_THRESHOLD <= s < EXCELLENT_THRESHOLD),
        "fair": sum(1 for s in scores if FAIR_THRESHOLD <= s < GOOD_THRESHOLD),
        "poor": sum(1 for s in scores if s < FAIR_THRESHOLD),
    }


def _ranking_entry(result: dict) -> dict:
    return {
        "fsmFileName": result["fsmFileName"],
        "concept": result["concept"],
        "similarity": result["summary"]["score"],
        "interpretation": result["summary"]["interpretation"],
    }


def _read_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


class BatchSimilarityEvaluator:
    """Scores every FSM of one workspace against its reference FSM."""

    def __init__(
        self,
        workspace_dir: Path,
        concurrency: int = DEFAULT_SIMILARITY_CONCURRENCY,
        categories: ConceptCategories | None = None,
    ):
        self.workspace_dir = Path(workspace_dir)
        self.fsm_dir = self.workspace_dir / FSM_DIR
        self.ideal_dir = self.workspace_dir / IDEAL_FSM_DIR
        self.data_dir = self.workspace_dir / DATA_DIR
        self.output_file = self.workspace_dir / SIMILARITY_RESULTS_FILE
        self.categories = categories or ConceptCategories.load()
        self._semaphore = asyncio.Semaphore(concurrency)

    def _model_and_category(self, file_id: str, concept: str) -> tuple[str, str]:
        try:
            data = _read_json(self.data_dir / f"{file_id}.json")
        except (OSError, json.JSONDecodeError):
            logger.warning("No data file for %s, using defaults", file_id)
            return "unknown", "Unknown"
        if not isinstance(data, dict):
            logger.warning("Data file for %s is not an object, using defaults", file_id)
            return "unknown", "Unknown"
        return data.get("model") or "unknown", self.categories.category_for(concept)

    def _evaluate_file(self, task_id: str, fsm_file: Path, stats: BatchStats) -> dict:
        concept = None
        try:
            fsm = _read_json(fsm_file)
            concept = extract_concept(fsm)
            model, category = self._model_and_category(fsm_file.stem, concept)

            ideal_path = find_ideal_fsm(self.ideal_dir, concept)
            stats.increment("matched")

            result = compare_fsms(fsm, _read_json(ideal_path))
            stats.increment("success")
            logger.info(
                "[%s] %s -> %s: %d%%",
                task_id,
                fsm_file.name,
                ideal_path.name,
                result["summary"]["score"],
            )
            return {
                "taskId": task_id,
                "fsmFileName": fsm_file.name,
                "concept": concept,
                "model": model,
                "category": category,
                "idealFsmFileName": ideal_path.name,
                "matched": True,
                "success": True,
                "similarityResult": result,
                "summary": {
                    "combined_similarity": result["combined_similarity"],
                    "structural_similarity": result["structural_similarity"]["overall"],
                    "semantic_similarity": result["semantic_similarity"]["overall"],
                    "isomorphism_similarity": result["isomorphism_similarity"],
                    "score": result["summary"]["score"],
                    "interpretation": result["summary"]["interpretation"],
                },
            }
        except (OSError, json.JSONDecodeError, VizbenchError) as e:
            unmatched = isinstance(e, IdealFsmNotFoundError)
            if unmatched:
                stats.increment("unmatched")
                logger.warning("[%s] %s - %s", task_id, fsm_file.name, e)
            else:
                stats.increment("failed")
                logger.error("[%s] %s - failed: %s", task_id, fsm_file.name, e)
            return {
                "taskId": task_id,
                "fsmFileName": fsm_file.name,
                "concept": concept,
                "idealFsmFileName": None,
                "matched": not unmatched,
                "success": False,
                "error": str(e),
                "similarityResult": None,
            }
        finally:
            stats.increment("completed")
            logger.debug("Progress %d/%d", stats.completed, stats.total)

    async def _run_task(self, index: int, fsm_file: Path, stats: BatchStats) -> dict:
        task_id = f"Task-{index + 1:03d}"
        async with self._semaphore:
            return await asyncio.to_thread(self._evaluate_file, task_id, fsm_file, stats)

    async def run(self) -> dict:
        """Evaluate every FSM file and write the report.

        Raises:
            WorkspaceError: If the fsm or ideal-fsm directory is missing or empty.
        """
        if not self.fsm_dir.is_dir():
            raise WorkspaceError(f"FSM directory does not exist: {self.fsm_dir}")
        if not self.ideal_dir.is_dir():
            raise WorkspaceError(f"Ideal FSM directory does not exist: {self.ideal_dir}")

        fsm_files = sorted(f for f in self.fsm_dir.iterdir() if f.name.endswith(".json"))
        if not fsm_files:
            raise WorkspaceError(f"No FSM JSON files found in {self.fsm_dir}")

        logger.info("Evaluating %d FSM files in %s", len(fsm_files), self.workspace_dir)
        stats = BatchStats(total=len(fsm_files))
        results = await asyncio.gather(
            *(self._run_task(i, f, stats) for i, f in enumerate(fsm_files))
        )

        report = build_report(self.workspace_dir.name, list(results), stats)
        self.output_file.write_text(
            json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8"
        )
        logger.info("Wrote similarity results to %s", self.output_file)
        return report


def build_report(workspace: str, results: list[dict], stats: BatchStats) -> dict:
    """Aggregate per-file results into the batch report structure."""
    successful = [r for r in results if r["success"] and r["similarityResult"]]
    scores = [r["similarityResult"]["combined_similarity"] for r in successful]
    avg = sum(scores) / len(scores) if scores else 0

    ranked = sorted(
        successful, key=lambda r: r["similarityResult"]["combined_similarity"], reverse=True
    )

    return {
        "timestamp": format_timestamp(datetime.now(timezone.utc)),
        "workspace": workspace,
        "type": "fsm-similarity-batch-evaluation",
        "stats": {
            **stats.to_dict(),
            "avgSimilarity": avg,
            "similarityDistribution": similarity_distribution(scores),
            "totalTime": int((time.time() - stats.start_time) * 1000),
        },
        "results": results,
        "summary": {
            "topSimilar": [_ranking_entry(r) for r in ranked[:TOP_N]],
            "bottomSimilar": [_ranking_entry(r) for r in list(reversed(ranked))[:TOP_N]],
        },
    }


async def run_batch_similarity(
    workspace_dir: Path,
    concurrency: int = DEFAULT_SIMILARITY_CONCURRENCY,
    categories_path: Path | None = None,
) -> dict:
    """Run batch similarity evaluation for one workspace directory."""
    evaluator = BatchSimilarityEvaluator(
        workspace_dir,
        concurrency=concurrency,
        categories=ConceptCategories.load(categories_path),
    )
    return await evaluator.run()
