"""Tests for batch FSM similarity evaluation."""

import json

import pytest

from vizbench.errors import WorkspaceError
from vizbench.fsm.batch import (
    BatchSimilarityEvaluator,
    BatchStats,
    build_report,
    run_batch_similarity,
    similarity_distribution,
)

QUEUE_ID = "11111111-1111-4111-8111-111111111111"
ORPHAN_ID = "22222222-2222-4222-8222-222222222222"
BROKEN_ID = "33333333-3333-4333-8333-333333333333"


def _write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def batch_workspace(tmp_path, queue_fsm):
    ws = tmp_path / "bench"
    _write_json(ws / "fsm" / f"{QUEUE_ID}.json", queue_fsm)
    _write_json(ws / "fsm" / f"{ORPHAN_ID}.json", {"meta": {"concept": "Teleportation"}})
    (ws / "fsm" / f"{BROKEN_ID}.json").write_text("{not json", encoding="utf-8")
    (ws / "fsm" / "notes.txt").write_text("ignored", encoding="utf-8")
    _write_json(ws / "ideal-fsm" / "Queue.json", queue_fsm)
    _write_json(ws / "data" / f"{QUEUE_ID}.json", {"id": QUEUE_ID, "model": "gpt-4o"})
    return ws


class TestSimilarityDistribution:
    """Tests for similarity banding."""

    @pytest.mark.unit
    def test_bands(self):
        assert similarity_distribution([0.95, 0.9, 0.75, 0.5, 0.49, 0.1]) == {
            "excellent": 2,
            "good": 1,
            "fair": 1,
            "poor": 2,
        }

    @pytest.mark.unit
    def test_stats_counters(self):
        stats = BatchStats(total=2)
        stats.increment("success")
        stats.increment("success")
        stats.increment("failed")
        data = stats.to_dict()
        assert data["success"] == 2
        assert data["failed"] == 1
        assert data["total"] == 2


class TestBuildReport:
    """Tests for report aggregation."""

    @pytest.mark.unit
    def test_rankings(self):
        results = [
            {
                "fsmFileName": f"{i}.json",
                "concept": "Queue",
                "success": True,
                "similarityResult": {"combined_similarity": score},
                "summary": {"score": round(score * 100), "interpretation": "x"},
            }
            for i, score in enumerate([0.2, 0.9, 0.6])
        ]
        results.append({"fsmFileName": "bad.json", "success": False, "similarityResult": None})

        report = build_report("bench", results, BatchStats(total=4))
        assert report["type"] == "fsm-similarity-batch-evaluation"
        assert report["stats"]["avgSimilarity"] == pytest.approx((0.2 + 0.9 + 0.6) / 3)
        assert [r["fsmFileName"] for r in report["summary"]["topSimilar"]] == [
            "1.json",
            "2.json",
            "0.json",
        ]
        assert report["summary"]["bottomSimilar"][0]["fsmFileName"] == "0.json"

    @pytest.mark.unit
    def test_no_successes(self):
        report = build_report("bench", [], BatchStats(total=0))
        assert report["stats"]["avgSimilarity"] == 0
        assert report["summary"]["topSimilar"] == []


class TestBatchSimilarityEvaluator:
    """Tests for BatchSimilarityEvaluator.run."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_run(self, batch_workspace):
        report = await run_batch_similarity(batch_workspace, concurrency=2)

        stats = report["stats"]
        assert stats["total"] == 3
        assert stats["completed"] == 3
        assert stats["success"] == 1
        assert stats["matched"] == 1
        assert stats["unmatched"] == 1
        assert stats["failed"] == 1
        assert stats["similarityDistribution"]["excellent"] == 1

        by_file = {r["fsmFileName"]: r for r in report["results"]}
        queue = by_file[f"{QUEUE_ID}.json"]
        assert queue["success"] is True
        assert queue["model"] == "gpt-4o"
        assert queue["category"] == "Linear Data Structures"
        assert queue["idealFsmFileName"] == "Queue.json"
        assert queue["summary"]["score"] == 100

        orphan = by_file[f"{ORPHAN_ID}.json"]
        assert orphan["success"] is False
        assert orphan["matched"] is False
        assert orphan["concept"] == "Teleportation"

        assert by_file[f"{BROKEN_ID}.json"]["success"] is False

        written = json.loads((batch_workspace / "fsm-similarity-results.json").read_text())
        assert written["workspace"] == "bench"
        assert len(written["results"]) == 3

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_missing_model_defaults(self, batch_workspace, queue_fsm):
        other = "44444444-4444-4444-8444-444444444444"
        _write_json(batch_workspace / "fsm" / f"{other}.json", queue_fsm)

        report = await BatchSimilarityEvaluator(batch_workspace).run()
        result = next(r for r in report["results"] if r["fsmFileName"] == f"{other}.json")
        assert result["model"] == "unknown"
        assert result["category"] == "Unknown"

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_non_object_files_are_recorded(self, batch_workspace, queue_fsm):
        listed = "55555555-5555-4555-8555-555555555555"
        listed_data = "66666666-6666-4666-8666-666666666666"
        _write_json(batch_workspace / "fsm" / f"{listed}.json", [])
        _write_json(batch_workspace / "fsm" / f"{listed_data}.json", queue_fsm)
        _write_json(batch_workspace / "data" / f"{listed_data}.json", ["gpt-4o"])

        report = await run_batch_similarity(batch_workspace)

        assert report["stats"]["failed"] == 2
        assert report["stats"]["success"] == 2
        by_file = {r["fsmFileName"]: r for r in report["results"]}
        assert by_file[f"{listed}.json"]["success"] is False
        assert "JSON object" in by_file[f"{listed}.json"]["error"]
        assert by_file[f"{listed_data}.json"]["model"] == "unknown"
        assert (batch_workspace / "fsm-similarity-results.json").is_file()

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_missing_directories(self, tmp_path):
        with pytest.raises(WorkspaceError, match="FSM directory"):
            await BatchSimilarityEvaluator(tmp_path).run()

        (tmp_path / "fsm").mkdir()
        with pytest.raises(WorkspaceError, match="Ideal FSM directory"):
            await BatchSimilarityEvaluator(tmp_path).run()

        (tmp_path / "ideal-fsm").mkdir()
        with pytest.raises(WorkspaceError, match="No FSM JSON files"):
            await BatchSimilarityEvaluator(tmp_path).run()
