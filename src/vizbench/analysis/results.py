"""Loading per-file pass rates and scores from workspace test results.

Three sources are understood, tried in this order:

- ``test-results/results.json`` written by the Playwright JSON reporter
- ``test-results/junit.xml`` written by ``pytest --junitxml``
- ``data/data.json`` entries carrying ``testStats.score``
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from ..constants import (
    DATA_DIR,
    JUNIT_RESULTS_FILE,
    LEGACY_DATA_FILE,
    PLAYWRIGHT_RESULTS_FILE,
    TEST_RESULTS_DIR,
    TESTS_DIR,
)
from ..errors import NoScoreDataError, WorkspaceError

logger = logging.getLogger(__name__)

_MODEL_SUFFIX = re.compile(r"gpt-[^/]+$", re.IGNORECASE)


@dataclass
class FileResult:
    """Pass statistics of one test file."""

    file_name: str
    topic: str
    pass_rate: float
    passed: int
    total: int

    def to_dict(self) -> dict:
        return {
            "fileName": self.file_name,
            "topic": self.topic,
            "passRate": self.pass_rate,
            "passed": self.passed,
            "total": self.total,
        }


def _file_result(file_name: str, topic: str, statuses: list[str]) -> FileResult:
    passed = sum(1 for s in statuses if s == "passed")
    return FileResult(
        file_name=file_name,
        topic=topic,
        pass_rate=passed / len(statuses),
        passed=passed,
        total=len(statuses),
    )


def pass_rates_from_playwright(results: dict) -> list[FileResult]:
    """Collect one FileResult per nested suite of a Playwright JSON report.

    Every run of every test counts, so retries weigh in the pass rate.
    Suites without any results are skipped.
    """
    file_results = []
    for suite in results.get("suites") or []:
        file_name = Path(suite.get("file") or suite.get("title") or "").name
        for sub_suite in suite.get("suites") or []:
            statuses = [
                run.get("status")
                for spec in sub_suite.get("specs") or []
                for test in spec.get("tests") or []
                for run in test.get("results") or []
            ]
            if statuses:
                file_results.append(
                    _file_result(file_name, sub_suite.get("title", ""), statuses)
                )
    return file_results


def _junit_file_name(classname: str) -> tuple[str, str]:
    parts = classname.split(".")
    for i in range(len(parts) - 1, -1, -1):
        if parts[i].startswith("test"):
            return f"{parts[i]}.py", parts[-1]
    return classname, parts[-1]


def pass_rates_from_junit(path: Path) -> list[FileResult]:
    """Collect one FileResult per test class or module of a JUnit XML report.

    Raises:
        WorkspaceError: If the file is not well-formed XML.
    """
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise WorkspaceError(f"Invalid JUnit XML in {path}: {e}") from e

    grouped: dict[str, list[str]] = {}
    for case in root.iter("testcase"):
        classname = case.get("classname") or case.get("file") or "unknown"
        if case.find("failure") is not None or case.find("error") is not None:
            status = "failed"
        elif case.find("skipped") is not None:
            status = "skipped"
        else:
            status = "passed"
        grouped.setdefault(classname, []).append(status)

    file_results = []
    for classname, statuses in grouped.items():
        file_name, topic = _junit_file_name(classname)
        file_results.append(_file_result(file_name, topic, statuses))
    return file_results


def load_file_results(workspace_dir: Path) -> tuple[list[FileResult], str]:
    """Load per-file pass rates from the first available results file.

    Raises:
        NoScoreDataError: If neither results file has any test runs.
    """
    results_dir = Path(workspace_dir) / TEST_RESULTS_DIR
    playwright_file = results_dir / PLAYWRIGHT_RESULTS_FILE
    if playwright_file.is_file():
        file_results = pass_rates_from_playwright(
            json.loads(playwright_file.read_text(encoding="utf-8"))
        )
        if file_results:
            return file_results, f"{TEST_RESULTS_DIR}/{PLAYWRIGHT_RESULTS_FILE}"

    junit_file = results_dir / JUNIT_RESULTS_FILE
    if junit_file.is_file():
        file_results = pass_rates_from_junit(junit_file)
        if file_results:
            return file_results, f"{TEST_RESULTS_DIR}/{JUNIT_RESULTS_FILE}"

    raise NoScoreDataError(f"No test results found in {results_dir}")


def scores_from_data_json(workspace_dir: Path) -> list[float]:
    """Read ``testStats.score`` from every entry of a legacy data.json."""
    data_file = Path(workspace_dir) / DATA_DIR / LEGACY_DATA_FILE
    if not data_file.is_file():
        return []
    data = json.loads(data_file.read_text(encoding="utf-8"))
    entries = data if isinstance(data, list) else list(data.values())
    scores = []
    for entry in entries:
        score = (entry.get("testStats") or {}).get("score") if isinstance(entry, dict) else None
        if isinstance(score, (int, float)) and not isinstance(score, bool):
            scores.append(float(score))
    return scores


def load_scores(workspace_dir: Path) -> tuple[list[float], str]:
    """Return the workspace's scores and a description of where they came from.

    Raises:
        NoScoreDataError: If no source holds any score.
    """
    try:
        file_results, source = load_file_results(workspace_dir)
        return [r.pass_rate for r in file_results], f"{source} (pass rates)"
    except NoScoreDataError:
        pass

    scores = scores_from_data_json(workspace_dir)
    if scores:
        return scores, f"{DATA_DIR}/{LEGACY_DATA_FILE} (test scores)"
    raise NoScoreDataError(f"No valid score data found in {workspace_dir}")


def extract_model_name(workspace_dir: Path | str) -> str:
    """Model name from a workspace directory such as ``baseline-gpt-4o``."""
    basename = Path(workspace_dir).name
    match = _MODEL_SUFFIX.search(basename)
    return match.group(0) if match else basename


def run_suites(workspace_dir: Path, extra_args: list[str] | None = None) -> int:
    """Run the workspace's generated suites with pytest.

    Results go to ``test-results/junit.xml`` so the analyses can pick them up.

    Returns:
        The pytest exit code.

    Raises:
        WorkspaceError: If the workspace has no tests directory.
    """
    workspace_dir = Path(workspace_dir)
    tests_dir = workspace_dir / TESTS_DIR
    if not tests_dir.is_dir():
        raise WorkspaceError(f"No tests directory in {workspace_dir}")

    results_dir = workspace_dir / TEST_RESULTS_DIR
    results_dir.mkdir(parents=True, exist_ok=True)
    cmd = [
        sys.executable,
        "-m",
        "pytest",
        str(tests_dir),
        f"--junitxml={results_dir / JUNIT_RESULTS_FILE}",
        "-q",
        *(extra_args or []),
    ]
    logger.info("Running %s", " ".join(cmd))
    return subprocess.run(cmd, cwd=workspace_dir, check=False).returncode
