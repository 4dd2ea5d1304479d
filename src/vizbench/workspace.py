"""Filesystem access to generation workspaces.

A workspace is a directory under the workspace root holding everything produced
for one generation run:

    <root>/<name>/data/         legacy data.json, or one <uuid>.json per entry,
                                plus <id>_evaluation.json visual evaluations
    <root>/<name>/html/         generated demo pages
    <root>/<name>/fsm/          FSM designs, one <id>.json per page
    <root>/<name>/ideal-fsm/    reference FSMs used for similarity scoring
    <root>/<name>/tests/        generated browser suites
    <root>/<name>/visuals/<id>/ screenshots captured while testing
    <root>/<name>/test-results/ runner output (results.json or junit.xml)
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .constants import (
    DATA_DIR,
    EMBEDDED_FSM_PATTERN,
    EVALUATION_SUFFIX,
    FSM_DIR,
    HTML_DIR,
    LEGACY_DATA_FILE,
    UUID_FILENAME_PATTERN,
    VISUALS_DIR,
)
from .core.validation import ensure_within, validate_file_name, validate_workspace_name
from .errors import (
    EntryNotFoundError,
    EvaluationNotFoundError,
    FsmNotFoundError,
    WorkspaceError,
)

logger = logging.getLogger(__name__)

# Screenshot names from deque-style suites: 001_01_initial_state.png
_SEQUENCED_STATE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\d+_\d+_initial_state\.png$"), "idle"),
    (re.compile(r"\d+_\d+_add_front_.*\.png$"), "adding_to_front"),
    (re.compile(r"\d+_\d+_add_back_.*\.png$"), "adding_to_back"),
    (re.compile(r"\d+_\d+_remove_front.*\.png$"), "removing_from_front"),
    (re.compile(r"\d+_\d+_remove_back.*\.png$"), "removing_from_back"),
    (re.compile(r"\d+_empty_.*\.png$"), "idle"),
    (re.compile(r"\d+_.*_complete\.png$"), "updating_display"),
    (re.compile(r"\d+_.*_test\.png$"), "idle"),
]

# Screenshot names that embed the state: 02_validating_input_valid.png
_NAMED_STATE_PATTERNS = [
    re.compile(r"\d+_([a-z_]+)_.*\.png$"),
    re.compile(r"([a-z_]+)_[a-z_]+\.png$"),
    re.compile(r"\d+_([a-z_]+)\.png$"),
]

_KEYWORD_STATES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"initial", re.IGNORECASE), "idle"),
    (re.compile(r"add.*front", re.IGNORECASE), "adding_to_front"),
    (re.compile(r"add.*back", re.IGNORECASE), "adding_to_back"),
    (re.compile(r"remove.*front", re.IGNORECASE), "removing_from_front"),
    (re.compile(r"remove.*back", re.IGNORECASE), "removing_from_back"),
    (re.compile(r"validating", re.IGNORECASE), "validating_input"),
    (re.compile(r"error|alert", re.IGNORECASE), "error_alert"),
    (re.compile(r"inserting", re.IGNORECASE), "inserting_node"),
    (re.compile(r"drawing|tree", re.IGNORECASE), "drawing_tree"),
    (re.compile(r"reset", re.IGNORECASE), "tree_resetting"),
    (re.compile(r"empty", re.IGNORECASE), "idle"),
    (re.compile(r"complete", re.IGNORECASE), "updating_display"),
]


def state_from_filename(filename: str) -> str:
    """Infer the FSM state a screenshot was taken in from its file name."""
    for pattern, state in _SEQUENCED_STATE_PATTERNS:
        if pattern.search(filename):
            return state

    for pattern in _NAMED_STATE_PATTERNS:
        match = pattern.search(filename)
        if match:
            return match.group(1)

    for pattern, state in _KEYWORD_STATES:
        if pattern.search(filename):
            return state

    return "unknown"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a datetime the way browsers print Date.toISOString()."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def strip_extension(filename: str, extension: str) -> str:
    if filename.endswith(extension):
        return filename[: -len(extension)]
    return filename


def extract_embedded_fsm(html: str) -> dict | None:
    """Return the JSON object embedded in the first application/json script tag."""
    match = EMBEDDED_FSM_PATTERN.search(html)
    if not match:
        return None
    return json.loads(match.group(1))


@dataclass
class WorkspaceStore:
    """Read and write access to the workspaces under one root directory."""

    root: Path

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    # -- Paths ---------------------------------------------------------------

    def path(self, workspace: str) -> Path:
        validate_workspace_name(workspace)
        return ensure_within(self.root / workspace, self.root)

    def subdir(self, workspace: str, name: str) -> Path:
        return self.path(workspace) / name

    def exists(self, workspace: str) -> bool:
        return self.path(workspace).is_dir()

    # -- Workspaces ----------------------------------------------------------

    def list_workspaces(self) -> list[dict]:
        """List workspace directories with flags for usable data and HTML."""
        if not self.root.is_dir():
            return []

        workspaces = []
        for item in sorted(self.root.iterdir(), key=lambda p: p.name):
            if not item.is_dir():
                continue
            complete = self._has_data_files(item)
            workspaces.append(
                {
                    "name": item.name,
                    "path": item.name,
                    "hasData": complete,
                    "hasHtml": complete,
                }
            )
        return workspaces

    @staticmethod
    def _has_data_files(workspace_dir: Path) -> bool:
        data_dir = workspace_dir / DATA_DIR
        if not data_dir.is_dir() or not (workspace_dir / HTML_DIR).is_dir():
            return False
        return any(
            f.name == LEGACY_DATA_FILE or UUID_FILENAME_PATTERN.match(f.name)
            for f in data_dir.iterdir()
        )

    # -- Data entries --------------------------------------------------------

    def load_entries(self, workspace: str) -> Any:
        """Load all data entries for a workspace.

        A legacy data.json is returned exactly as stored. Otherwise every
        UUID-named JSON file is loaded and the entries are ordered by timestamp.
        Files that cannot be parsed or do not hold an object are skipped.
        """
        data_dir = self.subdir(workspace, DATA_DIR)
        legacy = data_dir / LEGACY_DATA_FILE
        if legacy.is_file():
            return json.loads(legacy.read_text(encoding="utf-8"))

        if not data_dir.is_dir():
            raise WorkspaceError(f"Workspace '{workspace}' has no data directory")

        return self._load_uuid_entries(data_dir)

    def _load_uuid_entries(self, data_dir: Path) -> list[dict]:
        entries = []
        for file in sorted(data_dir.iterdir()):
            if not UUID_FILENAME_PATTERN.match(file.name):
                continue
            try:
                entry = json.loads(file.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping invalid data file %s: %s", file.name, e)
                continue
            if not isinstance(entry, dict):
                logger.warning("Skipping data file %s: not a JSON object", file.name)
                continue
            entries.append(entry)

        epoch = datetime.min.replace(tzinfo=timezone.utc)
        entries.sort(key=lambda e: parse_timestamp(e.get("timestamp")) or epoch)
        return entries

    def load_entry(self, workspace: str, entry_id: str) -> dict:
        validate_file_name(entry_id)
        path = self.subdir(workspace, DATA_DIR) / f"{entry_id}.json"
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise EntryNotFoundError(f"No data file exists for UUID {entry_id}") from e

    def save_entry(self, workspace: str, entry_id: str, entry: dict) -> Path:
        validate_file_name(entry_id)
        data_dir = self.subdir(workspace, DATA_DIR)
        data_dir.mkdir(parents=True, exist_ok=True)
        path = data_dir / f"{entry_id}.json"
        path.write_text(json.dumps(entry, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def entry_model(self, workspace: str, entry_id: str) -> str:
        """Return the model recorded for an entry, or 'unknown'."""
        try:
            entry = self.load_entry(workspace, entry_id)
        except EntryNotFoundError:
            return "unknown"
        if not isinstance(entry, dict):
            return "unknown"
        return str(entry.get("model") or "unknown")

    def workspace_stats(self, workspace: str) -> dict:
        """Summarize entry counts, model usage and the date range of a workspace."""
        data = self.load_entries(workspace)
        entries = data if isinstance(data, list) else list(data.values())
        entries = [e for e in entries if isinstance(e, dict)]

        model_stats: dict[str, int] = {}
        for entry in entries:
            model = str(entry.get("model"))
            model_stats[model] = model_stats.get(model, 0) + 1

        timestamps = [t for t in (parse_timestamp(e.get("timestamp")) for e in entries) if t]

        return {
            "workspace": workspace,
            "totalEntries": len(entries),
            "htmlFiles": len(self.list_html(workspace)),
            "modelStats": model_stats,
            "storageType": "uuid" if entries else "legacy",
            "dateRange": {
                "newest": format_timestamp(max(timestamps)) if timestamps else None,
                "oldest": format_timestamp(min(timestamps)) if timestamps else None,
            },
        }

    # -- HTML and FSM --------------------------------------------------------

    def list_html(self, workspace: str) -> list[dict]:
        html_dir = self.subdir(workspace, HTML_DIR)
        if not html_dir.is_dir():
            raise WorkspaceError(f"Workspace '{workspace}' has no html directory")
        return [
            {
                "name": f.name,
                "id": strip_extension(f.name, ".html"),
                "url": f"/workspace/{workspace}/html/{f.name}",
            }
            for f in sorted(html_dir.iterdir())
            if f.name.endswith(".html")
        ]

    def html_path(self, workspace: str, filename: str) -> Path:
        validate_file_name(filename)
        return self.subdir(workspace, HTML_DIR) / filename

    def read_html(self, workspace: str, html_id: str) -> str:
        path = self.html_path(workspace, f"{strip_extension(html_id, '.html')}.html")
        return path.read_text(encoding="utf-8")

    def embedded_fsm(self, workspace: str, filename: str) -> dict:
        path = self.html_path(workspace, filename)
        if not path.is_file():
            raise FsmNotFoundError("HTML file not found")
        fsm = extract_embedded_fsm(path.read_text(encoding="utf-8"))
        if fsm is None:
            raise FsmNotFoundError("FSM data not found in HTML file")
        return fsm

    def fsm_file(self, workspace: str, file_id: str) -> dict:
        clean_id = strip_extension(file_id, ".json")
        validate_file_name(clean_id)
        path = self.subdir(workspace, FSM_DIR) / f"{clean_id}.json"
        if not path.is_file():
            raise FsmNotFoundError("FSM file not found")
        return json.loads(path.read_text(encoding="utf-8"))

    # -- Screenshots and evaluations -----------------------------------------

    def screenshot_dir(self, workspace: str, html_file: str) -> Path:
        base = strip_extension(html_file, ".html")
        validate_file_name(base)
        return self.subdir(workspace, VISUALS_DIR) / base

    def list_screenshots(self, workspace: str, html_file: str) -> list[dict]:
        base = strip_extension(html_file, ".html")
        shot_dir = self.screenshot_dir(workspace, html_file)
        if not shot_dir.is_dir():
            return []
        names = sorted(f.name for f in shot_dir.iterdir() if f.name.endswith(".png"))
        return [
            {
                "filename": name,
                "url": f"/workspace/{workspace}/{VISUALS_DIR}/{base}/{name}",
                "state": state_from_filename(name),
            }
            for name in names
        ]

    def evaluation_path(self, workspace: str, html_file: str) -> Path:
        base = strip_extension(html_file, ".html")
        validate_file_name(base)
        return self.subdir(workspace, DATA_DIR) / f"{base}{EVALUATION_SUFFIX}"

    def load_evaluation(self, workspace: str, html_file: str) -> dict:
        path = self.evaluation_path(workspace, html_file)
        if not path.is_file():
            raise EvaluationNotFoundError("No evaluation file exists for this HTML file")
        return json.loads(path.read_text(encoding="utf-8"))

    def save_evaluation(self, workspace: str, html_file: str, evaluation: dict) -> Path:
        path = self.evaluation_path(workspace, html_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(evaluation, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Saved evaluation to %s", path)
        return path
