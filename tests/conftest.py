"""Shared test fixtures for vizbench tests."""

import json
from pathlib import Path

import pytest

from vizbench.config import VizbenchConfig
from vizbench.workspace import WorkspaceStore

QUEUE_FSM = {
    "meta": {
        "concept": "Queue",
        "topic": "Queue operations",
        "educational_goal": "Understand first-in first-out ordering",
        "expected_interactions": ["click enqueue", "click dequeue"],
    },
    "states": [
        {"id": "idle", "label": "idle", "entry_actions": ["renderQueue"]},
        {"id": "enqueuing", "label": "adding_item", "entry_actions": ["animateEnqueue"]},
        {"id": "error_alert", "label": "error_alert", "entry_actions": ["showAlert"]},
    ],
    "transitions": [
        {"from": "idle", "to": "enqueuing", "event": "CLICK_ENQUEUE", "actions": ["push"]},
        {"from": "enqueuing", "to": "idle", "event": "ANIMATION_COMPLETE"},
        {"from": "idle", "to": "error_alert", "event": "CLICK_DEQUEUE", "guard": "isEmpty"},
        {"from": "error_alert", "to": "idle", "event": "TIMEOUT"},
    ],
}

STACK_FSM = {
    "meta": {"concept": "Stack", "topic": "Stack push and pop"},
    "states": {
        "idle": {"on": {"CLICK_PUSH": "pushing", "CLICK_POP": "popping"}},
        "pushing": {"onEnter": "drawPush", "on": {"PUSH_COMPLETE": "idle"}},
        "popping": {
            "onEnter": ["drawPop"],
            "on": {"POP_COMPLETE": {"target": "idle", "actions": ["shrink"]}},
        },
    },
}


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def workspace_root(tmp_path):
    """An empty workspace root directory."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def config(workspace_root):
    """Config pointing at the temporary workspace root."""
    return VizbenchConfig(workspace_root=str(workspace_root), api_key="sk-test")


@pytest.fixture
def store(workspace_root):
    return WorkspaceStore(workspace_root)


@pytest.fixture
def queue_fsm():
    """A list-shaped FSM definition with guards and timeouts."""
    return json.loads(json.dumps(QUEUE_FSM))


@pytest.fixture
def stack_fsm():
    """A mapping-shaped FSM definition with ``on`` handlers."""
    return json.loads(json.dumps(STACK_FSM))


@pytest.fixture
def similarity_workspace(workspace_root):
    """Build a workspace holding fsm-similarity-results.json plus data entries.

    ``rows`` is a list of (file_id, model, concept, combined, structural,
    semantic, isomorphism) tuples.
    """

    def build(rows, name="bench", extra_results=()):
        ws = workspace_root / name
        results = []
        for file_id, model, concept, combined, structural, semantic, iso in rows:
            write_json(ws / "data" / f"{file_id}.json", {"id": file_id, "model": model})
            results.append(
                {
                    "fsmFileName": f"{file_id}.json",
                    "concept": concept,
                    "model": model,
                    "success": True,
                    "similarityResult": {
                        "combined_similarity": combined,
                        "structural_similarity": {
                            "overall": structural,
                            "node_count_similarity": structural,
                            "edge_count_similarity": structural,
                        },
                        "semantic_similarity": {"overall": semantic},
                        "isomorphism_similarity": iso,
                    },
                    "summary": {"score": round(combined * 100)},
                }
            )
        results.extend(extra_results)
        write_json(ws / "fsm-similarity-results.json", {"results": results})
        return ws

    return build
