"""Tests for the workspace API server."""

import json
from pathlib import Path

import pytest
from starlette.testclient import TestClient

from vizbench.errors import EvaluationError
from vizbench.server import create_app

ENTRY_A = "0b6f4f7e-3c1a-4d2b-9e8f-1a2b3c4d5e6f"
ENTRY_B = "6a1c2d3e-4f50-4a6b-8c7d-9e0f1a2b3c4d"

PAGE = """<html><head><title>Queue</title></head><body>
<script type="application/json">{"states": [{"name": "idle"}]}</script>
</body></html>"""


def write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


class FakeEvaluator:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def evaluate_html_file(self, workspace, html_id):
        self.calls.append((workspace, html_id))
        if self.error:
            raise self.error
        return {"overall_score": 8, "analysis": "ok"}


@pytest.fixture
def api_workspace(workspace_root):
    ws = workspace_root / "bench"
    write_json(
        ws / "data" / f"{ENTRY_A}.json",
        {"id": ENTRY_A, "model": "gpt-4o", "timestamp": "2025-01-02T10:00:00.000Z"},
    )
    write_json(
        ws / "data" / f"{ENTRY_B}.json",
        {"id": ENTRY_B, "model": "gpt-4o-mini", "timestamp": "2025-01-01T10:00:00.000Z"},
    )
    (ws / "data" / "notes.json").write_text("{}", encoding="utf-8")
    (ws / "html").mkdir()
    (ws / "html" / f"{ENTRY_A}.html").write_text(PAGE, encoding="utf-8")
    (ws / "html" / "plain.html").write_text("<html></html>", encoding="utf-8")
    write_json(ws / "fsm" / f"{ENTRY_A}.json", {"states": ["idle", "running"]})
    shots = ws / "visuals" / ENTRY_A
    shots.mkdir(parents=True)
    (shots / "001_01_initial_state.png").write_bytes(b"png")

    write_json(workspace_root / "legacy" / "data" / "data.json", {"x": {"model": "m"}})
    (workspace_root / "legacy" / "html").mkdir()
    (workspace_root / "bare").mkdir()
    (workspace_root / "README.txt").write_text("not a workspace", encoding="utf-8")
    return ws


@pytest.fixture
def evaluator():
    return FakeEvaluator()


@pytest.fixture
def client(config, api_workspace, evaluator):
    return TestClient(create_app(config, evaluator=evaluator))


class TestCreateApp:
    """Tests for create_app."""

    @pytest.mark.unit
    def test_default_config_from_env(self, monkeypatch, workspace_root):
        monkeypatch.setenv("VIZBENCH_WORKSPACE_ROOT", str(workspace_root))
        resp = TestClient(create_app()).get("/api/health")
        assert resp.status_code == 200

    @pytest.mark.unit
    def test_health(self, client):
        resp = client.get("/api/health")
        body = resp.json()
        assert body["status"] == "ok"
        assert body["version"] == "1.0.0"
        assert body["timestamp"].endswith("Z")

    @pytest.mark.unit
    def test_security_headers(self, client):
        resp = client.get("/api/workspaces")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert "default-src 'none'" in resp.headers["Content-Security-Policy"]

    @pytest.mark.unit
    def test_cors(self, client):
        resp = client.get("/api/health", headers={"Origin": "http://example.com"})
        assert resp.headers["access-control-allow-origin"] == "*"


class TestWorkspaceRoutes:
    """Tests for workspace listing and data routes."""

    @pytest.mark.integration
    def test_list_workspaces(self, client):
        workspaces = {w["name"]: w for w in client.get("/api/workspaces").json()}
        assert set(workspaces) == {"bare", "bench", "legacy"}
        assert workspaces["bench"]["hasData"] is True
        assert workspaces["legacy"]["hasHtml"] is True
        assert workspaces["bare"]["hasData"] is False

    @pytest.mark.integration
    def test_uuid_data_sorted_by_timestamp(self, client):
        data = client.get("/api/workspaces/bench/data").json()
        assert [e["id"] for e in data] == [ENTRY_B, ENTRY_A]

    @pytest.mark.integration
    def test_non_object_data_file_skipped(self, client, api_workspace):
        other = "7c8d9e0f-1a2b-4c3d-8e4f-5a6b7c8d9e0f"
        write_json(api_workspace / "data" / f"{other}.json", [])
        resp = client.get("/api/workspaces/bench/data")
        assert resp.status_code == 200
        assert [e["id"] for e in resp.json()] == [ENTRY_B, ENTRY_A]

    @pytest.mark.integration
    def test_legacy_data_returned_as_stored(self, client):
        assert client.get("/api/workspaces/legacy/data").json() == {"x": {"model": "m"}}

    @pytest.mark.integration
    def test_corrupt_legacy_data(self, client, workspace_root):
        (workspace_root / "legacy" / "data" / "data.json").write_text("{", encoding="utf-8")
        resp = client.get("/api/workspaces/legacy/data")
        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to load workspace data"
        assert resp.json()["message"].startswith("Invalid JSON")

    @pytest.mark.integration
    def test_workspace_without_data(self, client):
        resp = client.get("/api/workspaces/bare/data")
        assert resp.status_code == 500
        assert "no data directory" in resp.json()["message"]

    @pytest.mark.integration
    def test_entry(self, client):
        resp = client.get(f"/api/workspaces/bench/data/{ENTRY_A}")
        assert resp.json()["model"] == "gpt-4o"

    @pytest.mark.integration
    def test_missing_entry(self, client):
        resp = client.get(f"/api/workspaces/bench/data/{ENTRY_A[:-1]}0")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Entry not found"

    @pytest.mark.integration
    def test_invalid_name(self, client):
        resp = client.get("/api/workspaces/..hidden/data")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"

    @pytest.mark.integration
    def test_html_listing(self, client):
        files = client.get("/api/workspaces/bench/html").json()
        assert [f["id"] for f in files] == [ENTRY_A, "plain"]
        assert files[1]["url"] == "/workspace/bench/html/plain.html"

    @pytest.mark.integration
    def test_stats(self, client):
        stats = client.get("/api/workspaces/bench/stats").json()
        assert stats["totalEntries"] == 2
        assert stats["htmlFiles"] == 2
        assert stats["modelStats"] == {"gpt-4o": 1, "gpt-4o-mini": 1}
        assert stats["storageType"] == "uuid"
        assert stats["dateRange"] == {
            "newest": "2025-01-02T10:00:00.000Z",
            "oldest": "2025-01-01T10:00:00.000Z",
        }


class TestFsmAndMediaRoutes:
    """Tests for FSM, screenshot and static file routes."""

    @pytest.mark.integration
    def test_embedded_fsm(self, client):
        resp = client.get(f"/api/fsm-data/bench/{ENTRY_A}.html")
        assert resp.json() == {"states": [{"name": "idle"}]}

    @pytest.mark.integration
    @pytest.mark.parametrize("filename", ["plain.html", "missing.html"])
    def test_embedded_fsm_not_found(self, client, filename):
        resp = client.get(f"/api/fsm-data/bench/{filename}")
        assert resp.status_code == 404
        assert resp.json()["error"] == "FSM not found"

    @pytest.mark.integration
    @pytest.mark.parametrize("file_id", [ENTRY_A, f"{ENTRY_A}.json"])
    def test_fsm_file(self, client, file_id):
        assert client.get(f"/api/fsm/bench/{file_id}").json() == {"states": ["idle", "running"]}

    @pytest.mark.integration
    def test_fsm_file_missing(self, client):
        assert client.get("/api/fsm/bench/nothing").status_code == 404

    @pytest.mark.integration
    def test_screenshots(self, client):
        shots = client.get(f"/api/screenshots/bench/{ENTRY_A}.html").json()
        assert shots == [
            {
                "filename": "001_01_initial_state.png",
                "url": f"/workspace/bench/visuals/{ENTRY_A}/001_01_initial_state.png",
                "state": "idle",
            }
        ]
        assert client.get("/api/screenshots/bench/plain.html").json() == []

    @pytest.mark.integration
    def test_static_workspace_files(self, client):
        resp = client.get(f"/workspace/bench/html/{ENTRY_A}.html")
        assert resp.status_code == 200
        assert "<title>Queue</title>" in resp.text
        assert "'unsafe-inline'" in resp.headers["Content-Security-Policy"]
        assert resp.headers["X-Frame-Options"] == "SAMEORIGIN"


class TestEvaluationRoutes:
    """Tests for reading and running visual evaluations."""

    @pytest.mark.integration
    def test_get_evaluation(self, client, api_workspace):
        resp = client.get(f"/api/evaluation/bench/{ENTRY_A}.html")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Evaluation not found"

        write_json(api_workspace / "data" / f"{ENTRY_A}_evaluation.json", {"overall_score": 6})
        resp = client.get(f"/api/evaluation/bench/{ENTRY_A}.html")
        assert resp.json() == {"overall_score": 6}

    @pytest.mark.integration
    def test_run_evaluation(self, client, evaluator):
        resp = client.post(f"/api/evaluation/bench/{ENTRY_A}.html")
        body = resp.json()
        assert resp.status_code == 200
        assert body["status"] == "success"
        assert body["evaluation"]["overall_score"] == 8
        assert evaluator.calls == [("bench", f"{ENTRY_A}.html")]

    @pytest.mark.integration
    def test_run_evaluation_failure(self, config, api_workspace):
        app = create_app(config, evaluator=FakeEvaluator(EvaluationError("No screenshot files found")))
        resp = TestClient(app).post("/api/evaluation/bench/plain.html")
        assert resp.status_code == 500
        assert resp.json() == {"status": "error", "error": "No screenshot files found"}

    @pytest.mark.integration
    def test_unexpected_error_is_json(self, config, api_workspace):
        app = create_app(config, evaluator=FakeEvaluator(RuntimeError("evaluator crashed")))
        resp = TestClient(app).post("/api/evaluation/bench/plain.html")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to run evaluation", "message": "evaluator crashed"}

    @pytest.mark.integration
    def test_unsupported_method(self, client):
        assert client.delete(f"/api/evaluation/bench/{ENTRY_A}.html").status_code == 405
