"""Integration tests for vizbench - generation through similarity analysis."""

import asyncio
import json

import pytest
from starlette.testclient import TestClient

from vizbench.analysis import (
    analyze_fsm_differentiation,
    analyze_fsm_dimensions,
    analyze_model_similarity,
)
from vizbench.fsm import run_batch_similarity
from vizbench.pipeline import GenerationWorkflow
from vizbench.server import create_app

SUITE = "def test_loads(page):\n    page.goto(URL)\n"


class DesignReplayClient:
    """Replies with a fixed FSM design, a page and a suite for every run."""

    def __init__(self, design: dict):
        self.design = design
        self.models = []

    async def chat(self, messages, model, temperature=None, json_mode=False, on_token=None):
        self.models.append(model)
        if json_mode:
            return json.dumps(self.design)
        if messages[0]["content"].startswith("You are an expert at writing"):
            return SUITE
        return f"<html><title>{self.design['meta']['concept']}</title></html>"


@pytest.fixture
def generated_workspace(config, workspace_root, queue_fsm, stack_fsm):
    """Generate a queue with one model and a stack with another, plus ideal FSMs."""

    async def build():
        results = []
        for design, model in ((queue_fsm, "gpt-4o"), (stack_fsm, "gpt-4o-mini")):
            client = DesignReplayClient(design)
            workflow = GenerationWorkflow(config, client=client)
            results.append(await workflow.run(design["meta"]["topic"], "bench", model=model))

        ideal = workspace_root / "bench" / "ideal-fsm"
        ideal.mkdir()
        (ideal / "Queue.json").write_text(json.dumps(queue_fsm), encoding="utf-8")
        (ideal / "Stack.json").write_text(json.dumps(stack_fsm), encoding="utf-8")
        return results

    return build


class TestGenerationToAnalysis:
    """Generate pages, score their FSMs and run the analyses."""

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_full_flow(self, config, workspace_root, generated_workspace):
        results = await generated_workspace()
        assert all(r.success for r in results)
        ws = workspace_root / "bench"

        report = await run_batch_similarity(ws, concurrency=2)
        assert report["stats"]["success"] == 2
        assert report["stats"]["unmatched"] == 0
        by_model = {r["model"]: r for r in report["results"]}
        assert by_model["gpt-4o"]["idealFsmFileName"] == "Queue.json"
        assert by_model["gpt-4o-mini"]["category"] == "Linear Data Structures"
        assert by_model["gpt-4o"]["summary"]["score"] == 100

        similarity = analyze_model_similarity(ws)
        assert set(similarity["models"]) == {"gpt-4o", "gpt-4o-mini"}

        dimensions = analyze_fsm_dimensions(ws)
        assert dimensions["models"]["gpt-4o"]["structural"]["count"] == 1

        differentiation = analyze_fsm_differentiation(ws)
        assert differentiation["model_anova"]["f_statistic"] == 0

        for name in (
            "fsm-similarity-results.json",
            "model-similarity-analysis.html",
            "fsm-dimensions-analysis.html",
            "fsm-differentiation-analysis.html",
        ):
            assert (ws / name).is_file()

    @pytest.mark.integration
    def test_generated_workspace_served(self, config, generated_workspace):
        results = asyncio.run(generated_workspace())
        client = TestClient(create_app(config))

        workspaces = client.get("/api/workspaces").json()
        assert workspaces == [{"name": "bench", "path": "bench", "hasData": True, "hasHtml": True}]

        entries = client.get("/api/workspaces/bench/data").json()
        assert {e["model"] for e in entries} == {"gpt-4o", "gpt-4o-mini"}

        queue = results[0]
        fsm = client.get(f"/api/fsm/bench/{queue.result_id}").json()
        assert fsm["meta"]["concept"] == "Queue"

        page = client.get(f"/workspace/bench/html/{queue.result_id}.html")
        assert page.text == "<html><title>Queue</title></html>"

        stats = client.get("/api/workspaces/bench/stats").json()
        assert stats["totalEntries"] == 2
        assert stats["modelStats"] == {"gpt-4o": 1, "gpt-4o-mini": 1}
