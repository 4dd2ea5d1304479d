"""Design -> implement -> test generation workflow.

Three agents run in sequence for one topic:

1. the design agent produces an FSM specification (JSON),
2. the implementation agent turns it into a self-contained HTML page,
3. the test agent writes a pytest-playwright suite for that page.

All three artifacts are written into the workspace under a fresh UUID.
"""

from __future__ import annotations

import json
import logging
import re
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import httpx

from ..clients.llm import LLMClient
from ..config import VizbenchConfig
from ..constants import (
    DESIGN_TEMPERATURE,
    FSM_DIR,
    HTML_DIR,
    IMPLEMENTATION_TEMPERATURE,
    TEST_TEMPERATURE,
    TESTS_DIR,
)
from ..errors import LLMError, VizbenchError
from ..workspace import WorkspaceStore, format_timestamp
from .prompts import design_messages, implementation_messages, suite_messages

logger = logging.getLogger(__name__)

_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str, languages: tuple[str, ...] = ()) -> str:
    """Remove a leading ```lang fence and a trailing ``` fence from model output."""
    cleaned = text.strip()
    for lang in (*languages, ""):
        opening = re.compile(rf"^```{re.escape(lang)}\s*")
        if opening.match(cleaned):
            cleaned = opening.sub("", cleaned, count=1)
            break
    return _FENCE_CLOSE.sub("", cleaned)


def demo_url(base_url: str, workspace: str, result_id: str) -> str:
    return f"{base_url.rstrip('/')}/workspace/{workspace}/html/{result_id}.html"


@dataclass
class WorkflowResult:
    """Outcome of one generation run."""

    success: bool
    result_id: str
    fsm_spec: dict | None = None
    fsm_path: Path | None = None
    html_path: Path | None = None
    test_path: Path | None = None
    elapsed: float = 0.0
    error: str | None = None


class GenerationWorkflow:
    """Runs the three generation agents against one workspace root."""

    def __init__(
        self,
        config: VizbenchConfig,
        client: LLMClient | None = None,
        on_token: Callable[[str], None] | None = None,
    ):
        self.config = config
        self.client = client or LLMClient(
            api_key=config.api_key,
            base_url=config.llm_base_url,
            timeout=config.llm_timeout,
            max_concurrent=config.llm_max_concurrent,
        )
        self.store = WorkspaceStore(config.workspace_path)
        self.on_token = on_token

    async def design_fsm(self, topic: str, model: str | None = None) -> dict:
        """Ask the design agent for an FSM specification.

        Raises:
            LLMError: If the response is not a JSON object.
        """
        content = await self.client.chat(
            design_messages(topic),
            model=model or self.config.generation_model,
            temperature=DESIGN_TEMPERATURE,
            json_mode=True,
            on_token=self.on_token,
        )
        try:
            spec = json.loads(strip_code_fences(content, ("json",)))
        except json.JSONDecodeError as e:
            raise LLMError(f"Design agent returned invalid JSON: {e}") from e
        if not isinstance(spec, dict):
            raise LLMError("Design agent returned JSON that is not an object")

        logger.info(
            "FSM designed: %d states, %d events",
            len(spec.get("states") or []),
            len(spec.get("events") or []),
        )
        return spec

    async def implement_visualization(self, fsm_spec: dict, model: str | None = None) -> str:
        content = await self.client.chat(
            implementation_messages(fsm_spec),
            model=model or self.config.generation_model,
            temperature=IMPLEMENTATION_TEMPERATURE,
            on_token=self.on_token,
        )
        html = strip_code_fences(content, ("html",))
        logger.info("HTML implemented: %d lines", html.count("\n") + 1)
        return html

    async def generate_tests(
        self,
        fsm_spec: dict,
        result_id: str,
        workspace: str,
        model: str | None = None,
    ) -> str:
        url = demo_url(self.config.demo_base_url, workspace, result_id)
        content = await self.client.chat(
            suite_messages(fsm_spec, url, suite_filename(result_id)),
            model=model or self.config.generation_model,
            temperature=TEST_TEMPERATURE,
            on_token=self.on_token,
        )
        code = strip_code_fences(content, ("python", "py"))
        test_count = len(re.findall(r"^def test_", code, re.MULTILINE))
        logger.info("Test suite generated: %d test functions", test_count)
        return code

    async def run(self, topic: str, workspace: str, model: str | None = None) -> WorkflowResult:
        """Run all three agents and write their artifacts.

        Failures are captured in the returned result rather than raised.
        """
        model = model or self.config.generation_model
        result_id = str(uuid.uuid4())
        start = time.monotonic()
        logger.info("Generating '%s' with %s into workspace %s", topic, model, workspace)

        try:
            workspace_dir = self.store.path(workspace)
            fsm_spec = await self.design_fsm(topic, model)
            html = await self.implement_visualization(fsm_spec, model)
            tests = await self.generate_tests(fsm_spec, result_id, workspace, model)

            for name in (FSM_DIR, HTML_DIR, TESTS_DIR):
                (workspace_dir / name).mkdir(parents=True, exist_ok=True)

            fsm_path = workspace_dir / FSM_DIR / f"{result_id}.json"
            fsm_path.write_text(
                json.dumps(fsm_spec, indent=2, ensure_ascii=False), encoding="utf-8"
            )
            html_path = workspace_dir / HTML_DIR / f"{result_id}.html"
            html_path.write_text(html, encoding="utf-8")
            test_path = workspace_dir / TESTS_DIR / suite_filename(result_id)
            test_path.write_text(tests, encoding="utf-8")

            elapsed = round(time.monotonic() - start, 2)
            self.store.save_entry(
                workspace,
                result_id,
                {
                    "id": result_id,
                    "topic": topic,
                    "model": model,
                    "timestamp": format_timestamp(datetime.now(timezone.utc)),
                    "elapsed": elapsed,
                    "fsmFile": fsm_path.name,
                    "htmlFile": html_path.name,
                    "testFile": test_path.name,
                },
            )
        except (httpx.HTTPError, VizbenchError, OSError, ValueError) as e:
            logger.exception("Workflow failed for '%s'", topic)
            return WorkflowResult(
                success=False,
                result_id=result_id,
                elapsed=round(time.monotonic() - start, 2),
                error=str(e),
            )

        logger.info("Workflow finished in %.2fs: %s", elapsed, html_path)
        return WorkflowResult(
            success=True,
            result_id=result_id,
            fsm_spec=fsm_spec,
            fsm_path=fsm_path,
            html_path=html_path,
            test_path=test_path,
            elapsed=elapsed,
        )


def suite_filename(result_id: str) -> str:
    return f"test_{result_id.replace('-', '_')}.py"
