"""Screenshot-based visual quality evaluation with a vision language model."""

from __future__ import annotations

import base64
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import httpx

from ..clients.llm import LLMClient
from ..config import VizbenchConfig
from ..constants import HTML_DIR, MAX_SCREENSHOTS_PER_CATEGORY, PARSE_FAILURE_SCORE
from ..errors import EvaluationError, LLMError
from ..workspace import WorkspaceStore, extract_embedded_fsm, format_timestamp, strip_extension

logger = logging.getLogger(__name__)

SCORE_FIELDS = ("overall_score", "layout_quality", "content_richness", "interaction_logic")

_TITLE = re.compile(r"<title>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_BUTTON = re.compile(r"<button[^>]*>([^<]*)</button>", re.IGNORECASE)
_INPUT = re.compile(r"<input[^>]*>", re.IGNORECASE)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

EVALUATION_PROMPT = """Analyze these screenshots of an interactive HTML application and evaluate it.

Application info:
- Title: {title}
- Screenshot files: {files}
- Screenshot count: {count}

Score each dimension from 1 to 10:
1. Layout quality: are page elements arranged sensibly, with a clear visual hierarchy?
2. Content richness: is the information complete and the functionality useful?
3. Interaction logic: is the interface intuitive, with clear state changes?

Compare the screenshots, paying particular attention to:
- the initial state versus the completed state
- state transitions during interaction
- continuity of the user experience

Return JSON:
{{
  "overall_score": overall score (1-10),
  "layout_quality": layout quality score (1-10),
  "content_richness": content richness score (1-10),
  "interaction_logic": interaction logic score (1-10),
  "analysis": "detailed analysis, including observations comparing the screenshots"
}}"""


@dataclass
class Screenshot:
    filename: str
    path: Path


@dataclass
class CategorizedScreenshots:
    initial: list[Screenshot] = field(default_factory=list)
    complete: list[Screenshot] = field(default_factory=list)
    interaction: list[Screenshot] = field(default_factory=list)
    error: list[Screenshot] = field(default_factory=list)
    all: list[Screenshot] = field(default_factory=list)


@dataclass
class AppInfo:
    title: str = ""
    fsm_config: dict | None = None
    interaction_elements: list[str] = field(default_factory=list)


def categorize_screenshots(screenshots: list[Screenshot]) -> CategorizedScreenshots:
    """Group screenshots by the keywords in their file names."""
    groups = CategorizedScreenshots(all=list(screenshots))
    for shot in screenshots:
        name = shot.filename.lower()
        if "initial" in name or "empty" in name:
            groups.initial.append(shot)
        elif "complete" in name or "final" in name:
            groups.complete.append(shot)
        elif "error" in name or "alert" in name:
            groups.error.append(shot)
        else:
            groups.interaction.append(shot)
    return groups


def select_screenshots(groups: CategorizedScreenshots) -> list[Screenshot]:
    """Pick the screenshots sent to the model.

    Up to two "initial" and two "complete" shots are preferred. Without either,
    the first categorized initial shot plus the first complete (or interaction)
    shot is used, and as a last resort the very first screenshot.
    """
    if not groups.all:
        return []

    initial = [s for s in groups.all if "initial" in s.filename.lower()]
    complete = [s for s in groups.all if "complete" in s.filename.lower()]
    selected = (
        initial[:MAX_SCREENSHOTS_PER_CATEGORY] + complete[:MAX_SCREENSHOTS_PER_CATEGORY]
    )

    if not selected:
        if groups.initial:
            selected.append(groups.initial[0])
        if groups.complete:
            selected.append(groups.complete[0])
        elif groups.interaction:
            selected.append(groups.interaction[0])

    if not selected:
        selected.append(groups.all[0])
    return selected


def extract_app_info(html: str) -> AppInfo:
    info = AppInfo()
    title = _TITLE.search(html)
    if title:
        info.title = title.group(1).strip()
    try:
        info.fsm_config = extract_embedded_fsm(html)
    except json.JSONDecodeError:
        logger.warning("Embedded FSM configuration is not valid JSON")
    buttons = [re.sub(r"<[^>]*>", "", b).strip() for b in _BUTTON.findall(html)]
    info.interaction_elements = buttons + ["input field" for _ in _INPUT.findall(html)]
    return info


def parse_evaluation(text: str) -> dict:
    """Parse the first JSON object in a model reply.

    Falls back to neutral default scores, keeping the raw reply as the analysis.
    """
    match = _JSON_OBJECT.search(text)
    try:
        if not match:
            raise ValueError("No JSON object found in response")
        result = json.loads(match.group(0))
        if not isinstance(result, dict):
            raise ValueError("Response JSON is not an object")
        return result
    except ValueError as e:
        logger.warning("Could not parse evaluation JSON, using defaults: %s", e)
        return {
            **{name: PARSE_FAILURE_SCORE for name in SCORE_FIELDS},
            "analysis": text,
            "parse_error": str(e),
        }


def encode_image(path: Path) -> str:
    return "data:image/png;base64," + base64.b64encode(path.read_bytes()).decode("ascii")


class VisualEvaluator:
    """Scores a generated page from the screenshots its suite captured."""

    def __init__(self, config: VizbenchConfig, client: LLMClient | None = None):
        self.config = config
        self.store = WorkspaceStore(config.workspace_path)
        self.client = client or LLMClient(
            api_key=config.api_key,
            base_url=config.llm_base_url,
            timeout=config.llm_timeout,
            max_concurrent=config.llm_max_concurrent,
        )

    def get_screenshots(self, workspace: str, html_id: str) -> list[Screenshot]:
        shot_dir = self.store.screenshot_dir(workspace, html_id)
        if not shot_dir.is_dir():
            logger.warning("No screenshot directory: %s", shot_dir)
            return []
        return [
            Screenshot(filename=f.name, path=f)
            for f in sorted(shot_dir.iterdir(), key=lambda p: p.name)
            if f.name.endswith(".png")
        ]

    def _read_html(self, workspace: str, html_id: str) -> str:
        try:
            return self.store.read_html(workspace, html_id)
        except OSError:
            logger.warning("Could not read HTML for %s/%s", workspace, html_id)
            return ""

    async def evaluate_html_file(self, workspace: str, html_id: str) -> dict:
        """Evaluate one page and save the result next to its data entry.

        Raises:
            EvaluationError: If there are no screenshots or none can be read.
        """
        html_id = strip_extension(html_id, ".html")
        logger.info("Evaluating %s/%s", workspace, html_id)

        screenshots = self.get_screenshots(workspace, html_id)
        if not screenshots:
            raise EvaluationError("No screenshot files found")

        groups = categorize_screenshots(screenshots)
        app_info = extract_app_info(self._read_html(workspace, html_id))

        images: list[tuple[str, str]] = []
        for shot in select_screenshots(groups):
            try:
                images.append((shot.filename, encode_image(shot.path)))
            except OSError as e:
                logger.warning("Could not read image %s: %s", shot.path, e)
        if not images:
            raise EvaluationError("Could not read any screenshot files")

        metadata = {
            "workspace": workspace,
            "htmlFileName": html_id,
            "screenshotsUsed": [name for name, _ in images],
            "totalScreenshots": len(groups.all),
            "appTitle": app_info.title,
            "hasFSM": app_info.fsm_config is not None,
            "interactionElements": len(app_info.interaction_elements),
        }

        prompt = EVALUATION_PROMPT.format(
            title=app_info.title or "unknown",
            files=", ".join(name for name, _ in images),
            count=len(images),
        )
        content = [{"type": "input_text", "text": prompt}] + [
            {"type": "input_image", "image_url": uri} for _, uri in images
        ]

        try:
            reply = await self.client.respond(content, model=self.config.vision_model)
            evaluation = parse_evaluation(reply)
        except (httpx.HTTPError, LLMError) as e:
            logger.error("Visual evaluation request failed: %s", e)
            evaluation = {
                **{name: 0 for name in SCORE_FIELDS},
                "analysis": f"Evaluation failed: {e}",
                "error": str(e),
            }

        evaluation["metadata"] = {
            **metadata,
            "evaluatedAt": format_timestamp(datetime.now(timezone.utc)),
        }
        self.store.save_evaluation(workspace, html_id, evaluation)
        logger.info(
            "Evaluation of %s done, overall score %s from %d screenshots",
            html_id,
            evaluation.get("overall_score"),
            len(images),
        )
        return evaluation

    async def evaluate_workspace(self, workspace: str) -> list[dict]:
        """Evaluate every HTML file in a workspace, one at a time."""
        html_dir = self.store.subdir(workspace, HTML_DIR)
        if not html_dir.is_dir():
            raise EvaluationError(f"Workspace '{workspace}' has no html directory")

        results = []
        for html in sorted(html_dir.iterdir()):
            if not html.name.endswith(".html"):
                continue
            html_id = strip_extension(html.name, ".html")
            try:
                evaluation = await self.evaluate_html_file(workspace, html_id)
                results.append({"file": html_id, "status": "success", "evaluation": evaluation})
            except (EvaluationError, OSError, ValueError) as e:
                results.append({"file": html_id, "status": "error", "error": str(e)})
        logger.info("Evaluated %d files in %s", len(results), workspace)
        return results
