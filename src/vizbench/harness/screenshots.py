"""Capture one screenshot per interaction step for visual evaluation.

Files are named ``NN_<state>_<label>.png`` so the workspace API can recover the
FSM state of each shot from its name.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from playwright.sync_api import Page

logger = logging.getLogger(__name__)

_NON_STATE = re.compile(r"[^a-z_]+")
_NON_LABEL = re.compile(r"[^a-z0-9]+")

# Bare suffixes that sequence-numbered suite names use for their own states
_RESERVED_LABELS = frozenset({"complete", "test"})


@dataclass
class CaptureStep:
    """One named step: run ``action`` then screenshot the page in ``state``."""

    state: str
    label: str
    action: Callable[[Page], None] | None = None


def _slug(text: str, pattern: re.Pattern[str], sep: str) -> str:
    return pattern.sub(sep, text.strip().lower()).strip(sep) or "step"


def screenshot_name(index: int, state: str, label: str) -> str:
    """File name for a step. States keep underscores, labels use hyphens.

    A label of just ``complete`` or ``test`` gets the step index appended, since
    those suffixes would otherwise be read back as a different state.
    """
    slug = _slug(label, _NON_LABEL, "-")
    if slug in _RESERVED_LABELS:
        slug = f"{slug}-{index:02d}"
    return f"{index:02d}_{_slug(state, _NON_STATE, '_')}_{slug}.png"


def capture_states(page: Page, out_dir: Path, steps: Sequence[CaptureStep]) -> list[Path]:
    """Run each step in order and save a full-page screenshot after it.

    Returns:
        The written screenshot paths, in step order.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for index, step in enumerate(steps, start=1):
        if step.action is not None:
            step.action(page)
        path = out_dir / screenshot_name(index, step.state, step.label)
        page.screenshot(path=str(path), full_page=True)
        paths.append(path)
    logger.info("Captured %d screenshots into %s", len(paths), out_dir)
    return paths
