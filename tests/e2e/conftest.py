"""E2E test configuration - Playwright tests use sync API with their own event loop."""

import contextlib
import os
from pathlib import Path

import pytest

DEMOS_DIR = Path(__file__).resolve().parent.parent / "fixtures" / "demos"


@pytest.fixture(scope="session")
def demo_url():
    """Return the URL of a fixture demo page.

    Set VIZBENCH_DEMO_BASE_URL to run the suites against served copies instead
    of the files under tests/fixtures/demos.

    Usage:
        page.goto(demo_url("stack.html"))
    """
    base = os.environ.get("VIZBENCH_DEMO_BASE_URL")

    def url(name: str) -> str:
        if base:
            return f"{base.rstrip('/')}/{name}"
        return (DEMOS_DIR / name).as_uri()

    return url


# ── Screenshot-on-failure hook ───────────────────────────────────────

RESULTS_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "..", "test-results")


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Capture screenshot on test failure for debugging."""
    outcome = yield
    report = outcome.get_result()
    if report.when == "call" and report.failed:
        page = item.funcargs.get("page")
        if page is not None:
            os.makedirs(RESULTS_DIR, exist_ok=True)
            path = os.path.join(RESULTS_DIR, f"{item.name}.png")
            with contextlib.suppress(Exception):
                page.screenshot(path=path)
