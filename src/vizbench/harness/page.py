"""Base page object for browser suites that drive a single demo page."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from playwright.sync_api import ConsoleMessage, Dialog, Error, Page

logger = logging.getLogger(__name__)

DEFAULT_STATE_TIMEOUT_MS = 5000

_STATE_SCRIPT = """() => {
    if (window.getState && window.getState()) {
        return window.getState().current || null;
    }
    const root = document.querySelector('[data-state]');
    return root ? root.getAttribute('data-state') : null;
}"""

_STATE_CHANGE_SCRIPT = """(timeout) => new Promise((resolve) => {
    const handler = (event) => {
        document.removeEventListener('statechange', handler);
        window.removeEventListener('statechange', handler);
        resolve(event.detail === undefined ? null : event.detail);
    };
    document.addEventListener('statechange', handler);
    window.addEventListener('statechange', handler);
    setTimeout(() => resolve(null), timeout);
})"""


@dataclass
class DialogRecord:
    type: str
    message: str


@dataclass
class DemoPage:
    """Thin wrapper around a Playwright page pointed at one demo URL.

    ``open()`` starts recording uncaught page errors, console errors and
    dialogs. Dialogs are accepted (prompts with ``prompt_answer``) so a demo
    that alerts never blocks the suite.

    Subclasses map a demo's selectors to named accessors and actions.
    """

    page: Page
    url: str
    prompt_answer: str = ""
    page_errors: list[str] = field(default_factory=list)
    console_errors: list[str] = field(default_factory=list)
    dialog_log: list[DialogRecord] = field(default_factory=list)

    def open(self) -> "DemoPage":
        self.page.on("pageerror", self._on_page_error)
        self.page.on("console", self._on_console)
        self.page.on("dialog", self._on_dialog)
        self.page.goto(self.url)
        self.page.wait_for_load_state("domcontentloaded")
        return self

    # -- Event recording -----------------------------------------------------

    def _on_page_error(self, error: Error) -> None:
        logger.debug("Page error on %s: %s", self.url, error.message)
        self.page_errors.append(error.message)

    def _on_console(self, message: ConsoleMessage) -> None:
        if message.type == "error":
            self.console_errors.append(message.text)

    def _on_dialog(self, dialog: Dialog) -> None:
        self.dialog_log.append(DialogRecord(type=dialog.type, message=dialog.message))
        if dialog.type == "prompt":
            dialog.accept(self.prompt_answer)
        else:
            dialog.accept()

    @property
    def dialogs(self) -> list[str]:
        return [d.message for d in self.dialog_log]

    @property
    def last_dialog(self) -> str | None:
        return self.dialog_log[-1].message if self.dialog_log else None

    def assert_no_runtime_errors(self) -> None:
        """Fail if the page threw an uncaught exception or logged a console error."""
        assert not self.page_errors, f"Uncaught page errors: {self.page_errors}"
        assert not self.console_errors, f"Console errors: {self.console_errors}"

    # -- DOM access ----------------------------------------------------------

    def click(self, selector: str) -> None:
        self.page.locator(selector).first.click()

    def fill(self, selector: str, value: str) -> None:
        self.page.locator(selector).first.fill(value)

    def text(self, selector: str) -> str:
        return self.page.locator(selector).first.inner_text().strip()

    def value(self, selector: str) -> str:
        return self.page.locator(selector).first.input_value()

    def is_disabled(self, selector: str) -> bool:
        return self.page.locator(selector).first.is_disabled()

    def attribute(self, selector: str, name: str) -> str | None:
        return self.page.locator(selector).first.get_attribute(name)

    def count(self, selector: str) -> int:
        return self.page.locator(selector).count()

    def computed_style(self, selector: str, prop: str) -> str:
        return self.page.locator(selector).first.evaluate(
            "(el, prop) => getComputedStyle(el).getPropertyValue(prop)", prop
        )

    # -- FSM-instrumented pages ----------------------------------------------

    def current_state(self) -> str | None:
        """State from ``window.getState().current``, else the root data-state."""
        return self.page.evaluate(_STATE_SCRIPT)

    def wait_for_state(self, name: str, timeout: int = DEFAULT_STATE_TIMEOUT_MS) -> None:
        self.page.locator(f'[data-state="{name}"]').first.wait_for(
            state="attached", timeout=timeout
        )

    def wait_for_state_change(self, timeout: int = DEFAULT_STATE_TIMEOUT_MS):
        """Resolve with the detail of the next ``statechange`` event, or None on timeout."""
        return self.page.evaluate(_STATE_CHANGE_SCRIPT, timeout)
