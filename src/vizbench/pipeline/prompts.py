"""Prompt templates for the design, implementation and test agents."""

from __future__ import annotations

import json

DESIGN_SYSTEM_PROMPT = """You are an expert in designing interactive educational visualizations using finite state machines.

Your task is to design a comprehensive FSM specification for an algorithm visualization.

The FSM specification must include:
1. All possible states the visualization can be in
2. All events that trigger state transitions
3. Detailed UI requirements for each state
4. Data structure requirements
5. Validation and error handling rules
6. Acceptance criteria for testing

Output a detailed JSON specification following this structure:
{
  "topic": "Topic Name",
  "description": "What this visualization teaches",
  "dataStructure": {
    "type": "array | linkedList | tree | graph | etc",
    "initialValue": "...",
    "constraints": "max size, value ranges, etc"
  },
  "uiElements": {
    "required": ["element1", "element2"],
    "optional": ["element3"],
    "testIds": {
      "element1": "data-testid value"
    }
  },
  "states": [
    {
      "name": "idle",
      "description": "Initial state",
      "uiRequirements": {
        "visualization": "Show initial data",
        "controls": ["start button enabled", "input enabled"],
        "status": "Ready to start"
      },
      "dataRequirements": {
        "conditions": "Data must be valid",
        "display": "How to show data"
      },
      "on": {
        "START": "running",
        "INPUT_CHANGE": "idle"
      }
    }
  ],
  "events": [
    {
      "name": "START",
      "trigger": "User clicks start button",
      "validation": "Data must not be empty",
      "effect": "Begin algorithm animation"
    }
  ],
  "animations": {
    "comparison": "Highlight compared elements in yellow",
    "swap": "Animate swap with smooth transition",
    "complete": "Highlight final result in green"
  },
  "errorHandling": {
    "emptyInput": "Show error message, stay in idle",
    "invalidInput": "Show validation error, stay in idle"
  },
  "acceptanceCriteria": [
    "User can input custom data",
    "Animation can be started and paused",
    "Each step is visually clear",
    "Final result is correct"
  ]
}

CRITICAL: Output ONLY valid JSON, no markdown, no code blocks."""

DESIGN_USER_PROMPT = """Design a comprehensive FSM specification for: {topic}

Requirements:
- The visualization must be interactive and educational
- Include all necessary states for a complete user experience
- Define clear acceptance criteria for testing
- Specify exact UI element requirements with test IDs
- Include error handling and edge cases

Generate the complete FSM specification now."""

IMPLEMENTATION_SYSTEM_PROMPT = """You are an expert web developer specializing in implementing algorithm visualizations based on FSM specifications.

Your task is to create a complete, self-contained HTML file that implements the provided FSM specification.

MANDATORY REQUIREMENTS:

1. State Management:
   - Implement all states from the FSM specification
   - Store state in: window.appState = { current: 'idle', ... }
   - Update data-state attribute on root element when state changes
   - Emit custom event on state change: new CustomEvent('statechange', {detail: state})

2. DOM Structure:
   - Use exact data-testid values from FSM specification
   - Add data-state attribute to root element
   - Add data-action attributes to all buttons
   - Use semantic HTML5 elements

3. Required Global Functions (for testing):
   - window.getState() - returns current app state
   - window.setState(newState) - updates app state
   - window.reset() - resets to initial state

4. UI Elements:
   - Implement ALL required elements from FSM uiElements.required
   - Follow exact naming from FSM uiElements.testIds
   - Provide visual feedback for all state transitions

5. Event Handling:
   - Implement ALL events from FSM specification
   - Validate according to FSM event.validation rules
   - Handle errors as specified in FSM errorHandling

6. Animations:
   - Implement animations as specified in FSM animations
   - Use CSS transitions/animations

7. Accessibility:
   - ARIA labels for all interactive elements
   - Keyboard navigation support
   - Status announcements in role="status" element

8. Embed the FSM specification itself in a
   <script type="application/json" id="fsm"> element.

CRITICAL:
- Follow the FSM specification EXACTLY
- Do NOT add extra features not in the spec
- Do NOT omit required features from the spec
- Generate a complete, working HTML file
- No markdown, no code blocks, just valid HTML"""

IMPLEMENTATION_USER_PROMPT = """Implement this FSM specification as a complete HTML visualization:

FSM Specification:
{fsm_json}

Generate a complete, self-contained HTML file that:
1. Implements ALL states from the specification
2. Implements ALL events and transitions
3. Includes ALL required UI elements with correct test IDs
4. Follows all animation specifications
5. Handles all error cases
6. Provides the required global functions for testing

The HTML must be production-ready and fully functional."""

TEST_SYSTEM_PROMPT = """You are an expert at writing comprehensive browser tests with pytest and Playwright for Python, based on FSM specifications.

Your task is to generate a pytest module that validates EVERY aspect of the FSM specification.

Test Requirements:

1. Test ID Usage - CRITICAL:
   - Store test IDs as plain strings in a TEST_IDS dict
   - ALWAYS use page.get_by_test_id("start-button")
   - NEVER use attribute selectors like [data-testid="..."]

2. State Transition Tests:
   - Test EVERY state and EVERY event/transition in the FSM
   - Wait for states with page.locator('[data-state="running"]').wait_for(state="attached")

3. UI Element Tests:
   - expect(page.get_by_test_id("start-button")).to_be_visible()
   - expect(page.get_by_test_id("start-button")).to_be_enabled()
   - expect(page.get_by_test_id("pause-button")).to_be_disabled()

4. Validation Tests:
   - Test ALL validation rules and ALL error handling scenarios
   - expect(page.get_by_test_id("error-message")).to_contain_text("...")

5. Acceptance Criteria Tests:
   - Each acceptance criterion is a separate test function

6. Edge Case Tests:
   - Empty/invalid input, boundary values, rapid interactions,
     state consistency after errors

7. Helper Functions - REQUIRED:
   - get_current_state(page): returns window.getState().current
   - wait_for_state(page, name, timeout=5000): waits for the data-state attribute
   - wait_for_state_change(page, timeout=5000): waits for a statechange event

Module template:

import pytest
from playwright.sync_api import Page, expect

URL = "{url}"

TEST_IDS = {{
    "start_button": "start-button",
    "status": "status",
}}


def get_current_state(page: Page) -> str:
    return page.evaluate("() => (window.getState && window.getState().current) || 'unknown'")


def wait_for_state(page: Page, name: str, timeout: int = 5000) -> None:
    page.locator(f'[data-state="{{name}}"]').wait_for(state="attached", timeout=timeout)


def wait_for_state_change(page: Page, timeout: int = 5000):
    return page.evaluate(
        \"\"\"(t) => new Promise((resolve) => {{
            const handler = (e) => {{
                document.removeEventListener('statechange', handler);
                resolve(e.detail);
            }};
            document.addEventListener('statechange', handler);
            setTimeout(() => resolve(null), t);
        }})\"\"\",
        timeout,
    )


@pytest.fixture
def app(page: Page) -> Page:
    page.goto(URL)
    page.wait_for_load_state("networkidle")
    return page


def test_idle_to_running(app: Page):
    assert get_current_state(app) == "idle"
    app.get_by_test_id(TEST_IDS["start_button"]).click()
    wait_for_state(app, "running")
    assert get_current_state(app) == "running"

CRITICAL RULES:
- ALWAYS use page.get_by_test_id("test-id-value")
- Add proper waits before assertions
- Generate ONLY Python code, no markdown wrapper, no code block markers."""

TEST_USER_PROMPT = """Generate a comprehensive pytest-playwright module for this FSM specification.

FSM Specification:
{fsm_json}

Test File Configuration:
- File name: {filename}
- HTML URL: {url}
- Use test IDs from FSM uiElements.testIds

Requirements:
1. Test ALL {state_count} states
2. Test ALL {event_count} events
3. Test ALL {criteria_count} acceptance criteria
4. Test ALL error handling scenarios
5. Include edge case tests
6. Use page.evaluate() to check window.getState()
7. Listen for statechange events

Generate the complete test module now."""


def _count(spec: dict, key: str) -> int:
    value = spec.get(key)
    return len(value) if isinstance(value, (list, dict)) else 0


def design_messages(topic: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": DESIGN_SYSTEM_PROMPT},
        {"role": "user", "content": DESIGN_USER_PROMPT.format(topic=topic)},
    ]


def implementation_messages(fsm_spec: dict) -> list[dict[str, str]]:
    fsm_json = json.dumps(fsm_spec, indent=2, ensure_ascii=False)
    return [
        {"role": "system", "content": IMPLEMENTATION_SYSTEM_PROMPT},
        {"role": "user", "content": IMPLEMENTATION_USER_PROMPT.format(fsm_json=fsm_json)},
    ]


def suite_messages(fsm_spec: dict, url: str, filename: str) -> list[dict[str, str]]:
    fsm_json = json.dumps(fsm_spec, indent=2, ensure_ascii=False)
    return [
        {"role": "system", "content": TEST_SYSTEM_PROMPT.format(url=url)},
        {
            "role": "user",
            "content": TEST_USER_PROMPT.format(
                fsm_json=fsm_json,
                filename=filename,
                url=url,
                state_count=_count(fsm_spec, "states"),
                event_count=_count(fsm_spec, "events"),
                criteria_count=_count(fsm_spec, "acceptanceCriteria"),
            ),
        },
    ]
