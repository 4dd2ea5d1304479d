"""LLM-driven generation of FSM designs, demo pages and browser suites."""

from .workflow import GenerationWorkflow, WorkflowResult, strip_code_fences

__all__ = [
    "GenerationWorkflow",
    "WorkflowResult",
    "strip_code_fences",
]
