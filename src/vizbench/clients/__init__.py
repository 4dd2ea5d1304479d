"""External API client modules."""

from .llm import LLMClient, extract_output_text, parse_sse_line

__all__ = [
    "LLMClient",
    "extract_output_text",
    "parse_sse_line",
]
