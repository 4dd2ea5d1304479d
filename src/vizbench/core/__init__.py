"""Core input validation helpers."""

from .validation import (
    ensure_within,
    validate_file_name,
    validate_name,
    validate_workspace_name,
)

__all__ = [
    "ensure_within",
    "validate_file_name",
    "validate_name",
    "validate_workspace_name",
]
