"""Input validation for workspace-facing operations.

Workspace names and file names arrive from URL path segments and the CLI and are
joined onto the workspace root, so each one must be a single plain path component.
"""

from __future__ import annotations

import re
from pathlib import Path

# Pattern for names that are safe as a single path component
NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._ -]*$")

# Input length limits
MAX_NAME_LENGTH = 255


def validate_name(name: str, kind: str = "name") -> str:
    """Validate a workspace or file name.

    Args:
        name: Candidate path component.
        kind: Label used in error messages.

    Returns:
        The name unchanged.

    Raises:
        ValueError: If the name is empty, too long, or could escape its directory.
    """
    if not name:
        raise ValueError(f"{kind} must not be empty")

    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"{kind} too long (max {MAX_NAME_LENGTH} characters)")

    if "/" in name or "\\" in name or "\x00" in name:
        raise ValueError(f"Invalid {kind}: path separators are not allowed")

    if ".." in name:
        raise ValueError(f"Invalid {kind}: parent references are not allowed")

    if not NAME_PATTERN.match(name):
        raise ValueError(f"Invalid {kind}: '{name}'")

    return name


def validate_workspace_name(name: str) -> str:
    return validate_name(name, "workspace name")


def validate_file_name(name: str) -> str:
    return validate_name(name, "file name")


def ensure_within(path: Path, root: Path) -> Path:
    """Resolve a path and check it stays inside a root directory.

    Raises:
        ValueError: If the resolved path lies outside root.
    """
    resolved = path.resolve()
    if not resolved.is_relative_to(root.resolve()):
        raise ValueError("Path escapes the workspace root")
    return resolved
