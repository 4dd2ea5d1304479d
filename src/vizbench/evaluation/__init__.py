"""Visual evaluation of generated pages."""

from .visual import VisualEvaluator, categorize_screenshots, select_screenshots

__all__ = [
    "VisualEvaluator",
    "categorize_screenshots",
    "select_screenshots",
]
