"""Test-result loading, statistics and HTML analysis reports."""

from .reports import (
    analyze_correlation,
    analyze_fsm_differentiation,
    analyze_fsm_dimensions,
    analyze_model_similarity,
    analyze_pass_rates,
    analyze_scores,
    compare_models,
)
from .results import FileResult, load_file_results, load_scores, run_suites

__all__ = [
    "FileResult",
    "analyze_correlation",
    "analyze_fsm_differentiation",
    "analyze_fsm_dimensions",
    "analyze_model_similarity",
    "analyze_pass_rates",
    "analyze_scores",
    "compare_models",
    "load_file_results",
    "load_scores",
    "run_suites",
]
