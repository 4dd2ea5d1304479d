"""FSM similarity scoring and reference matching."""

from .batch import BatchSimilarityEvaluator, run_batch_similarity
from .matching import ConceptCategories, extract_concept, find_ideal_fsm
from .similarity import compare_fsms, normalize_fsm

__all__ = [
    "BatchSimilarityEvaluator",
    "ConceptCategories",
    "compare_fsms",
    "extract_concept",
    "find_ideal_fsm",
    "normalize_fsm",
    "run_batch_similarity",
]
