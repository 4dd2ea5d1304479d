"""Exception hierarchy for vizbench."""

from __future__ import annotations


class VizbenchError(Exception):
    """Base class for all vizbench errors."""


class WorkspaceError(VizbenchError):
    """A workspace or one of its files could not be read."""


class EntryNotFoundError(WorkspaceError):
    """A UUID data entry does not exist in the workspace."""


class FsmNotFoundError(WorkspaceError):
    """No FSM definition could be located."""


class EvaluationNotFoundError(WorkspaceError):
    """No saved visual evaluation exists for an HTML file."""


class LLMError(VizbenchError):
    """The language model returned an empty or unusable response."""


class EvaluationError(VizbenchError):
    """Visual evaluation could not be performed."""


class SimilarityError(VizbenchError):
    """FSM comparison failed."""


class ConceptNotFoundError(VizbenchError):
    """An FSM carries no concept, topic or goal to match on."""


class IdealFsmNotFoundError(VizbenchError):
    """No reference FSM matches a concept."""


class NoScoreDataError(VizbenchError):
    """A workspace has no test results or scores to analyze."""
