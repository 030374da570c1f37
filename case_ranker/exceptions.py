"""
Exceptions raised by the search and feedback pipeline.
"""

from __future__ import annotations


class CaseRankerError(Exception):
    """Base class for errors raised by case_ranker."""


class InvalidQueryError(CaseRankerError, ValueError):
    """The search query is empty or blank."""


class InvalidReactionError(CaseRankerError, ValueError):
    """A reaction value outside of {1, -1, None}."""

    def __init__(self, value: object) -> None:
        super().__init__(f"reaction must be 1, -1 or null, got {value!r}")
        self.value = value


class CaseNotFoundError(CaseRankerError, LookupError):
    def __init__(self, case_id: str) -> None:
        super().__init__(f"Case not found: {case_id}")
        self.case_id = case_id


class EmbeddingError(CaseRankerError, RuntimeError):
    """The embedding provider is unconfigured or returned an unusable vector."""
