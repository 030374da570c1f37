"""
Case retrieval and the search/feedback engine.
"""

from .engine import ReactionOutcome, SearchEngine, SearchOutcome
from .retriever import Retriever

__all__ = ["ReactionOutcome", "Retriever", "SearchEngine", "SearchOutcome"]
