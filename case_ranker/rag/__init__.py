"""
Optional LLM synthesis over ranked search results.
"""

from .synthesis import Synthesizer

__all__ = ["Synthesizer"]
