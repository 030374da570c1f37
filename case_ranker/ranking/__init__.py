"""
Feature extraction, preference learning, and personalized reranking.
"""

from .features import FeatureKey, FeatureTuple, extract_features
from .preferences import PreferenceKey, PreferenceUpdater, preference_delta
from .rerank import RankedResult, rerank

__all__ = [
    "FeatureKey",
    "FeatureTuple",
    "PreferenceKey",
    "PreferenceUpdater",
    "RankedResult",
    "extract_features",
    "preference_delta",
    "rerank",
]
