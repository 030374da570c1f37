"""
Embedding provider client.
"""

from .client import EmbeddingClient, EmbeddingConfig

__all__ = ["EmbeddingClient", "EmbeddingConfig"]
