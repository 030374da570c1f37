"""
Query embedding client for a remote embedding API.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, List

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from case_ranker.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EmbeddingConfig:
    model: str
    dimension: int
    api_url: str | None = None
    api_key: str | None = None
    timeout: float = 10.0


class EmbeddingClient:
    """Calls a remote embedding endpoint; unusable without an API url and key."""

    def __init__(self, config: EmbeddingConfig) -> None:
        self.config = config

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_url and self.config.api_key)

    def embed_query(self, text: str) -> List[float]:
        if not self.is_configured:
            raise EmbeddingError("Embedding provider is not configured")
        if not text.strip():
            raise EmbeddingError("Cannot embed blank text")
        data = self._call_remote_embedding(text)
        return self._parse_vector(data)

    @retry(
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        stop=stop_after_attempt(2),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    def _call_remote_embedding(self, text: str) -> Any:
        headers = {"Authorization": f"Bearer {self.config.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.config.model,
            "input": text,
        }
        logger.debug("Requesting embeddings from %s", self.config.api_url)
        with httpx.Client(timeout=self.config.timeout) as client:
            response = client.post(self.config.api_url, headers=headers, json=payload)
            response.raise_for_status()
            return response.json()

    def _parse_vector(self, data: Any) -> List[float]:
        """Accept OpenAI-style {"data": [{"embedding": [...]}]} or a bare (possibly nested) vector."""
        vector = data
        try:
            if isinstance(data, dict):
                vector = data["data"][0]["embedding"]
            while isinstance(vector, list) and vector and isinstance(vector[0], list):
                vector = vector[0]
            vector = [float(value) for value in vector]
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise EmbeddingError(f"Unexpected embedding response: {json.dumps(data)[:200]}") from exc

        if len(vector) != self.config.dimension:
            raise EmbeddingError(
                f"Embedding has {len(vector)} dimensions, expected {self.config.dimension}"
            )
        return vector
