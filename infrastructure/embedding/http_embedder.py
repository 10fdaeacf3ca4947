"""Embedder for OpenAI-compatible ``/embeddings`` endpoints."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

import requests

from domain.errors import ServiceError
from domain.interfaces import Embedder

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HttpEmbedderConfig:
    model: str
    dimension: int
    base_url: str = "https://api.openai.com/v1"
    api_key: str | None = None
    batch_size: int = 64
    timeout: float = 60.0


class HttpEmbedder(Embedder):
    """Remote embeddings fetched in batches with ``requests``."""

    def __init__(self, config: HttpEmbedderConfig) -> None:
        self._config = config

    @property
    def model_id(self) -> str:
        return self._config.model

    @property
    def dimension(self) -> int:
        return self._config.dimension

    async def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._embed_sync, list(texts))

    def _embed_sync(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        size = max(1, self._config.batch_size)
        for start in range(0, len(texts), size):
            vectors.extend(self._request(texts[start : start + size]))
        return vectors

    def _request(self, batch: list[str]) -> list[list[float]]:
        headers = {}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        logger.debug("Embedding %d texts with %s", len(batch), self._config.model)
        try:
            response = requests.post(
                f"{self._config.base_url.rstrip('/')}/embeddings",
                headers=headers,
                json={"model": self._config.model, "input": batch},
                timeout=self._config.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            raise ServiceError(f"Embedding request failed with status {status}: {exc}", status_code=status) from exc
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise ServiceError(f"Embedding request failed: {exc}", retryable=True) from exc

        data = sorted(response.json()["data"], key=lambda item: item.get("index", 0))
        return [list(item["embedding"]) for item in data]


__all__ = ["HttpEmbedder", "HttpEmbedderConfig"]
