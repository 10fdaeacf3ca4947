"""Deterministic feature-hashing embedder for offline runs and tests."""
from __future__ import annotations

import hashlib
import re
from typing import Sequence

import numpy as np

from domain.interfaces import Embedder

_WORD_RE = re.compile(r"\w+")


class HashEmbedder(Embedder):
    """Bag-of-words hashed into a fixed number of buckets, L2-normalized.

    Texts with the same words map to the same vector, so similarity behaves
    sensibly without a model download.
    """

    def __init__(self, dimension: int = 256) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self._dimension = dimension
        self._model_id = f"hash-{dimension}"

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def dimension(self) -> int:
        return self._dimension

    def _hash(self, text: str) -> list[float]:
        vector = np.zeros(self._dimension, dtype=float)
        for word in _WORD_RE.findall(text.lower()):
            digest = hashlib.sha256(word.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "little") % self._dimension
            vector[bucket] += 1.0 if digest[4] % 2 == 0 else -1.0
        norm = float(np.linalg.norm(vector)) or 1.0
        return (vector / norm).tolist()

    async def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        return [self._hash(text) for text in texts]


__all__ = ["HashEmbedder"]
