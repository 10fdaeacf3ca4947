"""Reranker that sorts results by score."""
from __future__ import annotations

from typing import Sequence

from domain.entities import Query, VectorMatch
from domain.interfaces import Reranker


class SimpleReranker(Reranker):
    """Sort matches by vector score descending and keep the first ``top_k``."""

    async def rerank(self, query: Query, results: Sequence[VectorMatch], top_k: int) -> list[VectorMatch]:
        return sorted(results, key=lambda result: result.score, reverse=True)[:top_k]


__all__ = ["SimpleReranker"]
