"""Reranker that blends an LLM relevance score with vector score and rank."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Sequence

from pydantic import BaseModel, Field

from domain.entities import Query, VectorMatch
from domain.interfaces import LanguageModel, Reranker

logger = logging.getLogger(__name__)

RELEVANCE_INSTRUCTIONS = (
    "You rate how relevant a code snippet is to a developer's question. "
    "Return a score between 0 (unrelated) and 1 (directly answers the question)."
)


class RelevanceScore(BaseModel):
    score: float = Field(ge=0.0, le=1.0)


@dataclass(slots=True)
class RerankWeights:
    semantic: float = 0.4
    vector: float = 0.4
    position: float = 0.2


def position_score(position: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return 1.0 - position / total


class LLMReranker(Reranker):
    """Score every candidate concurrently, then sort by the weighted blend."""

    def __init__(self, llm: LanguageModel, weights: RerankWeights | None = None) -> None:
        self._llm = llm
        self._weights = weights or RerankWeights()

    async def rerank(self, query: Query, results: Sequence[VectorMatch], top_k: int) -> list[VectorMatch]:
        if not results:
            return []
        semantic_scores = await asyncio.gather(*(self._semantic_score(query, match) for match in results))
        total = len(results)
        scored = []
        for position, (match, semantic) in enumerate(zip(results, semantic_scores)):
            combined = (
                self._weights.semantic * semantic
                + self._weights.vector * match.score
                + self._weights.position * position_score(position, total)
            )
            scored.append(replace(match, score=combined))
        scored.sort(key=lambda match: match.score, reverse=True)
        logger.debug("Reranked %d candidates, keeping %d", total, top_k)
        return scored[:top_k]

    async def _semantic_score(self, query: Query, match: VectorMatch) -> float:
        text = match.metadata.get("text") or match.metadata.get("content") or ""
        prompt = f"Question: {query.text}\n\nSnippet:\n{text}\n\nRelevance score:"
        response = await self._llm.generate_structured(prompt, RelevanceScore, system=RELEVANCE_INSTRUCTIONS)
        return response.score


__all__ = ["LLMReranker", "RerankWeights", "RelevanceScore", "position_score"]
