"""LLM-as-judge scoring plus an embedding-based groundedness check."""
from __future__ import annotations

import asyncio
import logging

from application.evaluation.metrics import cosine_similarity, is_grounded_score
from application.evaluation.models import AnswerJudgement
from domain.entities import EvaluationResult
from domain.errors import PipelineError
from domain.interfaces import Embedder, LanguageModel

logger = logging.getLogger(__name__)

JUDGE_INSTRUCTIONS = """You are an impartial judge of answers about a codebase.
Score the answer against the question and the context snippets, each from 0 (poor) to 1 (excellent):
- accuracy: is it factually correct according to the context?
- relevance: does it address the question directly?
- completeness: does it cover the key aspects present in the context?
- coherence: is it well structured and easy to follow?
Derive an overall score from these dimensions and give brief reasoning with strengths and weaknesses.
"""


async def is_answer_grounded(answer: str, context: str, *, embedder: Embedder, threshold: float) -> bool:
    """Return True when the answer embedding is close enough to the context embedding."""

    if not context or not context.strip():
        logger.warning("Groundedness check skipped: context is empty.")
        return False
    if not answer or not answer.strip():
        logger.warning("Groundedness check skipped: answer is empty.")
        return False

    try:
        answer_vectors, context_vectors = await asyncio.gather(
            embedder.embed_texts([answer]),
            embedder.embed_texts([context]),
        )
    except Exception as exc:
        logger.exception("Embedding failed during groundedness check.")
        raise PipelineError(
            f"Embedding failed during groundedness check: {exc}",
            stage="evaluate",
            retryable=True,
        ) from exc

    similarity = cosine_similarity(answer_vectors[0], context_vectors[0])
    logger.debug("Groundedness similarity score: %.4f", similarity)
    return is_grounded_score(similarity, threshold)


class AnswerEvaluator:
    """Judge an answer and check its groundedness."""

    def __init__(self, llm: LanguageModel, embedder: Embedder, *, groundedness_threshold: float = 0.7) -> None:
        self._llm = llm
        self._embedder = embedder
        self._threshold = groundedness_threshold

    async def evaluate(self, answer: str, query: str, context: str) -> EvaluationResult:
        prompt = (
            f"User Query: {query}\n"
            f"Context:\n{context}\n\n"
            f"Generated Answer: {answer}\n\n"
            "Evaluate the answer against the context on accuracy, relevance, completeness and coherence, "
            "then give an overall score between 0 and 1 with your reasoning."
        )
        judgement = await self._llm.generate_structured(prompt, AnswerJudgement, system=JUDGE_INSTRUCTIONS)
        grounded = await is_answer_grounded(answer, context, embedder=self._embedder, threshold=self._threshold)
        logger.info("Evaluation: score=%.3f grounded=%s", judgement.overall, grounded)
        return EvaluationResult(
            answer=answer,
            accuracy=judgement.accuracy,
            relevance=judgement.relevance,
            completeness=judgement.completeness,
            coherence=judgement.coherence,
            overall=judgement.overall,
            reasoning=judgement.reasoning,
            is_grounded=grounded,
        )


__all__ = ["AnswerEvaluator", "JUDGE_INSTRUCTIONS", "is_answer_grounded"]
