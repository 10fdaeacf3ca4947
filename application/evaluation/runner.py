from __future__ import annotations

import logging

from application.evaluation.models import RetrySettings
from application.evaluation.service import AnswerEvaluator
from application.use_cases.generate_answer import AnswerGenerator
from domain.entities import PipelineResult

logger = logging.getLogger(__name__)

NO_CONTEXT_ANSWER = "No relevant context found to generate an answer."


async def evaluate_and_retry(
    query: str,
    context: str,
    answer: str,
    *,
    evaluator: AnswerEvaluator,
    generator: AnswerGenerator,
    settings: RetrySettings | None = None,
) -> PipelineResult:
    """Grade the answer and regenerate it once when the score is below the threshold."""

    cfg = settings or RetrySettings()
    if not context or not context.strip():
        logger.warning("Empty context received. Returning default response.")
        return PipelineResult(final_answer=NO_CONTEXT_ANSWER)

    truncated = context[: cfg.max_context_length]
    if len(context) > cfg.max_context_length:
        logger.warning("Context truncated from %d to %d characters.", len(context), cfg.max_context_length)

    result = await evaluator.evaluate(answer, query, truncated)
    logger.info("Initial evaluation: score=%s grounded=%s", result.overall, result.is_grounded)

    if result.overall < cfg.retry_threshold:
        logger.info("Initial score %s < %s. Regenerating response.", result.overall, cfg.retry_threshold)
        regenerated = await generator.generate(
            query,
            truncated,
            prior_answer=result.answer,
            prior_reasoning=result.reasoning,
            prior_score=result.overall,
        )
        result = await evaluator.evaluate(regenerated, query, truncated)
        logger.info("Regenerated evaluation: score=%s grounded=%s", result.overall, result.is_grounded)

    return PipelineResult(
        final_answer=result.answer,
        evaluation_score=result.overall,
        is_grounded=result.is_grounded,
    )
