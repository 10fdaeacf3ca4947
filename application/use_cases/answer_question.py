"""Use case that answers a question about the indexed codebase end to end."""
from __future__ import annotations

import asyncio
import logging

from application.evaluation.models import RetrySettings
from application.evaluation.runner import NO_CONTEXT_ANSWER, evaluate_and_retry
from application.evaluation.service import AnswerEvaluator
from application.use_cases.compress_context import ContextCompressor
from application.use_cases.generate_answer import AnswerGenerator
from application.use_cases.retrieve_context import ContextRetriever
from application.use_cases.route_query import RetrievalRouter
from domain.entities import PipelineResult, Query
from domain.errors import ConfigurationError, PipelineError, wrap_stage_error
from domain.interfaces import QueryRewriter

logger = logging.getLogger(__name__)


async def answer_question(
    query_text: str,
    *,
    router: RetrievalRouter,
    query_rewriter: QueryRewriter,
    retriever: ContextRetriever,
    compressor: ContextCompressor,
    generator: AnswerGenerator,
    evaluator: AnswerEvaluator,
    retry_settings: RetrySettings | None = None,
) -> PipelineResult:
    """Route, retrieve, compress, generate and grade an answer for ``query_text``.

    Routing and query transformation only depend on the raw query and run
    concurrently. Retrieval uses the transformed query; every later stage
    uses the raw one. Failures surface as ``PipelineError`` naming the stage
    and the active strategy.
    """

    collaborators = {
        "router": router,
        "query_rewriter": query_rewriter,
        "retriever": retriever,
        "compressor": compressor,
        "generator": generator,
        "evaluator": evaluator,
    }
    missing = [name for name, service in collaborators.items() if service is None]
    if missing:
        raise ConfigurationError(f"Missing pipeline collaborators: {', '.join(missing)}")
    if not query_text or not query_text.strip():
        raise PipelineError("Query text must not be empty", stage="input")

    query = Query(text=query_text)
    decision, transformed = await asyncio.gather(
        router.decide(query),
        query_rewriter.rewrite(query),
        return_exceptions=True,
    )
    if isinstance(decision, BaseException):
        raise wrap_stage_error(decision, stage="decide_retrieval")
    if isinstance(transformed, BaseException):
        raise wrap_stage_error(transformed, stage="transform_query")

    strategy = decision.strategy
    try:
        context = await retriever.retrieve(transformed.text, decision)
    except Exception as exc:
        raise wrap_stage_error(exc, stage="get_context", strategy=strategy)

    try:
        context = await compressor.compress(query_text, context)
    except Exception as exc:
        raise wrap_stage_error(exc, stage="compress_context", strategy=strategy)

    if not context.strip():
        logger.warning("No context available for strategy '%s'; skipping generation.", strategy)
        return PipelineResult(final_answer=NO_CONTEXT_ANSWER)

    try:
        answer = await generator.generate(query_text, context)
    except Exception as exc:
        raise wrap_stage_error(exc, stage="generate_response", strategy=strategy)

    try:
        result = await evaluate_and_retry(
            query_text,
            context,
            answer,
            evaluator=evaluator,
            generator=generator,
            settings=retry_settings,
        )
    except Exception as exc:
        raise wrap_stage_error(exc, stage="evaluate_and_retry", strategy=strategy)

    logger.info("Pipeline finished with strategy '%s' (score=%s)", strategy, result.evaluation_score)
    return result


__all__ = ["answer_question"]
