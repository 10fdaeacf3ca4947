"""FastAPI layer that exposes the question answering pipeline."""
from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from application.use_cases.answer_question import answer_question
from domain.errors import PipelineError
from infrastructure.config import Container, ContainerConfig, build_default_container
from ui.logging_utils import setup_logging

config = ContainerConfig.from_env()
setup_logging(config)
logger = logging.getLogger(__name__)

app = FastAPI(title="Codebase QA API")


@lru_cache(maxsize=1)
def get_container() -> Container:
    return build_default_container(config)


class AskRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    query: str = Field(..., min_length=1, description="Question about the codebase")


class AskResponse(BaseModel):
    finalAnswer: str
    evaluationScore: float | None = None
    isGrounded: bool | None = None


@app.get("/health")
def health_endpoint() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/ask", response_model=AskResponse, response_model_exclude_none=True)
async def ask_endpoint(payload: AskRequest, container: Container = Depends(get_container)) -> AskResponse:
    try:
        result = await answer_question(
            payload.query,
            router=container.router,
            query_rewriter=container.query_rewriter,
            retriever=container.retriever,
            compressor=container.compressor,
            generator=container.generator,
            evaluator=container.evaluator,
            retry_settings=container.retry_settings,
        )
    except PipelineError as exc:
        logger.error("Pipeline failed at stage %s (strategy=%s): %s", exc.stage, exc.strategy, exc)
        if exc.stage == "input":
            status = 422
        else:
            status = 503 if exc.retryable else 500
        raise HTTPException(
            status_code=status,
            detail={"error": str(exc), "stage": exc.stage, "strategy": exc.strategy, "retryable": exc.retryable},
        ) from exc
    return AskResponse(**result.to_dict())
