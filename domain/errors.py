"""Error taxonomy shared by the pipeline stages."""
from __future__ import annotations

_RETRYABLE_MESSAGE_MARKERS = (
    "econnrefused",
    "connection refused",
    "timeout",
    "timed out",
    "network error",
    "fetch failed",
)


class ServiceError(Exception):
    """Failure of an upstream service call (LLM, embeddings, vector store)."""

    def __init__(self, message: str, *, status_code: int | None = None, retryable: bool | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class UnsupportedFilterError(ValueError):
    """Raised when a filter uses an operator or shape the store cannot express."""


class PipelineError(Exception):
    """Stage failure surfaced by the orchestrator."""

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        strategy: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.strategy = strategy
        self.retryable = retryable


class ConfigurationError(PipelineError):
    """A required collaborator or setting is missing."""

    def __init__(self, message: str, *, stage: str = "configuration") -> None:
        super().__init__(message, stage=stage, retryable=False)


def is_retryable_error(error: BaseException | None) -> bool:
    """Return True when the failure is likely transient."""

    if error is None:
        return False
    if isinstance(error, UnsupportedFilterError):
        return False

    marker = getattr(error, "retryable", None)
    if isinstance(marker, bool):
        return marker

    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    if isinstance(status, int) and (status == 429 or status >= 500):
        return True

    message = str(error).lower()
    return any(token in message for token in _RETRYABLE_MESSAGE_MARKERS)


def wrap_stage_error(error: BaseException, *, stage: str, strategy: str | None = None) -> PipelineError:
    """Attach stage identity and the retry classification to a failure."""

    if isinstance(error, PipelineError):
        if error.strategy is None and strategy is not None:
            error.strategy = strategy
        return error
    detail = f"Stage '{stage}' failed"
    if strategy:
        detail += f" with strategy '{strategy}'"
    wrapped = PipelineError(
        f"{detail}: {error}",
        stage=stage,
        strategy=strategy,
        retryable=is_retryable_error(error),
    )
    wrapped.__cause__ = error
    return wrapped


__all__ = [
    "ServiceError",
    "UnsupportedFilterError",
    "PipelineError",
    "ConfigurationError",
    "is_retryable_error",
    "wrap_stage_error",
]
