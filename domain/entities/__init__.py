"""Domain entities for the codebase question answering pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

RetrievalStrategy = Literal["basic", "metadata", "graph", "documentation", "example", "hierarchical"]
TransformationMode = Literal["none", "rewrite", "sub_queries"]

RETRIEVAL_STRATEGIES: tuple[RetrievalStrategy, ...] = (
    "basic",
    "metadata",
    "graph",
    "documentation",
    "example",
    "hierarchical",
)
UNFILTERED_STRATEGIES: frozenset[str] = frozenset({"basic", "graph"})


@dataclass(slots=True, frozen=True)
class Query:
    """A user query issued to the system."""

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class SparseVector:
    """Term-frequency vector over the ingestion vocabulary."""

    name: str
    indices: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)


@dataclass(slots=True)
class VectorMatch:
    """A ranked hit returned by the vector store."""

    id: str | int
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)
    vector: list[float] | None = None


@dataclass(slots=True, frozen=True)
class ContextSnippet:
    """A single file excerpt passed to generation."""

    file_path: str
    content: str


@dataclass(slots=True)
class RetrievalDecision:
    """Strategy chosen by the router for one query."""

    strategy: RetrievalStrategy = "basic"
    filter: dict[str, Any] | None = None
    reasoning: str | None = None
    confidence: float | None = None


@dataclass(slots=True)
class EvaluationResult:
    """Judge scores and groundedness for one generated answer."""

    answer: str
    accuracy: float
    relevance: float
    completeness: float
    coherence: float
    overall: float
    reasoning: str
    is_grounded: bool


@dataclass(slots=True)
class PipelineResult:
    """Envelope returned to callers of the pipeline."""

    final_answer: str
    evaluation_score: float | None = None
    is_grounded: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"finalAnswer": self.final_answer}
        if self.evaluation_score is not None:
            payload["evaluationScore"] = self.evaluation_score
        if self.is_grounded is not None:
            payload["isGrounded"] = self.is_grounded
        return payload


__all__ = [
    "RETRIEVAL_STRATEGIES",
    "UNFILTERED_STRATEGIES",
    "RetrievalStrategy",
    "TransformationMode",
    "Query",
    "SparseVector",
    "VectorMatch",
    "ContextSnippet",
    "RetrievalDecision",
    "EvaluationResult",
    "PipelineResult",
]
