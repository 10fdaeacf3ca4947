"""Abstract interfaces for the codebase question answering system."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence, TypeVar

from pydantic import BaseModel

from domain.entities import Query, SparseVector, VectorMatch

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class LanguageModel(ABC):
    """Chat-completion service used by every LLM-backed stage."""

    @abstractmethod
    async def generate_text(self, prompt: str, *, system: str | None = None) -> str:
        """Return the raw completion for a prompt."""

    @abstractmethod
    async def generate_structured(
        self,
        prompt: str,
        schema: type[SchemaT],
        *,
        system: str | None = None,
    ) -> SchemaT:
        """Return a completion parsed and validated against ``schema``."""


class Embedder(ABC):
    """Turns text (documents or queries) into vector embeddings."""

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Return the stable identifier for this embedding model."""

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the embedding dimension for this model."""

    @abstractmethod
    async def embed_texts(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed a sequence of texts into dense vectors."""

    async def embed_query(self, query: Query) -> list[float]:
        """Embed a user query for retrieval."""
        vectors = await self.embed_texts([query.text])
        return vectors[0]


class VectorStore(ABC):
    """Collection lifecycle and similarity search over a vector database."""

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: str = "cosine",
        hybrid_enabled: bool | None = None,
    ) -> None:
        """Create a collection with a dense and, optionally, a sparse vector."""

    @abstractmethod
    async def upsert(
        self,
        name: str,
        vectors: Sequence[Sequence[float]],
        metadata: Sequence[dict[str, Any]] | None = None,
        ids: Sequence[str] | None = None,
    ) -> list[str]:
        """Insert or replace points and return their ids."""

    @abstractmethod
    async def query(
        self,
        name: str,
        dense_vector: Sequence[float] | None = None,
        sparse_vector: SparseVector | None = None,
        top_k: int = 10,
        filter: dict[str, Any] | None = None,
        include_vector: bool = False,
    ) -> list[VectorMatch]:
        """Return the best matches for a dense and/or sparse query."""

    @abstractmethod
    async def list_collections(self) -> list[str]:
        """Return the names of all collections."""

    @abstractmethod
    async def describe_collection(self, name: str) -> dict[str, Any]:
        """Return dimension, point count and metric of a collection."""

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        """Drop a collection."""

    @abstractmethod
    async def update_by_id(
        self,
        name: str,
        point_id: str,
        vector: Sequence[float] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Replace the vector and/or payload of one point."""

    @abstractmethod
    async def delete_by_id(self, name: str, point_id: str) -> None:
        """Remove one point."""


class QueryRewriter(ABC):
    """Rewrites the raw user query before retrieval."""

    @abstractmethod
    async def rewrite(self, query: Query) -> Query:
        """Return the query used for retrieval."""


class Reranker(ABC):
    """Applies a reranking strategy after initial retrieval."""

    @abstractmethod
    async def rerank(self, query: Query, results: Sequence[VectorMatch], top_k: int) -> list[VectorMatch]:
        """Return at most ``top_k`` results in reranked order."""


__all__ = [
    "LanguageModel",
    "Embedder",
    "VectorStore",
    "QueryRewriter",
    "Reranker",
]
