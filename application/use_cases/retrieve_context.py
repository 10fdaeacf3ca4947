"""Use case that turns a retrieval decision into a context blob."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Optional

from application.services.context_format import format_snippets, snippet_from_payload
from application.services.graph_rag import GraphOptions, GraphRAG
from application.services.sparse_vectors import Vocabulary, build_sparse_vector
from domain.entities import ContextSnippet, Query, RetrievalDecision, SparseVector, VectorMatch
from domain.interfaces import Embedder, Reranker, VectorStore

logger = logging.getLogger(__name__)

SUMMARY_FILTER: dict[str, Any] = {"doc_type": {"$eq": "file_summary"}}
_NO_FALLBACK_STRATEGIES = frozenset({"graph", "hierarchical"})

StrategyHandler = Callable[[str, Optional[dict[str, Any]]], Awaitable[list[ContextSnippet]]]


def chunk_filter(sources: list[str]) -> dict[str, Any]:
    return {"$and": [{"doc_type": {"$eq": "chunk_detail"}}, {"source": {"$in": list(sources)}}]}


@dataclass(slots=True)
class RetrievalSettings:
    collection_name: str
    hybrid_enabled: bool = True
    sparse_vector_name: str = "keyword_sparse"
    initial_fetch_k: int = 50
    top_k: int = 5
    hierarchical_top_n: int = 3
    graph_options: GraphOptions = field(default_factory=GraphOptions)


class ContextRetriever:
    """Dispatch on the chosen strategy and serialize the matched chunks."""

    def __init__(
        self,
        *,
        embedder: Embedder,
        vector_store: VectorStore,
        reranker: Reranker,
        settings: RetrievalSettings,
        vocabulary: Vocabulary | None = None,
    ) -> None:
        self._embedder = embedder
        self._store = vector_store
        self._reranker = reranker
        self._settings = settings
        self._vocabulary = vocabulary
        self._handlers: dict[str, StrategyHandler] = {
            "basic": self._vector_search,
            "metadata": self._vector_search,
            "documentation": self._vector_search,
            "example": self._vector_search,
            "graph": self._graph_search,
            "hierarchical": self._hierarchical_search,
        }

    async def retrieve(self, query_text: str, decision: RetrievalDecision) -> str:
        strategy = decision.strategy
        try:
            handler = self._handlers[strategy]
        except KeyError as exc:
            raise ValueError(f"Unknown retrieval strategy '{strategy}'") from exc

        logger.info("Getting context using strategy: %s", strategy)
        snippets = await handler(query_text, decision.filter)

        if not snippets and strategy not in _NO_FALLBACK_STRATEGIES and decision.filter:
            logger.warning("No context found with filter for strategy '%s'. Retrying without filter.", strategy)
            snippets = await self._vector_search(query_text, None)

        if not snippets:
            logger.warning("No relevant context found by strategy '%s'.", strategy)
        return format_snippets(snippets)

    async def _vector_search(self, query_text: str, filter: dict[str, Any] | None) -> list[ContextSnippet]:
        query = Query(text=query_text)
        dense = await self._embedder.embed_query(query)
        matches = await self._store.query(
            self._settings.collection_name,
            dense_vector=dense,
            sparse_vector=self._sparse_vector(query_text),
            top_k=self._settings.initial_fetch_k,
            filter=filter,
        )
        reranked = await self._reranker.rerank(query, matches, self._settings.top_k)
        return self._to_snippets(reranked)

    async def _graph_search(self, query_text: str, filter: dict[str, Any] | None) -> list[ContextSnippet]:
        dense = await self._embedder.embed_query(Query(text=query_text))
        matches = await self._store.query(
            self._settings.collection_name,
            dense_vector=dense,
            top_k=self._settings.initial_fetch_k,
            include_vector=True,
        )
        nodes = [match for match in matches if match.vector]
        if not nodes:
            return []
        graph = GraphRAG(self._settings.graph_options)
        graph.build([match.vector for match in nodes])
        ranked = graph.rank(dense, self._settings.top_k)
        return self._to_snippets(nodes[index] for index, _score in ranked)

    async def _hierarchical_search(self, query_text: str, filter: dict[str, Any] | None) -> list[ContextSnippet]:
        query = Query(text=query_text)
        dense = await self._embedder.embed_query(query)
        sparse = self._sparse_vector(query_text)

        summaries = await self._store.query(
            self._settings.collection_name,
            dense_vector=dense,
            sparse_vector=sparse,
            top_k=self._settings.hierarchical_top_n,
            filter=SUMMARY_FILTER,
        )
        sources: list[str] = []
        for match in summaries[: self._settings.hierarchical_top_n]:
            source = match.metadata.get("source")
            if isinstance(source, str) and source and source not in sources:
                sources.append(source)
        if not sources:
            logger.info("Hierarchical search found no file summaries; skipping chunk search.")
            return []

        logger.info("Hierarchical search narrowing chunks to %d files", len(sources))
        chunks = await self._store.query(
            self._settings.collection_name,
            dense_vector=dense,
            sparse_vector=sparse,
            top_k=self._settings.initial_fetch_k,
            filter=chunk_filter(sources),
        )
        reranked = await self._reranker.rerank(query, chunks, self._settings.top_k)
        return self._to_snippets(reranked)

    def _sparse_vector(self, query_text: str) -> SparseVector | None:
        if not self._settings.hybrid_enabled or not self._vocabulary:
            return None
        try:
            return build_sparse_vector(query_text, self._vocabulary, self._settings.sparse_vector_name)
        except Exception:  # pragma: no cover
            logger.exception("Sparse vector generation failed; using dense-only search.")
            return None

    @staticmethod
    def _to_snippets(matches: Iterable[VectorMatch]) -> list[ContextSnippet]:
        return [snippet_from_payload(match.metadata) for match in matches]


__all__ = ["ContextRetriever", "RetrievalSettings", "SUMMARY_FILTER", "chunk_filter"]
