"""LLM-powered query rewriting for code search."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import BaseModel

from domain.entities import Query, TransformationMode
from domain.interfaces import LanguageModel, QueryRewriter

logger = logging.getLogger(__name__)

REWRITER_INSTRUCTIONS = """You rewrite user questions so they retrieve better results from a vector store of source code.
Use precise identifiers and keywords, resolve ambiguity and phrase the query for semantic matching.
The transformation type tells you what to produce:
- rewrite: one improved query.
- sub_queries: break a compound question into 2-3 simpler parts and join them into one query string.
  A question that is already simple is returned as a single rewritten query.

Example (rewrite):
User Query: how to use auth
Rewritten Query: example implementation of the authentication flow

Example (sub_queries):
User Query: explain auth and find user model
Rewritten Query: explain the authentication flow and find the user model class definition
"""


class RewrittenQuery(BaseModel):
    rewrittenQuery: str


@dataclass(slots=True)
class LLMRewriterConfig:
    mode: TransformationMode = "rewrite"
    max_query_length: int = 512


class LLMQueryRewriter(QueryRewriter):
    """Produce a single retrieval query with a structured LLM call."""

    def __init__(self, llm: LanguageModel, config: LLMRewriterConfig | None = None) -> None:
        self._llm = llm
        self._config = config or LLMRewriterConfig()

    async def rewrite(self, query: Query) -> Query:
        if self._config.mode == "none":
            return query
        logger.info("Transforming query using mode %s", self._config.mode)
        response = await self._llm.generate_structured(
            f"User Query: {query.text}\nTransformation Type: {self._config.mode}",
            RewrittenQuery,
            system=REWRITER_INSTRUCTIONS,
        )
        text = response.rewrittenQuery.strip().strip('"').strip()
        if not text:
            logger.warning("Query rewriter returned an empty query; keeping the original.")
            return query
        text = text[: self._config.max_query_length]
        logger.info("Transformed query: %r", text)
        return Query(text=text, metadata={**query.metadata, "original_query": query.text})


__all__ = ["LLMQueryRewriter", "LLMRewriterConfig", "RewrittenQuery", "REWRITER_INSTRUCTIONS"]
