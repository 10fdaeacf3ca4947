"""Query rewriter that keeps the original query."""
from __future__ import annotations

from domain.entities import Query
from domain.interfaces import QueryRewriter


class SimpleQueryRewriter(QueryRewriter):
    """Return the original query without an LLM call."""

    async def rewrite(self, query: Query) -> Query:
        return query


__all__ = ["SimpleQueryRewriter"]
