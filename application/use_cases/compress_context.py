"""Use case that trims each retrieved snippet down to the lines relevant to a question."""
from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel

from application.services.context_format import format_snippets, parse_context
from domain.entities import ContextSnippet
from domain.interfaces import LanguageModel

logger = logging.getLogger(__name__)

COMPRESSOR_INSTRUCTIONS = (
    "You extract information from source code for a developer's question. "
    "Given the question and one snippet, return only the lines of the snippet that help answer it, "
    "keeping the original wording and code formatting. "
    "Return an empty string when nothing in the snippet is relevant. Do not add explanations."
)


class CompressedSnippet(BaseModel):
    compressedSnippet: str


class ContextCompressor:
    """Compress every snippet concurrently; failed or empty extractions are dropped."""

    def __init__(self, llm: LanguageModel, *, enabled: bool = True) -> None:
        self._llm = llm
        self._enabled = enabled

    async def compress(self, query: str, context: str) -> str:
        if not self._enabled:
            logger.info("Contextual compression is disabled. Using original context.")
            return context
        if not context or not context.strip():
            logger.info("No context to compress.")
            return ""

        snippets = parse_context(context)
        if not snippets:
            logger.info("Could not parse any snippets from context. Using original context.")
            return context

        logger.info("Compressing %d context snippets", len(snippets))
        compressed = await asyncio.gather(*(self._compress_snippet(query, snippet) for snippet in snippets))
        result = format_snippets(snippet for snippet in compressed if snippet is not None)
        logger.info("Compression complete. Original length: %d, compressed length: %d", len(context), len(result))
        return result

    async def _compress_snippet(self, query: str, snippet: ContextSnippet) -> ContextSnippet | None:
        prompt = (
            f"User Query: {query}\n\n"
            f"Context Snippet (from file {snippet.file_path}):\n{snippet.content}\n\n"
            "Relevant parts:"
        )
        try:
            response = await self._llm.generate_structured(prompt, CompressedSnippet, system=COMPRESSOR_INSTRUCTIONS)
        except Exception as exc:
            logger.warning("Error compressing snippet from %s: %s. Skipping this snippet.", snippet.file_path, exc)
            return None
        extracted = response.compressedSnippet.strip()
        if not extracted:
            return None
        return ContextSnippet(file_path=snippet.file_path, content=extracted)


__all__ = ["COMPRESSOR_INSTRUCTIONS", "CompressedSnippet", "ContextCompressor"]
