"""Serialization of context snippets into the prompt-ready context blob.

Formatting and parsing share one record shape, so a blob produced by
``format_snippets`` parses back into the same snippets.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from domain.entities import ContextSnippet

UNKNOWN_FILE = "unknown file"

_RECORD_TEMPLATE = "File: {path}\n```\n{content}\n```\n---\n"
_RECORD_RE = re.compile(r"File: (?P<path>[^\n]*)\n```\n(?P<content>.*?)\n```\n---\n", re.DOTALL)


def format_snippet(snippet: ContextSnippet) -> str:
    return _RECORD_TEMPLATE.format(path=snippet.file_path, content=snippet.content)


def format_snippets(snippets: Iterable[ContextSnippet]) -> str:
    """Concatenate snippets into a context blob; no snippets gives ``""``."""

    return "".join(format_snippet(snippet) for snippet in snippets)


def parse_context(blob: str) -> list[ContextSnippet]:
    """Split a context blob back into snippets, in order."""

    if not blob:
        return []
    return [
        ContextSnippet(file_path=match.group("path"), content=match.group("content"))
        for match in _RECORD_RE.finditer(blob)
    ]


def resolve_file_path(payload: Mapping[str, Any]) -> str:
    """Pick the file path from a point payload using the known field names."""

    source = payload.get("source")
    if isinstance(source, str) and source:
        return source
    nested = payload.get("metadata")
    if isinstance(nested, Mapping):
        for key in ("filePath", "file_path", "source"):
            value = nested.get(key)
            if isinstance(value, str) and value:
                return value
    return UNKNOWN_FILE


def snippet_from_payload(payload: Mapping[str, Any]) -> ContextSnippet:
    content = payload.get("text")
    if not isinstance(content, str):
        content = payload.get("content")
    if not isinstance(content, str):
        content = ""
    return ContextSnippet(file_path=resolve_file_path(payload), content=content)


__all__ = [
    "UNKNOWN_FILE",
    "format_snippet",
    "format_snippets",
    "parse_context",
    "resolve_file_path",
    "snippet_from_payload",
]
