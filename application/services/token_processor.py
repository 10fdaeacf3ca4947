"""Text-to-term pipeline used to build sparse keyword vectors for code search.

The same pipeline must run at ingestion and at query time, otherwise query
terms will not line up with the vocabulary indices stored in the collection.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from nltk.stem import PorterStemmer

_STEMMER = PorterStemmer()

_IDENTIFIER_RE = re.compile(r"^_*[A-Za-z][A-Za-z0-9]*(?:[._-]+[A-Za-z0-9]+)*_*$")
_SEPARATOR_RE = re.compile(r"[_\-]+")
_CAMEL_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")
_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")
_EDGE_RE = re.compile(r"^[^a-z0-9@#$_]+|[^a-z0-9@#$_]+$")

_ATTRIBUTE_RE = re.compile(r"^[\w:.-]+=[\"']")
_MARKUP_RE = re.compile(r"^</?[A-Za-z!][^<>]*/?>$")
_RELATIVE_PATH_RE = re.compile(r"^\.{1,2}[/\\]")
_NUMBER_PUNCT_RE = re.compile(r"^[-+]?\d+(?:\.\d+)?[a-z%]*[;,:)\]}]+$", re.IGNORECASE)
_JSON_KEY_RE = re.compile(r"^[{\[]?\"[\w.$-]{15,}\"\s*:")
_ANGLE_OPERATORS = frozenset({"<", ">", "<=", ">=", "=>", "->", "<-", "<<", ">>", "<>", "=<", "<=>"})
_BRACKET_PAIRS = (("(", ")"), ("[", "]"), ("{", "}"))

_PROGRAMMING_KEYWORDS = {
    "abstract", "and", "any", "as", "assert", "async", "await", "bool", "boolean", "break", "byte",
    "case", "catch", "char", "class", "const", "continue", "def", "default", "del", "delete", "do",
    "double", "elif", "else", "enum", "except", "export", "extends", "false", "final", "finally",
    "float", "for", "foreach", "from", "func", "function", "get", "global", "goto", "if", "implements",
    "import", "in", "instanceof", "int", "interface", "internal", "is", "lambda", "let", "long", "new",
    "nil", "none", "nonlocal", "not", "null", "object", "or", "override", "package", "pass", "private",
    "protected", "public", "raise", "readonly", "return", "sealed", "self", "set", "short", "static",
    "str", "string", "struct", "super", "switch", "this", "throw", "throws", "true", "try", "type",
    "typeof", "undefined", "using", "val", "var", "virtual", "void", "volatile", "while", "with",
    "yield",
}
_ENGLISH_STOP_WORDS = {
    "a", "about", "above", "after", "again", "against", "all", "also", "am", "an", "are", "at", "be",
    "because", "been", "before", "being", "below", "between", "both", "but", "by", "can", "could",
    "did", "does", "doing", "down", "during", "each", "few", "further", "had", "has", "have",
    "having", "he", "her", "here", "hers", "him", "his", "how", "i", "into", "it", "its", "itself",
    "just", "me", "more", "most", "my", "no", "nor", "now", "of", "off", "on", "once", "only",
    "other", "our", "ours", "out", "over", "own", "same", "she", "should", "so", "some", "such",
    "than", "that", "the", "their", "theirs", "them", "then", "there", "these", "they", "those",
    "through", "to", "too", "under", "until", "up", "very", "was", "we", "were", "what", "when",
    "where", "which", "who", "whom", "why", "will", "would", "you", "your", "yours",
}
_TOOLING_STOP_WORDS = {
    "build", "config", "debug", "dev", "error", "fatal", "info", "log", "logger", "logging", "min",
    "npm", "pkg", "prod", "release", "src", "test", "tests", "tmp", "todo", "trace", "warn",
    "warning", "yarn",
}

STOP_WORDS: frozenset[str] = frozenset(_PROGRAMMING_KEYWORDS | _ENGLISH_STOP_WORDS | _TOOLING_STOP_WORDS)


@dataclass(slots=True, frozen=True)
class TokenPolicy:
    """Switches for the individual processing steps."""

    split_identifiers: bool = True
    filter_noise: bool = True
    filter_stop_words: bool = True
    stem: bool = True


DEFAULT_POLICY = TokenPolicy()


def process_text(text: str, policy: TokenPolicy = DEFAULT_POLICY) -> list[str]:
    """Turn raw text into an ordered list of stemmed terms (duplicates kept)."""

    if not text:
        return []

    units = [unit.strip() for unit in text.replace("\r\n", "\n").replace("\n", " ").split()]
    tokens: list[str] = []
    for unit in units:
        if policy.filter_noise and is_noise(unit):
            continue
        for sub_word in _split_unit(unit, policy):
            for piece in sub_word.split("."):
                token = _clean(piece)
                if not token:
                    continue
                if policy.filter_noise and is_noise(token):
                    continue
                if policy.filter_stop_words and _is_stop_word(token):
                    continue
                if policy.stem and len(token) > 2:
                    token = _STEMMER.stem(token)
                    if token in STOP_WORDS or len(token) <= 2:
                        continue
                tokens.append(token)
    return tokens


def is_noise(token: str) -> bool:
    """Return True for markup, attribute, path and other non-term fragments."""

    if _ATTRIBUTE_RE.match(token) or _MARKUP_RE.match(token):
        return True
    if ("<" in token or ">" in token) and token not in _ANGLE_OPERATORS:
        return True
    for opening, closing in _BRACKET_PAIRS:
        if token.count(opening) != token.count(closing):
            return True
    if _RELATIVE_PATH_RE.match(token) or _NUMBER_PUNCT_RE.match(token):
        return True
    return bool(_JSON_KEY_RE.match(token))


def _split_unit(unit: str, policy: TokenPolicy) -> list[str]:
    if not policy.split_identifiers or len(unit) <= 4 or not _IDENTIFIER_RE.match(unit):
        return [unit]
    words: list[str] = []
    for part in _SEPARATOR_RE.split(unit):
        for dotted in part.split("."):
            words.extend(_CAMEL_RE.findall(dotted) or ([dotted] if dotted else []))
    return words


def _clean(piece: str) -> str:
    token = _UNICODE_ESCAPE_RE.sub(lambda match: chr(int(match.group(1), 16)), piece.lower())
    token = _EDGE_RE.sub("", token)
    return token.lstrip("_")


def _is_stop_word(token: str) -> bool:
    return len(token) <= 1 or token in STOP_WORDS or token.isdigit()


__all__ = ["STOP_WORDS", "TokenPolicy", "DEFAULT_POLICY", "process_text", "is_noise"]
