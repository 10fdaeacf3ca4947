"""Sparse keyword vectors for hybrid (dense + sparse) search."""
from __future__ import annotations

import logging
from collections import Counter
from typing import Mapping

from application.services.token_processor import process_text
from domain.entities import SparseVector

logger = logging.getLogger(__name__)

Vocabulary = Mapping[str, int]


def build_sparse_vector(query: str, vocabulary: Vocabulary | None, vector_name: str) -> SparseVector | None:
    """Map query terms onto vocabulary indices with their term frequencies.

    Returns ``None`` when nothing matches so callers can fall back to a
    dense-only search.
    """

    if not query or not vocabulary:
        return None

    frequencies = Counter(process_text(query))
    indices: list[int] = []
    values: list[float] = []
    for term, count in frequencies.items():
        index = vocabulary.get(term)
        if index is None:
            continue
        indices.append(int(index))
        values.append(float(count))

    if not indices:
        logger.info("No query terms found in vocabulary for query: %r", query)
        return None
    return SparseVector(name=vector_name, indices=indices, values=values)


__all__ = ["Vocabulary", "build_sparse_vector"]
