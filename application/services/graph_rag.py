"""Graph-based reranking of retrieved chunks.

Chunks become nodes; an edge joins two chunks whose embeddings have a cosine
similarity above the threshold. Ranking starts random walks with restart from
the chunks most similar to the query and scores every node by how often the
walks visit it, weighted by the similarity of the start node.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GraphOptions:
    threshold: float = 0.7
    random_walk_steps: int = 100
    restart_probability: float = 0.15
    seed: int | None = None


def _normalize_rows(matrix: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(matrix, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return matrix / norms


class GraphRAG:
    """Similarity graph over chunk embeddings."""

    def __init__(self, options: GraphOptions | None = None) -> None:
        self._options = options or GraphOptions()
        self._rng = np.random.default_rng(self._options.seed)
        self._embeddings = np.zeros((0, 0), dtype=float)
        self._weights = np.zeros((0, 0), dtype=float)

    @property
    def size(self) -> int:
        return int(self._embeddings.shape[0])

    def build(self, embeddings: Sequence[Sequence[float]]) -> None:
        if not embeddings:
            self._embeddings = np.zeros((0, 0), dtype=float)
            self._weights = np.zeros((0, 0), dtype=float)
            return
        matrix = _normalize_rows(np.asarray(embeddings, dtype=float))
        similarities = matrix @ matrix.T
        np.fill_diagonal(similarities, 0.0)
        self._embeddings = matrix
        self._weights = np.where(similarities > self._options.threshold, similarities, 0.0)
        logger.debug(
            "Built chunk graph with %d nodes and %d edges",
            self.size,
            int(np.count_nonzero(self._weights)) // 2,
        )

    def neighbours(self, node: int) -> list[int]:
        return [int(index) for index in np.flatnonzero(self._weights[node])]

    def random_walk(self, start: int, steps: int | None = None) -> dict[int, float]:
        """Return visit frequencies of a walk with restart from ``start``."""

        steps = self._options.random_walk_steps if steps is None else steps
        if steps <= 0:
            return {start: 1.0}
        visits: dict[int, int] = {}
        current = start
        for _ in range(steps):
            visits[current] = visits.get(current, 0) + 1
            if self._rng.random() < self._options.restart_probability:
                current = start
                continue
            row = self._weights[current]
            total = float(row.sum())
            if total <= 0.0:
                current = start
                continue
            current = int(self._rng.choice(row.shape[0], p=row / total))
        return {node: count / steps for node, count in visits.items()}

    def rank(self, query_vector: Sequence[float], top_k: int = 10) -> list[tuple[int, float]]:
        """Return ``(node, score)`` pairs, best first."""

        if self.size == 0 or top_k <= 0:
            return []
        query = np.asarray(query_vector, dtype=float)
        norm = float(np.linalg.norm(query)) or 1.0
        similarities = self._embeddings @ (query / norm)
        starts = np.argsort(-similarities)[:top_k]

        scores: dict[int, float] = {}
        for start in starts:
            similarity = float(similarities[start])
            for node, frequency in self.random_walk(int(start)).items():
                scores[node] = scores.get(node, 0.0) + similarity * frequency
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        return ranked[:top_k]


__all__ = ["GraphOptions", "GraphRAG"]
