"""Vector store backed by Qdrant with optional hybrid (dense + sparse) search."""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from typing import Any, Sequence

from qdrant_client import AsyncQdrantClient, models

from domain.entities import SparseVector, VectorMatch
from domain.interfaces import VectorStore
from infrastructure.storage.qdrant_filter import QdrantFilterTranslator

logger = logging.getLogger(__name__)

BATCH_SIZE = 256
DISTANCE_MAPPING: dict[str, models.Distance] = {
    "cosine": models.Distance.COSINE,
    "euclidean": models.Distance.EUCLID,
    "dotproduct": models.Distance.DOT,
}
_NUMERIC_ID_RE = re.compile(r"[0-9]+")


@dataclass(slots=True)
class QdrantConfig:
    host: str = "localhost"
    port: int = 6333
    api_key: str | None = None
    https: bool = False
    timeout: int = 300
    hybrid_enabled: bool = True
    sparse_vector_name: str = "keyword_sparse"


def parse_point_id(point_id: str | int) -> str | int:
    """Purely numeric ids are sent to Qdrant as integers."""

    if isinstance(point_id, int):
        return point_id
    if _NUMERIC_ID_RE.fullmatch(point_id):
        return int(point_id)
    return point_id


class QdrantVectorStore(VectorStore):
    """Collection management and similarity search through ``AsyncQdrantClient``."""

    def __init__(
        self,
        config: QdrantConfig | None = None,
        *,
        client: AsyncQdrantClient | None = None,
        translator: QdrantFilterTranslator | None = None,
    ) -> None:
        self._config = config or QdrantConfig()
        self._client = client or AsyncQdrantClient(
            host=self._config.host,
            port=self._config.port,
            api_key=self._config.api_key,
            https=self._config.https,
            timeout=self._config.timeout,
        )
        self._translator = translator or QdrantFilterTranslator()

    async def create_collection(
        self,
        name: str,
        dimension: int,
        metric: str = "cosine",
        hybrid_enabled: bool | None = None,
    ) -> None:
        if isinstance(dimension, bool) or not isinstance(dimension, int) or dimension <= 0:
            raise ValueError("Dimension must be a positive integer")
        try:
            distance = DISTANCE_MAPPING[metric]
        except KeyError as exc:
            raise ValueError(f"Unknown metric '{metric}'") from exc

        hybrid = self._config.hybrid_enabled if hybrid_enabled is None else hybrid_enabled
        sparse_config = None
        if hybrid:
            sparse_config = {
                self._config.sparse_vector_name: models.SparseVectorParams(
                    index=models.SparseIndexParams(on_disk=False),
                )
            }
        logger.info("Creating collection %s (dimension=%d, metric=%s, hybrid=%s)", name, dimension, metric, hybrid)
        await self._client.create_collection(
            collection_name=name,
            vectors_config=models.VectorParams(size=dimension, distance=distance),
            sparse_vectors_config=sparse_config,
        )

    async def upsert(
        self,
        name: str,
        vectors: Sequence[Sequence[float]],
        metadata: Sequence[dict[str, Any]] | None = None,
        ids: Sequence[str] | None = None,
    ) -> list[str]:
        point_ids = list(ids) if ids else [str(uuid.uuid4()) for _ in vectors]
        if len(point_ids) != len(vectors):
            raise ValueError("ids and vectors must have the same length")

        points = [
            models.PointStruct(
                id=parse_point_id(point_ids[index]),
                vector=list(vector),
                payload=dict(metadata[index]) if metadata and index < len(metadata) else {},
            )
            for index, vector in enumerate(vectors)
        ]
        for start in range(0, len(points), BATCH_SIZE):
            batch = points[start : start + BATCH_SIZE]
            await self._client.upsert(collection_name=name, points=batch, wait=True)
        logger.debug("Upserted %d points into %s", len(points), name)
        return point_ids

    async def query(
        self,
        name: str,
        dense_vector: Sequence[float] | None = None,
        sparse_vector: SparseVector | None = None,
        top_k: int = 10,
        filter: dict[str, Any] | None = None,
        include_vector: bool = False,
    ) -> list[VectorMatch]:
        query_filter = self._build_filter(filter)

        if sparse_vector is not None and sparse_vector.indices:
            logger.debug("Hybrid search on %s with sparse vector %s", name, sparse_vector.name)
            prefetch = [
                models.Prefetch(
                    query=models.SparseVector(indices=list(sparse_vector.indices), values=list(sparse_vector.values)),
                    using=sparse_vector.name,
                    limit=top_k,
                    filter=query_filter,
                )
            ]
            if dense_vector is not None:
                prefetch.insert(0, models.Prefetch(query=list(dense_vector), limit=top_k, filter=query_filter))
            response = await self._client.query_points(
                collection_name=name,
                prefetch=prefetch,
                query=models.FusionQuery(fusion=models.Fusion.RRF),
                query_filter=query_filter,
                limit=top_k,
                with_payload=True,
                with_vectors=include_vector,
            )
        elif dense_vector is not None:
            logger.debug("Dense-only search on %s", name)
            response = await self._client.query_points(
                collection_name=name,
                query=list(dense_vector),
                query_filter=query_filter,
                limit=top_k,
                with_payload=True,
                with_vectors=include_vector,
            )
        else:
            raise ValueError("Either dense_vector or sparse_vector must be provided.")

        return [self._to_match(point, include_vector) for point in response.points]

    async def list_collections(self) -> list[str]:
        response = await self._client.get_collections()
        return [collection.name for collection in response.collections]

    async def describe_collection(self, name: str) -> dict[str, Any]:
        info = await self._client.get_collection(collection_name=name)
        params = info.config.params.vectors
        if isinstance(params, dict):
            params = params.get("") or next(iter(params.values()), None)
        dimension = getattr(params, "size", None)
        distance = getattr(params, "distance", None)
        metric = next((key for key, value in DISTANCE_MAPPING.items() if value == distance), None)
        return {"dimension": dimension, "count": info.points_count or 0, "metric": metric}

    async def delete_collection(self, name: str) -> None:
        await self._client.delete_collection(collection_name=name)

    async def update_by_id(
        self,
        name: str,
        point_id: str,
        vector: Sequence[float] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        if vector is None and metadata is None:
            raise ValueError("No updates provided")
        parsed_id = parse_point_id(point_id)

        if vector is None:
            await self._client.set_payload(collection_name=name, payload=metadata, points=[parsed_id])
        elif metadata is None:
            await self._client.update_vectors(
                collection_name=name,
                points=[models.PointVectors(id=parsed_id, vector=list(vector))],
            )
        else:
            await self._client.upsert(
                collection_name=name,
                points=[models.PointStruct(id=parsed_id, vector=list(vector), payload=metadata)],
            )

    async def delete_by_id(self, name: str, point_id: str) -> None:
        await self._client.delete(
            collection_name=name,
            points_selector=models.PointIdsList(points=[parse_point_id(point_id)]),
        )

    def _build_filter(self, filter: dict[str, Any] | None) -> models.Filter | None:
        translated = self._translator.translate(filter)
        if not translated:
            return None
        return models.Filter.model_validate(translated)

    @staticmethod
    def _to_match(point: Any, include_vector: bool) -> VectorMatch:
        vector = None
        if include_vector:
            raw = point.vector
            if isinstance(raw, dict):
                raw = raw.get("") if isinstance(raw.get(""), list) else next(
                    (value for value in raw.values() if isinstance(value, list)), None
                )
            vector = list(raw) if isinstance(raw, list) else []
        return VectorMatch(
            id=point.id,
            score=point.score or 0.0,
            metadata=dict(point.payload or {}),
            vector=vector,
        )


__all__ = ["BATCH_SIZE", "DISTANCE_MAPPING", "QdrantConfig", "QdrantVectorStore", "parse_point_id"]
