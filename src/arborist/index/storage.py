"""Qdrant-backed hybrid vector store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence

import numpy as np
from qdrant_client import QdrantClient
from qdrant_client.http import models as qm

from arborist.embedding.encoder import DENSE_DIMENSION
from arborist.errors import StoreError
from arborist.models import IndexPoint, SparseVector

LOGGER = logging.getLogger(__name__)

DENSE_VECTOR_NAME = "novum"
SPARSE_VECTOR_NAME = "splade"
PATH_FIELD = "file_path"


class QdrantIndexStore:
    """Persistence layer for file points: one dense and one sparse space."""

    def __init__(
        self,
        client: QdrantClient,
        collection_name: str,
        *,
        dimension: int = DENSE_DIMENSION,
        hnsw_ef: int = 128,
    ) -> None:
        self.client = client
        self.collection_name = collection_name
        self.dimension = dimension
        self.hnsw_ef = hnsw_ef

    @classmethod
    def connect(cls, url: str, collection_name: str, *, timeout: int = 60, **kwargs: Any) -> QdrantIndexStore:
        # Port 6334 is Qdrant's gRPC port.
        prefer_grpc = url.rstrip("/").endswith(":6334")
        client = QdrantClient(url=url, prefer_grpc=prefer_grpc, timeout=timeout)
        return cls(client, collection_name, **kwargs)

    def close(self) -> None:
        self.client.close()

    def ensure_collection(self) -> bool:
        """Create the collection if missing. Returns True when it was created."""
        try:
            if self.client.collection_exists(self.collection_name):
                LOGGER.info(
                    "Collection '%s' already exists. Skipping creation.", self.collection_name
                )
                return False
            self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config={
                    DENSE_VECTOR_NAME: qm.VectorParams(
                        size=self.dimension, distance=qm.Distance.COSINE
                    )
                },
                sparse_vectors_config={SPARSE_VECTOR_NAME: qm.SparseVectorParams()},
            )
        except Exception as exc:
            raise StoreError(
                f"Failed to create collection '{self.collection_name}': {exc}"
            ) from exc
        LOGGER.info("Created collection '%s'", self.collection_name)
        return True

    def is_indexed(self, file_path: str) -> bool:
        """True if a point with this exact ``file_path`` payload exists."""
        try:
            points, _ = self.client.scroll(
                collection_name=self.collection_name,
                scroll_filter=qm.Filter(
                    must=[qm.FieldCondition(key=PATH_FIELD, match=qm.MatchValue(value=file_path))]
                ),
                limit=1,
                with_payload=False,
                with_vectors=False,
            )
        except Exception as exc:
            raise StoreError(f"Failed to query existing file {file_path}: {exc}") from exc
        return bool(points)

    def upsert(self, points: Sequence[IndexPoint]) -> int:
        """Upsert a batch and wait until it is persisted. Empty batches are a no-op."""
        if not points:
            return 0
        structs = []
        for point in points:
            if len(point.dense_vector) != self.dimension:
                raise StoreError(
                    f"Dense vector for {point.payload.get(PATH_FIELD)} has "
                    f"{len(point.dense_vector)} components, expected {self.dimension}"
                )
            vectors: Dict[str, Any] = {
                DENSE_VECTOR_NAME: np.asarray(point.dense_vector, dtype="float64").tolist()
            }
            if point.sparse_vector is not None and len(point.sparse_vector):
                vectors[SPARSE_VECTOR_NAME] = qm.SparseVector(
                    indices=point.sparse_vector.indices, values=point.sparse_vector.values
                )
            structs.append(qm.PointStruct(id=point.id, vector=vectors, payload=point.payload))

        try:
            self.client.upsert(collection_name=self.collection_name, points=structs, wait=True)
        except Exception as exc:
            raise StoreError(f"Failed to upsert points: {exc}") from exc
        LOGGER.info("Points upserted successfully: %d files", len(structs))
        return len(structs)

    def search(
        self,
        embedding: np.ndarray | Sequence[float] | SparseVector,
        *,
        using: str = DENSE_VECTOR_NAME,
        top_k: int = 5,
    ) -> List[dict]:
        """Approximate nearest neighbours, best first."""
        if isinstance(embedding, SparseVector):
            query: Any = qm.SparseVector(indices=embedding.indices, values=embedding.values)
        else:
            query = np.asarray(embedding, dtype="float32").tolist()

        try:
            response = self.client.query_points(
                collection_name=self.collection_name,
                query=query,
                using=using,
                limit=top_k,
                with_payload=True,
                search_params=qm.SearchParams(hnsw_ef=self.hnsw_ef, exact=False),
            )
        except Exception as exc:
            raise StoreError(f"Query failed: {exc}") from exc

        results: List[dict] = []
        for point in response.points:
            payload = point.payload or {}
            results.append(
                {
                    "id": str(point.id),
                    "score": float(point.score),
                    "file_name": payload.get("file_name", ""),
                    "file_path": payload.get(PATH_FIELD, ""),
                    "file_size": payload.get("file_size", 0),
                    "summary": payload.get("summary", ""),
                }
            )
        return results

    def count(self) -> int:
        try:
            return self.client.count(collection_name=self.collection_name, exact=True).count
        except Exception as exc:
            raise StoreError(f"Failed to count points: {exc}") from exc

    def iter_payloads(self, batch_size: int = 256) -> Iterator[tuple[Any, dict]]:
        offset = None
        while True:
            try:
                points, offset = self.client.scroll(
                    collection_name=self.collection_name,
                    limit=batch_size,
                    offset=offset,
                    with_payload=True,
                    with_vectors=False,
                )
            except Exception as exc:
                raise StoreError(f"Failed to scroll collection: {exc}") from exc
            for point in points:
                yield point.id, point.payload or {}
            if offset is None:
                return

    def remove_missing_files(self) -> int:
        """Delete points whose file no longer exists on disk."""
        missing = [
            point_id
            for point_id, payload in self.iter_payloads()
            if not Path(payload.get(PATH_FIELD, "")).exists()
        ]
        if not missing:
            return 0
        try:
            self.client.delete(
                collection_name=self.collection_name,
                points_selector=qm.PointIdsList(points=missing),
                wait=True,
            )
        except Exception as exc:
            raise StoreError(f"Failed to delete points: {exc}") from exc
        return len(missing)
