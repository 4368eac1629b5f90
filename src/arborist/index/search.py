"""Semantic search interface."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List

from arborist.embedding.generator import EmbeddingGenerator
from arborist.index.storage import DENSE_VECTOR_NAME, SPARSE_VECTOR_NAME, QdrantIndexStore


@dataclass(slots=True)
class SearchResult:
    path: Path
    name: str
    score: float
    size: int
    summary: str


class QueryEngine:
    """Read-only, high-level API to query the vector store."""

    def __init__(
        self, embeddings: EmbeddingGenerator, store: QdrantIndexStore, *, top_k: int = 5
    ) -> None:
        self.embeddings = embeddings
        self.store = store
        self.top_k = top_k

    def search(self, query: str, *, top_k: int | None = None, sparse: bool = False) -> List[SearchResult]:
        limit = self.top_k if top_k is None else top_k
        if limit < 1:
            raise ValueError(f"top_k must be at least 1, got {limit}")
        if sparse:
            rows = self.store.search(
                self.embeddings.embed_sparse_query(query), using=SPARSE_VECTOR_NAME, top_k=limit
            )
        else:
            rows = self.store.search(
                self.embeddings.embed_query(query), using=DENSE_VECTOR_NAME, top_k=limit
            )

        results = [
            SearchResult(
                path=Path(row["file_path"]),
                name=row["file_name"],
                score=float(row["score"]),
                size=int(row["file_size"] or 0),
                summary=row["summary"],
            )
            for row in rows
        ]
        results.sort(key=lambda result: result.score, reverse=True)
        return results[:limit]
