"""Dense + sparse embedding of file summaries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from arborist.embedding.encoder import EmbeddingModel, SparseEmbeddingModel
from arborist.errors import EmbeddingError
from arborist.models import SparseVector
from arborist.utils.text import Chunker

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class SummaryEmbedding:
    chunks: List[str]
    dense: np.ndarray
    sparse: SparseVector

    @property
    def first_dense(self) -> np.ndarray:
        """Vector of the first chunk; the one stored for the file."""
        return self.dense[0]


class EmbeddingGenerator:
    """Produces the vectors stored for each file.

    Dense vectors are computed per chunk because the dense model has a token
    ceiling; the sparse vector is computed over the full text.
    """

    def __init__(
        self,
        dense: EmbeddingModel,
        sparse: SparseEmbeddingModel,
        chunker: Chunker,
    ) -> None:
        self.dense = dense
        self.sparse = sparse
        self.chunker = chunker

    @property
    def dimension(self) -> int:
        return self.dense.dimension

    def embed_chunks(self, chunks: Sequence[str]) -> np.ndarray:
        try:
            return self.dense.embed(chunks)
        except Exception as exc:
            raise EmbeddingError(f"Dense embedding failed: {exc}") from exc

    def embed_sparse(self, text: str) -> SparseVector:
        try:
            return self.sparse.embed_query(text)
        except Exception as exc:
            raise EmbeddingError(f"Sparse embedding failed: {exc}") from exc

    def embed_summary(self, text: str) -> SummaryEmbedding:
        try:
            chunks = self.chunker.chunks(text)
        except Exception as exc:
            raise EmbeddingError(f"Chunking failed: {exc}") from exc
        if not chunks:
            raise EmbeddingError("Nothing to embed: summary is empty")

        dense = self.embed_chunks(chunks)
        if dense.ndim != 2 or dense.shape[0] != len(chunks):
            raise EmbeddingError(
                f"Expected {len(chunks)} dense vectors, got shape {dense.shape}"
            )
        LOGGER.debug("Embedded %d chunk(s)", len(chunks))
        return SummaryEmbedding(chunks=chunks, dense=dense, sparse=self.embed_sparse(text))

    def embed_query(self, text: str) -> np.ndarray:
        return self.dense.embed_query(text)

    def embed_sparse_query(self, text: str) -> SparseVector:
        return self.embed_sparse(text)
