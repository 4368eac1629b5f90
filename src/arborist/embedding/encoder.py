"""Embedding model management."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
from fastembed import SparseTextEmbedding
from sentence_transformers import SentenceTransformer

from arborist.errors import EmbeddingError
from arborist.models import SparseVector

DEFAULT_MODEL = "sentence-transformers/all-mpnet-base-v2"
DEFAULT_SPARSE_MODEL = "prithivida/Splade_PP_en_v1"

# Dense vector size of the collection schema; changing it needs a new collection.
DENSE_DIMENSION = 768

logger = logging.getLogger(__name__)


def _check_gpu_availability() -> str | None:
    """Return the torch device to use, or None to let the library decide.

    Returns:
        "cuda" for an NVIDIA GPU, "mps" for Apple Silicon, otherwise None.
    """
    try:
        import torch

        if torch.cuda.is_available():
            logger.debug(f"CUDA GPU detected: {torch.cuda.get_device_name(0)}")
            return "cuda"
        if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
            logger.debug("Apple MPS GPU detected")
            return "mps"
        logger.debug("No GPU detected, will use CPU")
        return None
    except ImportError:
        logger.debug("PyTorch not available for GPU detection")
        return None


@dataclass(slots=True)
class EmbeddingConfig:
    model_name: str = DEFAULT_MODEL
    batch_size: int = 16
    normalize: bool = True
    device: str | None = None
    dimension: int = DENSE_DIMENSION


class EmbeddingModel:
    """Thin wrapper around `SentenceTransformer` for dense embeddings.

    The loaded model must produce vectors of the configured dimension, since
    every point in a collection shares one dense vector size.
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        if self.config.device is None:
            self.config.device = _check_gpu_availability()

        try:
            self._model = SentenceTransformer(self.config.model_name, device=self.config.device)
        except Exception as exc:
            raise EmbeddingError(
                f"Failed to load embedding model '{self.config.model_name}': {exc}"
            ) from exc

        self.dimension = int(self._model.get_sentence_embedding_dimension())
        if self.dimension != self.config.dimension:
            raise EmbeddingError(
                f"Model '{self.config.model_name}' produces {self.dimension}-dim vectors, "
                f"collection expects {self.config.dimension}"
            )
        logger.info(
            f"Loaded dense model {self.config.model_name} "
            f"(dim={self.dimension}, device={self.config.device or 'auto'})"
        )

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return float32 embeddings for input texts."""
        sentences = list(texts)
        embeddings = self._model.encode(
            sentences,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
            normalize_embeddings=self.config.normalize,
        )
        return embeddings.astype("float32", copy=False)

    def embed_query(self, text: str) -> np.ndarray:
        """Convenience wrapper for single-query embedding."""
        return self.embed([text])[0]


class SparseEmbeddingModel:
    """Lexical (SPLADE-style) embeddings through fastembed."""

    def __init__(self, model_name: str = DEFAULT_SPARSE_MODEL) -> None:
        self.model_name = model_name
        try:
            self._model = SparseTextEmbedding(model_name=model_name)
        except Exception as exc:
            raise EmbeddingError(f"Failed to load sparse model '{model_name}': {exc}") from exc
        logger.info(f"Loaded sparse model {model_name}")

    def embed(self, texts: Sequence[str]) -> list[SparseVector]:
        return [
            SparseVector(
                indices=[int(i) for i in embedding.indices],
                values=[float(v) for v in embedding.values],
            )
            for embedding in self._model.embed(list(texts))
        ]

    def embed_query(self, text: str) -> SparseVector:
        return self.embed([text])[0]
