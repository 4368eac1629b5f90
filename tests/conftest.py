"""Shared test doubles: tokenizer, embedding models, LLM client and store."""

from __future__ import annotations

import re
import zlib
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

import numpy as np
import pytest
from qdrant_client import QdrantClient

from arborist.embedding.generator import EmbeddingGenerator
from arborist.index.storage import QdrantIndexStore
from arborist.models import FileCategory, FileRecord, SparseVector
from arborist.utils.files import category_for_path
from arborist.utils.text import Chunker

_WORDS = re.compile(r"[a-z0-9]+")


def _bucket(word: str, size: int) -> int:
    return zlib.crc32(word.encode("utf-8")) % size


class WhitespaceTokenizer:
    """One token per whitespace-separated word."""

    def encode(self, text: str, add_special_tokens: bool = False) -> List[str]:
        return text.split()


class FakeDenseModel:
    """Bag-of-words hashed into 768 buckets, normalized."""

    dimension = 768

    def __init__(self) -> None:
        self.calls: List[List[str]] = []

    def embed(self, texts: Sequence[str]) -> np.ndarray:
        texts = list(texts)
        self.calls.append(texts)
        vectors = np.zeros((len(texts), self.dimension), dtype="float32")
        for row, text in enumerate(texts):
            vectors[row, 0] = 0.01
            for word in _WORDS.findall(text.lower()):
                vectors[row, _bucket(word, self.dimension)] += 1.0
            vectors[row] /= np.linalg.norm(vectors[row])
        return vectors

    def embed_query(self, text: str) -> np.ndarray:
        return self.embed([text])[0]


class FakeSparseModel:
    def embed(self, texts: Sequence[str]) -> List[SparseVector]:
        return [self.embed_query(text) for text in texts]

    def embed_query(self, text: str) -> SparseVector:
        counts = Counter(_bucket(word, 30000) for word in _WORDS.findall(text.lower()))
        indices = sorted(counts)
        return SparseVector(indices=indices, values=[float(counts[i]) for i in indices])


class FakeLLMClient:
    """Echoes the prompt back so summaries carry the file's words."""

    def __init__(self) -> None:
        self.requests: List[dict] = []

    def generate(self, model, prompt, *, system=None, images=None) -> str:
        self.requests.append(
            {"model": model, "prompt": prompt, "system": system, "images": images}
        )
        return f"Summary: {prompt.split(':', 1)[-1].strip()}"

    def is_available(self) -> bool:
        return True

    def close(self) -> None:
        pass


def make_record(path: Path, *, summary: str = "") -> FileRecord:
    now = datetime.now()
    return FileRecord(
        name=path.name,
        path=str(path),
        size=path.stat().st_size if path.exists() else 0,
        category=category_for_path(path),
        created_at=now,
        modified_at=now,
        summary=summary,
    )


@pytest.fixture
def tokenizer() -> WhitespaceTokenizer:
    return WhitespaceTokenizer()


@pytest.fixture
def embeddings(tokenizer) -> EmbeddingGenerator:
    chunker = Chunker("whitespace", (1, 40), tokenizer=tokenizer)
    return EmbeddingGenerator(FakeDenseModel(), FakeSparseModel(), chunker)


@pytest.fixture
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def store():
    """In-process Qdrant collection."""
    client = QdrantClient(":memory:")
    store = QdrantIndexStore(client, "file_data")
    store.ensure_collection()
    yield store
    store.close()


@pytest.fixture
def document_record(tmp_path: Path) -> FileRecord:
    path = tmp_path / "notes.txt"
    path.write_text("Plain notes about gardening.")
    record = make_record(path)
    assert record.category is FileCategory.DOCUMENT
    return record


@pytest.fixture
def record_for():
    """Factory building a FileRecord for an existing path."""
    return make_record
