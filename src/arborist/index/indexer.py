"""File indexing pipeline."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from arborist.embedding.generator import EmbeddingGenerator
from arborist.errors import EmbeddingError, ExtractionError, StoreError, SummaryError
from arborist.index.storage import QdrantIndexStore
from arborist.llm.summarizer import Summarizer
from arborist.models import FileRecord, IndexPoint

LOGGER = logging.getLogger(__name__)

# Failures that only cost the file they happened on.
FILE_ERRORS = (ExtractionError, SummaryError, EmbeddingError)


@dataclass(slots=True)
class IndexStats:
    inserted: int = 0
    skipped: int = 0
    failed: int = 0
    skipped_files: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str]] = field(default_factory=list)

    def record_skip(self, path: str) -> None:
        self.skipped += 1
        self.skipped_files.append(path)

    def record_failure(self, path: str, reason: str) -> None:
        self.failed += 1
        self.failures.append((path, reason))

    @property
    def nothing_indexed(self) -> bool:
        return self.inserted == 0


class Indexer:
    """Summarizes, embeds and stores files one at a time.

    Files are consumed from a queue by a single worker so that the language
    model service never sees more than one request at once. Points are
    collected and upserted in one batch at the end of the run.
    """

    def __init__(
        self,
        summarizer: Summarizer,
        embeddings: EmbeddingGenerator,
        store: QdrantIndexStore,
        *,
        force: bool = False,
    ) -> None:
        self.summarizer = summarizer
        self.embeddings = embeddings
        self.store = store
        self.force = force

    def index(self, files: Iterable[FileRecord]) -> IndexStats:
        queue: deque[FileRecord] = deque(files)
        stats = IndexStats()
        points: List[IndexPoint] = []
        total = len(queue)

        while queue:
            record = queue.popleft()
            LOGGER.info("Processing (%d/%d): %s", total - len(queue), total, record.path)
            try:
                point = self._index_single(record)
            except FILE_ERRORS as exc:
                LOGGER.warning("Skipping %s: %s", record.path, exc)
                stats.record_failure(record.path, str(exc))
                continue
            if point is None:
                stats.record_skip(record.path)
            else:
                points.append(point)

        if points:
            stats.inserted = self.store.upsert(points)
        else:
            LOGGER.info("No new files to upsert.")
        return stats

    def _already_indexed(self, record: FileRecord) -> bool:
        if self.force:
            return False
        try:
            return self.store.is_indexed(record.path)
        except StoreError as exc:
            LOGGER.warning("Dedup check failed for %s, indexing anyway: %s", record.path, exc)
            return False

    def _index_single(self, record: FileRecord) -> IndexPoint | None:
        if self._already_indexed(record):
            LOGGER.info("File path '%s' already indexed. Skipping.", record.path)
            return None

        summary = self.summarizer.summarize_file(record, force=self.force)
        embedding = self.embeddings.embed_summary(summary)
        return IndexPoint.for_file(record, embedding.first_dense, embedding.sparse)
