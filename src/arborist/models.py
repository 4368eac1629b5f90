"""Core Arborist data models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Sequence

# Namespace for point ids; the same path always maps to the same point.
POINT_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "arborist/file_data")


class FileCategory(str, Enum):
    """Coarse file type, derived from the file extension only."""

    DOCUMENT = "document"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    ARCHIVE = "archive"
    OTHER = "other"


class DocumentFormat(str, Enum):
    """Document sub-format, one member per extraction strategy.

    Members that pandoc understands carry the pandoc ``-f`` argument as their
    value. ``RAW`` is the fallback for every unrecognized extension.
    """

    MARKDOWN = "markdown"
    DOCX = "docx"
    EPUB = "epub"
    HTML = "html"
    RTF = "rtf"
    LATEX = "latex"
    JSON = "json"
    RST = "rst"
    OPML = "opml"
    ORG = "org"
    MEDIAWIKI = "mediawiki"
    PDF = "pdf"
    XLSX = "xlsx"
    PPTX = "pptx"
    RAW = "raw"

    @property
    def pandoc_arg(self) -> str | None:
        if self in _NON_PANDOC_FORMATS:
            return None
        return self.value


_NON_PANDOC_FORMATS = frozenset(
    {DocumentFormat.PDF, DocumentFormat.XLSX, DocumentFormat.PPTX, DocumentFormat.RAW}
)


class ContentKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    UNAVAILABLE = "unavailable"


@dataclass(slots=True)
class FileRecord:
    """Metadata for a single scanned file."""

    name: str
    path: str
    size: int
    category: FileCategory
    created_at: datetime
    modified_at: datetime
    summary: str = ""


@dataclass(slots=True)
class FolderRecord:
    """Metadata for a scanned directory.

    ``files`` holds every file found below the folder once the walk has
    finished; ``file_count`` and ``folder_count`` count direct children only.
    """

    name: str
    path: str
    created_at: datetime
    modified_at: datetime
    size: int = 0
    file_count: int = 0
    folder_count: int = 0
    files: List[FileRecord] = field(default_factory=list)
    summary: str = ""


@dataclass(slots=True)
class ExtractedContent:
    """Result of content extraction, ready for summarization."""

    kind: ContentKind
    text: str = ""
    image: bytes | None = None


@dataclass(slots=True)
class SparseVector:
    """Lexical weights keyed by vocabulary index."""

    indices: List[int]
    values: List[float]

    def __len__(self) -> int:
        return len(self.indices)


def point_id_for_path(path: str) -> str:
    """Stable point id for a file path."""
    return str(uuid.uuid5(POINT_NAMESPACE, path))


@dataclass(slots=True)
class IndexPoint:
    """One indexed file: id, named vectors and payload."""

    id: str
    dense_vector: List[float]
    payload: Dict[str, Any]
    sparse_vector: SparseVector | None = None

    @classmethod
    def for_file(
        cls,
        record: FileRecord,
        dense_vector: Sequence[float],
        sparse_vector: SparseVector | None = None,
    ) -> IndexPoint:
        return cls(
            id=point_id_for_path(record.path),
            dense_vector=[float(x) for x in dense_vector],
            sparse_vector=sparse_vector,
            payload={
                "file_name": record.name,
                "file_path": record.path,
                "file_size": record.size,
                "summary": record.summary,
            },
        )
