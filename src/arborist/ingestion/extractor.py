"""Turn a scanned file into summarizable content, per file category."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict

from arborist.errors import ExtractionError
from arborist.ingestion.office import extract_pptx_text, extract_xlsx_text
from arborist.ingestion.pandoc import convert_to_plain
from arborist.ingestion.pdf_loader import extract_pdf_text
from arborist.models import ContentKind, DocumentFormat, ExtractedContent, FileCategory, FileRecord
from arborist.utils.files import document_format_for_path

LOGGER = logging.getLogger(__name__)

NO_SUMMARY_TEXT = "Summary not available for this file type."

# Audio, video and archives are not inspected; these name the file only.
AUDIO_PLACEHOLDER = "Audio transcription for: {path}"
VIDEO_PLACEHOLDER = "Video transcription for: {path}"
ARCHIVE_PLACEHOLDER = "Archive summary for: {path}"


def read_raw_text(path: Path) -> str:
    return path.read_bytes().decode("utf-8", errors="replace")


_DEDICATED_EXTRACTORS: Dict[DocumentFormat, Callable[[Path], str]] = {
    DocumentFormat.PDF: extract_pdf_text,
    DocumentFormat.XLSX: extract_xlsx_text,
    DocumentFormat.PPTX: extract_pptx_text,
    DocumentFormat.RAW: read_raw_text,
}


class ContentExtractor:
    """Dispatches on ``FileRecord.category``, one handler per category."""

    def __init__(self, *, pandoc_timeout: float = 120.0) -> None:
        self.pandoc_timeout = pandoc_timeout
        self._handlers: Dict[FileCategory, Callable[[FileRecord], ExtractedContent]] = {
            FileCategory.DOCUMENT: self._extract_document,
            FileCategory.IMAGE: self._extract_image,
            FileCategory.AUDIO: self._placeholder(AUDIO_PLACEHOLDER),
            FileCategory.VIDEO: self._placeholder(VIDEO_PLACEHOLDER),
            FileCategory.ARCHIVE: self._placeholder(ARCHIVE_PLACEHOLDER),
            FileCategory.OTHER: self._no_summary,
        }
        missing = set(FileCategory) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No extractor for categories: {sorted(c.value for c in missing)}")

    def extract(self, record: FileRecord) -> ExtractedContent:
        handler = self._handlers[record.category]
        try:
            return handler(record)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"Failed to extract {record.path}: {exc}") from exc

    def extract_document_text(self, path: Path) -> str:
        fmt = document_format_for_path(path)
        extractor = _DEDICATED_EXTRACTORS.get(fmt)
        if extractor is not None:
            LOGGER.debug("Extracting %s as %s", path, fmt.value)
            return extractor(path)
        return convert_to_plain(path, fmt, timeout=self.pandoc_timeout)

    def _extract_document(self, record: FileRecord) -> ExtractedContent:
        text = self.extract_document_text(Path(record.path)).strip()
        if not text:
            LOGGER.debug("No text in %s", record.path)
            return ExtractedContent(kind=ContentKind.UNAVAILABLE, text=NO_SUMMARY_TEXT)
        return ExtractedContent(kind=ContentKind.TEXT, text=text)

    def _extract_image(self, record: FileRecord) -> ExtractedContent:
        return ExtractedContent(kind=ContentKind.IMAGE, image=Path(record.path).read_bytes())

    @staticmethod
    def _placeholder(template: str) -> Callable[[FileRecord], ExtractedContent]:
        def handler(record: FileRecord) -> ExtractedContent:
            return ExtractedContent(kind=ContentKind.TEXT, text=template.format(path=record.path))

        return handler

    @staticmethod
    def _no_summary(record: FileRecord) -> ExtractedContent:
        return ExtractedContent(kind=ContentKind.UNAVAILABLE, text=NO_SUMMARY_TEXT)
