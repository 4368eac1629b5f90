"""File and folder summaries generated by the language model."""

from __future__ import annotations

import logging

from arborist.errors import ArboristError, LLMError, SummaryError
from arborist.ingestion.extractor import ContentExtractor
from arborist.llm.client import OllamaClient
from arborist.models import ContentKind, FileRecord, FolderRecord

LOGGER = logging.getLogger(__name__)

FILE_PROMPT = "Summarize the contents of file: {content}"
FILE_SYSTEM = "You are a helpful assistant who summarizes file contents."
FOLDER_PROMPT = "Summarize the contents of folder: {content}"
FOLDER_SYSTEM = "You are a helpful assistant who summarizes folder contents."
IMAGE_PROMPT = (
    "Describe this image in two or three sentences: the main subjects, the setting "
    "and any visible text."
)


class Summarizer:
    """Summaries for scanned files and folders, one model call at a time."""

    def __init__(
        self,
        client: OllamaClient,
        extractor: ContentExtractor,
        *,
        model: str,
        vision_model: str | None = None,
        max_content_chars: int = 12000,
    ) -> None:
        self.client = client
        self.extractor = extractor
        self.model = model
        self.vision_model = vision_model or model
        self.max_content_chars = max_content_chars

    def summarize_file(self, record: FileRecord, *, force: bool = False) -> str:
        """Fill ``record.summary`` unless it is already set and ``force`` is off.

        Raises ``ExtractionError`` or ``SummaryError``; both mean the file
        should be skipped.
        """
        if record.summary and not force:
            return record.summary

        content = self.extractor.extract(record)
        if content.kind is ContentKind.UNAVAILABLE:
            summary = content.text
        elif content.kind is ContentKind.IMAGE:
            summary = self._generate(
                self.vision_model, IMAGE_PROMPT, None, record.path, images=[content.image or b""]
            )
        else:
            text = content.text[: self.max_content_chars]
            summary = self._generate(
                self.model, FILE_PROMPT.format(content=text), FILE_SYSTEM, record.path
            )

        record.summary = summary
        return summary

    def summarize_folder(self, folder: FolderRecord, *, force: bool = False) -> str:
        """Summarize a folder from the summaries of the files below it."""
        if folder.summary and not force:
            return folder.summary

        summaries = []
        for record in folder.files:
            try:
                summaries.append(self.summarize_file(record))
            except ArboristError as exc:
                LOGGER.warning("Leaving %s out of folder summary: %s", record.path, exc)
        if not summaries:
            raise SummaryError(f"No file summaries available for folder {folder.path}")

        content = "\n".join(summaries)[: self.max_content_chars]
        folder.summary = self._generate(
            self.model, FOLDER_PROMPT.format(content=content), FOLDER_SYSTEM, folder.path
        )
        return folder.summary

    def _generate(
        self,
        model: str,
        prompt: str,
        system: str | None,
        target: str,
        *,
        images: list[bytes] | None = None,
    ) -> str:
        try:
            text = self.client.generate(model, prompt, system=system, images=images)
        except LLMError as exc:
            raise SummaryError(f"Failed to generate summary for {target}: {exc}") from exc
        if not text:
            raise SummaryError(f"Empty summary returned for {target}")
        return text
