"""Exception hierarchy shared across the pipeline."""

from __future__ import annotations


class ArboristError(Exception):
    """Base class for all Arborist errors."""


class ConfigError(ArboristError):
    """Configuration could not be loaded or is invalid."""


class ExtractionError(ArboristError):
    """A file's content could not be turned into text."""


class LLMError(ArboristError):
    """The language-model service failed or returned a malformed response."""


class SummaryError(ArboristError):
    """A summary could not be produced for a file or folder."""


class EmbeddingError(ArboristError):
    """Embeddings could not be generated."""


class StoreError(ArboristError):
    """The vector store rejected a request or could not be reached."""
