"""Utility helpers for working with files."""

from __future__ import annotations

from pathlib import Path

from arborist.models import DocumentFormat, FileCategory

_CATEGORY_EXTENSIONS: dict[FileCategory, frozenset[str]] = {
    FileCategory.DOCUMENT: frozenset(
        {
            "epub", "pdf", "txt", "docx", "md", "epage", "rtf", "fb2", "azw3", "mobi",
            "doc", "xlsx", "csv", "tex", "bib", "json", "xml", "html", "conf", "pptx",
            "settings", "prop", "log", "djvu", "cls", "pkt", "sav", "set", "bin",
            "backup", "bundle", "typ", "scpt",
        }
    ),
    FileCategory.IMAGE: frozenset(
        {
            "jpg", "png", "jpeg", "gif", "bmp", "tiff", "webp", "svg", "heic", "avif",
            "pgm", "opf", "icon",
        }
    ),
    FileCategory.AUDIO: frozenset({"mp3", "wav", "m4b", "ogg", "flac", "aac", "wma", "amr"}),
    FileCategory.VIDEO: frozenset(
        {"mp4", "mkv", "webm", "avi", "mov", "wmv", "flv", "mpeg", "3gp", "m4v"}
    ),
    FileCategory.ARCHIVE: frozenset(
        {
            "zip", "tar", "rar", "7z", "gz", "bz2", "iso", "dmg", "cab", "jar", "war",
            "ear", "pkg", "deb", "rpm", "apk", "cpio",
        }
    ),
}

EXTENSION_CATEGORIES: dict[str, FileCategory] = {
    ext: category for category, exts in _CATEGORY_EXTENSIONS.items() for ext in exts
}

_FORMAT_EXTENSIONS: dict[str, DocumentFormat] = {
    "md": DocumentFormat.MARKDOWN,
    "markdown": DocumentFormat.MARKDOWN,
    "docx": DocumentFormat.DOCX,
    "epub": DocumentFormat.EPUB,
    "html": DocumentFormat.HTML,
    "htm": DocumentFormat.HTML,
    "rtf": DocumentFormat.RTF,
    "tex": DocumentFormat.LATEX,
    "json": DocumentFormat.JSON,
    "rst": DocumentFormat.RST,
    "opml": DocumentFormat.OPML,
    "org": DocumentFormat.ORG,
    "wiki": DocumentFormat.MEDIAWIKI,
    "mediawiki": DocumentFormat.MEDIAWIKI,
    "pdf": DocumentFormat.PDF,
    "xlsx": DocumentFormat.XLSX,
    "pptx": DocumentFormat.PPTX,
}


def file_extension(path: str | Path) -> str:
    """Lower-cased extension without the dot, empty if there is none."""
    return Path(path).suffix[1:].lower()


def category_for_path(path: str | Path) -> FileCategory:
    """Map a path to its category. Unknown or missing extensions map to OTHER."""
    return EXTENSION_CATEGORIES.get(file_extension(path), FileCategory.OTHER)


def document_format_for_path(path: str | Path) -> DocumentFormat:
    return _FORMAT_EXTENSIONS.get(file_extension(path), DocumentFormat.RAW)
