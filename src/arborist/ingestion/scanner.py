"""Directory traversal with file and folder metadata."""

from __future__ import annotations

import logging
import os
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Tuple

from arborist.config import DEFAULT_SKIP_DIRS
from arborist.models import FileRecord, FolderRecord
from arborist.utils.files import category_for_path, file_extension

LOGGER = logging.getLogger(__name__)

HIDDEN_PREFIX = "."


def _timestamps(stat: os.stat_result) -> Tuple[datetime, datetime]:
    # st_birthtime only exists on some platforms; st_ctime is the fallback.
    created = getattr(stat, "st_birthtime", stat.st_ctime)
    return datetime.fromtimestamp(created), datetime.fromtimestamp(stat.st_mtime)


@dataclass(slots=True)
class DirScanResult:
    files: List[FileRecord] = field(default_factory=list)
    folders: List[FolderRecord] = field(default_factory=list)
    extension_counts: List[Tuple[str, int]] = field(default_factory=list)
    elapsed: float = 0.0
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def folder_count(self) -> int:
        return len(self.folders)

    @property
    def file_list(self) -> List[str]:
        return [record.path for record in self.files]

    @property
    def folder_list(self) -> List[str]:
        return [record.path for record in self.folders]


class DirectoryScanner:
    """Walks a directory tree up to ``max_depth`` levels below the root.

    Entries whose name starts with a dot are pruned when ``skip_hidden`` is
    set, and entries whose name is in ``skip_dirs`` are always pruned.
    Unreadable entries are logged and skipped.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        skip_hidden: bool = True,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
        max_depth: int = 10,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.skip_hidden = skip_hidden
        self.skip_dirs = frozenset(skip_dirs)
        self.max_depth = max_depth

    def should_skip(self, name: str) -> bool:
        if self.skip_hidden and name.startswith(HIDDEN_PREFIX):
            return True
        return name in self.skip_dirs

    def scan(self) -> DirScanResult:
        if not self.root.is_dir():
            raise NotADirectoryError(f"Not a directory: {self.root}")

        start = time.perf_counter()
        result = DirScanResult()
        extensions: Counter[str] = Counter()
        self._scan_folder(self.root, 0, result, extensions)

        result.extension_counts = sorted(extensions.items(), key=lambda item: (-item[1], item[0]))
        result.elapsed = time.perf_counter() - start
        LOGGER.info(
            "Scanned %s: %d files, %d folders in %.2fs",
            self.root,
            result.file_count,
            result.folder_count,
            result.elapsed,
        )
        return result

    def _skip_entry(self, path: str, exc: OSError, result: DirScanResult) -> None:
        LOGGER.warning("Skipping %s: %s", path, exc)
        result.errors.append((path, str(exc)))

    def _scan_folder(
        self,
        path: Path,
        depth: int,
        result: DirScanResult,
        extensions: Counter[str],
    ) -> FolderRecord | None:
        try:
            created, modified = _timestamps(path.stat())
            with os.scandir(path) as handle:
                entries = sorted(handle, key=lambda entry: entry.name)
        except OSError as exc:
            self._skip_entry(str(path), exc, result)
            return None

        folder = FolderRecord(
            name=path.name or str(path),
            path=str(path),
            created_at=created,
            modified_at=modified,
        )
        result.folders.append(folder)
        if depth >= self.max_depth:
            return folder

        for entry in entries:
            if self.should_skip(entry.name):
                LOGGER.debug("Pruned %s", entry.path)
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    child = self._scan_folder(Path(entry.path), depth + 1, result, extensions)
                    if child is None:
                        continue
                    folder.folder_count += 1
                    folder.size += child.size
                    folder.files.extend(child.files)
                elif entry.is_file(follow_symlinks=False):
                    record = self._file_record(entry)
                    result.files.append(record)
                    folder.file_count += 1
                    folder.size += record.size
                    folder.files.append(record)
                    ext = file_extension(entry.name)
                    if ext:
                        extensions[ext] += 1
            except OSError as exc:
                self._skip_entry(entry.path, exc, result)
        return folder

    @staticmethod
    def _file_record(entry: os.DirEntry) -> FileRecord:
        stat = entry.stat(follow_symlinks=False)
        created, modified = _timestamps(stat)
        return FileRecord(
            name=entry.name,
            path=os.path.abspath(entry.path),
            size=stat.st_size,
            category=category_for_path(entry.name),
            created_at=created,
            modified_at=modified,
        )
