"""Document conversion through the pandoc command-line tool."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from arborist.errors import ExtractionError
from arborist.models import DocumentFormat

LOGGER = logging.getLogger(__name__)

PANDOC_BINARY = "pandoc"


def convert_to_plain(path: Path, fmt: DocumentFormat, *, timeout: float = 120.0) -> str:
    """Run ``pandoc -f <fmt> -t plain <path>`` and return its standard output."""
    input_format = fmt.pandoc_arg
    if input_format is None:
        raise ValueError(f"pandoc cannot read {fmt.value} input")

    binary = shutil.which(PANDOC_BINARY)
    if binary is None:
        raise ExtractionError("pandoc is not installed or not on PATH")

    command = [binary, "-f", input_format, "-t", "plain", str(path)]
    LOGGER.debug("Running %s", " ".join(command))
    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise ExtractionError(f"pandoc timed out after {timeout}s on {path}") from exc

    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()
        raise ExtractionError(f"Failed to read document {path}: {stderr}")
    return completed.stdout.decode("utf-8", errors="replace")
