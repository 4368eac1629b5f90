"""Spreadsheet and slide-deck text extraction."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

from openpyxl import load_workbook
from pptx import Presentation


def _iter_sheet_lines(path: Path) -> Iterator[str]:
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        for sheet in workbook.worksheets:
            yield f"Sheet: {sheet.title}"
            for row in sheet.iter_rows(values_only=True):
                if all(cell is None for cell in row):
                    continue
                yield "\t".join("" if cell is None else str(cell) for cell in row)
    finally:
        workbook.close()


def extract_xlsx_text(path: Path) -> str:
    """Concatenate every sheet: a ``Sheet: <name>`` line, then tab-separated rows."""
    return "\n".join(_iter_sheet_lines(path))


def extract_pptx_text(path: Path) -> str:
    """Text of every text-bearing shape, slide by slide."""
    presentation = Presentation(str(path))
    slides = []
    for slide in presentation.slides:
        texts = [
            shape.text_frame.text.strip()
            for shape in slide.shapes
            if shape.has_text_frame and shape.text_frame.text.strip()
        ]
        if texts:
            slides.append("\n".join(texts))
    return "\n\n".join(slides)
