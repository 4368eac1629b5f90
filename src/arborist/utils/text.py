"""Text helpers including token-aware chunking."""

from __future__ import annotations

import re
from collections import deque
from typing import Iterable, Iterator, List, Protocol, Tuple

_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+|\n\s*\n")
_WORD = re.compile(r"\S+")

Span = Tuple[int, int]


class Tokenizer(Protocol):
    def encode(self, text: str, add_special_tokens: bool = ...) -> List[int]: ...


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def _sentence_spans(text: str) -> Iterator[Span]:
    start = 0
    for match in _SENTENCE_BREAK.finditer(text):
        if match.start() > start:
            yield start, match.start()
        start = match.end()
    if start < len(text) and text[start:].strip():
        yield start, len(text)


def _word_spans(text: str, span: Span) -> Iterator[Span]:
    for match in _WORD.finditer(text, span[0], span[1]):
        yield match.span()


class Chunker:
    """Split text into chunks whose token count falls in ``[min, max]``.

    Chunks are filled greedily with whole sentences. A sentence that is too
    long on its own, or that is needed to reach the minimum, is broken into
    words. A word is cut by characters when it exceeds the maximum by itself,
    or when only part of it fits into a chunk still short of the minimum.
    Only the final chunk may fall short of the minimum.
    """

    def __init__(
        self,
        tokenizer_name: str = "bert-base-cased",
        window: Tuple[int, int] = (20, 40),
        *,
        tokenizer: Tokenizer | None = None,
    ) -> None:
        low, high = window
        if low <= 0 or high < low:
            raise ValueError(f"Invalid token window [{low}, {high}]")
        self.tokenizer_name = tokenizer_name
        self.min_tokens = low
        self.max_tokens = high
        self._tokenizer = tokenizer

    @property
    def tokenizer(self) -> Tokenizer:
        if self._tokenizer is None:
            from transformers import AutoTokenizer

            self._tokenizer = AutoTokenizer.from_pretrained(self.tokenizer_name)
        return self._tokenizer

    def count_tokens(self, text: str) -> int:
        return len(self.tokenizer.encode(text, add_special_tokens=False))

    def chunks(self, text: str) -> List[str]:
        units: deque[Tuple[Span, bool]] = deque(self._fitting_spans(text, _sentence_spans(text)))
        chunks: List[str] = []
        current: Span | None = None

        while units:
            span, is_sentence = units.popleft()
            if current is None:
                current = span
                continue
            merged = (current[0], span[1])
            if self.count_tokens(text[merged[0] : merged[1]]) <= self.max_tokens:
                current = merged
                continue
            if self.count_tokens(text[current[0] : current[1]]) < self.min_tokens:
                if is_sentence:
                    # Top up the short chunk word by word instead of flushing it.
                    units.extendleft(reversed([(w, False) for w in _word_spans(text, span)]))
                    continue
                cut = self._fit_end(text, current[0], span[0], span[1])
                if cut > span[0]:
                    # Take the head of the word; the rest starts the next unit.
                    current = (current[0], cut)
                    if cut < span[1]:
                        units.appendleft(((cut, span[1]), False))
                    continue
            chunks.append(text[current[0] : current[1]].strip())
            current = span

        if current is not None:
            chunks.append(text[current[0] : current[1]].strip())
        return chunks

    def _fitting_spans(self, text: str, spans: Iterable[Span]) -> Iterator[Tuple[Span, bool]]:
        """Yield ``(span, is_sentence)``, splitting spans above the maximum."""
        for span in spans:
            if self.count_tokens(text[span[0] : span[1]]) <= self.max_tokens:
                yield span, True
                continue
            for word in _word_spans(text, span):
                if self.count_tokens(text[word[0] : word[1]]) <= self.max_tokens:
                    yield word, False
                else:
                    for piece in self._slice_word(text, word):
                        yield piece, False

    def _fit_end(self, text: str, start: int, low: int, high: int) -> int:
        """Largest ``end`` in ``[low, high]`` with ``text[start:end]`` within the maximum.

        Returns ``low`` when nothing past it fits.
        """
        while low < high:
            mid = (low + high + 1) // 2
            if self.count_tokens(text[start:mid]) <= self.max_tokens:
                low = mid
            else:
                high = mid - 1
        return low

    def _slice_word(self, text: str, span: Span) -> Iterator[Span]:
        start, end = span
        while start < end:
            cut = self._fit_end(text, start, start + 1, end)
            yield start, cut
            start = cut
