"""Tests for text utility functions."""

from __future__ import annotations

import pytest

from arborist.utils.text import Chunker, normalize_whitespace

SENTENCES = (
    "The quarterly report covers revenue and costs. "
    "Sales grew in every region except the north. "
    "Marketing spend was reduced by a small margin this year. "
    "Hiring stayed flat. "
    "The board approved the budget for the next fiscal year after a long discussion."
)


class CharTokenizer:
    """One token per non-space character, so long words span many tokens."""

    def encode(self, text, add_special_tokens=False):
        return list(text.replace(" ", ""))


def _tokens(text: str) -> int:
    return len(text.split())


class TestChunker:
    """Test token-bounded chunking."""

    def test_empty_text(self, tokenizer) -> None:
        """Blank input yields no chunks."""
        chunker = Chunker("ws", (2, 5), tokenizer=tokenizer)
        assert chunker.chunks("") == []
        assert chunker.chunks("   \n\n  ") == []

    def test_short_text_single_chunk(self, tokenizer) -> None:
        """Text below the minimum is returned as one final chunk."""
        chunker = Chunker("ws", (2, 10), tokenizer=tokenizer)
        assert chunker.chunks("Short text.") == ["Short text."]

    @pytest.mark.parametrize("window", [(3, 5), (5, 10), (8, 12), (10, 10), (1, 40)])
    def test_chunks_respect_window(self, tokenizer, window) -> None:
        """Every chunk but the last stays inside the token window."""
        low, high = window
        chunker = Chunker("ws", window, tokenizer=tokenizer)

        chunks = chunker.chunks(SENTENCES)

        assert chunks
        for chunk in chunks[:-1]:
            assert low <= _tokens(chunk) <= high
        assert 1 <= _tokens(chunks[-1]) <= high

    @pytest.mark.parametrize("window", [(3, 5), (8, 12), (20, 40)])
    def test_lossless_modulo_whitespace(self, tokenizer, window) -> None:
        """Joining the chunks gives back every word in order."""
        chunker = Chunker("ws", window, tokenizer=tokenizer)
        chunks = chunker.chunks(SENTENCES)
        assert " ".join(chunks).split() == SENTENCES.split()

    def test_prefers_sentence_boundaries(self, tokenizer) -> None:
        """Chunks end at sentence breaks when the window allows it."""
        text = "One two three. Four five six. Seven eight nine."
        chunker = Chunker("ws", (3, 6), tokenizer=tokenizer)

        assert chunker.chunks(text) == ["One two three. Four five six.", "Seven eight nine."]

    def test_short_chunk_topped_up_with_words(self, tokenizer) -> None:
        """A short chunk borrows words from the next sentence."""
        text = "Tiny start. Second sentence has five."
        chunker = Chunker("ws", (4, 5), tokenizer=tokenizer)

        assert chunker.chunks(text) == ["Tiny start. Second sentence has", "five."]

    def test_oversized_sentence_split_into_words(self, tokenizer) -> None:
        """A sentence above the maximum is broken into words."""
        text = "Tiny start. This sentence is much too long to fit after it."
        chunker = Chunker("ws", (4, 5), tokenizer=tokenizer)

        chunks = chunker.chunks(text)

        assert chunks[0] == "Tiny start. This sentence is"
        for chunk in chunks[:-1]:
            assert 4 <= _tokens(chunk) <= 5

    def test_paragraph_breaks_split_units(self, tokenizer) -> None:
        """Blank lines separate units even without punctuation."""
        text = "first paragraph here\n\nsecond paragraph here"
        chunker = Chunker("ws", (1, 3), tokenizer=tokenizer)
        assert chunker.chunks(text) == ["first paragraph here", "second paragraph here"]

    def test_oversized_word_is_sliced(self) -> None:
        """A single word above the maximum is cut into pieces."""
        chunker = Chunker("chars", (2, 4), tokenizer=CharTokenizer())
        chunks = chunker.chunks("abcdefghij")

        assert "".join(chunks) == "abcdefghij"
        assert all(len(chunk) <= 4 for chunk in chunks)

    def test_short_chunk_topped_up_with_word_pieces(self) -> None:
        """A multi-token word that does not fit whole tops up a short chunk."""
        chunker = Chunker("chars", (4, 5), tokenizer=CharTokenizer())

        assert chunker.chunks("ab. cdefg hij") == ["ab. cd", "efg hi", "j"]

    @pytest.mark.parametrize("window", [(4, 5), (6, 9), (10, 10), (3, 20)])
    def test_multi_token_words_respect_window(self, window) -> None:
        """Window bounds hold when words cost several tokens each."""
        low, high = window
        tokenizer = CharTokenizer()
        chunker = Chunker("chars", window, tokenizer=tokenizer)

        chunks = chunker.chunks(SENTENCES)

        for chunk in chunks[:-1]:
            assert low <= len(tokenizer.encode(chunk)) <= high
        assert 1 <= len(tokenizer.encode(chunks[-1])) <= high
        assert "".join(chunks).replace(" ", "") == SENTENCES.replace(" ", "")

    def test_invalid_window(self) -> None:
        """Zero or inverted windows are rejected."""
        with pytest.raises(ValueError):
            Chunker("ws", (0, 5))
        with pytest.raises(ValueError):
            Chunker("ws", (10, 5))

    def test_tokenizer_loaded_lazily(self, monkeypatch) -> None:
        """The Hugging Face tokenizer is only loaded on first use."""
        loaded = []

        class FakeAutoTokenizer:
            @staticmethod
            def from_pretrained(name):
                loaded.append(name)
                return type("T", (), {"encode": lambda self, t, add_special_tokens=False: t.split()})()

        import transformers

        monkeypatch.setattr(transformers, "AutoTokenizer", FakeAutoTokenizer)
        chunker = Chunker("bert-base-cased", (1, 10))
        assert loaded == []

        assert chunker.count_tokens("two words") == 2
        assert loaded == ["bert-base-cased"]


class TestNormalizeWhitespace:
    """Test normalize_whitespace function."""

    def test_normalize_simple(self) -> None:
        """Should join and strip lines."""
        lines = ["  Line 1  ", "  Line 2  ", "  Line 3  "]
        assert normalize_whitespace(lines) == "Line 1\nLine 2\nLine 3"

    def test_normalize_empty_lines(self) -> None:
        """Should skip empty lines."""
        lines = ["Line 1", "", "  ", "Line 2", "\n", "Line 3"]
        assert normalize_whitespace(lines) == "Line 1\nLine 2\nLine 3"

    def test_normalize_all_empty(self) -> None:
        """Should return empty string for all empty lines."""
        assert normalize_whitespace(["", "  ", "\n", "\t"]) == ""
