"""
Tests for keyword relevance extraction.

These tests pin down the extractor's guarantees:
- Output never exceeds max_chars plus the truncation marker
- A non-empty corpus never yields an empty excerpt
- Selected lines keep their document order
"""

import pytest

from handbook_layer.src.relevance import (
    TRUNCATION_MARKER,
    extract_relevant,
    keyword_hits,
    match_line_indices,
    tokenize_query,
    truncate_text,
)
from handbook_layer.src.schemas.page import Corpus, PageRecord


@pytest.fixture
def three_page_text():
    corpus = Corpus(
        document_id="engineering",
        pages=(
            PageRecord(page=1, content="履修登録は4月に行う"),
            PageRecord(page=2, content="図書館は9時開館"),
            PageRecord(page=3, content="卒業要件は124単位"),
        ),
    )
    return corpus.to_text()


@pytest.fixture
def long_text():
    return "\n".join(f"line {i} filler text" for i in range(500))


class TestTokenizeQuery:
    """Tests for query keyword splitting."""

    def test_splits_on_whitespace(self):
        assert tokenize_query("図書館 開館時間") == ["図書館", "開館時間"]

    def test_splits_on_ideographic_space_and_punctuation(self):
        assert tokenize_query("図書館　開館時間？休館日、教えて。") == [
            "図書館",
            "開館時間",
            "休館日",
            "教えて",
        ]

    def test_lowercases(self):
        assert tokenize_query("GPA Rules") == ["gpa", "rules"]

    def test_drops_single_characters(self):
        assert tokenize_query("の は GPA a") == ["gpa"]

    def test_deduplicates_in_order(self):
        assert tokenize_query("単位 卒業 単位") == ["単位", "卒業"]

    def test_empty_and_none(self):
        assert tokenize_query("") == []
        assert tokenize_query(None) == []
        assert tokenize_query("   ") == []


class TestMatchLineIndices:
    """Tests for the pure line-window selection."""

    def test_window_around_hit(self):
        lines = [f"l{i}" for i in range(10)]
        lines[5] = "keyword here"

        assert match_line_indices(lines, ["keyword"], window=2) == {3, 4, 5, 6, 7}

    def test_window_clamped_at_edges(self):
        lines = ["keyword first", "b", "c", "d", "keyword last"]

        assert match_line_indices(lines, ["keyword"], window=3) == {0, 1, 2, 3, 4}

    def test_overlapping_windows_merge(self):
        lines = ["a", "hit", "b", "hit", "c", "d", "e", "f"]

        assert match_line_indices(lines, ["hit"], window=1) == {0, 1, 2, 3, 4}

    def test_case_insensitive(self):
        assert keyword_hits(["Library HOURS"], ["library"]) == [0]

    def test_no_keywords_selects_nothing(self):
        assert match_line_indices(["a", "b"], [], window=3) == set()

    def test_zero_window(self):
        assert match_line_indices(["x", "hit", "y"], ["hit"], window=0) == {1}

    def test_negative_window_rejected(self):
        with pytest.raises(ValueError):
            match_line_indices(["a"], ["a"], window=-1)


class TestTruncate:
    """Tests for truncation."""

    def test_short_text_untouched(self):
        assert truncate_text("abc", 10) == ("abc", False)

    def test_long_text_marked(self):
        text, truncated = truncate_text("abcdef", 3)
        assert text == "abc" + TRUNCATION_MARKER
        assert truncated


class TestExtractRelevant:
    """Tests for extract_relevant."""

    def test_library_scenario(self, three_page_text):
        context = extract_relevant(three_page_text, "図書館 開館時間", max_chars=10000)

        assert "図書館は9時開館" in context.text
        assert "--- PAGE 2 ---" in context.text
        assert context.matched_lines == 1
        assert not context.used_fallback
        assert not context.truncated

    def test_window_includes_neighbouring_lines(self, three_page_text):
        lines = three_page_text.split("\n")
        hit = lines.index("図書館は9時開館")

        context = extract_relevant(three_page_text, "図書館", max_chars=10000, context_lines=3)

        assert context.text.split("\n") == lines[hit - 3:hit + 4]

    def test_empty_query_returns_prefix(self, long_text):
        context = extract_relevant(long_text, "", max_chars=100)

        assert context.text == long_text[:100] + TRUNCATION_MARKER
        assert context.truncated
        assert not context.used_fallback

    def test_no_match_falls_back_to_prefix(self, long_text):
        context = extract_relevant(long_text, "存在しない語", max_chars=50)

        assert context.text.startswith(long_text[:50])
        assert context.used_fallback
        assert context.matched_lines == 0

    def test_small_corpus_not_truncated(self, three_page_text):
        context = extract_relevant(three_page_text, None, max_chars=100000)

        assert context.text == three_page_text
        assert not context.truncated

    @pytest.mark.parametrize("max_chars", [0, 1, 10, 57, 300, 5000, 100000])
    @pytest.mark.parametrize("query", ["", "line", "filler 42", "nothing-matches"])
    def test_length_bound(self, long_text, max_chars, query):
        context = extract_relevant(long_text, query, max_chars=max_chars)

        assert len(context.text) <= max_chars + len(TRUNCATION_MARKER)

    @pytest.mark.parametrize("max_chars", [0, 1, 20])
    @pytest.mark.parametrize("query", ["", "図書館", "zzz"])
    def test_never_empty_for_non_empty_corpus(self, three_page_text, max_chars, query):
        context = extract_relevant(three_page_text, query, max_chars=max_chars)

        assert context.text != ""

    def test_document_order_preserved(self):
        lines = [f"row {i}" for i in range(40)]
        lines[30] = "beta keyword"
        lines[5] = "alpha keyword"
        text = "\n".join(lines)

        context = extract_relevant(text, "beta alpha", max_chars=100000, context_lines=1)

        out = context.text.split("\n")
        positions = [lines.index(line) for line in out]
        assert positions == sorted(positions)
        assert out == ["row 4", "alpha keyword", "row 6", "row 29", "beta keyword", "row 31"]

    def test_matched_excerpt_truncated(self, long_text):
        context = extract_relevant(long_text, "filler", max_chars=200)

        assert context.truncated
        assert context.text.endswith(TRUNCATION_MARKER)
        assert context.matched_lines == 500
