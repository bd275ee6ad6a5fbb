"""Tests for the `--- PAGE n ---` snapshot format."""

import re

import pytest

from handbook_layer.src.errors import SnapshotError
from handbook_layer.src.schemas.page import Corpus, PageRecord
from handbook_layer.src.snapshot import (
    format_snapshot,
    load_snapshot,
    parse_snapshot,
    save_snapshot,
    snapshot_path,
)


@pytest.fixture
def corpus():
    return Corpus(
        document_id="engineering",
        pages=(
            PageRecord(page=1, content="学生便覧 2024"),
            PageRecord(page=2, content=""),
            PageRecord(page=3, content="図書館は9時開館"),
        ),
    )


class TestFormat:
    """Tests for snapshot rendering."""

    def test_exact_format(self, corpus):
        assert format_snapshot(corpus) == (
            "--- PAGE 1 ---\n学生便覧 2024\n\n"
            "--- PAGE 2 ---\n\n\n"
            "--- PAGE 3 ---\n図書館は9時開館\n\n"
        )

    def test_each_marker_once_in_ascending_order(self):
        pages = tuple(PageRecord(page=n, content=f"page body {n}") for n in range(1, 21))
        text = format_snapshot(Corpus(document_id="letters", pages=pages))

        found = [int(m) for m in re.findall(r"^--- PAGE (\d+) ---$", text, re.MULTILINE)]
        assert found == list(range(1, 21))
        for n in range(1, 21):
            assert text.count(f"--- PAGE {n} ---\n") == 1


class TestParse:
    """Tests for reading snapshot text back."""

    def test_round_trip_is_byte_identical(self, corpus):
        text = format_snapshot(corpus)
        parsed = parse_snapshot(text, "engineering")

        assert parsed == corpus
        assert format_snapshot(parsed) == text

    def test_multiline_page_content(self):
        text = "--- PAGE 1 ---\nline one\nline two\n\n\n--- PAGE 2 ---\nnext\n\n"
        parsed = parse_snapshot(text, "science")

        assert parsed.pages[0].content == "line one\nline two\n"
        assert format_snapshot(parsed) == text

    def test_no_markers(self):
        with pytest.raises(SnapshotError):
            parse_snapshot("just some text\n", "engineering")

    def test_text_before_first_marker(self):
        with pytest.raises(SnapshotError):
            parse_snapshot("preamble\n--- PAGE 1 ---\nbody\n\n", "engineering")

    def test_unterminated_page(self):
        with pytest.raises(SnapshotError):
            parse_snapshot("--- PAGE 1 ---\nbody cut off", "engineering")

    def test_descending_pages(self):
        text = "--- PAGE 2 ---\nb\n\n--- PAGE 1 ---\na\n\n"
        with pytest.raises(SnapshotError):
            parse_snapshot(text, "engineering")


class TestFiles:
    """Tests for snapshot files on disk."""

    def test_snapshot_path_naming(self, tmp_path):
        assert snapshot_path(tmp_path, "letters") == tmp_path / "handbook_letters.txt"

    def test_save_then_load(self, tmp_path, corpus):
        path = save_snapshot(corpus, tmp_path / "nested" / "handbook_engineering.txt")

        loaded, text = load_snapshot(path, "engineering")

        assert loaded == corpus
        assert text == format_snapshot(corpus)
        assert path.read_bytes() == format_snapshot(corpus).encode("utf-8")
        assert not (path.parent / "handbook_engineering.txt.tmp").exists()

    def test_load_missing_raises_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "handbook_none.txt", "none")

    def test_load_undecodable_raises_snapshot_error(self, tmp_path):
        path = tmp_path / "handbook_bad.txt"
        path.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(SnapshotError):
            load_snapshot(path, "bad")
