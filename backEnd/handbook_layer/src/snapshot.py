"""
Flattened-text snapshots of parsed handbooks.

A snapshot is a UTF-8 text file holding every page of a corpus as

    --- PAGE {n} ---
    {content}
    <blank line>

in ascending page order. Reading a snapshot back gives the same
corpus without re-parsing the PDF, and writing that corpus again
reproduces the file byte for byte.
"""

import logging
import os
import re
from pathlib import Path

from pydantic import ValidationError

from .errors import SnapshotError
from .schemas.page import Corpus, PageRecord

logger = logging.getLogger(__name__)

PAGE_MARKER_PATTERN = re.compile(r"^--- PAGE (\d+) ---\n", re.MULTILINE)
PAGE_TERMINATOR = "\n\n"


def snapshot_path(snapshot_dir: Path, document_id: str) -> Path:
    """Standard snapshot location for a handbook."""
    return Path(snapshot_dir) / f"handbook_{document_id}.txt"


def format_snapshot(corpus: Corpus) -> str:
    """Render a corpus in snapshot format."""
    return corpus.to_text()


def parse_snapshot(text: str, document_id: str) -> Corpus:
    """
    Rebuild a corpus from snapshot text.

    Args:
        text: Snapshot file contents
        document_id: Identifier attached to the corpus

    Returns:
        Corpus whose `to_text()` equals `text`

    Raises:
        SnapshotError: If markers are missing, misplaced, unterminated
            or not strictly ascending
    """
    markers = list(PAGE_MARKER_PATTERN.finditer(text))

    if not markers:
        raise SnapshotError("Snapshot contains no page markers", document_id=document_id)

    if markers[0].start() != 0:
        raise SnapshotError("Snapshot has text before the first page marker", document_id=document_id)

    records: list[PageRecord] = []
    for idx, marker in enumerate(markers):
        body_end = markers[idx + 1].start() if idx + 1 < len(markers) else len(text)
        body = text[marker.end():body_end]

        if not body.endswith(PAGE_TERMINATOR):
            raise SnapshotError(
                f"Page {marker.group(1)} is not terminated by a blank line",
                document_id=document_id,
            )

        records.append(
            PageRecord(page=int(marker.group(1)), content=body[: -len(PAGE_TERMINATOR)])
        )

    try:
        return Corpus(document_id=document_id, pages=tuple(records))
    except ValidationError as e:
        raise SnapshotError(f"Invalid page sequence in snapshot: {e}", document_id=document_id) from e


def save_snapshot(corpus: Corpus, path: Path) -> Path:
    """
    Write a corpus snapshot.

    The file is written next to its final location and then moved
    into place, so readers never see a partial snapshot.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_name(path.name + ".tmp")
    with open(tmp_path, "w", encoding="utf-8", newline="") as f:
        f.write(format_snapshot(corpus))
    os.replace(tmp_path, path)

    return path


def load_snapshot(path: Path, document_id: str) -> tuple[Corpus, str]:
    """
    Load a snapshot file.

    Returns:
        (corpus, flattened text) tuple

    Raises:
        FileNotFoundError: If no snapshot exists at `path`
        SnapshotError: If the file cannot be decoded or parsed
    """
    path = Path(path)

    try:
        with open(path, encoding="utf-8", newline="") as f:
            text = f.read()
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError(f"Snapshot is unreadable: {path.name}: {e}", document_id=document_id) from e

    corpus = parse_snapshot(text, document_id)
    logger.debug(f"Loaded snapshot {path.name} ({corpus.page_count} pages, {len(text)} chars)")
    return corpus, text
