"""
PDF ingestion to page records.

Uses pdfplumber to walk a handbook page by page. Every word fragment
on a page is joined with a single space in the PDF's own text flow,
so no layout reconstruction or header/footer removal happens here.
Each page's parsed objects are flushed before the next page is read
to keep memory flat on multi-hundred-page handbooks.
"""

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Protocol

import pdfplumber

from .errors import IngestError, IngestErrorKind
from .schemas.page import Corpus, PageRecord

logger = logging.getLogger(__name__)

# Progress is logged every N pages
PROGRESS_EVERY = 50


class TextPage(Protocol):
    """The subset of `pdfplumber.page.Page` the ingestor relies on."""

    def extract_words(self, **kwargs) -> list[dict]:
        ...


def page_text(page: TextPage) -> str:
    """Join all word fragments of a page with single spaces."""
    words = page.extract_words(
        keep_blank_chars=False,
        use_text_flow=True,
        x_tolerance=3,
        y_tolerance=3,
    )
    return " ".join(w["text"] for w in words if w.get("text"))


def pages_to_records(pages: Iterable[TextPage]) -> list[PageRecord]:
    """
    Convert pages into 1-indexed page records.

    Pages are consumed lazily; when a page exposes `flush_cache`
    it is called once the page's text has been taken.
    """
    records: list[PageRecord] = []
    for page_num, page in enumerate(pages, start=1):
        records.append(PageRecord(page=page_num, content=page_text(page)))

        flush = getattr(page, "flush_cache", None)
        if callable(flush):
            flush()

        if page_num % PROGRESS_EVERY == 0:
            logger.info(f"Processed {page_num} pages")

    return records


def ingest_pdf(source_path: Path, document_id: str) -> Corpus:
    """
    Parse a handbook PDF into a corpus.

    Args:
        source_path: Path to the PDF
        document_id: Handbook identifier attached to the corpus

    Returns:
        Corpus with one PageRecord per PDF page

    Raises:
        IngestError: NOT_FOUND if the file is missing or unreadable,
            PARSE_FAILURE if it is not a parseable PDF or has no pages
    """
    source_path = Path(source_path)

    if not source_path.is_file():
        raise IngestError(
            IngestErrorKind.NOT_FOUND,
            f"Handbook PDF not found: {source_path}",
            document_id=document_id,
        )

    logger.info(f"Parsing {document_id} handbook PDF ({source_path.name})")

    try:
        with pdfplumber.open(source_path) as pdf:
            records = pages_to_records(pdf.pages)
    except PermissionError as e:
        raise IngestError(
            IngestErrorKind.NOT_FOUND,
            f"Handbook PDF is not readable: {source_path}",
            document_id=document_id,
        ) from e
    except Exception as e:
        raise IngestError(
            IngestErrorKind.PARSE_FAILURE,
            f"Failed to parse handbook PDF {source_path}: {e}",
            document_id=document_id,
        ) from e

    if not records:
        raise IngestError(
            IngestErrorKind.PARSE_FAILURE,
            f"Handbook PDF has no pages: {source_path}",
            document_id=document_id,
        )

    logger.info(f"Parsed {len(records)} pages from {source_path.name}")
    return Corpus(document_id=document_id, pages=tuple(records))


async def ingest_pdf_async(source_path: Path, document_id: str) -> Corpus:
    """Run `ingest_pdf` in a worker thread."""
    return await asyncio.to_thread(ingest_pdf, source_path, document_id)
