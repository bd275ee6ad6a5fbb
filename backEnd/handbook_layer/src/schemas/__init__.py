"""
Pydantic schemas for handbook artifacts.

Every page-level schema carries its 1-indexed page number so that
answers can always cite where the text came from.
"""

from .descriptor import Department, DocumentDescriptor
from .page import PAGE_MARKER_TEMPLATE, Corpus, PageRecord, RelevantContext

__all__ = [
    "Corpus",
    "Department",
    "DocumentDescriptor",
    "PAGE_MARKER_TEMPLATE",
    "PageRecord",
    "RelevantContext",
]
