"""
Page-level schemas for handbook text.

A handbook PDF is flattened into an ordered sequence of pages:
- PageRecord: one page's 1-indexed number and its extracted text
- Corpus: every page of one handbook, in document order
- RelevantContext: the bounded slice of a corpus sent to the LLM
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator


PAGE_MARKER_TEMPLATE = "--- PAGE {page} ---"


class PageRecord(BaseModel):
    """Text extracted from a single PDF page."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(..., ge=1, description="1-indexed page number")
    content: str = Field(
        default="",
        description="Page fragments joined by single spaces (empty for blank pages)",
    )

    def to_block(self) -> str:
        """Render the page as a snapshot block."""
        marker = PAGE_MARKER_TEMPLATE.format(page=self.page)
        return f"{marker}\n{self.content}\n\n"


class Corpus(BaseModel):
    """
    Full page-tagged text of one handbook.

    Immutable once built. Page numbers are unique and strictly
    ascending, and a corpus always holds at least one page.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(..., description="Handbook identifier (faculty key)")
    pages: tuple[PageRecord, ...] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _check_page_order(self) -> "Corpus":
        previous = 0
        for record in self.pages:
            if record.page <= previous:
                raise ValueError(
                    f"Page numbers must be strictly ascending: {record.page} after {previous}"
                )
            previous = record.page
        return self

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def to_text(self) -> str:
        """Flatten to the `--- PAGE n ---` snapshot representation."""
        return "".join(record.to_block() for record in self.pages)


class RelevantContext(BaseModel):
    """Handbook excerpt selected for one question."""

    text: str = Field(..., description="Assembled excerpt, possibly truncated")
    truncated: bool = Field(default=False, description="Whether the truncation marker was appended")
    matched_lines: int = Field(default=0, ge=0, description="Number of corpus lines included by keyword match")
    used_fallback: bool = Field(
        default=False,
        description="True when no keyword matched and the corpus prefix was used",
    )
