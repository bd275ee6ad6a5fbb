"""
Keyword relevance extraction over page-tagged handbook text.

The LLM request has to stay within a size budget, so only lines
near a query keyword are sent. This is plain substring matching,
not ranked search:

- The query is lowercased and split on whitespace (including the
  ideographic space) and common Japanese/English punctuation.
  Tokens of one character are dropped (particles like "の", "は").
- Every corpus line containing a keyword is kept together with
  `context_lines` lines on each side. Overlapping windows merge.
- Lines are reassembled in document order so `--- PAGE n ---`
  markers stay next to the text they label.
- If the query has no usable keyword or nothing matches, the
  corpus prefix is used instead, so a non-empty corpus never
  yields an empty context.

Examples:
    >>> tokenize_query("図書館 開館時間")
    ['図書館', '開館時間']

    >>> tokenize_query("What is the GPA rule?")
    ['what', 'is', 'the', 'gpa', 'rule']
"""

import re
from typing import Optional, Sequence

from .schemas.page import RelevantContext

TRUNCATION_MARKER = "\n\n...(以下省略)"

DEFAULT_CONTEXT_LINES = 3

QUERY_SPLIT_PATTERN = re.compile(
    r"[\s、。，．,.!?！？「」『』（）()\[\]【】・:：;；/／\"'“”]+"
)


def tokenize_query(query: Optional[str]) -> list[str]:
    """
    Split a question into lowercase keywords.

    Keeps first-occurrence order and drops duplicates and
    single-character tokens.
    """
    if not query:
        return []

    keywords: list[str] = []
    for token in QUERY_SPLIT_PATTERN.split(query.lower()):
        if len(token) > 1 and token not in keywords:
            keywords.append(token)
    return keywords


def keyword_hits(lines: Sequence[str], keywords: Sequence[str]) -> list[int]:
    """Indices of lines containing at least one keyword (case-insensitive)."""
    lowered_keywords = [k.lower() for k in keywords if k]
    if not lowered_keywords:
        return []

    return [
        idx
        for idx, line in enumerate(lines)
        if any(keyword in line.lower() for keyword in lowered_keywords)
    ]


def match_line_indices(
    lines: Sequence[str],
    keywords: Sequence[str],
    window: int = DEFAULT_CONTEXT_LINES,
) -> set[int]:
    """
    Select keyword lines plus a symmetric window around each.

    Args:
        lines: Corpus lines
        keywords: Lowercase keywords
        window: Lines kept before and after every hit

    Returns:
        Set of line indices (clamped to the corpus bounds)
    """
    if window < 0:
        raise ValueError("window must be >= 0")

    last = len(lines) - 1
    selected: set[int] = set()
    for idx in keyword_hits(lines, keywords):
        selected.update(range(max(0, idx - window), min(last, idx + window) + 1))
    return selected


def truncate_text(text: str, max_chars: int) -> tuple[str, bool]:
    """Cut `text` to `max_chars` and append the marker when it was longer."""
    if max_chars < 0:
        raise ValueError("max_chars must be >= 0")

    if len(text) <= max_chars:
        return text, False
    return text[:max_chars] + TRUNCATION_MARKER, True


def extract_relevant(
    corpus_text: str,
    query: Optional[str],
    max_chars: int,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> RelevantContext:
    """
    Build the bounded handbook excerpt for a question.

    Args:
        corpus_text: Flattened page-tagged handbook text
        query: User question (may be empty)
        max_chars: Character budget before the truncation marker
        context_lines: Window size around each keyword hit

    Returns:
        RelevantContext whose text is at most
        `max_chars + len(TRUNCATION_MARKER)` characters long
    """
    keywords = tokenize_query(query)

    if keywords:
        lines = corpus_text.split("\n")
        hits = keyword_hits(lines, keywords)
        if hits:
            indices = match_line_indices(lines, keywords, window=context_lines)
            selected = "\n".join(lines[idx] for idx in sorted(indices))
            text, truncated = truncate_text(selected, max_chars)
            return RelevantContext(
                text=text,
                truncated=truncated,
                matched_lines=len(hits),
            )

    text, truncated = truncate_text(corpus_text, max_chars)
    return RelevantContext(
        text=text,
        truncated=truncated,
        used_fallback=bool(keywords),
    )
