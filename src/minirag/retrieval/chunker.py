"""
Document chunking with boundary-aware overlapping windows.

Splits raw document text into segments of at most ``max_size`` characters:
    - Split points prefer paragraph, then sentence, then word boundaries
    - Consecutive segments share exactly ``overlap`` characters
    - No characters are dropped or stripped, so spans rebuild the text
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from langchain_text_splitters import TextSplitter

PARAGRAPH_BREAK = "\n\n"

# Sentence terminator, optional closing quote/bracket, then whitespace
SENTENCE_END = re.compile(r"[.!?][\"')\]]*\s")
WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class Document:
    """A scraped source document."""

    source_url: str
    """Where the text came from."""

    raw_text: str
    """Extracted plain text."""


@dataclass(frozen=True)
class Chunk:
    """A bounded, possibly overlapping excerpt of a document."""

    text: str
    """The text content of the chunk."""

    source_url: str
    """Source document URL."""

    sequence_index: int
    """Position of the chunk within its document (0-based)."""

    start_index: int = 0
    """Character offset of the chunk within the document text."""


def _validate(max_size: int, overlap: int) -> None:
    if max_size <= 0:
        raise ValueError(f"max_size must be positive, got {max_size}")
    if overlap < 0:
        raise ValueError(f"overlap must be non-negative, got {overlap}")
    if overlap >= max_size:
        raise ValueError(
            f"overlap ({overlap}) must be less than max_size ({max_size})"
        )


def _find_break(text: str, lo: int, hi: int) -> int | None:
    """
    Find the best split point in ``text[lo:hi]``.

    Returns the index just past the chosen separator, or None when the
    window holds no paragraph, sentence or word boundary.
    """
    idx = text.rfind(PARAGRAPH_BREAK, lo, hi)
    if idx != -1:
        return idx + len(PARAGRAPH_BREAK)

    last = None
    for last in SENTENCE_END.finditer(text, lo, hi):
        pass
    if last is not None:
        return last.end()

    for last in WHITESPACE.finditer(text, lo, hi):
        pass
    if last is not None:
        return last.end()

    return None


def iter_spans(text: str, max_size: int, overlap: int) -> Iterator[tuple[int, int]]:
    """
    Yield ``(start, end)`` character spans covering ``text``.

    Each span is at most ``max_size`` long; every span after the first
    starts ``overlap`` characters before the previous span's end.

    Args:
        text: Text to split
        max_size: Maximum span length in characters
        overlap: Characters shared by consecutive spans

    Raises:
        ValueError: If max_size <= 0 or overlap is outside [0, max_size)
    """
    _validate(max_size, overlap)

    n = len(text)
    if n == 0:
        return
    if n <= max_size:
        yield 0, n
        return

    start = 0
    while True:
        limit = start + max_size
        if limit >= n:
            yield start, n
            return

        # A break at or before start + overlap would not advance the window
        end = _find_break(text, start + overlap + 1, limit)
        if end is None:
            end = limit

        yield start, end
        start = end - overlap


def split(text: str, max_size: int, overlap: int) -> list[str]:
    """
    Split text into overlapping boundary-aware segments.

    Args:
        text: Text to split
        max_size: Maximum segment length in characters
        overlap: Characters shared by consecutive segments

    Returns:
        List of segments; empty for empty input

    Raises:
        ValueError: If max_size <= 0 or overlap is outside [0, max_size)
    """
    return [text[start:end] for start, end in iter_spans(text, max_size, overlap)]


def chunk_document(document: Document, max_size: int, overlap: int) -> list[Chunk]:
    """
    Chunk a document, tagging each chunk with its source and position.

    Args:
        document: Document to chunk
        max_size: Maximum chunk length in characters
        overlap: Characters shared by consecutive chunks

    Returns:
        Chunks in document order
    """
    return [
        Chunk(
            text=document.raw_text[start:end],
            source_url=document.source_url,
            sequence_index=i,
            start_index=start,
        )
        for i, (start, end) in enumerate(
            iter_spans(document.raw_text, max_size, overlap)
        )
    ]


class BoundaryTextSplitter(TextSplitter):
    """
    LangChain text splitter backed by :func:`split`.

    Lets the chunking policy plug into anything that accepts a LangChain
    ``TextSplitter`` (``create_documents``, ``split_documents``).

    Example:
        >>> splitter = BoundaryTextSplitter(chunk_size=500, chunk_overlap=50)
        >>> docs = splitter.create_documents([text], metadatas=[{"source": url}])
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200, **kwargs: Any) -> None:
        _validate(chunk_size, chunk_overlap)
        kwargs.setdefault("strip_whitespace", False)
        super().__init__(chunk_size=chunk_size, chunk_overlap=chunk_overlap, **kwargs)

    @property
    def max_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._chunk_overlap

    def split_text(self, text: str) -> list[str]:
        return split(text, self._chunk_size, self._chunk_overlap)
