"""Sentence-aware text chunking with page tracking."""

import re
from dataclasses import dataclass

from studyrag.constants import DEFAULT_CHUNK_SIZE

# Sentences end at terminal punctuation followed by whitespace; punctuation
# inside a token (decimals, URLs, "e.g.") does not split.
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


@dataclass
class PageChunk:
    """A piece of one page's text, not yet embedded."""

    text: str
    page_number: int
    chunk_index: int = 0


def split_sentences(text: str) -> list[str]:
    """Split text into whitespace-normalised sentences.

    Args:
        text: Raw page text

    Returns:
        list[str]: Non-empty sentences in reading order
    """
    normalized = " ".join(text.split())
    if not normalized:
        return []
    return SENTENCE_BOUNDARY.split(normalized)


def chunk_page_text(
    text: str, page_number: int, max_chars: int = DEFAULT_CHUNK_SIZE
) -> list[PageChunk]:
    """Greedily pack a page's sentences into chunks of at most ``max_chars``.

    A sentence longer than ``max_chars`` is never split; it becomes a chunk
    of its own. Indices in the result are local (0..n-1); use
    :func:`chunk_pages` for document-wide numbering.

    Args:
        text: Page text
        page_number: 1-based page the text came from
        max_chars: Maximum characters per chunk (default: 500)

    Returns:
        list[PageChunk]: Chunks in reading order, empty for blank text
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")

    chunks: list[str] = []
    current = ""
    for sentence in split_sentences(text):
        candidate = f"{current} {sentence}" if current else sentence
        if current and len(candidate) > max_chars:
            chunks.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        chunks.append(current)

    return [
        PageChunk(text=chunk, page_number=page_number, chunk_index=index)
        for index, chunk in enumerate(chunks)
    ]


def chunk_pages(
    pages: list[tuple[int, str]], max_chars: int = DEFAULT_CHUNK_SIZE
) -> list[PageChunk]:
    """Chunk every page in page order with one global 0-based index.

    Args:
        pages: ``(page_number, text)`` pairs
        max_chars: Maximum characters per chunk

    Returns:
        list[PageChunk]: Chunks with strictly increasing ``chunk_index`` and
        non-decreasing ``page_number``
    """
    result: list[PageChunk] = []
    for page_number, text in sorted(pages, key=lambda page: page[0]):
        for chunk in chunk_page_text(text, page_number, max_chars):
            chunk.chunk_index = len(result)
            result.append(chunk)
    return result
