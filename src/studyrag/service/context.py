"""Formatting of retrieved chunks into a citation-ready prompt block."""

from studyrag.service.database.models import RetrievedChunk


def format_source(number: int, chunk: RetrievedChunk) -> str:
    return f'[Source {number}, Page {chunk.page_number}]:\n"{chunk.text}"'


def format_context(chunks: list[RetrievedChunk]) -> str:
    """Render chunks as numbered, page-labelled quoted sources.

    Order is preserved, so the best-ranked chunk is Source 1.

    Args:
        chunks: Retrieved chunks in ranking order

    Returns:
        str: Sources separated by blank lines, or "" for no chunks
    """
    return "\n\n".join(format_source(number, chunk) for number, chunk in enumerate(chunks, 1))


def source_citations(chunks: list[RetrievedChunk]) -> list[dict]:
    """Numbered page references matching the ``[Source n, Page p]`` labels."""
    return [
        {
            "source": number,
            "document_id": chunk.document_id,
            "page_number": chunk.page_number,
            "chunk_index": chunk.chunk_index,
            "score": chunk.score,
        }
        for number, chunk in enumerate(chunks, 1)
    ]
