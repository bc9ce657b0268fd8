"""FastMCP server exposing document ingestion, retrieval and quiz tools."""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from fastmcp import FastMCP

from studyrag.constants import DEFAULT_MCP_PORT, DEFAULT_TOP_K
from studyrag.exceptions import PartialIngestionFailure, StudyRAGError
from studyrag.service.assistant import StudyAssistant, build_assistant

# Configure logging
log_level = os.getenv("LOG_LEVEL", "DEBUG")
logging.basicConfig(
    level=getattr(logging, log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()
logger.debug("Environment variables loaded for MCP server")

# Create FastMCP instance
mcp = FastMCP("StudyRAG Study Assistant")


@lru_cache(maxsize=1)
def get_assistant() -> StudyAssistant:
    """Build the shared StudyAssistant on first use."""
    return build_assistant()


async def ingest_document_impl(
    user_id: str, pdf_path: str, title: str | None = None
) -> dict[str, Any]:
    """Register a PDF from the server's filesystem and ingest it."""
    path = Path(pdf_path)
    logger.info(f"📥 MCP Tool ingest_document: {path.name} for user {user_id}")

    if not path.is_file():
        return {"success": False, "document_id": None, "message": f"File not found: {pdf_path}"}

    assistant = get_assistant()
    document = None
    try:
        document = assistant.register_document(user_id, path.name, path.read_bytes(), title)
        result = await assistant.ingest(document.Id)
    except PartialIngestionFailure as e:
        logger.error(f"❌ MCP Tool: {e}")
        return {
            "success": False,
            "document_id": e.document_id,
            "chunks_stored": e.chunks_stored,
            "message": "Processing failed, please retry",
        }
    except StudyRAGError as e:
        logger.error(f"❌ MCP Tool: {e}")
        return {
            "success": False,
            "document_id": document.Id if document else None,
            "chunks_stored": 0,
            "message": str(e),
        }

    logger.info(f"✅ MCP Tool: Stored {result.chunks_created} chunks for {result.document_id}")
    return {
        "success": True,
        "document_id": result.document_id,
        "chunks_stored": result.chunks_created,
        "pages": result.pages,
        "message": f"Successfully stored {result.chunks_created} chunks",
    }


async def retrieve_document_chunks_impl(
    user_id: str, query: str, top_k: int = DEFAULT_TOP_K, document_id: str | None = None
) -> list[dict[str, Any]]:
    """Search a user's chunks and return them as plain dicts."""
    logger.debug(
        f"MCP Tool: Parameters - query='{query[:100]}...', "
        f"top_k={top_k}, document_id={document_id}"
    )

    try:
        chunks = get_assistant().retriever.retrieve(user_id, query, top_k, document_id)
    except StudyRAGError as e:
        error_msg = f"Retrieval failed: {type(e).__name__}: {e}"
        logger.error(f"❌ MCP Tool: {error_msg}", exc_info=True)
        raise ValueError(error_msg) from e

    logger.info(f"✅ MCP Tool: Returning {len(chunks)} results to MCP client")
    return [chunk.to_dict() for chunk in chunks]


async def generate_quiz_impl(
    user_id: str,
    question_types: list[str],
    count: int = 5,
    document_id: str | None = None,
) -> dict[str, Any]:
    """Generate a quiz, grounded when the user's chunks allow it."""
    logger.info(f"📝 MCP Tool generate_quiz: {count} x {question_types} for user {user_id}")

    try:
        result = get_assistant().retrieve_and_generate_quiz(
            user_id, question_types, count, document_id
        )
    except (StudyRAGError, ValueError) as e:
        error_msg = f"Quiz generation failed: {type(e).__name__}: {e}"
        logger.error(f"❌ MCP Tool: {error_msg}")
        raise ValueError(error_msg) from e

    return result.to_dict()


@mcp.tool()
async def ingest_document(user_id: str, pdf_path: str, title: str | None = None) -> dict[str, Any]:
    """
    Uploads a PDF that is readable by the server and ingests it: extracts the
    text, chunks it, embeds every chunk and stores it for later retrieval.

    Args:
        user_id: Owner of the document
        pdf_path: Path of the PDF on the server's filesystem
        title: Optional display title (defaults to the filename)

    Returns:
        dict with success, document_id, chunks_stored and a message
    """
    return await ingest_document_impl(user_id, pdf_path, title)


@mcp.tool()
async def retrieve_document_chunks(
    user_id: str, query: str, top_k: int = DEFAULT_TOP_K, document_id: str | None = None
) -> list[dict[str, Any]]:
    """
    Searches the user's study documents for text chunks that are semantically
    similar to the query. Returns at most top_k chunks above the similarity
    threshold, each with its page number and score.
    Use this tool to find passages to answer a student's question.

    Args:
        user_id: Owner of the documents to search
        query: The search query text
        top_k: Maximum number of results to return (default: 5)
        document_id: Optional document to restrict the search to
    """
    return await retrieve_document_chunks_impl(user_id, query, top_k, document_id)


@mcp.tool()
async def generate_quiz(
    user_id: str,
    question_types: list[str],
    count: int = 5,
    document_id: str | None = None,
) -> dict[str, Any]:
    """
    Generates exam-style quiz questions from the user's documents. When no
    relevant passages exist the quiz is generated from the document title and
    marked with source "fallback".

    Args:
        user_id: Student the quiz is for
        question_types: Any of "MCQ", "SAQ", "LAQ"
        count: Number of questions (default: 5)
        document_id: Optional document to base the quiz on

    Returns:
        dict with questions, source ("retrieved" or "fallback"), chunks_used
        and the cited sources
    """
    return await generate_quiz_impl(user_id, question_types, count, document_id)


def main() -> None:
    """Entry point for the MCP server command-line interface."""
    logger.info("🚀 Starting StudyRAG MCP Server...")
    port = int(os.getenv("MCP_PORT", str(DEFAULT_MCP_PORT)))
    mcp.run(transport="sse", host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
