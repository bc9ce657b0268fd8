"""Document upload, ingestion and deletion API routes."""

import asyncio
import logging

from flask import Blueprint, jsonify, request

from studyrag.client.routes.config import get_config
from studyrag.client.routes.helpers import MissingUserError, error_response, get_user_id

logger = logging.getLogger(__name__)

documents_bp = Blueprint("documents", __name__)


def allowed_file(filename: str) -> bool:
    """Check if the file extension is allowed.

    Args:
        filename: The filename to check

    Returns:
        True if extension is allowed, False otherwise
    """
    allowed_extensions = get_config().allowed_extensions
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed_extensions


def _ingest(document_id: str):
    """Run ingestion and build the JSON result for a document."""
    assistant = get_config().assistant
    result = asyncio.run(assistant.ingest(document_id))
    logger.info(f"✅ Ingested {result.chunks_created} chunks for {document_id}")
    return {
        "document_id": result.document_id,
        "status": result.state.value,
        "pages": result.pages,
        "chunks": result.chunks_created,
    }


@documents_bp.route("/api/documents", methods=["POST"])
def upload_document():
    """Upload a PDF and ingest it.

    Expects multipart form data with:
        - file: The PDF file
        - title: Optional display title (defaults to the filename)

    Returns:
        JSON with the document id, page count and number of chunks stored
    """
    logger.info("📤 Received document upload request")
    try:
        user_id = get_user_id()
    except MissingUserError as e:
        return error_response(e)

    file = request.files.get("file")
    if file is None or file.filename == "":
        logger.warning("❌ No file in request")
        return jsonify({"error": "No file provided"}), 400
    if not allowed_file(file.filename):
        return jsonify({"error": "File type not allowed. Only PDF files are accepted."}), 400

    assistant = get_config().assistant
    try:
        document = assistant.register_document(
            user_id, file.filename, file.read(), request.form.get("title") or None
        )
    except Exception as e:
        return error_response(e)
    logger.info(f"💾 Registered {file.filename} as {document.Id}")

    try:
        ingested = _ingest(document.Id)
    except Exception as e:
        logger.error(f"❌ Error ingesting {document.Id}: {e}")
        return error_response(e, ingestion=True)

    return (
        jsonify(
            {
                "success": True,
                "title": document.title,
                "page_count": document.page_count,
                **ingested,
            }
        ),
        201,
    )


@documents_bp.route("/api/documents/<path:document_id>/ingest", methods=["POST"])
def ingest_document(document_id: str):
    """Re-run ingestion for a document, replacing any chunks it already has."""
    logger.info(f"🔁 Re-ingesting {document_id}")
    try:
        get_config().assistant.get_document(get_user_id(), document_id)
        return jsonify({"success": True, **_ingest(document_id)})
    except Exception as e:
        return error_response(e, ingestion=True)


@documents_bp.route("/api/documents/<path:document_id>", methods=["DELETE"])
def delete_document(document_id: str):
    """Delete a document together with its chunks and stored file."""
    logger.info(f"🗑️  Deleting {document_id}")
    try:
        removed = get_config().assistant.delete_document(get_user_id(), document_id)
    except Exception as e:
        return error_response(e)
    return jsonify({"success": True, "document_id": document_id, "chunks_deleted": removed})
