"""Streaming chat API route using the RAG pipeline."""

import json
import logging

from flask import Blueprint, Response, jsonify, request

from studyrag.client.routes.config import get_config
from studyrag.client.routes.helpers import error_response, get_user_id
from studyrag.exceptions import StudyRAGError
from studyrag.service.context import source_citations

logger = logging.getLogger(__name__)

chat_bp = Blueprint("chat", __name__)

DONE_EVENT = "data: [DONE]\n\n"


def sse_event(payload: dict) -> str:
    """Format one server-sent event carrying a JSON payload."""
    return f"data: {json.dumps(payload)}\n\n"


@chat_bp.route("/api/chat", methods=["POST"])
def chat():
    """Answer a question about the user's documents as a server-sent event stream.

    Request:
        {
            "conversation_id": "c1",
            "query": "What is photosynthesis?",
            "document_id": "documents/abc"  # Optional document filter
        }

    Response:
        text/event-stream of ``data: {"delta": "..."}`` events, then a
        ``data: {"sources": [...]}`` event with the cited pages when the
        answer is grounded, ending with ``data: [DONE]``. A failure after
        streaming started ends the stream with ``data: {"error": "..."}``.
        The ``X-Answer-Source`` header is "retrieved" when the answer is
        grounded in document chunks and "fallback" otherwise.

    Returns:
        Streaming response, or a JSON error before streaming starts
    """
    logger.info("📨 Received chat request")
    data = request.get_json(silent=True)
    if not data or not data.get("query"):
        logger.warning("❌ Missing 'query' field in request")
        return jsonify({"error": "Missing 'query' field in request"}), 400
    if not data.get("conversation_id"):
        return jsonify({"error": "Missing 'conversation_id' field in request"}), 400

    try:
        user_id = get_user_id()
        stream = get_config().assistant.retrieve_and_answer(
            user_id,
            data["conversation_id"],
            data["query"],
            document_id=data.get("document_id"),
        )
        deltas = iter(stream)
        # Pull the first delta so provider errors still get a proper status code
        first = next(deltas, None)
    except Exception as e:
        logger.error(f"❌ Error processing chat request: {e}")
        return error_response(e)

    logger.info(f"🔍 Query: '{data['query'][:100]}' answered from {stream.source} context")

    def events():
        try:
            if first is not None:
                yield sse_event({"delta": first})
            for delta in deltas:
                yield sse_event({"delta": delta})
        except StudyRAGError as e:
            logger.error(f"❌ Chat stream failed: {e}")
            yield sse_event({"error": str(e)})
            return
        except Exception as e:
            logger.error(f"❌ Unhandled error in chat stream: {e}", exc_info=True)
            yield sse_event({"error": f"Internal server error: {str(e)}"})
            return
        finally:
            deltas.close()
        if stream.grounded:
            yield sse_event({"sources": source_citations(stream.sources)})
        yield DONE_EVENT

    return Response(
        events(),
        mimetype="text/event-stream",
        headers={"X-Answer-Source": stream.source, "Cache-Control": "no-cache"},
    )
