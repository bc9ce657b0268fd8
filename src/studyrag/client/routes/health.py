"""Health check API route."""

from flask import Blueprint, jsonify

from studyrag.client.routes.config import get_config

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint.

    Returns:
        JSON with service status
    """
    assistant = get_config().assistant
    return jsonify(
        {
            "status": "healthy",
            "assistant": "initialized" if assistant else "not initialized",
            "llm_model": getattr(getattr(assistant, "llm", None), "model", None),
        }
    )
