"""Request parsing and error translation shared by the API routes."""

import logging

from flask import jsonify, request

from studyrag.exceptions import (
    DocumentNotFoundError,
    ExtractionError,
    PartialIngestionFailure,
    ServiceError,
    StructuredOutputValidationError,
)

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
QUOTA_MESSAGE = "AI credits exhausted. Please add credits to continue."
INGESTION_FAILED_MESSAGE = "Processing failed, please retry"


class MissingUserError(Exception):
    """The request did not identify a user."""


def get_user_id() -> str:
    """Return the caller's user id from the X-User-Id header.

    Raises:
        MissingUserError: If the header is absent or blank
    """
    user_id = request.headers.get(USER_HEADER, "").strip()
    if not user_id:
        raise MissingUserError(f"Missing {USER_HEADER} header")
    return user_id


def service_status(exc: ServiceError) -> int:
    """HTTP status reported to clients for a failed service call."""
    if exc.rate_limited:
        return 429
    if exc.quota_exhausted:
        return 402
    if exc.timed_out:
        return 504
    return 500


def error_response(exc: Exception, ingestion: bool = False):
    """Translate an exception into a JSON error response.

    Args:
        exc: The exception raised while handling the request
        ingestion: True when the error came from document ingestion, which
            is always reported as a retryable processing failure

    Returns:
        tuple: (JSON response, HTTP status)
    """
    if isinstance(exc, MissingUserError):
        return jsonify({"error": str(exc)}), 401
    if isinstance(exc, DocumentNotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, ExtractionError):
        return jsonify({"error": str(exc)}), 422
    if isinstance(exc, PartialIngestionFailure):
        cause = exc.cause
        status = service_status(cause) if isinstance(cause, ServiceError) else 500
        return (
            jsonify(
                {
                    "error": INGESTION_FAILED_MESSAGE,
                    "document_id": exc.document_id,
                    "chunks_stored": exc.chunks_stored,
                }
            ),
            status,
        )
    if isinstance(exc, ServiceError):
        status = service_status(exc)
        if ingestion:
            message = INGESTION_FAILED_MESSAGE
        elif status == 429:
            message = RATE_LIMIT_MESSAGE
        elif status == 402:
            message = QUOTA_MESSAGE
        else:
            message = str(exc)
        return jsonify({"error": message}), status
    if isinstance(exc, StructuredOutputValidationError):
        return jsonify({"error": f"Model returned an invalid quiz: {exc}"}), 502
    if isinstance(exc, ValueError):
        return jsonify({"error": str(exc)}), 400

    logger.error(f"❌ Unhandled error: {exc}", exc_info=True)
    return jsonify({"error": f"Internal server error: {str(exc)}"}), 500
