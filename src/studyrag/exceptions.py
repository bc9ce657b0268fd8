"""Exception hierarchy for the StudyRAG pipeline.

Errors raised by the hosted services keep their HTTP status so callers can
tell "try again later" (429, timeouts, 5xx) apart from "billing problem" (402)
and from requests the service rejected outright (other 4xx).
"""

RATE_LIMITED_STATUS = 429
QUOTA_EXHAUSTED_STATUS = 402


class StudyRAGError(Exception):
    """Base class for all StudyRAG errors."""


class ConfigurationError(StudyRAGError):
    """The application is misconfigured; retrying will not help."""


class EmbeddingDimensionError(ConfigurationError):
    """An embedding vector does not match the configured dimensionality."""

    def __init__(self, expected: int, actual: int, model: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        self.model = model
        super().__init__(
            f"Embedding model {model or '<default>'} returned {actual} dimensions, "
            f"expected {expected}"
        )


class DocumentNotFoundError(StudyRAGError):
    """The requested document does not exist."""

    def __init__(self, document_id: str) -> None:
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")


class ExtractionError(StudyRAGError):
    """The document could not be read or contained no text."""


class ServiceError(StudyRAGError):
    """A hosted model service call failed.

    Attributes:
        status_code: HTTP status returned by the service, or None when the
            request never produced a response (timeout, connection failure).
        timed_out: True when the request exceeded its timeout.
    """

    def __init__(
        self, message: str, status_code: int | None = None, timed_out: bool = False
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.timed_out = timed_out
        super().__init__(message)

    @property
    def rate_limited(self) -> bool:
        return self.status_code == RATE_LIMITED_STATUS

    @property
    def quota_exhausted(self) -> bool:
        return self.status_code == QUOTA_EXHAUSTED_STATUS

    @property
    def retryable(self) -> bool:
        """Whether a later attempt could succeed."""
        if self.timed_out or self.status_code is None:
            return True
        return self.rate_limited or self.status_code >= 500

    def __str__(self) -> str:
        if self.timed_out:
            return f"{self.message} (timed out)"
        if self.status_code is not None:
            return f"{self.message} (status {self.status_code})"
        return self.message


class EmbeddingServiceError(ServiceError):
    """The embedding service failed."""


class GenerationServiceError(ServiceError):
    """The chat-completion service failed."""


class VectorSearchError(StudyRAGError):
    """The vector search backend failed; callers degrade to the fallback path."""


class StructuredOutputValidationError(StudyRAGError):
    """The model's structured quiz output did not match the required shape."""

    def __init__(self, message: str, raw_output: str | None = None) -> None:
        self.raw_output = raw_output
        super().__init__(message)


class PartialIngestionFailure(StudyRAGError):
    """Ingestion stopped after some chunks had already been stored."""

    def __init__(self, document_id: str, chunks_stored: int, cause: Exception) -> None:
        self.document_id = document_id
        self.chunks_stored = chunks_stored
        self.cause = cause
        super().__init__(
            f"Ingestion of {document_id} failed after storing {chunks_stored} chunks: {cause}"
        )

    @property
    def status_code(self) -> int | None:
        return getattr(self.cause, "status_code", None)
