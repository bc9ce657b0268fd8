"""Ollama LLM service implementation."""

import logging
from collections.abc import Iterator

import httpx
import ollama
from pydantic import BaseModel

from studyrag.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, get_embedding_model
from studyrag.exceptions import EmbeddingServiceError, GenerationServiceError, ServiceError

logger = logging.getLogger(__name__)

# Errors the ollama client lets escape from a request
OLLAMA_ERRORS = (ollama.ResponseError, httpx.HTTPError, ConnectionError)


def to_service_error(exc: Exception, error_cls: type[ServiceError]) -> ServiceError:
    """Convert an ollama/httpx exception into a StudyRAG service error."""
    if isinstance(exc, ollama.ResponseError):
        return error_cls(f"Ollama error: {exc.error}", status_code=exc.status_code)
    if isinstance(exc, httpx.TimeoutException):
        return error_cls("Ollama request timed out", timed_out=True)
    return error_cls(f"Ollama request failed: {exc}")


class OllamaService:
    """Ollama LLM service implementation.

    This service uses the Ollama API to generate responses from local LLM models.
    """

    def __init__(
        self, host: str, model: str, timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    ) -> None:
        """Initialize the Ollama service.

        Args:
            host: The Ollama server host URL (e.g., "http://localhost:11434")
            model: The model name to use (e.g., "llama3")
            timeout: Per-request timeout in seconds
        """
        self.host = host
        self.model = model
        logger.info(f"🤖 Initializing OllamaService: host={host}, model={model}")
        # Extra kwargs are forwarded to the underlying httpx client
        self.client = ollama.Client(host=host, timeout=timeout)

    def stream_response(self, messages: list[dict]) -> Iterator[str]:
        """Stream a chat completion from Ollama.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.

        Yields:
            str: Non-empty text deltas.
        """
        logger.info(f"🗣️  Streaming response with {self.model}")
        logger.debug(f"Messages: {len(messages)} messages")

        try:
            for part in self.client.chat(model=self.model, messages=messages, stream=True):
                content = part.message.content
                if content:
                    yield content
        except OLLAMA_ERRORS as e:
            logger.error(f"❌ Ollama API error: {e}", exc_info=True)
            raise to_service_error(e, GenerationServiceError) from e

    def generate_structured(self, messages: list[dict], schema: type[BaseModel]) -> str:
        """Generate JSON output that follows the schema using Ollama's format option.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
            schema: Pydantic model describing the required output.

        Returns:
            str: Raw JSON content from the model.
        """
        logger.info(f"🧩 Generating structured {schema.__name__} with {self.model}")
        try:
            response = self.client.chat(
                model=self.model,
                messages=messages,
                format=schema.model_json_schema(),
            )
        except OLLAMA_ERRORS as e:
            logger.error(f"❌ Ollama API error: {e}", exc_info=True)
            raise to_service_error(e, GenerationServiceError) from e

        content = response.message.content or ""
        logger.info(f"✅ Structured response generated: {len(content)} characters")
        return content

    def generate_embeddings(
        self,
        texts: list[str],
        model: str | None = None,
        dimensions: int | None = None,
    ) -> list[list[float]]:
        """Generate embeddings for a list of texts using Ollama.

        Ollama embedding models have a fixed width, so ``dimensions`` is only
        checked by the caller.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses EMBEDDING_MODEL env var
                   or service-specific default.
            dimensions: Unused by Ollama.

        Returns:
            list[list[float]]: List of embedding vectors
        """
        embedding_model = model or get_embedding_model("ollama")
        embeddings = []

        for text in texts:
            try:
                response = self.client.embed(model=embedding_model, input=text)
            except OLLAMA_ERRORS as e:
                logger.error(f"❌ Ollama embedding error: {e}")
                raise to_service_error(e, EmbeddingServiceError) from e
            embeddings.append(list(response["embeddings"][0]))

        logger.debug(f"Generated {len(embeddings)} embeddings with {embedding_model}")
        return embeddings
