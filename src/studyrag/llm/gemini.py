"""Google Gemini LLM service implementation."""

import logging
from collections.abc import Iterator
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from pydantic import BaseModel

from studyrag.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, get_embedding_model
from studyrag.exceptions import EmbeddingServiceError, GenerationServiceError, ServiceError

logger = logging.getLogger(__name__)

GEMINI_ERRORS = (genai_errors.APIError, httpx.HTTPError)


def to_service_error(exc: Exception, error_cls: type[ServiceError]) -> ServiceError:
    """Convert a google-genai/httpx exception into a StudyRAG service error."""
    if isinstance(exc, genai_errors.APIError):
        return error_cls(f"Gemini error: {exc.message or exc.status}", status_code=exc.code)
    if isinstance(exc, httpx.TimeoutException):
        return error_cls("Gemini request timed out", timed_out=True)
    return error_cls(f"Gemini request failed: {exc}")


class GeminiService:
    """Google Gemini LLM service implementation.

    This service uses the Google Gemini API to generate responses from Google's LLM models.
    The API key is automatically retrieved from the GEMINI_API_KEY environment variable.
    """

    def __init__(self, model: str, timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS) -> None:
        """Initialize the Gemini service.

        Args:
            model: The model name to use (e.g., "gemini-2.5-flash")
            timeout: Per-request timeout in seconds
        """
        self.model = model
        logger.info(f"🤖 Initializing GeminiService: model={model}")
        # The client gets the API key from the GEMINI_API_KEY environment variable
        self.client = genai.Client(
            http_options=genai.types.HttpOptions(timeout=int(timeout * 1000))
        )

    def _convert_messages(
        self, messages: list[dict]
    ) -> tuple[str | None, list[genai.types.Content]]:
        """Split chat messages into a system instruction and Gemini contents.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.

        Returns:
            Tuple of (system_instruction or None, list of Content objects)
        """
        system_parts = []
        contents = []
        for msg in messages:
            role = msg.get("role", "user")
            text = msg.get("content", "")
            if role == "system":
                system_parts.append(text)
                continue
            contents.append(
                genai.types.Content(
                    role="model" if role == "assistant" else "user",
                    parts=[genai.types.Part(text=text)],
                )
            )
        system_instruction = "\n\n".join(system_parts) if system_parts else None
        return system_instruction, contents

    def stream_response(self, messages: list[dict]) -> Iterator[str]:
        """Stream a chat completion from Gemini.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.

        Yields:
            str: Non-empty text deltas.
        """
        logger.info(f"🗣️  Streaming response with {self.model}")
        system_instruction, contents = self._convert_messages(messages)
        config = genai.types.GenerateContentConfig(system_instruction=system_instruction)

        try:
            stream = self.client.models.generate_content_stream(
                model=self.model, contents=contents, config=config
            )
            for chunk in stream:
                if chunk.text:
                    yield chunk.text
        except GEMINI_ERRORS as e:
            logger.error(f"❌ Gemini API error: {e}", exc_info=True)
            raise to_service_error(e, GenerationServiceError) from e

    def generate_structured(self, messages: list[dict], schema: type[BaseModel]) -> str:
        """Generate JSON output constrained by a response schema.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
            schema: Pydantic model describing the required output.

        Returns:
            str: Raw JSON text from the model.
        """
        logger.info(f"🧩 Generating structured {schema.__name__} with {self.model}")
        system_instruction, contents = self._convert_messages(messages)
        config = genai.types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=schema,
        )

        try:
            response = self.client.models.generate_content(
                model=self.model, contents=contents, config=config
            )
        except GEMINI_ERRORS as e:
            logger.error(f"❌ Gemini API error: {e}", exc_info=True)
            raise to_service_error(e, GenerationServiceError) from e

        content = response.text or ""
        logger.info(f"✅ Structured response generated: {len(content)} characters")
        return content

    def generate_embeddings(
        self,
        texts: list[str],
        model: str | None = None,
        dimensions: int | None = None,
    ) -> list[list[float]]:
        """Generate embeddings for a list of texts using Gemini.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses EMBEDDING_MODEL env var
                   or service-specific default.
            dimensions: Optional output dimensionality passed to the API.

        Returns:
            list[list[float]]: List of embedding vectors
        """
        embedding_model = model or get_embedding_model("gemini")
        embed_kwargs: dict[str, Any] = {"model": embedding_model}
        if dimensions:
            embed_kwargs["config"] = genai.types.EmbedContentConfig(
                output_dimensionality=dimensions
            )
        embeddings = []

        for text in texts:
            try:
                response = self.client.models.embed_content(contents=[text], **embed_kwargs)
            except GEMINI_ERRORS as e:
                logger.error(f"❌ Gemini embedding error for text: {e}")
                raise to_service_error(e, EmbeddingServiceError) from e
            embeddings.append(list(response.embeddings[0].values))

        logger.debug(f"Generated {len(embeddings)} embeddings with {embedding_model}")
        return embeddings
