"""Base protocol for LLM services."""

from collections.abc import Iterator
from typing import Protocol

from pydantic import BaseModel


class LLMService(Protocol):
    """Protocol defining the interface for LLM services.

    This protocol ensures type safety and allows for multiple LLM provider
    implementations while maintaining a consistent interface. Implementations
    raise GenerationServiceError / EmbeddingServiceError so callers never see
    provider-specific exception types.
    """

    model: str

    def stream_response(self, messages: list[dict]) -> Iterator[str]:
        """Stream a chat completion as incremental text fragments.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
                     Example: [{"role": "user", "content": "Hello"}]

        Yields:
            str: Text deltas in the order the model produced them.
        """
        ...

    def generate_structured(self, messages: list[dict], schema: type[BaseModel]) -> str:
        """Generate a response constrained to a JSON schema.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
            schema: Pydantic model describing the required output shape.

        Returns:
            str: The raw JSON text returned by the model (not yet validated).
        """
        ...

    def generate_embeddings(
        self,
        texts: list[str],
        model: str | None = None,
        dimensions: int | None = None,
    ) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses a default for the service.
            dimensions: Requested output width, for models that support truncation.

        Returns:
            list[list[float]]: List of embedding vectors
        """
        ...
