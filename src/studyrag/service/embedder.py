"""Single-text embedding with dimensionality enforcement."""

import logging

from studyrag.exceptions import EmbeddingDimensionError
from studyrag.llm.base import LLMService

logger = logging.getLogger(__name__)


class Embedder:
    """Turns text into a fixed-width vector using the configured provider.

    The same instance (and therefore the same model and width) is used for
    ingestion and for retrieval queries. Provider failures surface as
    EmbeddingServiceError; nothing is retried here.
    """

    def __init__(self, service: LLMService, model: str, dimensions: int) -> None:
        self.service = service
        self.model = model
        self.dimensions = dimensions

    def embed(self, text: str) -> list[float]:
        """Embed one text.

        Args:
            text: Text to embed

        Returns:
            list[float]: Exactly ``dimensions`` floats

        Raises:
            EmbeddingDimensionError: If the provider returns another width
        """
        vectors = self.service.generate_embeddings(
            [text], model=self.model, dimensions=self.dimensions
        )
        vector = vectors[0] if vectors else []
        if len(vector) != self.dimensions:
            logger.error(
                f"❌ {self.model} returned {len(vector)} dimensions, expected {self.dimensions}"
            )
            raise EmbeddingDimensionError(self.dimensions, len(vector), self.model)
        return [float(value) for value in vector]
