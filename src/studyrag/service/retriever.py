"""Similarity search over a user's stored chunks."""

import logging

from studyrag.constants import DEFAULT_SIMILARITY_THRESHOLD, DEFAULT_TOP_K
from studyrag.service.database.base import StudyStore
from studyrag.service.database.models import RetrievedChunk
from studyrag.service.embedder import Embedder

logger = logging.getLogger(__name__)


class Retriever:
    """Embeds a query and returns the closest chunks above a score threshold.

    The query is embedded with the same Embedder used for ingestion, so the
    model and vector width always match the stored chunks.
    """

    def __init__(
        self,
        store: StudyStore,
        embedder: Embedder,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.similarity_threshold = similarity_threshold

    def retrieve(
        self,
        user_id: str,
        query: str,
        top_k: int = DEFAULT_TOP_K,
        document_id: str | None = None,
    ) -> list[RetrievedChunk]:
        """Find the chunks most similar to ``query``.

        Args:
            user_id: Only this user's chunks are searched
            query: Natural-language query
            top_k: Maximum number of chunks returned
            document_id: Optional restriction to one document

        Returns:
            list[RetrievedChunk]: At most ``top_k`` chunks scoring at least the
            threshold, best first; empty when nothing qualifies

        Raises:
            VectorSearchError: If the search backend fails
        """
        if top_k <= 0:
            return []

        embedding = self.embedder.embed(query)
        candidates = self.store.search_chunks(
            user_id, embedding, top_k, document_id, min_similarity=self.similarity_threshold
        )
        results = sorted(
            (chunk for chunk in candidates if chunk.score >= self.similarity_threshold),
            key=lambda chunk: chunk.score,
            reverse=True,
        )[:top_k]

        logger.info(
            f"🔍 Retrieved {len(results)}/{len(candidates)} chunks above "
            f"{self.similarity_threshold} for user {user_id}"
        )
        return results
