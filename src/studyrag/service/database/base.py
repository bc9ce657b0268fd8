"""Storage protocol shared by the pipeline components."""

from typing import Protocol

from studyrag.service.database.models import (
    Chunk,
    ConversationMessage,
    Document,
    QuizAttempt,
    RetrievedChunk,
)


class StudyStore(Protocol):
    """Persistence for documents, chunks, conversations and quiz attempts.

    All reads are scoped by owning user where the row has one. ``search_chunks``
    raises VectorSearchError when the vector backend fails.
    """

    def create_document(self, document: Document) -> Document: ...

    def get_document(self, document_id: str) -> Document | None: ...

    def update_document_status(
        self,
        document_id: str,
        status: str,
        processed: bool | None = None,
        error: str | None = None,
    ) -> None: ...

    def delete_document(self, document_id: str) -> int:
        """Delete a document and all of its chunks; returns chunks removed."""
        ...

    def insert_chunk(self, chunk: Chunk) -> None: ...

    def delete_chunks(self, document_id: str) -> int: ...

    def search_chunks(
        self,
        user_id: str,
        embedding: list[float],
        top_k: int,
        document_id: str | None = None,
        min_similarity: float | None = None,
    ) -> list[RetrievedChunk]:
        """The ``top_k`` most similar chunks, best first, none scoring below
        ``min_similarity``."""
        ...

    def add_message(self, message: ConversationMessage) -> None: ...

    def recent_messages(
        self, user_id: str, conversation_id: str, limit: int
    ) -> list[ConversationMessage]:
        """The newest ``limit`` messages, returned oldest first."""
        ...

    def save_quiz_attempt(self, attempt: QuizAttempt) -> QuizAttempt: ...

    def list_quiz_attempts(self, user_id: str) -> list[QuizAttempt]:
        """All attempts of a user, newest first."""
        ...
