"""RavenDB-backed implementation of the StudyStore protocol."""

import logging
import uuid
from dataclasses import asdict, replace
from typing import Any

from ravendb import DocumentStore

from studyrag.config import RavenDBConfig
from studyrag.exceptions import VectorSearchError
from studyrag.service.database.models import (
    CHUNKS_COLLECTION,
    DOCUMENTS_COLLECTION,
    MESSAGES_COLLECTION,
    QUIZ_ATTEMPTS_COLLECTION,
    Chunk,
    ConversationMessage,
    Document,
    QuizAttempt,
    RetrievedChunk,
)
from studyrag.service.database.operations import (
    CHUNK_VECTOR_INDEX,
    create_document_store,
    ensure_index_exists,
)
from studyrag.service.database.utils import result_score

logger = logging.getLogger(__name__)


def chunk_id(document_id: str, chunk_index: int) -> str:
    """Deterministic chunk key, so a re-run overwrites instead of duplicating."""
    return f"{document_id}/chunks/{chunk_index:06d}"


class RavenDBStore:
    """Documents, chunks, conversations and quiz attempts stored in RavenDB.

    One session is opened per operation; the DocumentStore itself is thread
    safe, which lets the ingestion orchestrator insert chunks from worker
    threads.
    """

    def __init__(
        self,
        url: str | None = None,
        database: str | None = None,
        dimensions: int | None = None,
        store: DocumentStore | None = None,
    ) -> None:
        self.url = url or RavenDBConfig.get_url()
        self.database = database or RavenDBConfig.get_database_name()
        self.store = store or create_document_store(self.url, self.database)
        ensure_index_exists(self.store, dimensions)

    def close(self) -> None:
        self.store.close()

    def _store_entity(self, entity: Any, key: str, collection: str) -> None:
        with self.store.open_session() as session:
            session.store(entity, key)
            session.advanced.get_metadata_for(entity)["@collection"] = collection
            session.save_changes()

    def _query(
        self, rql: str, wait_for_non_stale: bool = False, **params: Any
    ) -> list[dict[str, Any]]:
        with self.store.open_session() as session:
            query = session.advanced.raw_query(rql, object_type=dict)
            if wait_for_non_stale:
                query = query.wait_for_non_stale_results()
            for name, value in params.items():
                query = query.add_parameter(name, value)
            return list(query)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, document: Document) -> Document:
        if document.Id is None:
            document.Id = f"{DOCUMENTS_COLLECTION.lower()}/{uuid.uuid4().hex}"
        self._store_entity(document, document.Id, DOCUMENTS_COLLECTION)
        logger.info(f"📄 Registered document {document.Id} ({document.title})")
        return document

    def get_document(self, document_id: str) -> Document | None:
        with self.store.open_session() as session:
            data = session.load(document_id, object_type=dict)
        if data is None:
            return None
        data.setdefault("Id", document_id)
        return Document.from_dict(data)

    def update_document_status(
        self,
        document_id: str,
        status: str,
        processed: bool | None = None,
        error: str | None = None,
    ) -> None:
        document = self.get_document(document_id)
        if document is None:
            logger.warning(f"⚠️ Cannot update status of missing document {document_id}")
            return
        document.status = status
        document.error = error
        if processed is not None:
            document.processed = processed
        self._store_entity(document, document_id, DOCUMENTS_COLLECTION)

    def delete_document(self, document_id: str) -> int:
        removed = self.delete_chunks(document_id)
        with self.store.open_session() as session:
            session.delete(document_id)
            session.save_changes()
        logger.info(f"🗑️  Deleted document {document_id} and {removed} chunks")
        return removed

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    def insert_chunk(self, chunk: Chunk) -> None:
        if chunk.Id is None:
            chunk.Id = chunk_id(chunk.document_id, chunk.chunk_index)
        self._store_entity(chunk, chunk.Id, CHUNKS_COLLECTION)

    def delete_chunks(self, document_id: str) -> int:
        # Chunks inserted moments ago must be found too
        rows = self._query(
            f"from {CHUNKS_COLLECTION} where document_id = $document_id select id() as Id",
            wait_for_non_stale=True,
            document_id=document_id,
        )
        ids = [row["Id"] for row in rows if row.get("Id")]
        if not ids:
            return 0
        with self.store.open_session() as session:
            for key in ids:
                session.delete(key)
            session.save_changes()
        return len(ids)

    def search_chunks(
        self,
        user_id: str,
        embedding: list[float],
        top_k: int,
        document_id: str | None = None,
        min_similarity: float | None = None,
    ) -> list[RetrievedChunk]:
        try:
            with self.store.open_session() as session:
                query = session.query_index(CHUNK_VECTOR_INDEX, object_type=dict).where_equals(
                    "user_id", user_id
                )
                if document_id:
                    query = query.and_also().where_equals("document_id", document_id)
                query = query.and_also().vector_search(
                    "embedding", embedding, minimum_similarity=min_similarity
                )
                rows = list(query.order_by_score().take(int(top_k)))
        except Exception as e:
            logger.error(f"❌ Vector search failed: {e}", exc_info=True)
            raise VectorSearchError(f"Vector search failed: {e}") from e

        results = [
            RetrievedChunk(
                document_id=row.get("document_id", ""),
                chunk_index=int(row.get("chunk_index", 0)),
                page_number=int(row.get("page_number", 0)),
                text=row.get("text", ""),
                score=result_score(row, embedding),
            )
            for row in rows
        ]
        results.sort(key=lambda r: r.score, reverse=True)
        return results

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def add_message(self, message: ConversationMessage) -> None:
        if message.Id is None:
            message.Id = f"{MESSAGES_COLLECTION.lower()}/{uuid.uuid4().hex}"
        self._store_entity(message, message.Id, MESSAGES_COLLECTION)

    def recent_messages(
        self, user_id: str, conversation_id: str, limit: int
    ) -> list[ConversationMessage]:
        rows = self._query(
            f"from {MESSAGES_COLLECTION} "
            "where user_id = $user_id and conversation_id = $conversation_id "
            f"order by created_at desc limit {int(limit)}",
            user_id=user_id,
            conversation_id=conversation_id,
        )
        return [ConversationMessage.from_dict(row) for row in reversed(rows)]

    # ------------------------------------------------------------------
    # Quiz attempts
    # ------------------------------------------------------------------

    def save_quiz_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        if attempt.Id is None:
            attempt.Id = f"{QUIZ_ATTEMPTS_COLLECTION.lower()}/{uuid.uuid4().hex}"
        # Answer records are stored as plain nested objects
        entity = replace(attempt, answers=[asdict(answer) for answer in attempt.answers])
        self._store_entity(entity, attempt.Id, QUIZ_ATTEMPTS_COLLECTION)
        return attempt

    def list_quiz_attempts(self, user_id: str) -> list[QuizAttempt]:
        rows = self._query(
            f"from {QUIZ_ATTEMPTS_COLLECTION} where user_id = $user_id order by created_at desc",
            user_id=user_id,
        )
        return [QuizAttempt.from_dict(row) for row in rows]
