"""Persistence layer for StudyRAG backed by RavenDB.

This package provides:
- Entity dataclasses (Document, Chunk, ConversationMessage, QuizAttempt)
- The StudyStore protocol the pipeline depends on
- RavenDBStore, the RavenDB implementation with vector search
- Administrative operations (create/delete database, vector index, counts)

Usage:
    from studyrag.service.database import RavenDBStore, Document

    store = RavenDBStore()
    store.create_document(Document(user_id="u1", title="Physics", file_path="u1/physics.pdf"))
"""

from studyrag.service.database.base import StudyStore
from studyrag.service.database.models import (
    AnswerRecord,
    Chunk,
    ConversationMessage,
    Document,
    QuizAttempt,
    RetrievedChunk,
)
from studyrag.service.database.operations import (
    CHUNK_VECTOR_INDEX,
    build_chunk_index,
    count_chunks,
    create_database,
    create_document_store,
    database_exists,
    delete_database,
    ensure_index_exists,
)
from studyrag.service.database.storage import RavenDBStore
from studyrag.service.database.utils import cosine_similarity, result_score

__all__ = [
    # Models
    "AnswerRecord",
    "Chunk",
    "ConversationMessage",
    "Document",
    "QuizAttempt",
    "RetrievedChunk",
    # Storage
    "StudyStore",
    "RavenDBStore",
    # Operations
    "CHUNK_VECTOR_INDEX",
    "build_chunk_index",
    "create_document_store",
    "ensure_index_exists",
    "database_exists",
    "create_database",
    "delete_database",
    "count_chunks",
    # Utils
    "cosine_similarity",
    "result_score",
]
