"""Data models for RavenDB document storage.

Every entity is a dataclass with ``eq=False`` so each instance is unique and
hashable by identity, which RavenDB's session entity tracking requires.
Rows read back from RavenDB arrive as plain dicts and are converted with the
``from_dict`` constructors, so raw JSON never travels past the storage layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

DOCUMENTS_COLLECTION = "Documents"
CHUNKS_COLLECTION = "Chunks"
MESSAGES_COLLECTION = "ConversationMessages"
QUIZ_ATTEMPTS_COLLECTION = "QuizAttempts"


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _entity_id(data: dict[str, Any]) -> str | None:
    return data.get("Id") or data.get("@metadata", {}).get("@id")


@dataclass(eq=False)
class Document:
    """An uploaded source PDF.

    Attributes:
        Id: RavenDB document ID
        user_id: Owning user
        title: Display title
        file_path: Opaque path in document storage
        page_count: Declared page count
        file_size: Size of the stored file in bytes
        processed: True once ingestion completed successfully
        status: Name of the last ingestion state reached
        error: Failure reason of the last ingestion attempt, if any
        uploaded_at: ISO-8601 upload timestamp
    """

    Id: str | None = None
    user_id: str = ""
    title: str = ""
    file_path: str = ""
    page_count: int = 0
    file_size: int = 0
    processed: bool = False
    status: str = "uploaded"
    error: str | None = None
    uploaded_at: str = field(default_factory=utc_now)

    def __hash__(self) -> int:
        return id(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        return cls(
            Id=_entity_id(data),
            user_id=data.get("user_id", ""),
            title=data.get("title", ""),
            file_path=data.get("file_path", ""),
            page_count=int(data.get("page_count", 0)),
            file_size=int(data.get("file_size", 0)),
            processed=bool(data.get("processed", False)),
            status=data.get("status", "uploaded"),
            error=data.get("error"),
            uploaded_at=data.get("uploaded_at", ""),
        )


@dataclass(eq=False)
class Chunk:
    """A span of extracted document text with its embedding."""

    Id: str | None = None
    document_id: str = ""
    user_id: str = ""
    chunk_index: int = 0
    page_number: int = 0
    text: str = ""
    embedding: list[float] = field(default_factory=list)

    def __hash__(self) -> int:
        return id(self)


@dataclass(eq=False)
class ConversationMessage:
    """One turn of a chat conversation."""

    Id: str | None = None
    user_id: str = ""
    conversation_id: str = ""
    role: str = "user"
    content: str = ""
    created_at: str = field(default_factory=utc_now)

    def __hash__(self) -> int:
        return id(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversationMessage":
        return cls(
            Id=_entity_id(data),
            user_id=data.get("user_id", ""),
            conversation_id=data.get("conversation_id", ""),
            role=data.get("role", "user"),
            content=data.get("content", ""),
            created_at=data.get("created_at", ""),
        )


@dataclass
class AnswerRecord:
    """Outcome of a single answered quiz question."""

    question_id: str
    question_text: str
    question_type: str
    topic: str | None
    user_answer: str | None
    correct_answer: str | None
    is_correct: bool


@dataclass(eq=False)
class QuizAttempt:
    """A submitted and graded quiz."""

    Id: str | None = None
    user_id: str = ""
    document_id: str | None = None
    quiz_type: str = ""
    total_questions: int = 0
    correct_answers: int = 0
    score_percentage: int = 0
    answers: list[AnswerRecord] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now)

    def __hash__(self) -> int:
        return id(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuizAttempt":
        return cls(
            Id=_entity_id(data),
            user_id=data.get("user_id", ""),
            document_id=data.get("document_id"),
            quiz_type=data.get("quiz_type", ""),
            total_questions=int(data.get("total_questions", 0)),
            correct_answers=int(data.get("correct_answers", 0)),
            score_percentage=int(data.get("score_percentage", 0)),
            answers=[AnswerRecord(**answer) for answer in data.get("answers", [])],
            created_at=data.get("created_at", ""),
        )


@dataclass
class RetrievedChunk:
    """A chunk returned by similarity search, with its score."""

    document_id: str
    chunk_index: int
    page_number: int
    text: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "chunk_index": self.chunk_index,
            "page_number": self.page_number,
            "text": self.text,
            "score": self.score,
        }
