"""Pytest configuration and shared fixtures for the test suite."""

import json
from collections.abc import Callable, Iterator
from pathlib import Path

import fitz  # PyMuPDF
import pytest
import requests

from studyrag.config import PipelineConfig
from studyrag.service.database.models import (
    Chunk,
    ConversationMessage,
    Document,
    QuizAttempt,
    RetrievedChunk,
)
from studyrag.service.database.utils import cosine_similarity

TEST_DIMENSIONS = 8


# Service availability checks
def ollama_available() -> bool:
    """Check if Ollama server is running and accessible.

    Returns:
        True if Ollama is available, False otherwise
    """
    try:
        response = requests.get("http://localhost:11434/api/tags", timeout=2)
        return response.status_code == 200
    except requests.RequestException:
        return False


def ravendb_available() -> bool:
    """Check if RavenDB server is running and accessible.

    Returns:
        True if RavenDB is available, False otherwise
    """
    try:
        response = requests.get("http://localhost:8080/databases", timeout=2)
        return response.status_code in (200, 401)  # Auth required is OK
    except requests.RequestException:
        return False


class FakeStore:
    """In-memory StudyStore used by unit tests."""

    def __init__(self) -> None:
        self.documents: dict[str, Document] = {}
        self.chunks: dict[str, Chunk] = {}
        self.messages: list[ConversationMessage] = []
        self.attempts: list[QuizAttempt] = []
        self.search_error: Exception | None = None
        self.search_calls: list[dict] = []
        self._next_id = 0

    def _new_id(self, prefix: str) -> str:
        self._next_id += 1
        return f"{prefix}/{self._next_id}"

    def create_document(self, document: Document) -> Document:
        document.Id = document.Id or self._new_id("documents")
        self.documents[document.Id] = document
        return document

    def get_document(self, document_id: str) -> Document | None:
        return self.documents.get(document_id)

    def update_document_status(self, document_id, status, processed=None, error=None) -> None:
        document = self.documents[document_id]
        document.status = status
        document.error = error
        if processed is not None:
            document.processed = processed

    def delete_document(self, document_id: str) -> int:
        removed = self.delete_chunks(document_id)
        self.documents.pop(document_id, None)
        return removed

    def insert_chunk(self, chunk: Chunk) -> None:
        chunk.Id = chunk.Id or f"{chunk.document_id}/chunks/{chunk.chunk_index:06d}"
        self.chunks[chunk.Id] = chunk

    def delete_chunks(self, document_id: str) -> int:
        keys = [key for key, chunk in self.chunks.items() if chunk.document_id == document_id]
        for key in keys:
            del self.chunks[key]
        return len(keys)

    def list_chunks(self, document_id: str) -> list[Chunk]:
        """Test inspection helper: a document's chunks in index order."""
        return sorted(
            (chunk for chunk in self.chunks.values() if chunk.document_id == document_id),
            key=lambda chunk: chunk.chunk_index,
        )

    def search_chunks(
        self, user_id, embedding, top_k, document_id=None, min_similarity=None
    ) -> list[RetrievedChunk]:
        self.search_calls.append({"top_k": top_k, "min_similarity": min_similarity})
        if self.search_error is not None:
            raise self.search_error
        results = [
            RetrievedChunk(
                document_id=chunk.document_id,
                chunk_index=chunk.chunk_index,
                page_number=chunk.page_number,
                text=chunk.text,
                score=cosine_similarity(embedding, chunk.embedding),
            )
            for chunk in self.chunks.values()
            if chunk.user_id == user_id
            and (document_id is None or chunk.document_id == document_id)
        ]
        if min_similarity is not None:
            results = [result for result in results if result.score >= min_similarity]
        results.sort(key=lambda result: result.score, reverse=True)
        return results[:top_k]

    def add_message(self, message: ConversationMessage) -> None:
        self.messages.append(message)

    def recent_messages(self, user_id, conversation_id, limit) -> list[ConversationMessage]:
        matching = [
            message
            for message in self.messages
            if message.user_id == user_id and message.conversation_id == conversation_id
        ]
        return matching[-limit:] if limit > 0 else []

    def save_quiz_attempt(self, attempt: QuizAttempt) -> QuizAttempt:
        attempt.Id = attempt.Id or self._new_id("quizattempts")
        self.attempts.append(attempt)
        return attempt

    def list_quiz_attempts(self, user_id: str) -> list[QuizAttempt]:
        return sorted(
            (attempt for attempt in self.attempts if attempt.user_id == user_id),
            key=lambda attempt: attempt.created_at,
            reverse=True,
        )


def unit_vector(index: int, dimensions: int = TEST_DIMENSIONS) -> list[float]:
    """Vector with a single 1.0 at ``index``."""
    vector = [0.0] * dimensions
    vector[index] = 1.0
    return vector


class FakeLLMService:
    """Scripted LLMService.

    Embeddings come from ``embed_fn`` (default: every text maps to the same
    unit vector); streamed replies and structured output are canned.
    """

    model = "fake-model"

    def __init__(
        self,
        embed_fn: Callable[[str], list[float]] | None = None,
        reply: list[str] | None = None,
        structured: str | None = None,
    ) -> None:
        self.embed_fn = embed_fn or (lambda text: unit_vector(0))
        self.reply = reply if reply is not None else ["Hello", " world"]
        self.structured = structured
        self.embedded: list[str] = []
        self.chat_calls: list[list[dict]] = []
        self.structured_calls: list[list[dict]] = []

    def stream_response(self, messages: list[dict]) -> Iterator[str]:
        self.chat_calls.append(messages)
        yield from self.reply

    def generate_structured(self, messages, schema) -> str:
        self.structured_calls.append(messages)
        return self.structured

    def generate_embeddings(self, texts, model=None, dimensions=None) -> list[list[float]]:
        self.embedded.extend(texts)
        return [self.embed_fn(text) for text in texts]


def make_pdf(pages: list[str]) -> bytes:
    """Build an in-memory PDF with one text page per entry (blank entries stay empty)."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_textbox(fitz.Rect(36, 36, 560, 800), text, fontsize=9)
    data = doc.tobytes()
    doc.close()
    return data


def quiz_json(questions: list[dict]) -> str:
    return json.dumps({"questions": questions})


def mcq(question_id: str = "q1", topic: str | None = "Optics", answer_key: int = 1) -> dict:
    question = {
        "id": question_id,
        "type": "MCQ",
        "question": "What does a convex lens do to parallel rays?",
        "choices": ["Diverges them", "Converges them", "Reflects them", "Absorbs them"],
        "answer_key": answer_key,
        "explanation": "According to p. 3: 'A convex lens converges parallel rays.'",
    }
    if topic is not None:
        question["topic"] = topic
    return question


def saq(question_id: str = "q2", topic: str = "Optics") -> dict:
    return {
        "id": question_id,
        "type": "SAQ",
        "question": "Define focal length.",
        "topic": topic,
        "explanation": "The distance between the optical centre and the principal focus.",
    }


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def fake_llm() -> FakeLLMService:
    return FakeLLMService()


@pytest.fixture
def pipeline_config(tmp_path: Path) -> PipelineConfig:
    """Pipeline configuration with small vectors and no retry delays."""
    return PipelineConfig(
        embedding_model="fake-embed",
        embedding_dimensions=TEST_DIMENSIONS,
        upload_folder=tmp_path / "uploads",
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )


@pytest.fixture
def assistant_factory(fake_store, pipeline_config):
    """Factory building a StudyAssistant over the fake store and a given LLM."""
    from studyrag.service.assistant import StudyAssistant
    from studyrag.service.files import LocalFileStorage

    def _build(llm: FakeLLMService | None = None) -> StudyAssistant:
        return StudyAssistant(
            fake_store,
            LocalFileStorage(pipeline_config.upload_folder),
            llm or FakeLLMService(),
            pipeline_config,
        )

    return _build


# Service fixtures with skip markers
@pytest.fixture
def ollama_service():
    """Provide OllamaService instance, skip if Ollama not available.

    Raises:
        pytest.skip: If Ollama server is not running
    """
    if not ollama_available():
        pytest.skip("Ollama server not running on localhost:11434")

    from studyrag.llm import OllamaService

    return OllamaService(host="http://localhost:11434", model="llama3")


@pytest.fixture
def ravendb_store():
    """Provide RavenDBStore on a scratch database, skip if RavenDB not available.

    Raises:
        pytest.skip: If RavenDB server is not running
    """
    if not ravendb_available():
        pytest.skip("RavenDB server not running on localhost:8080")

    from studyrag.service.database import RavenDBStore, create_database, delete_database

    database = "test_studyrag"
    create_database(database=database)
    store = RavenDBStore(database=database, dimensions=TEST_DIMENSIONS)
    yield store
    store.close()
    delete_database(database=database)
