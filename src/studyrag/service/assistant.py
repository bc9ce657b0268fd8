"""StudyAssistant: the public facade over ingestion, retrieval and generation.

The HTTP routes, the CLI and the MCP server all go through this class, so
fallback routing and conversation persistence live in one place.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from studyrag.config import PipelineConfig
from studyrag.constants import DEFAULT_QUIZ_SUBJECT
from studyrag.exceptions import DocumentNotFoundError, EmbeddingServiceError, VectorSearchError
from studyrag.llm.base import LLMService
from studyrag.service.context import format_context, source_citations
from studyrag.service.database.base import StudyStore
from studyrag.service.database.models import (
    ConversationMessage,
    Document,
    QuizAttempt,
    RetrievedChunk,
)
from studyrag.service.embedder import Embedder
from studyrag.service.extraction import count_pages
from studyrag.service.files import LocalFileStorage
from studyrag.service.generator import GroundedGenerator
from studyrag.service.grading import QuestionResponse, grade_quiz
from studyrag.service.ingestion import IngestionOrchestrator, IngestionResult, ProgressCallback
from studyrag.service.progress import ProgressSummary, summarize_progress
from studyrag.service.quiz_schema import QuizQuestion
from studyrag.service.retriever import Retriever

logger = logging.getLogger(__name__)

SOURCE_RETRIEVED = "retrieved"
SOURCE_FALLBACK = "fallback"

QUIZ_QUERY_TEMPLATE = "Generate quiz questions about: {title}"


class ChatStream:
    """A streamed answer plus the grounding it was produced with.

    Iterate once to receive text deltas. When iteration runs to the end the
    full answer is handed to the completion hook; a stream closed early
    calls nothing.
    """

    def __init__(
        self,
        deltas: Iterator[str],
        source: str,
        sources: list[RetrievedChunk],
        on_complete: Callable[[str], None] | None = None,
    ) -> None:
        self.source = source
        self.sources = sources
        self._deltas = deltas
        self._on_complete = on_complete
        self._started = False

    @property
    def grounded(self) -> bool:
        return self.source == SOURCE_RETRIEVED

    def __iter__(self) -> Iterator[str]:
        if self._started:
            raise RuntimeError("ChatStream can only be iterated once")
        self._started = True
        return self._run()

    def _run(self) -> Iterator[str]:
        parts = []
        for delta in self._deltas:
            parts.append(delta)
            yield delta
        if self._on_complete is not None:
            self._on_complete("".join(parts))


@dataclass
class QuizResult:
    """Generated questions and how they were grounded."""

    questions: list[QuizQuestion]
    source: str
    chunks_used: int = 0
    sources: list[RetrievedChunk] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "questions": [question.model_dump() for question in self.questions],
            "source": self.source,
            "chunks_used": self.chunks_used,
            "sources": source_citations(self.sources),
        }


class StudyAssistant:
    """Upload, ingest, chat, quiz and progress operations for study documents."""

    def __init__(
        self,
        store: StudyStore,
        files: LocalFileStorage,
        llm: LLMService,
        config: PipelineConfig,
    ) -> None:
        self.store = store
        self.files = files
        self.llm = llm
        self.config = config
        self.embedder = Embedder(llm, config.embedding_model, config.embedding_dimensions)
        self.retriever = Retriever(store, self.embedder, config.similarity_threshold)
        self.generator = GroundedGenerator(llm, config.history_window)
        self.orchestrator = IngestionOrchestrator(store, files, self.embedder, config)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def register_document(
        self, user_id: str, filename: str, data: bytes, title: str | None = None
    ) -> Document:
        """Store an uploaded PDF and record it as a Document.

        Raises:
            ExtractionError: If the bytes are not a readable PDF
        """
        page_count = count_pages(data)
        file_path = self.files.save(user_id, filename, data)
        document = Document(
            user_id=user_id,
            title=title or filename.rsplit(".", 1)[0],
            file_path=file_path,
            page_count=page_count,
            file_size=len(data),
        )
        return self.store.create_document(document)

    def get_document(self, user_id: str, document_id: str) -> Document:
        """Load a document owned by ``user_id``; anything else is not found."""
        document = self.store.get_document(document_id)
        if document is None or document.user_id != user_id:
            raise DocumentNotFoundError(document_id)
        return document

    def delete_document(self, user_id: str, document_id: str) -> int:
        """Delete a document with its chunks and stored file; returns chunks removed."""
        document = self.get_document(user_id, document_id)
        removed = self.store.delete_document(document_id)
        self.files.delete(document.file_path)
        return removed

    async def ingest(
        self, document_id: str, on_progress: ProgressCallback | None = None
    ) -> IngestionResult:
        return await self.orchestrator.ingest(document_id, on_progress)

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def retrieve(
        self, user_id: str, query: str, top_k: int, document_id: str | None = None
    ) -> list[RetrievedChunk]:
        """Retrieve chunks, degrading to an empty result when search fails."""
        try:
            return self.retriever.retrieve(user_id, query, top_k, document_id)
        except (VectorSearchError, EmbeddingServiceError) as e:
            logger.warning(f"⚠️ Retrieval failed, using fallback: {e}")
            return []

    def retrieve_and_answer(
        self,
        user_id: str,
        conversation_id: str,
        query: str,
        document_id: str | None = None,
    ) -> ChatStream:
        """Answer a chat query, grounded in retrieved chunks when any qualify.

        The user's message and the full answer are saved to the conversation
        only after the returned stream has been consumed completely.

        Returns:
            ChatStream: ``source`` is "retrieved" or "fallback"
        """
        title = self.get_document(user_id, document_id).title if document_id else None
        chunks = self.retrieve(user_id, query, self.config.top_k, document_id)
        source = SOURCE_RETRIEVED if chunks else SOURCE_FALLBACK
        if not chunks:
            logger.info(f"↩️  No context for chat query from {user_id}, using fallback mode")

        history = [
            {"role": message.role, "content": message.content}
            for message in self.store.recent_messages(
                user_id, conversation_id, self.config.history_window
            )
        ]
        deltas = self.generator.stream_chat(format_context(chunks), history, query, title)

        def save_exchange(answer: str) -> None:
            self.store.add_message(
                ConversationMessage(
                    user_id=user_id, conversation_id=conversation_id, role="user", content=query
                )
            )
            self.store.add_message(
                ConversationMessage(
                    user_id=user_id,
                    conversation_id=conversation_id,
                    role="assistant",
                    content=answer,
                )
            )

        return ChatStream(deltas, source, chunks, on_complete=save_exchange)

    def retrieve_and_generate_quiz(
        self,
        user_id: str,
        question_types: list[str],
        count: int,
        document_id: str | None = None,
    ) -> QuizResult:
        """Generate a quiz from the best chunks, or from the title alone.

        Returns:
            QuizResult: ``source`` is "retrieved" or "fallback"

        Raises:
            StructuredOutputValidationError: If the model output is malformed
            GenerationServiceError: If the chat service fails
        """
        title = (
            self.get_document(user_id, document_id).title if document_id else DEFAULT_QUIZ_SUBJECT
        )
        chunks = self.retrieve(
            user_id, QUIZ_QUERY_TEMPLATE.format(title=title), self.config.quiz_top_k, document_id
        )

        if chunks:
            questions = self.generator.generate_quiz(
                question_types, count, context=format_context(chunks), title=title
            )
            return QuizResult(questions, SOURCE_RETRIEVED, len(chunks), chunks)

        logger.info(f"↩️  No context for quiz on {title!r}, generating from title")
        questions = self.generator.generate_quiz(question_types, count, context=None, title=title)
        return QuizResult(questions, SOURCE_FALLBACK, 0)

    # ------------------------------------------------------------------
    # Quiz attempts and progress
    # ------------------------------------------------------------------

    def submit_quiz(
        self,
        user_id: str,
        questions: list[QuizQuestion],
        responses: dict[str, QuestionResponse],
        document_id: str | None = None,
    ) -> QuizAttempt:
        """Grade a submission and store the attempt."""
        attempt = grade_quiz(user_id, questions, responses, document_id)
        return self.store.save_quiz_attempt(attempt)

    def progress_summary(self, user_id: str) -> ProgressSummary:
        return summarize_progress(user_id, self.store.list_quiz_attempts(user_id))


def build_assistant(config: PipelineConfig | None = None) -> StudyAssistant:
    """Wire a StudyAssistant from environment configuration.

    Args:
        config: Optional pipeline configuration (default: PipelineConfig.from_env())

    Returns:
        StudyAssistant backed by RavenDB, local file storage and the
        configured LLM service
    """
    from studyrag.llm import get_llm_service
    from studyrag.service.database.storage import RavenDBStore

    config = config or PipelineConfig.from_env()
    store = RavenDBStore(dimensions=config.embedding_dimensions)
    files = LocalFileStorage(config.upload_folder)
    return StudyAssistant(store, files, get_llm_service(), config)
