"""Tests for the StudyAssistant facade: fallback routing and persistence."""

import pytest

from conftest import FakeLLMService, make_pdf, mcq, quiz_json, saq, unit_vector
from studyrag.exceptions import DocumentNotFoundError, VectorSearchError
from studyrag.service.database.models import Chunk
from studyrag.service.grading import QuestionResponse
from studyrag.service.quiz_schema import QuizQuestion


def seed_chunk(store, document_id: str, user_id: str = "alice", vector_index: int = 0):
    store.insert_chunk(
        Chunk(
            document_id=document_id,
            user_id=user_id,
            chunk_index=0,
            page_number=3,
            text="A convex lens converges parallel rays.",
            embedding=unit_vector(vector_index),
        )
    )


@pytest.fixture
def document(assistant_factory):
    assistant = assistant_factory()
    return assistant.register_document("alice", "keph101.pdf", make_pdf(["Optics page."]))


class TestRegisterDocument:
    """Tests for document registration and deletion."""

    def test_register_records_metadata(self, assistant_factory, fake_store):
        data = make_pdf(["One.", "Two."])
        document = assistant_factory().register_document("alice", "keph101.pdf", data)

        assert document.title == "keph101"
        assert document.page_count == 2
        assert document.file_size == len(data)
        assert document.processed is False
        assert fake_store.get_document(document.Id) is document

    def test_delete_cascades(self, assistant_factory, fake_store, pipeline_config, document):
        seed_chunk(fake_store, document.Id)
        stored_file = pipeline_config.upload_folder / document.file_path
        assert stored_file.exists()

        removed = assistant_factory().delete_document("alice", document.Id)

        assert removed == 1
        assert fake_store.get_document(document.Id) is None
        assert fake_store.list_chunks(document.Id) == []
        assert not stored_file.exists()

    def test_other_users_documents_are_not_found(self, assistant_factory, document):
        with pytest.raises(DocumentNotFoundError):
            assistant_factory().delete_document("bob", document.Id)


class TestRetrieveAndAnswer:
    """Tests for chat answering."""

    def test_grounded_answer_saves_exchange_after_stream(
        self, assistant_factory, fake_store, document
    ):
        seed_chunk(fake_store, document.Id)
        llm = FakeLLMService(reply=["According to p. 3: ", "'A convex lens...'"])
        assistant = assistant_factory(llm)

        stream = assistant.retrieve_and_answer("alice", "c1", "What do lenses do?", document.Id)

        assert stream.source == "retrieved"
        assert len(stream.sources) == 1
        assert fake_store.messages == []
        answer = "".join(stream)
        assert answer == "According to p. 3: 'A convex lens...'"
        assert [(m.role, m.content) for m in fake_store.messages] == [
            ("user", "What do lenses do?"),
            ("assistant", answer),
        ]
        assert "[Source 1, Page 3]" in llm.chat_calls[0][0]["content"]

    def test_no_match_falls_back(self, assistant_factory, fake_store, document):
        """With no chunk above threshold the answer says it lacks context."""
        seed_chunk(fake_store, document.Id, vector_index=5)
        llm = FakeLLMService(reply=["I do not have enough context from the PDF."])

        stream = assistant_factory(llm).retrieve_and_answer("alice", "c1", "Unrelated?")

        assert stream.source == "fallback"
        assert stream.sources == []
        "".join(stream)
        system = llm.chat_calls[0][0]["content"]
        assert "do not have enough context" in system
        assert "According to p. X" not in system

    def test_search_failure_falls_back(self, assistant_factory, fake_store):
        fake_store.search_error = VectorSearchError("index offline")
        stream = assistant_factory().retrieve_and_answer("alice", "c1", "Q?")
        assert stream.source == "fallback"
        assert list(stream) == ["Hello", " world"]

    def test_closing_stream_early_saves_nothing(self, assistant_factory, fake_store):
        stream = assistant_factory().retrieve_and_answer("alice", "c1", "Q?")
        deltas = iter(stream)
        next(deltas)
        deltas.close()
        assert fake_store.messages == []

    def test_stream_cannot_be_replayed(self, assistant_factory):
        stream = assistant_factory().retrieve_and_answer("alice", "c1", "Q?")
        list(stream)
        with pytest.raises(RuntimeError):
            list(stream)

    def test_history_is_sent(self, assistant_factory):
        llm = FakeLLMService(reply=["A1"])
        assistant = assistant_factory(llm)
        "".join(assistant.retrieve_and_answer("alice", "c1", "Q1"))
        "".join(assistant.retrieve_and_answer("alice", "c1", "Q2"))

        messages = llm.chat_calls[1]
        assert [m["content"] for m in messages[1:]] == ["Q1", "A1", "Q2"]


class TestRetrieveAndGenerateQuiz:
    """Tests for quiz generation routing."""

    def test_grounded_quiz(self, assistant_factory, fake_store, document):
        seed_chunk(fake_store, document.Id)
        llm = FakeLLMService(structured=quiz_json([mcq()]))

        result = assistant_factory(llm).retrieve_and_generate_quiz(
            "alice", ["MCQ"], 1, document.Id
        )

        assert result.source == "retrieved"
        assert result.chunks_used == 1
        assert llm.embedded[-1] == "Generate quiz questions about: keph101"
        (citation,) = result.to_dict()["sources"]
        assert citation["source"] == 1
        assert citation["document_id"] == document.Id
        assert citation["page_number"] == 3

    def test_no_match_returns_fallback(self, assistant_factory, fake_store, document):
        seed_chunk(fake_store, document.Id, vector_index=4)
        llm = FakeLLMService(structured=quiz_json([mcq()]))

        result = assistant_factory(llm).retrieve_and_generate_quiz(
            "alice", ["MCQ"], 1, document.Id
        )

        assert result.source == "fallback"
        assert result.chunks_used == 0
        assert result.to_dict()["source"] == "fallback"
        assert "CONTENT FROM PDF" not in llm.structured_calls[0][1]["content"]

    def test_empty_store_without_document_uses_default_subject(self, assistant_factory):
        llm = FakeLLMService(structured=quiz_json([saq()]))
        result = assistant_factory(llm).retrieve_and_generate_quiz("alice", ["SAQ"], 1)
        assert result.source == "fallback"
        assert "NCERT textbooks" in llm.structured_calls[0][1]["content"]


class TestSubmitAndProgress:
    """Tests for quiz submission and the progress summary."""

    def test_submit_stores_attempt(self, assistant_factory, fake_store):
        questions = [QuizQuestion.model_validate(mcq()), QuizQuestion.model_validate(saq())]
        assistant = assistant_factory()

        attempt = assistant.submit_quiz(
            "alice",
            questions,
            {"q1": QuestionResponse(answer=1), "q2": QuestionResponse("Distance", False)},
        )

        assert attempt.Id is not None
        assert attempt.correct_answers == 1
        assert attempt.score_percentage == 50
        assert fake_store.attempts == [attempt]

        summary = assistant.progress_summary("alice")
        assert summary.total_attempts == 1
        assert summary.total_questions_attempted == 2
