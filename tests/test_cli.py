"""Tests for the CLI module."""

from unittest.mock import patch

import click
import pytest
from click.testing import CliRunner

from conftest import FakeLLMService, make_pdf, mcq, quiz_json, saq
from studyrag.client.cli import count, delete_db, ingest, quiz, search, upload
from studyrag.client.cli_helpers import ensure_database_exists, format_question
from studyrag.exceptions import EmbeddingServiceError
from studyrag.service.quiz_schema import QuizQuestion


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def database_ready():
    with patch("studyrag.client.cli.ensure_database_exists") as mock_ensure:
        mock_ensure.return_value = True
        yield mock_ensure


@pytest.fixture
def pdf_file(tmp_path):
    path = tmp_path / "optics.pdf"
    path.write_bytes(make_pdf(["Light bends.", "Lenses focus light."]))
    return path


class TestUploadCLI:
    """Tests for the upload command."""

    def test_upload_and_ingest(self, runner, database_ready, assistant_factory, pdf_file):
        assistant = assistant_factory()
        with patch("studyrag.client.cli.build_assistant", return_value=assistant):
            result = runner.invoke(upload, [str(pdf_file), "--user", "alice"])

        assert result.exit_code == 0, result.output
        assert "Registered 'optics'" in result.output
        assert "(2 pages)" in result.output
        assert "embedding: 2/2 chunks" in result.output
        assert "Stored 2 chunks from 2 page(s)" in result.output
        database_ready.assert_called_once_with(create_if_missing=False)

    def test_upload_passes_create_flag(self, runner, database_ready, assistant_factory, pdf_file):
        with patch("studyrag.client.cli.build_assistant", return_value=assistant_factory()):
            result = runner.invoke(
                upload, [str(pdf_file), "--user", "alice", "--create-database"]
            )

        assert result.exit_code == 0
        database_ready.assert_called_once_with(create_if_missing=True)

    def test_upload_requires_user(self, runner, pdf_file):
        result = runner.invoke(upload, [str(pdf_file)])
        assert result.exit_code != 0
        assert "--user" in result.output

    def test_upload_unreadable_pdf(self, runner, database_ready, assistant_factory, tmp_path):
        broken = tmp_path / "broken.pdf"
        broken.write_bytes(b"not a pdf")

        with patch("studyrag.client.cli.build_assistant", return_value=assistant_factory()):
            result = runner.invoke(upload, [str(broken), "--user", "alice"])

        assert result.exit_code != 0
        assert "Error reading broken.pdf" in result.output

    def test_upload_embedding_failure(self, runner, database_ready, assistant_factory, pdf_file):
        def unavailable(text):
            raise EmbeddingServiceError("Embedding failed", status_code=402)

        assistant = assistant_factory(FakeLLMService(embed_fn=unavailable))
        with patch("studyrag.client.cli.build_assistant", return_value=assistant):
            result = runner.invoke(upload, [str(pdf_file), "--user", "alice"])

        assert result.exit_code != 0
        assert "Processing failed" in result.output


class TestIngestCLI:
    """Tests for the ingest command."""

    def test_ingest_missing_document(self, runner, database_ready, assistant_factory):
        with patch("studyrag.client.cli.build_assistant", return_value=assistant_factory()):
            result = runner.invoke(ingest, ["documents/404"])

        assert result.exit_code != 0
        assert "Processing failed" in result.output

    def test_reingest_registered_document(
        self, runner, database_ready, assistant_factory, fake_store
    ):
        assistant = assistant_factory()
        document = assistant.register_document("alice", "optics.pdf", make_pdf(["Light bends."]))

        with patch("studyrag.client.cli.build_assistant", return_value=assistant):
            result = runner.invoke(ingest, [document.Id])

        assert result.exit_code == 0, result.output
        assert len(fake_store.list_chunks(document.Id)) == 1


class TestSearchCLI:
    """Tests for the search command."""

    def test_search_no_results(self, runner, database_ready, assistant_factory):
        with patch("studyrag.client.cli.build_assistant", return_value=assistant_factory()):
            result = runner.invoke(search, ["photosynthesis", "--user", "alice"])

        assert result.exit_code == 0
        assert "No results found." in result.output

    def test_search_prints_pages_and_scores(
        self, runner, database_ready, assistant_factory
    ):
        assistant = assistant_factory()
        document = assistant.register_document("alice", "optics.pdf", make_pdf(["Light bends."]))
        with patch("studyrag.client.cli.build_assistant", return_value=assistant):
            runner.invoke(ingest, [document.Id])
            result = runner.invoke(search, ["light", "--user", "alice", "--top-k", "3"])

        assert result.exit_code == 0, result.output
        assert "Found 1 result(s)" in result.output
        assert f"[{document.Id} - p. 1, chunk #0] (score: 1.0000)" in result.output


class TestQuizCLI:
    """Tests for the quiz command."""

    def test_quiz_mixed_types(self, runner, database_ready, assistant_factory):
        llm = FakeLLMService(structured=quiz_json([mcq(), saq()]))
        with patch("studyrag.client.cli.build_assistant", return_value=assistant_factory(llm)):
            result = runner.invoke(
                quiz, ["--user", "alice", "--type", "MCQ", "--type", "SAQ", "--count", "2"]
            )

        assert result.exit_code == 0, result.output
        assert "based on the title only" in result.output
        assert "* B. Converges them" in result.output
        assert "[SAQ - Optics] Define focal length." in result.output

    def test_quiz_rejects_unknown_type(self, runner):
        result = runner.invoke(quiz, ["--user", "alice", "--type", "ESSAY"])
        assert result.exit_code != 0

    def test_quiz_invalid_model_output(self, runner, database_ready, assistant_factory):
        llm = FakeLLMService(structured='{"questions": []}')
        with patch("studyrag.client.cli.build_assistant", return_value=assistant_factory(llm)):
            result = runner.invoke(quiz, ["--user", "alice"])

        assert result.exit_code != 0
        assert "Error generating quiz" in result.output


class TestCountCLI:
    """Tests for the count command."""

    @patch("studyrag.client.cli.get_database_info")
    def test_count_success(self, mock_info, runner, database_ready):
        mock_info.return_value = ("http://localhost:8080", "studyrag", 42)

        result = runner.invoke(count)

        assert result.exit_code == 0
        assert "Database contains 42 document chunk(s)" in result.output

    @patch("studyrag.client.cli.get_database_info")
    def test_count_error(self, mock_info, runner, database_ready):
        mock_info.return_value = ("http://localhost:8080", "studyrag", None)
        result = runner.invoke(count)
        assert result.exit_code != 0


class TestDeleteDbCLI:
    """Tests for the delete-db command."""

    @patch("studyrag.client.cli.delete_database")
    @patch("studyrag.client.cli.database_exists", return_value=True)
    @patch("studyrag.client.cli.get_database_info")
    def test_delete_with_yes(self, mock_info, mock_exists, mock_delete, runner):
        mock_info.return_value = ("http://localhost:8080", "studyrag", 3)

        result = runner.invoke(delete_db, ["--yes"])

        assert result.exit_code == 0
        assert "successfully deleted" in result.output
        mock_delete.assert_called_once()

    @patch("studyrag.client.cli.delete_database")
    @patch("studyrag.client.cli.database_exists", return_value=True)
    @patch("studyrag.client.cli.get_database_info")
    def test_delete_cancelled(self, mock_info, mock_exists, mock_delete, runner):
        mock_info.return_value = ("http://localhost:8080", "studyrag", 3)

        result = runner.invoke(delete_db, input="n\n")

        assert "Deletion cancelled." in result.output
        mock_delete.assert_not_called()

    @patch("studyrag.client.cli.delete_database")
    @patch("studyrag.client.cli.database_exists", return_value=False)
    @patch("studyrag.client.cli.get_database_info")
    def test_delete_missing_database(self, mock_info, mock_exists, mock_delete, runner):
        mock_info.return_value = ("http://localhost:8080", "studyrag", None)

        result = runner.invoke(delete_db, ["--yes"])

        assert "does not exist" in result.output
        mock_delete.assert_not_called()


class TestCliHelpers:
    """Tests for CLI helper functions."""

    @patch("studyrag.client.cli_helpers.create_database")
    @patch("studyrag.client.cli_helpers.database_exists", return_value=False)
    def test_ensure_database_creates_when_asked(self, mock_exists, mock_create):
        assert ensure_database_exists(create_if_missing=True) is True
        mock_create.assert_called_once()

    @patch("studyrag.client.cli_helpers.database_exists", return_value=False)
    def test_ensure_database_aborts_when_missing(self, mock_exists):
        with pytest.raises(click.exceptions.Abort):
            ensure_database_exists()

    def test_format_question_marks_answer(self):
        text = format_question(1, QuizQuestion.model_validate(mcq(answer_key=2)))
        assert "* C. Reflects them" in text
        assert "  A. Diverges them" in text
        assert text.startswith("1. [MCQ - Optics]")
