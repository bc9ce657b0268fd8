"""Tests for quiz grading and the progress summary."""

import pytest

from conftest import mcq, saq
from studyrag.service.database.models import AnswerRecord, QuizAttempt
from studyrag.service.grading import (
    QuestionResponse,
    grade_question,
    grade_quiz,
    quiz_type_label,
    score_percentage,
)
from studyrag.service.progress import summarize_progress, topic_accuracy
from studyrag.service.quiz_schema import QuizQuestion


@pytest.fixture
def mcq_question():
    return QuizQuestion.model_validate(mcq())


@pytest.fixture
def saq_question():
    return QuizQuestion.model_validate(saq())


class TestGradeQuestion:
    """Tests for grade_question."""

    def test_correct_mcq(self, mcq_question):
        record = grade_question(mcq_question, QuestionResponse(answer=1))
        assert record.is_correct is True
        assert record.user_answer == "Converges them"
        assert record.correct_answer == "Converges them"
        assert record.topic == "Optics"

    def test_mcq_index_as_string(self, mcq_question):
        assert grade_question(mcq_question, QuestionResponse(answer="1")).is_correct

    def test_wrong_mcq(self, mcq_question):
        record = grade_question(mcq_question, QuestionResponse(answer=0))
        assert record.is_correct is False
        assert record.user_answer == "Diverges them"

    def test_out_of_range_mcq(self, mcq_question):
        record = grade_question(mcq_question, QuestionResponse(answer=7))
        assert record.is_correct is False
        assert record.user_answer is None

    def test_unanswered(self, mcq_question, saq_question):
        assert grade_question(mcq_question, None).is_correct is False
        assert grade_question(saq_question, None).is_correct is False

    def test_saq_uses_self_assessment(self, saq_question):
        right = grade_question(saq_question, QuestionResponse("Distance to focus", True))
        wrong = grade_question(saq_question, QuestionResponse("No idea", False))
        assert right.is_correct is True
        assert wrong.is_correct is False
        assert right.correct_answer == saq_question.explanation

    def test_blank_saq_is_never_correct(self, saq_question):
        assert grade_question(saq_question, QuestionResponse("   ", True)).is_correct is False


class TestGradeQuiz:
    """Tests for grade_quiz."""

    def test_score_is_rounded_percentage(self, mcq_question, saq_question):
        questions = [
            mcq_question,
            QuizQuestion.model_validate(mcq("q3")),
            saq_question,
        ]
        attempt = grade_quiz(
            "alice",
            questions,
            {"q1": QuestionResponse(1), "q3": QuestionResponse(0)},
            document_id="documents/1",
        )
        assert attempt.total_questions == 3
        assert attempt.correct_answers == 1
        assert attempt.score_percentage == 33
        assert attempt.document_id == "documents/1"
        assert attempt.quiz_type == "mixed"

    def test_helpers(self, mcq_question):
        assert score_percentage(2, 3) == 67
        assert score_percentage(0, 0) == 0
        assert quiz_type_label([mcq_question]) == "MCQ"


def attempt(created_at: str, score: int, answers: list[tuple[str, bool]]) -> QuizAttempt:
    records = [
        AnswerRecord(
            question_id=f"q{n}",
            question_text="?",
            question_type="MCQ",
            topic=topic,
            user_answer="a",
            correct_answer="a" if correct else "b",
            is_correct=correct,
        )
        for n, (topic, correct) in enumerate(answers)
    ]
    return QuizAttempt(
        user_id="alice",
        quiz_type="MCQ",
        total_questions=len(records),
        correct_answers=sum(1 for r in records if r.is_correct),
        score_percentage=score,
        answers=records,
        created_at=created_at,
    )


class TestProgressSummary:
    """Tests for summarize_progress."""

    def test_no_attempts(self):
        summary = summarize_progress("alice", [])
        assert summary.total_attempts == 0
        assert summary.strengths == []
        assert summary.last_attempt_at is None

    def test_totals_and_topics(self):
        attempts = [
            attempt("2026-01-01T00:00:00+00:00", 50, [("Optics", True), ("Waves", False)]),
            attempt("2026-01-03T00:00:00+00:00", 100, [("Optics", True), ("Kinematics", True)]),
            attempt("2026-01-02T00:00:00+00:00", 0, [("Waves", False), ("Heat", False)]),
        ]

        summary = summarize_progress("alice", attempts)

        assert summary.total_attempts == 3
        assert summary.total_questions_attempted == 6
        assert summary.total_correct_answers == 3
        assert summary.overall_accuracy == 50.0
        assert summary.average_score == 50.0
        assert summary.last_attempt_at == "2026-01-03T00:00:00+00:00"
        assert summary.strengths == ["Kinematics", "Optics"]
        assert summary.weaknesses == ["Heat", "Waves"]

    def test_recent_average_uses_last_five(self):
        scores = [0, 0, 100, 100, 100, 100, 100]
        attempts = [
            attempt(f"2026-01-0{n + 1}T00:00:00+00:00", score, [("Optics", True)])
            for n, score in enumerate(scores)
        ]
        summary = summarize_progress("alice", attempts)
        assert summary.recent_average_score == 100.0
        assert summary.average_score == round(500 / 7, 1)

    def test_topics_capped_at_three(self):
        answers = [(topic, True) for topic in ["A", "B", "C", "D", "E"]]
        summary = summarize_progress("alice", [attempt("2026-01-01", 100, answers)])
        assert len(summary.strengths) == 3

    def test_topic_accuracy_skips_missing_topics(self):
        accuracy = topic_accuracy([attempt("2026-01-01", 50, [("", True), ("Optics", False)])])
        assert accuracy == {"Optics": 0.0}
