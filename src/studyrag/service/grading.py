"""Grading of submitted quiz answers."""

import logging
from dataclasses import dataclass

from studyrag.service.database.models import AnswerRecord, QuizAttempt
from studyrag.service.quiz_schema import QuizQuestion

logger = logging.getLogger(__name__)


@dataclass
class QuestionResponse:
    """A student's response to one question.

    Attributes:
        answer: Choice index for MCQs, free text for SAQ/LAQ, None if skipped
        self_assessed_correct: For SAQ/LAQ, whether the student judged their
            answer correct after comparing it with the model answer
    """

    answer: int | str | None = None
    self_assessed_correct: bool = False


def _choice_index(answer: int | str | None) -> int | None:
    if isinstance(answer, bool) or answer is None:
        return None
    if isinstance(answer, int):
        return answer
    answer = answer.strip()
    return int(answer) if answer.lstrip("-").isdigit() else None


def grade_question(question: QuizQuestion, response: QuestionResponse | None) -> AnswerRecord:
    """Grade one question; a missing response counts as incorrect."""
    response = response or QuestionResponse()

    if question.type == "MCQ":
        index = _choice_index(response.answer)
        choices = question.choices or []
        is_correct = index is not None and index == question.answer_key
        user_answer = choices[index] if index is not None and 0 <= index < len(choices) else None
    else:
        text = str(response.answer).strip() if response.answer is not None else ""
        is_correct = bool(text) and response.self_assessed_correct
        user_answer = text or None

    return AnswerRecord(
        question_id=question.id,
        question_text=question.question,
        question_type=question.type,
        topic=question.topic,
        user_answer=user_answer,
        correct_answer=question.correct_answer,
        is_correct=is_correct,
    )


def score_percentage(correct: int, total: int) -> int:
    """Whole-number percentage, 0 for an empty quiz."""
    if total <= 0:
        return 0
    return round(correct / total * 100)


def quiz_type_label(questions: list[QuizQuestion]) -> str:
    """``MCQ`` for a single-type quiz, otherwise ``mixed``."""
    types = {question.type for question in questions}
    return types.pop() if len(types) == 1 else "mixed"


def grade_quiz(
    user_id: str,
    questions: list[QuizQuestion],
    responses: dict[str, QuestionResponse],
    document_id: str | None = None,
) -> QuizAttempt:
    """Grade every question and build the attempt record.

    Args:
        user_id: Student submitting the quiz
        questions: The questions that were shown
        responses: Responses keyed by question id
        document_id: Document the quiz was generated from, if any

    Returns:
        QuizAttempt: Not yet persisted
    """
    answers = [grade_question(question, responses.get(question.id)) for question in questions]
    correct = sum(1 for answer in answers if answer.is_correct)
    attempt = QuizAttempt(
        user_id=user_id,
        document_id=document_id,
        quiz_type=quiz_type_label(questions),
        total_questions=len(answers),
        correct_answers=correct,
        score_percentage=score_percentage(correct, len(answers)),
        answers=answers,
    )
    logger.info(
        f"🎯 Graded quiz for {user_id}: {correct}/{len(answers)} ({attempt.score_percentage}%)"
    )
    return attempt
