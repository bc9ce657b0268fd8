"""Quiz generation, submission and progress API routes."""

import logging

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from studyrag.client.routes.config import get_config
from studyrag.client.routes.helpers import error_response, get_user_id
from studyrag.service.grading import QuestionResponse
from studyrag.service.quiz_schema import QuizQuestion

logger = logging.getLogger(__name__)

quiz_bp = Blueprint("quiz", __name__)


@quiz_bp.route("/api/quiz", methods=["POST"])
def generate_quiz():
    """Generate quiz questions.

    Request:
        {"types": ["MCQ", "SAQ"], "count": 5, "document_id": "documents/abc"}

    Response:
        {"questions": [...], "source": "retrieved" | "fallback", "chunks_used": 7,
         "sources": [{"source": 1, "page_number": 4, ...}]}
    """
    data = request.get_json(silent=True) or {}
    question_types = data.get("types") or []
    count = data.get("count", 5)
    logger.info(f"📝 Quiz request: {count} x {question_types}")

    try:
        result = get_config().assistant.retrieve_and_generate_quiz(
            get_user_id(), question_types, int(count), document_id=data.get("document_id")
        )
    except Exception as e:
        return error_response(e)
    return jsonify(result.to_dict())


@quiz_bp.route("/api/quiz/submit", methods=["POST"])
def submit_quiz():
    """Grade a quiz submission and store the attempt.

    Request:
        {
            "questions": [...],  # Questions as returned by /api/quiz
            "answers": {
                "q1": {"answer": 2},
                "q2": {"answer": "...", "self_assessed_correct": true}
            },
            "document_id": "documents/abc"  # Optional
        }
    """
    data = request.get_json(silent=True) or {}
    try:
        questions = [QuizQuestion.model_validate(q) for q in data.get("questions") or []]
    except ValidationError as e:
        return jsonify({"error": f"Invalid questions: {e}"}), 400
    if not questions:
        return jsonify({"error": "Missing 'questions' field in request"}), 400

    responses = {
        question_id: QuestionResponse(
            answer=value.get("answer"),
            self_assessed_correct=bool(value.get("self_assessed_correct", False)),
        )
        for question_id, value in (data.get("answers") or {}).items()
        if isinstance(value, dict)
    }

    try:
        attempt = get_config().assistant.submit_quiz(
            get_user_id(), questions, responses, document_id=data.get("document_id")
        )
    except Exception as e:
        return error_response(e)

    return jsonify(
        {
            "attempt_id": attempt.Id,
            "total_questions": attempt.total_questions,
            "correct_answers": attempt.correct_answers,
            "score_percentage": attempt.score_percentage,
            "results": [
                {
                    "question_id": answer.question_id,
                    "is_correct": answer.is_correct,
                    "user_answer": answer.user_answer,
                    "correct_answer": answer.correct_answer,
                }
                for answer in attempt.answers
            ],
        }
    )


@quiz_bp.route("/api/progress", methods=["GET"])
def progress():
    """Summarise the caller's quiz performance."""
    try:
        summary = get_config().assistant.progress_summary(get_user_id())
    except Exception as e:
        return error_response(e)
    return jsonify(summary.to_dict())
