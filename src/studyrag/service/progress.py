"""Study progress summary computed from quiz attempts."""

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any

from studyrag.constants import (
    MAX_TOPICS_REPORTED,
    RECENT_ATTEMPTS_WINDOW,
    STRENGTH_ACCURACY,
    WEAKNESS_ACCURACY,
)
from studyrag.service.database.models import QuizAttempt


@dataclass
class ProgressSummary:
    """Aggregated quiz performance of one user."""

    user_id: str
    total_attempts: int = 0
    total_questions_attempted: int = 0
    total_correct_answers: int = 0
    overall_accuracy: float = 0.0
    average_score: float = 0.0
    recent_average_score: float = 0.0
    last_attempt_at: str | None = None
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)
    topic_accuracy: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _mean(values: list[int]) -> float:
    return round(sum(values) / len(values), 1) if values else 0.0


def topic_accuracy(attempts: list[QuizAttempt]) -> dict[str, float]:
    """Percentage of correct answers per topic across all attempts."""
    totals: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for attempt in attempts:
        for answer in attempt.answers:
            if not answer.topic:
                continue
            totals[answer.topic][0] += int(answer.is_correct)
            totals[answer.topic][1] += 1
    return {
        topic: round(correct / total * 100, 1) for topic, (correct, total) in totals.items()
    }


def summarize_progress(user_id: str, attempts: list[QuizAttempt]) -> ProgressSummary:
    """Summarise a user's attempts.

    Strengths are topics at or above 70% accuracy and weaknesses topics below
    50%, best and worst first respectively, at most three of each.

    Args:
        user_id: Owner of the attempts
        attempts: Attempts in any order

    Returns:
        ProgressSummary
    """
    if not attempts:
        return ProgressSummary(user_id=user_id)

    ordered = sorted(attempts, key=lambda attempt: attempt.created_at, reverse=True)
    total_questions = sum(attempt.total_questions for attempt in ordered)
    total_correct = sum(attempt.correct_answers for attempt in ordered)
    per_topic = topic_accuracy(ordered)

    strengths = sorted(
        (topic for topic, accuracy in per_topic.items() if accuracy >= STRENGTH_ACCURACY),
        key=lambda topic: (-per_topic[topic], topic),
    )
    weaknesses = sorted(
        (topic for topic, accuracy in per_topic.items() if accuracy < WEAKNESS_ACCURACY),
        key=lambda topic: (per_topic[topic], topic),
    )

    return ProgressSummary(
        user_id=user_id,
        total_attempts=len(ordered),
        total_questions_attempted=total_questions,
        total_correct_answers=total_correct,
        overall_accuracy=(
            round(total_correct / total_questions * 100, 1) if total_questions else 0.0
        ),
        average_score=_mean([attempt.score_percentage for attempt in ordered]),
        recent_average_score=_mean(
            [attempt.score_percentage for attempt in ordered[:RECENT_ATTEMPTS_WINDOW]]
        ),
        last_attempt_at=ordered[0].created_at,
        strengths=strengths[:MAX_TOPICS_REPORTED],
        weaknesses=weaknesses[:MAX_TOPICS_REPORTED],
        topic_accuracy=per_topic,
    )
