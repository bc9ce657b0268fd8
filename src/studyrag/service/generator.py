"""Grounded chat and quiz generation on top of an LLM service."""

import logging
from collections.abc import Iterator

from pydantic import ValidationError

from studyrag.constants import DEFAULT_HISTORY_WINDOW, DEFAULT_QUIZ_SUBJECT
from studyrag.exceptions import StructuredOutputValidationError
from studyrag.llm.base import LLMService
from studyrag.service.prompts import chat_system_prompt, quiz_messages
from studyrag.service.quiz_schema import QUESTION_TYPES, QuizPayload, QuizQuestion

logger = logging.getLogger(__name__)


class GroundedGenerator:
    """Builds prompts from assembled context and calls the chat model."""

    def __init__(self, service: LLMService, history_window: int = DEFAULT_HISTORY_WINDOW) -> None:
        self.service = service
        self.history_window = history_window

    def build_chat_messages(
        self,
        context: str,
        history: list[dict],
        query: str,
        document_title: str | None = None,
    ) -> list[dict]:
        """System prompt, the most recent history turns, then the query."""
        recent = history[-self.history_window :] if self.history_window > 0 else []
        return [
            {"role": "system", "content": chat_system_prompt(context, document_title)},
            *({"role": turn["role"], "content": turn["content"]} for turn in recent),
            {"role": "user", "content": query},
        ]

    def stream_chat(
        self,
        context: str,
        history: list[dict],
        query: str,
        document_title: str | None = None,
    ) -> Iterator[str]:
        """Stream an answer to ``query``.

        With non-empty ``context`` the model must cite pages; with an empty
        one it is told to say it lacks context from the PDF.

        Args:
            context: Output of format_context, possibly empty
            history: Prior turns as ``{"role", "content"}`` dicts, oldest first
            query: The user's question
            document_title: Title of the document being discussed

        Yields:
            str: Text deltas from the model

        Raises:
            GenerationServiceError: If the chat service fails
        """
        messages = self.build_chat_messages(context, history, query, document_title)
        mode = "grounded" if context else "fallback"
        logger.info(f"💬 Streaming {mode} answer ({len(messages) - 2} history turns)")
        yield from self.service.stream_response(messages)

    def generate_quiz(
        self,
        question_types: list[str],
        count: int,
        context: str | None = None,
        title: str = DEFAULT_QUIZ_SUBJECT,
    ) -> list[QuizQuestion]:
        """Generate and validate quiz questions.

        Args:
            question_types: Requested types, any of MCQ, SAQ, LAQ
            count: Number of questions to ask for
            context: Assembled context; None or "" for title-only generation
            title: Document title or subject used in the prompt

        Returns:
            list[QuizQuestion]: Validated questions

        Raises:
            ValueError: If no or unknown question types are requested
            StructuredOutputValidationError: If the output has the wrong shape
            GenerationServiceError: If the chat service fails
        """
        unknown = [t for t in question_types if t not in QUESTION_TYPES]
        if not question_types or unknown:
            raise ValueError(f"Question types must be chosen from {', '.join(QUESTION_TYPES)}")
        if count <= 0:
            raise ValueError("count must be positive")

        messages = quiz_messages(question_types, count, title, context)
        raw = self.service.generate_structured(messages, QuizPayload)
        questions = self.parse_quiz(raw, question_types)

        if len(questions) != count:
            logger.warning(f"⚠️ Asked for {count} questions, model returned {len(questions)}")
        logger.info(f"📝 Generated {len(questions)} quiz questions for {title!r}")
        return questions

    @staticmethod
    def parse_quiz(raw: str, question_types: list[str]) -> list[QuizQuestion]:
        """Validate raw model JSON; any violation rejects the whole quiz."""
        try:
            payload = QuizPayload.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"❌ Quiz output failed validation: {e}")
            raise StructuredOutputValidationError(
                f"Quiz output failed validation: {e}", raw_output=raw
            ) from e

        unexpected = {q.type for q in payload.questions} - set(question_types)
        if unexpected:
            raise StructuredOutputValidationError(
                f"Quiz output contains unrequested question types: {', '.join(sorted(unexpected))}",
                raw_output=raw,
            )
        return payload.questions
