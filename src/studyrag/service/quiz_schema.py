"""Structured quiz output models and their validation rules."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from studyrag.constants import MCQ_CHOICE_COUNT

QuestionType = Literal["MCQ", "SAQ", "LAQ"]
QUESTION_TYPES: tuple[str, ...] = ("MCQ", "SAQ", "LAQ")


class QuizQuestion(BaseModel):
    """One generated question.

    For MCQs ``choices`` holds exactly four options and ``answer_key`` the
    zero-based index of the correct one. For SAQs and LAQs ``explanation``
    holds the model answer.
    """

    id: str
    type: QuestionType
    question: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    choices: list[str] | None = None
    answer_key: int | None = None
    explanation: str

    @model_validator(mode="after")
    def check_choices(self) -> "QuizQuestion":
        if self.type == "MCQ":
            if self.choices is None or len(self.choices) != MCQ_CHOICE_COUNT:
                raise ValueError(f"MCQ {self.id} must have exactly {MCQ_CHOICE_COUNT} choices")
            if self.answer_key is None or not 0 <= self.answer_key < MCQ_CHOICE_COUNT:
                raise ValueError(
                    f"MCQ {self.id} answer_key must be between 0 and {MCQ_CHOICE_COUNT - 1}"
                )
        return self

    @property
    def correct_answer(self) -> str:
        """Text of the correct answer (the model answer for SAQ/LAQ)."""
        if self.type == "MCQ" and self.choices is not None and self.answer_key is not None:
            return self.choices[self.answer_key]
        return self.explanation


class QuizPayload(BaseModel):
    """Top-level object the model is asked to return."""

    questions: list[QuizQuestion] = Field(min_length=1)
