"""StudyRAG: PDF study assistant with retrieval-augmented chat and quizzes."""

__version__ = "0.1.0"
