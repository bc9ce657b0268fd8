"""Application-wide constants and defaults for StudyRAG.

This module provides a single source of truth for configuration defaults,
magic numbers, and other constants used throughout the application.
"""

import os

# =============================================================================
# File Upload Limits
# =============================================================================
MAX_UPLOAD_SIZE_BYTES = 50 * 1024 * 1024  # 50MB
DEFAULT_UPLOAD_FOLDER = "/tmp/studyrag_uploads"

# =============================================================================
# Chunking
# =============================================================================
DEFAULT_CHUNK_SIZE = 500  # Maximum characters per chunk

# =============================================================================
# Retrieval Settings
# =============================================================================
DEFAULT_TOP_K = 5  # Chunks retrieved for a chat turn
DEFAULT_QUIZ_TOP_K = 15  # Chunks retrieved for quiz generation
DEFAULT_SIMILARITY_THRESHOLD = 0.7  # Minimum cosine similarity
DEFAULT_QUIZ_SUBJECT = "NCERT textbooks for Class XI-XII"

# =============================================================================
# Ingestion Settings
# =============================================================================
DEFAULT_INGESTION_BATCH_SIZE = 5  # Concurrent embedding calls per batch
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY = 1.0  # seconds
DEFAULT_RETRY_MAX_DELAY = 10.0  # seconds

# =============================================================================
# Generation Settings
# =============================================================================
DEFAULT_HISTORY_WINDOW = 10  # Prior conversation turns sent to the model
DEFAULT_REQUEST_TIMEOUT_SECONDS = 60.0
MCQ_CHOICE_COUNT = 4

# =============================================================================
# Display Settings
# =============================================================================
CONTENT_PREVIEW_LENGTH = 200  # Characters to show in content previews

# =============================================================================
# Progress Tracking
# =============================================================================
RECENT_ATTEMPTS_WINDOW = 5
STRENGTH_ACCURACY = 70.0  # Topic accuracy (%) at or above which it is a strength
WEAKNESS_ACCURACY = 50.0  # Topic accuracy (%) below which it is a weakness
MAX_TOPICS_REPORTED = 3

# =============================================================================
# Default URLs and Hosts
# =============================================================================
DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_RAVENDB_URL = "http://localhost:8080"
DEFAULT_RAVENDB_DATABASE = "studyrag"
DEFAULT_MCP_PORT = 8001

# =============================================================================
# Embedding Model Defaults
# =============================================================================
EMBEDDING_DEFAULTS = {
    "ollama": "nomic-embed-text",
    "gemini": "text-embedding-004",
}

# Fixed embedding width; the RavenDB vector index is built with this size
DEFAULT_EMBEDDING_DIMENSIONS = 768


def get_embedding_model(service: str | None = None) -> str:
    """Get the default embedding model for a given LLM service.

    Checks the EMBEDDING_MODEL environment variable first, then falls back
    to service-specific defaults.

    Args:
        service: The LLM service name ("ollama" or "gemini").
                If None, uses LLM_SERVICE env var or defaults to "ollama".

    Returns:
        str: The embedding model name to use.
    """
    env_model = os.getenv("EMBEDDING_MODEL")
    if env_model:
        return env_model

    if service is None:
        service = os.getenv("LLM_SERVICE", "ollama")

    return EMBEDDING_DEFAULTS.get(service, EMBEDDING_DEFAULTS["ollama"])


def get_embedding_dimensions() -> int:
    """Get the configured embedding dimensionality.

    Returns:
        int: Value of EMBEDDING_DIMENSIONS, or the default of 768.
    """
    return int(os.getenv("EMBEDDING_DIMENSIONS", str(DEFAULT_EMBEDDING_DIMENSIONS)))
