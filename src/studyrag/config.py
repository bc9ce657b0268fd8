"""Runtime configuration read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from studyrag.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_HISTORY_WINDOW,
    DEFAULT_INGESTION_BATCH_SIZE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_QUIZ_TOP_K,
    DEFAULT_RAVENDB_DATABASE,
    DEFAULT_RAVENDB_URL,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_TOP_K,
    DEFAULT_UPLOAD_FOLDER,
    get_embedding_dimensions,
    get_embedding_model,
)

# Load environment variables
load_dotenv()


class RavenDBConfig:
    """Configuration class for RavenDB connection details."""

    @staticmethod
    def get_url() -> str:
        """Get the RavenDB server URL from environment variables.

        Returns:
            str: RavenDB server URL (default: http://localhost:8080)
        """
        return os.getenv("RAVENDB_URL", DEFAULT_RAVENDB_URL)

    @staticmethod
    def get_database_name() -> str:
        """Get the RavenDB database name from environment variables.

        Returns:
            str: Database name (default: studyrag)
        """
        return os.getenv("RAVENDB_DATABASE", DEFAULT_RAVENDB_DATABASE)


@dataclass
class PipelineConfig:
    """Tunables for ingestion, retrieval and generation."""

    embedding_model: str
    embedding_dimensions: int
    upload_folder: Path
    chunk_size: int = DEFAULT_CHUNK_SIZE
    top_k: int = DEFAULT_TOP_K
    quiz_top_k: int = DEFAULT_QUIZ_TOP_K
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    batch_size: int = DEFAULT_INGESTION_BATCH_SIZE
    history_window: int = DEFAULT_HISTORY_WINDOW
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ValueError("similarity_threshold must be between 0 and 1")

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build the configuration from environment variables and defaults."""
        return cls(
            embedding_model=get_embedding_model(),
            embedding_dimensions=get_embedding_dimensions(),
            upload_folder=Path(os.getenv("UPLOAD_FOLDER", DEFAULT_UPLOAD_FOLDER)),
            chunk_size=int(os.getenv("CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE))),
            top_k=int(os.getenv("TOP_K", str(DEFAULT_TOP_K))),
            quiz_top_k=int(os.getenv("QUIZ_TOP_K", str(DEFAULT_QUIZ_TOP_K))),
            similarity_threshold=float(
                os.getenv("SIMILARITY_THRESHOLD", str(DEFAULT_SIMILARITY_THRESHOLD))
            ),
            batch_size=int(
                os.getenv("INGESTION_BATCH_SIZE", str(DEFAULT_INGESTION_BATCH_SIZE))
            ),
            history_window=int(os.getenv("HISTORY_WINDOW", str(DEFAULT_HISTORY_WINDOW))),
            max_retries=int(os.getenv("EMBEDDING_MAX_RETRIES", str(DEFAULT_MAX_RETRIES))),
            retry_base_delay=float(
                os.getenv("RETRY_BASE_DELAY", str(DEFAULT_RETRY_BASE_DELAY))
            ),
            retry_max_delay=float(os.getenv("RETRY_MAX_DELAY", str(DEFAULT_RETRY_MAX_DELAY))),
        )
