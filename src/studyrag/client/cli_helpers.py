"""Helper functions for CLI commands."""

import click

from studyrag.config import RavenDBConfig
from studyrag.constants import CONTENT_PREVIEW_LENGTH
from studyrag.service.database import (
    RetrievedChunk,
    count_chunks,
    create_database,
    database_exists,
)
from studyrag.service.ingestion import IngestionProgress
from studyrag.service.quiz_schema import QuizQuestion


def ensure_database_exists(create_if_missing: bool = False) -> bool:
    """Check if database exists, optionally create it.

    Args:
        create_if_missing: If True, attempt to create the database

    Returns:
        True if database exists (or was created)

    Raises:
        click.Abort: If database doesn't exist and can't be created
    """
    if database_exists():
        return True

    if create_if_missing:
        click.echo("Database does not exist. Creating database...")
        try:
            create_database()
            click.echo("✓ Database created successfully!")
            return True
        except Exception as e:
            click.echo(f"✗ Failed to create database: {e}", err=True)
            click.echo("\nPlease ensure RavenDB is running and accessible.", err=True)
            raise click.Abort()

    click.echo("✗ Error: Database does not exist!", err=True)
    click.echo("\nPlease create the database first using:", err=True)
    click.echo("  studyrag-upload <pdf> --user <user> --create-database", err=True)
    raise click.Abort()


def format_search_result(
    index: int, result: RetrievedChunk, max_length: int = CONTENT_PREVIEW_LENGTH
) -> str:
    """Format a search result for display.

    Args:
        index: Result number (1-based)
        result: Retrieved chunk with its score
        max_length: Maximum content length before truncation

    Returns:
        Formatted string for display
    """
    content = result.text
    display_content = content[:max_length] + "..." if len(content) > max_length else content

    lines = [
        f"{index}. [{result.document_id} - p. {result.page_number}, "
        f"chunk #{result.chunk_index}] (score: {result.score:.4f})",
        f"   {display_content}",
        "",
    ]
    return "\n".join(lines)


def format_question(index: int, question: QuizQuestion) -> str:
    """Format a quiz question, its answer and explanation for display."""
    lines = [f"{index}. [{question.type} - {question.topic}] {question.question}"]
    if question.type == "MCQ" and question.choices:
        for choice_index, choice in enumerate(question.choices):
            marker = "*" if choice_index == question.answer_key else " "
            lines.append(f"   {marker} {chr(ord('A') + choice_index)}. {choice}")
    lines.append(f"   Answer: {question.explanation}")
    lines.append("")
    return "\n".join(lines)


def echo_progress(progress: IngestionProgress) -> None:
    """Progress callback printing ingestion state changes and batch counts."""
    if progress.chunks_total:
        click.echo(
            f"  {progress.state.value}: {progress.chunks_done}/{progress.chunks_total} chunks"
        )
    else:
        click.echo(f"  {progress.state.value}")


def get_database_info() -> tuple[str, str, int | None]:
    """Get database connection info and chunk count.

    Returns:
        Tuple of (url, database_name, chunk_count or None if error)
    """
    url = RavenDBConfig.get_url()
    db_name = RavenDBConfig.get_database_name()

    chunk_count = None
    try:
        chunk_count = count_chunks()
    except Exception as e:
        click.echo(f"⚠️  Could not count chunks: {e}", err=True)

    return url, db_name, chunk_count
