"""Command-line interface for StudyRAG using Click."""

import asyncio
from pathlib import Path

import click
from dotenv import load_dotenv

from studyrag.client.cli_helpers import (
    echo_progress,
    ensure_database_exists,
    format_question,
    format_search_result,
    get_database_info,
)
from studyrag.constants import DEFAULT_TOP_K
from studyrag.exceptions import PartialIngestionFailure, StudyRAGError
from studyrag.service.assistant import build_assistant
from studyrag.service.database import database_exists, delete_database
from studyrag.service.quiz_schema import QUESTION_TYPES

# Load environment variables
load_dotenv()


def _ingest_with_progress(assistant, document_id: str) -> None:
    try:
        result = asyncio.run(assistant.ingest(document_id, on_progress=echo_progress))
    except PartialIngestionFailure as e:
        click.echo(
            f"✗ Processing failed after {e.chunks_stored} chunks: {e.cause}", err=True
        )
        click.echo(f"  Retry with: studyrag-ingest {document_id}", err=True)
        raise click.Abort()
    except StudyRAGError as e:
        click.echo(f"✗ Processing failed: {e}", err=True)
        raise click.Abort()
    click.echo(
        f"✓ Ingestion complete! Stored {result.chunks_created} chunks "
        f"from {result.pages} page(s)."
    )


@click.command()
@click.argument(
    "pdf",
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
)
@click.option("--user", "user_id", required=True, help="Owner of the document")
@click.option("--title", type=str, default=None, help="Display title (default: filename)")
@click.option(
    "--create-database",
    "create_database_flag",
    is_flag=True,
    default=False,
    help="Create the RavenDB database if it doesn't exist",
)
def upload(pdf: Path, user_id: str, title: str | None, create_database_flag: bool) -> None:
    """Upload PDF for USER and ingest it into the knowledge base.

    Example:
        studyrag-upload physics.pdf --user alice
        studyrag-upload physics.pdf --user alice --title "Physics Part 1" --create-database
    """
    ensure_database_exists(create_if_missing=create_database_flag)
    assistant = build_assistant()

    try:
        document = assistant.register_document(user_id, pdf.name, pdf.read_bytes(), title)
    except StudyRAGError as e:
        click.echo(f"✗ Error reading {pdf.name}: {e}", err=True)
        raise click.Abort()

    click.echo(f"📄 Registered '{document.title}' as {document.Id} ({document.page_count} pages)")
    _ingest_with_progress(assistant, document.Id)


@click.command()
@click.argument("document_id", type=str)
def ingest(document_id: str) -> None:
    """Re-run ingestion for DOCUMENT_ID, replacing any chunks it already has.

    Example:
        studyrag-ingest documents/0f3c...
    """
    ensure_database_exists()
    click.echo(f"🔁 Ingesting {document_id}")
    _ingest_with_progress(build_assistant(), document_id)


@click.command()
def count() -> None:
    """Show the number of document chunks in the database.

    Example:
        studyrag-count
    """
    ensure_database_exists()
    _, _, chunk_count = get_database_info()
    if chunk_count is not None:
        click.echo(f"📊 Database contains {chunk_count} document chunk(s)")
    else:
        click.echo("✗ Error counting chunks", err=True)
        raise click.Abort()


@click.command()
@click.argument("query", type=str)
@click.option("--user", "user_id", required=True, help="User whose documents are searched")
@click.option("--document", "document_id", default=None, help="Restrict to one document")
@click.option(
    "--top-k", type=int, default=DEFAULT_TOP_K, help="Number of results to return (default: 5)"
)
def search(query: str, user_id: str, document_id: str | None, top_k: int) -> None:
    """Search a user's documents using vector search.

    QUERY is the text to search for.

    Example:
        studyrag-search "photosynthesis" --user alice
        studyrag-search "Newton's laws" --user alice --top-k 3
    """
    ensure_database_exists()

    click.echo(f"🔍 Searching for: '{query}'")
    click.echo(f"   Returning top {top_k} results...\n")

    try:
        results = build_assistant().retriever.retrieve(user_id, query, top_k, document_id)
    except StudyRAGError as e:
        click.echo(f"✗ Error: {e}", err=True)
        click.echo("\nPlease ensure the LLM service and RavenDB are running.", err=True)
        raise click.Abort()

    if not results:
        click.echo("No results found.")
        return

    click.echo(f"✅ Found {len(results)} result(s):\n")
    for i, result in enumerate(results, 1):
        click.echo(format_search_result(i, result))


@click.command()
@click.option("--user", "user_id", required=True, help="Student the quiz is for")
@click.option(
    "--type",
    "question_types",
    type=click.Choice(QUESTION_TYPES),
    multiple=True,
    default=("MCQ",),
    help="Question type; repeat for a mixed quiz (default: MCQ)",
)
@click.option("--count", "question_count", type=int, default=5, help="Number of questions")
@click.option("--document", "document_id", default=None, help="Document to base the quiz on")
def quiz(
    user_id: str, question_types: tuple[str, ...], question_count: int, document_id: str | None
) -> None:
    """Generate quiz questions from a user's documents.

    Example:
        studyrag-quiz --user alice --type MCQ --type SAQ --count 4
    """
    ensure_database_exists()
    try:
        result = build_assistant().retrieve_and_generate_quiz(
            user_id, list(question_types), question_count, document_id
        )
    except (StudyRAGError, ValueError) as e:
        click.echo(f"✗ Error generating quiz: {e}", err=True)
        raise click.Abort()

    if result.source == "fallback":
        click.echo("⚠️  No matching passages found; questions are based on the title only.\n")
    else:
        click.echo(f"📚 Based on {result.chunks_used} passage(s)\n")
    for i, question in enumerate(result.questions, 1):
        click.echo(format_question(i, question))


@click.command()
@click.option("--yes", "-y", is_flag=True, default=False, help="Skip confirmation prompt")
def delete_db(yes: bool) -> None:
    """Delete the RavenDB database and all its contents.

    WARNING: This is irreversible and deletes all documents, chunks,
    conversations and quiz attempts.

    Example:
        studyrag-delete-db          # Will prompt for confirmation
        studyrag-delete-db --yes    # Skip confirmation
    """
    url, db_name, chunk_count = get_database_info()

    if not database_exists():
        click.echo(f"✓ Database '{db_name}' does not exist at {url}")
        return

    if not yes:
        click.echo(f"⚠️  WARNING: You are about to delete the database '{db_name}'")
        click.echo(f"   Location: {url}\n")
        click.echo("This will permanently delete:")
        click.echo("  • All uploaded documents and their chunks")
        click.echo("  • All conversations")
        click.echo("  • All quiz attempts\n")

        if chunk_count is not None:
            click.echo(f"📊 Current database contains: {chunk_count} document chunk(s)\n")

        if not click.confirm("Are you sure you want to proceed?", default=False):
            click.echo("Deletion cancelled.")
            return

    click.echo(f"🗑️  Deleting database '{db_name}'...")
    try:
        delete_database()
        click.echo(f"✓ Database '{db_name}' successfully deleted!")
        click.echo("\nTo create a new database, run:")
        click.echo("  studyrag-upload <pdf> --user <user> --create-database")
    except Exception as e:
        click.echo(f"✗ Error deleting database: {e}", err=True)
        raise click.Abort()


if __name__ == "__main__":
    upload()
