"""Database administration for RavenDB - store creation, indexes and counts."""

import requests
from ravendb import DocumentStore
from ravendb.documents.indexes.definitions import (
    FieldIndexing,
    FieldStorage,
    IndexDefinition,
    IndexFieldOptions,
)
from ravendb.documents.indexes.vector.options import VectorOptions
from ravendb.documents.operations.indexes import GetIndexNamesOperation, PutIndexesOperation
from ravendb.serverwide.operations.common import DeleteDatabaseOperation

from studyrag.config import RavenDBConfig
from studyrag.constants import get_embedding_dimensions
from studyrag.exceptions import ConfigurationError
from studyrag.service.database.models import CHUNKS_COLLECTION

CHUNK_VECTOR_INDEX = "Chunks/ByEmbedding"


def create_document_store(url: str | None = None, database: str | None = None) -> DocumentStore:
    """Create and initialize a DocumentStore instance.

    Args:
        url: RavenDB server URL (defaults to value from RavenDBConfig.get_url())
        database: Database name (defaults to value from RavenDBConfig.get_database_name())

    Returns:
        DocumentStore: Initialized DocumentStore instance
    """
    if url is None:
        url = RavenDBConfig.get_url()
    if database is None:
        database = RavenDBConfig.get_database_name()

    store = DocumentStore([url], database)
    store.initialize()
    return store


def build_chunk_index(dimensions: int) -> IndexDefinition:
    """Build the vector index definition for chunk embeddings.

    The embedding width is fixed by the index; vectors of any other size
    cannot be searched.

    Args:
        dimensions: Embedding dimensionality

    Returns:
        IndexDefinition for the Chunks/ByEmbedding index
    """
    index_definition = IndexDefinition()
    index_definition.name = CHUNK_VECTOR_INDEX
    index_definition.maps = {
        f"""from chunk in docs.{CHUNKS_COLLECTION}
        select new {{
            user_id = chunk.user_id,
            document_id = chunk.document_id,
            chunk_index = chunk.chunk_index,
            page_number = chunk.page_number,
            embedding = CreateVector(chunk.embedding)
        }}"""
    }
    index_definition.fields = {
        "embedding": IndexFieldOptions(
            storage=FieldStorage.NO,
            indexing=FieldIndexing.NO,
            vector=VectorOptions(dimensions=dimensions),
        )
    }
    return index_definition


def index_vector_dimensions(url: str, database: str) -> int | None:
    """Read the embedding width of the deployed chunk vector index.

    Fetched over REST; the client's IndexDefinition parser drops vector
    field options.

    Args:
        url: RavenDB server URL
        database: Database name

    Returns:
        int | None: Configured dimensions, or None when the index has no
        vector options
    """
    response = requests.get(
        f"{url}/databases/{database}/indexes",
        params={"name": CHUNK_VECTOR_INDEX},
        timeout=30,
    )
    response.raise_for_status()
    results = response.json().get("Results") or []
    if not results:
        return None
    vector = ((results[0].get("Fields") or {}).get("embedding") or {}).get("Vector") or {}
    dimensions = vector.get("Dimensions")
    return int(dimensions) if dimensions is not None else None


def ensure_index_exists(store: DocumentStore, dimensions: int | None = None) -> None:
    """Ensure the chunk vector index exists in RavenDB with the expected width.

    Args:
        store: Initialized DocumentStore instance
        dimensions: Embedding dimensionality (defaults to EMBEDDING_DIMENSIONS)

    Raises:
        ConfigurationError: If the deployed index was built for a different
            embedding width
    """
    if dimensions is None:
        dimensions = get_embedding_dimensions()

    existing_indexes = store.maintenance.send(GetIndexNamesOperation(0, 100))
    if CHUNK_VECTOR_INDEX not in existing_indexes:
        store.maintenance.send(PutIndexesOperation(build_chunk_index(dimensions)))
        return

    deployed = index_vector_dimensions(store.urls[0], store.database)
    if deployed is not None and deployed != dimensions:
        raise ConfigurationError(
            f"Index {CHUNK_VECTOR_INDEX} stores {deployed}-dimensional vectors, "
            f"but EMBEDDING_DIMENSIONS is {dimensions}; delete the database or "
            "the index to re-create it"
        )


def database_exists(url: str | None = None, database: str | None = None) -> bool:
    """Check if a database exists in RavenDB.

    Args:
        url: RavenDB server URL (defaults to value from RavenDBConfig.get_url())
        database: Database name (defaults to value from RavenDBConfig.get_database_name())

    Returns:
        bool: True if database exists, False otherwise
    """
    if url is None:
        url = RavenDBConfig.get_url()
    if database is None:
        database = RavenDBConfig.get_database_name()

    try:
        store = DocumentStore([url], database)
        store.initialize()
        with store.open_session() as session:
            list(session.query().take(0))
        store.close()
        return True
    except Exception:
        return False


def create_database(url: str | None = None, database: str | None = None) -> None:
    """Create a new database in RavenDB.

    Args:
        url: RavenDB server URL (defaults to value from RavenDBConfig.get_url())
        database: Database name (defaults to value from RavenDBConfig.get_database_name())
    """
    if url is None:
        url = RavenDBConfig.get_url()
    if database is None:
        database = RavenDBConfig.get_database_name()

    payload = {"DatabaseName": database, "Settings": {}, "Disabled": False}
    response = requests.put(f"{url}/admin/databases", json=payload, timeout=30)
    response.raise_for_status()


def delete_database(url: str | None = None, database: str | None = None) -> None:
    """Delete a database from RavenDB.

    WARNING: This operation is irreversible and will delete all data in the database.

    Args:
        url: RavenDB server URL (defaults to value from RavenDBConfig.get_url())
        database: Database name (defaults to value from RavenDBConfig.get_database_name())
    """
    if url is None:
        url = RavenDBConfig.get_url()
    if database is None:
        database = RavenDBConfig.get_database_name()

    store = DocumentStore([url], database)
    try:
        store.initialize()
        store.maintenance.server.send(
            DeleteDatabaseOperation(database_name=database, hard_delete=True)
        )
    finally:
        store.close()


def count_chunks(url: str | None = None, database: str | None = None) -> int:
    """Count the stored chunks across all users and documents.

    Args:
        url: RavenDB server URL (defaults to value from RavenDBConfig.get_url())
        database: Database name (defaults to value from RavenDBConfig.get_database_name())

    Returns:
        int: Number of chunk documents in the database
    """
    store = create_document_store(url, database)
    try:
        with store.open_session() as session:
            return session.query_collection(CHUNKS_COLLECTION, object_type=dict).count()
    finally:
        store.close()
