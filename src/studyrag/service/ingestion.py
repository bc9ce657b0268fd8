"""Ingestion orchestrator: PDF bytes to stored, embedded chunks."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from studyrag.config import PipelineConfig
from studyrag.exceptions import DocumentNotFoundError, PartialIngestionFailure
from studyrag.service.chunker import PageChunk, chunk_pages
from studyrag.service.database.base import StudyStore
from studyrag.service.database.models import Chunk, Document
from studyrag.service.embedder import Embedder
from studyrag.service.extraction import extract_pages
from studyrag.service.files import LocalFileStorage
from studyrag.service.retry import RetryPolicy

logger = logging.getLogger(__name__)


class IngestionState(str, Enum):
    """Lifecycle of one ingestion run. ``failed`` is reachable from any step."""

    UPLOADED = "uploaded"
    EXTRACTING = "extracting"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    STORED = "stored"
    FAILED = "failed"


@dataclass
class IngestionProgress:
    """Snapshot passed to progress callbacks."""

    document_id: str
    state: IngestionState
    chunks_done: int = 0
    chunks_total: int = 0


@dataclass
class IngestionResult:
    """Outcome of a successful ingestion run."""

    document_id: str
    state: IngestionState
    pages: int
    chunks_created: int


ProgressCallback = Callable[[IngestionProgress], None]


class IngestionOrchestrator:
    """Turns one uploaded document into a complete set of queryable chunks.

    Chunks are embedded and stored in batches of ``config.batch_size``
    concurrent calls; each batch finishes before the next one starts. Every
    embedding call goes through the retry policy. The first chunk failure
    stops the run, marks the document failed and leaves already stored
    chunks in place until the next run clears them.
    """

    def __init__(
        self,
        store: StudyStore,
        files: LocalFileStorage,
        embedder: Embedder,
        config: PipelineConfig,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.store = store
        self.files = files
        self.embedder = embedder
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
        )

    async def _transition(
        self,
        progress: IngestionProgress,
        state: IngestionState,
        on_progress: ProgressCallback | None,
        **status_fields,
    ) -> None:
        progress.state = state
        logger.info(f"📦 {progress.document_id}: {state.value}")
        await asyncio.to_thread(
            self.store.update_document_status, progress.document_id, state.value, **status_fields
        )
        self._report(progress, on_progress)

    @staticmethod
    def _report(progress: IngestionProgress, on_progress: ProgressCallback | None) -> None:
        if on_progress is None:
            return
        on_progress(
            IngestionProgress(
                document_id=progress.document_id,
                state=progress.state,
                chunks_done=progress.chunks_done,
                chunks_total=progress.chunks_total,
            )
        )

    async def _embed_and_store(self, document: Document, chunk: PageChunk) -> None:
        embedding = await self.retry_policy.run(
            lambda: asyncio.to_thread(self.embedder.embed, chunk.text),
            description=f"Embedding chunk {chunk.chunk_index} of {document.Id}",
        )
        await asyncio.to_thread(
            self.store.insert_chunk,
            Chunk(
                document_id=document.Id,
                user_id=document.user_id,
                chunk_index=chunk.chunk_index,
                page_number=chunk.page_number,
                text=chunk.text,
                embedding=embedding,
            ),
        )

    async def _store_chunks(
        self,
        document: Document,
        chunks: list[PageChunk],
        progress: IngestionProgress,
        on_progress: ProgressCallback | None,
    ) -> None:
        batch_size = self.config.batch_size
        for start in range(0, len(chunks), batch_size):
            batch = chunks[start : start + batch_size]
            results = await asyncio.gather(
                *(self._embed_and_store(document, chunk) for chunk in batch),
                return_exceptions=True,
            )
            errors = [result for result in results if isinstance(result, BaseException)]
            progress.chunks_done += len(results) - len(errors)
            self._report(progress, on_progress)
            if errors:
                raise errors[0]
            logger.debug(
                f"Stored batch {start // batch_size + 1} "
                f"({progress.chunks_done}/{progress.chunks_total} chunks)"
            )

    async def ingest(
        self, document_id: str, on_progress: ProgressCallback | None = None
    ) -> IngestionResult:
        """Run the full pipeline for one document.

        Args:
            document_id: Document to ingest
            on_progress: Optional callback receiving an IngestionProgress on
                every state change and after every batch

        Returns:
            IngestionResult for the stored document

        Raises:
            DocumentNotFoundError: If the document does not exist
            ExtractionError: If the PDF holds no text
            PartialIngestionFailure: If a chunk failed after others were stored
            ServiceError: If the first failure happened before anything was stored
        """
        document = await asyncio.to_thread(self.store.get_document, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)

        progress = IngestionProgress(document_id=document_id, state=IngestionState.UPLOADED)
        try:
            await self._transition(
                progress, IngestionState.EXTRACTING, on_progress, processed=False
            )
            removed = await asyncio.to_thread(self.store.delete_chunks, document_id)
            if removed:
                logger.info(f"🧹 Cleared {removed} chunks from a previous run of {document_id}")

            pdf_bytes = await asyncio.to_thread(self.files.download, document.file_path)
            pages = await asyncio.to_thread(extract_pages, pdf_bytes)

            await self._transition(progress, IngestionState.CHUNKING, on_progress)
            chunks = chunk_pages(
                [(page.page_number, page.text) for page in pages], self.config.chunk_size
            )
            progress.chunks_total = len(chunks)
            logger.info(f"✂️  Created {len(chunks)} chunks from {len(pages)} pages")

            await self._transition(progress, IngestionState.EMBEDDING, on_progress)
            await self._store_chunks(document, chunks, progress, on_progress)
        except Exception as e:
            logger.error(f"❌ Ingestion of {document_id} failed: {e}")
            await self._transition(
                progress, IngestionState.FAILED, on_progress, processed=False, error=str(e)
            )
            if progress.chunks_done:
                raise PartialIngestionFailure(document_id, progress.chunks_done, e) from e
            raise

        await self._transition(progress, IngestionState.STORED, on_progress, processed=True)
        logger.info(f"✅ Ingested {document_id}: {progress.chunks_done} chunks")
        return IngestionResult(
            document_id=document_id,
            state=IngestionState.STORED,
            pages=len(pages),
            chunks_created=progress.chunks_done,
        )
