"""Pipeline driver: ensure index → stream chunks → embed → upsert.

Usage::

    pipeline = IngestionPipeline(
        DataFrameSource(load_squad(settings.squad_url)),
        HuggingFaceEmbeddingModel(),
        PineconeVectorIndex.from_settings(),
        TqdmProgressReporter(),
        index_name=settings.pinecone_index,
        dimension=settings.embedding_dimension,
    )
    report = asyncio.run(pipeline.run())
    report.raise_for_status()

The driver is sequential at chunk and sub-batch granularity; the only
concurrency is inside one embedding sub-batch (see
:class:`~squad_rag.ingestion.embedder.EmbeddingBatcher`).  Because rows
are upserted strictly in source order, a failed run can be resumed with
``run(start_offset=report.resume_offset)``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from squad_rag.config import settings
from squad_rag.errors import ConfigurationError
from squad_rag.ingestion.chunker import iter_chunks
from squad_rag.ingestion.embedder import EmbeddingBatcher
from squad_rag.ingestion.sink import UpsertSink

if TYPE_CHECKING:
    from squad_rag.ingestion.embedder import EmbeddingModel
    from squad_rag.ingestion.models import EmbeddingVector
    from squad_rag.ingestion.progress import ProgressReporter
    from squad_rag.ingestion.source import TabularSource
    from squad_rag.retrieval.base import VectorIndex

logger = logging.getLogger(__name__)


class PipelineState(str, enum.Enum):
    IDLE = "idle"
    INDEX_ENSURED = "index_ensured"
    EMBEDDING = "embedding"
    DONE = "done"
    FAILED = "failed"


@dataclass
class IngestionReport:
    """Outcome of one :meth:`IngestionPipeline.run`.

    Attributes
    ----------
    state:
        ``DONE`` or ``FAILED``.
    total:
        Row count of the source.
    indexed:
        Rows upserted by this run (excludes rows skipped by ``start_offset``).
    start_offset:
        Row the run started from.
    error:
        The exception that stopped the run, exactly as raised.
    """

    state: PipelineState
    total: int = 0
    indexed: int = 0
    start_offset: int = 0
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.state is PipelineState.DONE

    @property
    def resume_offset(self) -> int:
        """First row not known to be in the index."""
        return self.start_offset + self.indexed

    def raise_for_status(self) -> None:
        """Re-raise the triggering error of a failed run."""
        if self.error is not None:
            raise self.error

    def summary(self, index_name: str) -> str:
        if self.ok:
            return f"Done, {self.resume_offset} rows indexed into index '{index_name}'"
        return (
            f"Failed: {self.error!r} ({self.resume_offset} rows indexed, "
            f"resume with --start-offset {self.resume_offset})"
        )


class IngestionPipeline:
    """End-to-end embed-and-upsert run over a tabular source.

    The pipeline owns *source* and *index*: both are closed when
    :meth:`run` returns, whatever the outcome.

    Parameters
    ----------
    source:
        Rows to ingest.
    model:
        Embedding model; initialised with ``embedding_model`` if needed.
    index:
        Target vector index.
    progress:
        Receives ``start`` / ``advance`` / ``stop`` calls.
    index_name:
        Index to create-if-missing before the first upsert.
    dimension:
        Embedding width, used when the index is created.
    namespace:
        Namespace the vectors are written to.
    chunk_size:
        Rows sliced from the source at a time.
    batch_size:
        Documents embedded concurrently.
    upsert_batch_size:
        Max vectors per upsert request.
    keep_ids:
        Use dataset ids as vector ids (otherwise fresh uuids).
    embedding_model:
        Model name passed to :meth:`EmbeddingModel.init`.
    """

    def __init__(
        self,
        source: TabularSource,
        model: EmbeddingModel,
        index: VectorIndex,
        progress: ProgressReporter,
        *,
        index_name: str,
        dimension: int = settings.embedding_dimension,
        namespace: str = settings.pinecone_namespace,
        chunk_size: int = settings.chunk_size,
        batch_size: int = settings.batch_size,
        upsert_batch_size: int = settings.upsert_batch_size,
        keep_ids: bool = settings.keep_dataset_ids,
        embedding_model: str = settings.embedding_model,
    ) -> None:
        self._source = source
        self._model = model
        self._index = index
        self._progress = progress
        self.index_name = index_name
        self.dimension = dimension
        self.namespace = namespace
        self.chunk_size = chunk_size
        self.batch_size = batch_size
        self.keep_ids = keep_ids
        self.embedding_model = embedding_model
        self._batcher = EmbeddingBatcher(model)
        self._sink = UpsertSink(index, namespace, max_batch_size=upsert_batch_size)
        self.state = PipelineState.IDLE
        self._indexed = 0

    async def run(self, *, start_offset: int = 0) -> IngestionReport:
        """Execute the run and return its report; errors end up in ``report.error``."""
        self.state = PipelineState.IDLE
        self._indexed = 0
        total = 0
        progress_started = False
        try:
            created = await self._index.ensure_exists(self.index_name, self.dimension)
            logger.info("Index '%s' %s", self.index_name,
                        "created" if created else "already exists")
            self.state = PipelineState.INDEX_ENSURED

            total = self._source.row_count()
            if start_offset > total:
                raise ValueError(f"start_offset {start_offset} exceeds row count {total}")
            self._progress.start(total, initial=start_offset)
            progress_started = True
            self._model.ensure_initialized(self.embedding_model)
            width = self._model.dimension
            if width is not None and width != self.dimension:
                raise ConfigurationError(
                    f"Embedding model {self.embedding_model} produces {width}-d vectors "
                    f"but the index is configured for {self.dimension}; set EMBEDDING_DIMENSION"
                )

            self.state = PipelineState.EMBEDDING
            logger.info("Embedding %d rows from offset %d (chunk_size=%d, batch_size=%d)",
                        total - start_offset, start_offset, self.chunk_size, self.batch_size)
            for chunk in iter_chunks(
                self._source, self.chunk_size, start_offset=start_offset, keep_ids=self.keep_ids
            ):
                await self._batcher.embed_documents(chunk.documents, self.batch_size, self._upsert)
                logger.debug("Chunk %d-%d committed", chunk.offset, chunk.end)
        except Exception as exc:
            self.state = PipelineState.FAILED
            logger.error("Ingestion failed after %d rows: %s", self._indexed, exc)
            return IngestionReport(
                state=self.state,
                total=total,
                indexed=self._indexed,
                start_offset=start_offset,
                error=exc,
            )
        finally:
            if progress_started:
                self._progress.stop()
            self._source.close()
            self._index.close()

        self.state = PipelineState.DONE
        logger.info("Inserted %d documents into index %s", self._indexed, self.index_name)
        return IngestionReport(
            state=self.state,
            total=total,
            indexed=self._indexed,
            start_offset=start_offset,
        )

    async def _upsert(self, vectors: list[EmbeddingVector]) -> None:
        await self._sink.write(vectors, on_written=self._advance)

    def _advance(self, count: int) -> None:
        self._indexed += count
        self._progress.advance(count)
