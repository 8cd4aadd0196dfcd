"""Embedding model abstraction and the sub-batching embedder.

The :class:`EmbeddingBatcher` is the unit of concurrency in the
pipeline: every document of one sub-batch is embedded concurrently, and
the next sub-batch does not start until the completion callback for the
current one has returned.  That keeps at most ``batch_size`` embedding
calls and one batch of un-upserted vectors in flight.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING
from uuid import uuid4

from squad_rag.ingestion.models import EmbeddingVector

if TYPE_CHECKING:
    from langchain_core.documents import Document
    from langchain_huggingface import HuggingFaceEmbeddings

logger = logging.getLogger(__name__)

BatchCallback = Callable[[list[EmbeddingVector]], Awaitable[None] | None]


class EmbeddingModel(ABC):
    """Text → fixed-width vector."""

    model_name: str | None = None

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        """``True`` once :meth:`init` has loaded the model."""
        ...

    @abstractmethod
    def init(self, model_name: str) -> None:
        """Load *model_name*.  Must be called before :meth:`embed`."""
        ...

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Return the embedding of *text*."""
        ...

    @property
    def dimension(self) -> int | None:
        """Width of the vectors :meth:`embed` returns, or ``None`` if unknown."""
        return None

    def ensure_initialized(self, model_name: str) -> None:
        """Call :meth:`init` unless a model is already loaded."""
        if self.is_initialized:
            logger.debug("Embedding model %s already initialised", self.model_name)
            return
        self.init(model_name)


class HuggingFaceEmbeddingModel(EmbeddingModel):
    """Local sentence-transformer model via ``langchain-huggingface``.

    Parameters
    ----------
    normalize_embeddings:
        Whether to L2-normalise vectors (recommended for cosine similarity).
    """

    def __init__(self, *, normalize_embeddings: bool = True) -> None:
        self._normalize = normalize_embeddings
        self._embeddings: HuggingFaceEmbeddings | None = None
        self._dimension: int | None = None

    @property
    def is_initialized(self) -> bool:
        return self._embeddings is not None

    @property
    def dimension(self) -> int | None:
        return self._dimension

    def init(self, model_name: str) -> None:
        from langchain_huggingface import HuggingFaceEmbeddings

        logger.info("Loading embedding model %s", model_name)
        self._embeddings = HuggingFaceEmbeddings(
            model_name=model_name,
            encode_kwargs={"normalize_embeddings": self._normalize},
        )
        self._dimension = len(self._embeddings.embed_query("dimension check"))
        self.model_name = model_name
        logger.info("Embedding model %s produces %d-d vectors", model_name, self._dimension)

    async def embed(self, text: str) -> list[float]:
        if self._embeddings is None:
            raise RuntimeError("Embedding model not initialised; call init() first")
        # aembed_query runs the blocking encode in the default executor.
        return await self._embeddings.aembed_query(text)


class EmbeddingBatcher:
    """Embed documents in ordered, sequential sub-batches.

    Parameters
    ----------
    model:
        An initialised (or lazily initialisable) :class:`EmbeddingModel`.
    """

    def __init__(self, model: EmbeddingModel) -> None:
        self._model = model

    async def embed_documents(
        self,
        documents: Sequence[Document],
        batch_size: int,
        on_batch: BatchCallback,
    ) -> int:
        """Embed *documents* and hand each finished sub-batch to *on_batch*.

        Parameters
        ----------
        documents:
            Documents to embed, in the order their vectors must be emitted.
        batch_size:
            Maximum number of documents embedded concurrently.
        on_batch:
            Called with the vectors of each sub-batch, in input order.  May
            be a coroutine function; it is awaited before the next
            sub-batch starts.

        Returns
        -------
        int
            Number of vectors passed to *on_batch*.

        Raises
        ------
        ValueError
            If ``batch_size < 1``.
        Exception
            Whatever an embedding call or *on_batch* raised, unchanged.
            The failing sub-batch is never passed to *on_batch*.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        emitted = 0
        for start in range(0, len(documents), batch_size):
            batch = documents[start : start + batch_size]
            vectors = await self._embed_concurrently(batch)
            result = on_batch(vectors)
            if inspect.isawaitable(result):
                await result
            emitted += len(vectors)
            logger.debug("  embedded %d / %d", emitted, len(documents))
        return emitted

    async def _embed_concurrently(self, batch: Sequence[Document]) -> list[EmbeddingVector]:
        tasks = [asyncio.ensure_future(self.embed_document(doc)) for doc in batch]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let cancelled siblings unwind before the error leaves this batch.
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def embed_document(self, document: Document) -> EmbeddingVector:
        """Embed a single document, keeping its metadata id when present."""
        metadata = dict(document.metadata) if document.metadata else {"text": document.page_content}
        vector_id = metadata.get("id") or str(uuid4())
        values = await self._model.embed(document.page_content)
        return EmbeddingVector(id=str(vector_id), values=list(values), metadata=metadata)
