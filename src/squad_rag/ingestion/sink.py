"""Upsert sink: write finished vector batches to the index in bounded requests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from squad_rag.ingestion.models import EmbeddingVector
    from squad_rag.retrieval.base import VectorIndex

logger = logging.getLogger(__name__)


class UpsertSink:
    """Forward vectors to a :class:`VectorIndex` namespace.

    Parameters
    ----------
    index:
        Target vector index.
    namespace:
        Logical partition inside the index.
    max_batch_size:
        Max vectors per upsert request; index services reject oversized
        payloads.
    """

    def __init__(self, index: VectorIndex, namespace: str, *, max_batch_size: int = 100) -> None:
        if max_batch_size < 1:
            raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")
        self._index = index
        self.namespace = namespace
        self.max_batch_size = max_batch_size

    async def write(
        self,
        vectors: Sequence[EmbeddingVector],
        on_written: Callable[[int], None] | None = None,
    ) -> int:
        """Upsert *vectors* in order and return how many were written.

        *on_written* is called with the size of each request right after
        it succeeds.  A failing request stops the loop and its exception
        propagates; earlier requests stay committed.
        """
        written = 0
        for start in range(0, len(vectors), self.max_batch_size):
            part = list(vectors[start : start + self.max_batch_size])
            await self._index.upsert(self.namespace, part)
            written += len(part)
            logger.debug("  upserted %d vectors into namespace %r", len(part), self.namespace)
            if on_written is not None:
                on_written(len(part))
        return written
