"""Chunk producer: lazily slice a tabular source into document groups."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from squad_rag.ingestion.models import Chunk

if TYPE_CHECKING:
    from collections.abc import Iterator

    from squad_rag.ingestion.source import TabularSource

logger = logging.getLogger(__name__)


def iter_chunks(
    source: TabularSource,
    chunk_size: int,
    *,
    start_offset: int = 0,
    keep_ids: bool = True,
) -> Iterator[Chunk]:
    """Yield consecutive, non-overlapping chunks of *source*.

    Each call returns a fresh generator; only one chunk is held in memory
    at a time.  Concatenating the chunks reproduces rows
    ``[start_offset, row_count)`` in source order.

    Parameters
    ----------
    source:
        Row source to read from.
    chunk_size:
        Maximum number of rows per chunk.  The last chunk may be shorter.
    start_offset:
        Row to start from, used to resume an interrupted run.
    keep_ids:
        Forwarded to :meth:`Record.to_document`.

    Raises
    ------
    ValueError
        If ``chunk_size < 1`` or ``start_offset < 0``.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    if start_offset < 0:
        raise ValueError(f"start_offset must be >= 0, got {start_offset}")
    return _generate(source, chunk_size, start_offset, keep_ids)


def _generate(
    source: TabularSource,
    chunk_size: int,
    start_offset: int,
    keep_ids: bool,
) -> Iterator[Chunk]:
    total = source.row_count()
    for offset in range(start_offset, total, chunk_size):
        records = source.slice(offset, min(chunk_size, total - offset))
        logger.debug("Chunk at offset %d: %d rows", offset, len(records))
        yield Chunk(
            offset=offset,
            documents=[record.to_document(keep_id=keep_ids) for record in records],
        )
