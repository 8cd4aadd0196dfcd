"""Abstract base class for vector-index backends.

The ingestion pipeline and the retriever only talk to
:class:`VectorIndex`; the Pinecone SDK stays inside
:mod:`squad_rag.retrieval.pinecone_index`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from squad_rag.ingestion.models import EmbeddingVector


class VectorIndex(ABC):
    """Backend-agnostic vector-index interface.

    Parameters
    ----------
    index_name:
        Name of the index this handle reads from and writes to.
    """

    def __init__(self, index_name: str) -> None:
        self.index_name = index_name

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    async def ensure_exists(self, name: str, dimension: int) -> bool:
        """Create index *name* with *dimension*-wide vectors if it is missing.

        Returns ``True`` when the index was created and ``False`` when it
        already existed.  Any other failure is raised.
        """
        ...

    @abstractmethod
    async def upsert(self, namespace: str, vectors: list[EmbeddingVector]) -> None:
        """Insert or overwrite *vectors* (keyed by id) in *namespace*."""
        ...

    @abstractmethod
    async def query(
        self,
        namespace: str,
        vector: list[float],
        *,
        top_k: int = 3,
    ) -> list[dict[str, Any]]:
        """Return the *top_k* nearest vectors in *namespace*.

        Each result dict **must** contain at least:

        * ``"id"`` – vector identifier
        * ``"score"`` – similarity score (higher = more similar)
        * ``"metadata"`` – stored metadata dict
        """
        ...

    # -- optional overrides ---------------------------------------------------

    def close(self) -> None:
        """Release the client connection.  No-op by default."""
