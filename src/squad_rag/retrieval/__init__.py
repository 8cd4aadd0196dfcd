"""
Retrieval: vector-index access and passage search.

Public surface
--------------
- :class:`PassageRetriever`: embed a question and return cited passages.
- :class:`VectorIndex`: abstract backend used by ingestion and retrieval.
- :class:`PineconeVectorIndex`: default Pinecone backend.
- :class:`Citation`, :class:`RetrievalResult`: data models.
"""

from squad_rag.retrieval.base import VectorIndex
from squad_rag.retrieval.models import Citation, RetrievalResult
from squad_rag.retrieval.retriever import PassageRetriever

__all__ = [
    "Citation",
    "PassageRetriever",
    "PineconeVectorIndex",
    "RetrievalResult",
    "VectorIndex",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import PineconeVectorIndex to avoid pulling in the SDK at import time."""
    if name == "PineconeVectorIndex":
        from squad_rag.retrieval.pinecone_index import PineconeVectorIndex

        return PineconeVectorIndex
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
