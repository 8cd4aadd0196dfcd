"""Passage retriever: embed a question and look up similar passages.

Usage::

    retriever = PassageRetriever(model, PineconeVectorIndex.from_settings())
    results = await retriever.search("When was the college of engineering founded?")
    for r in results:
        print(r.citation.short_ref(), r.content[:80])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from squad_rag.config import settings
from squad_rag.retrieval.models import Citation, RetrievalResult

if TYPE_CHECKING:
    from squad_rag.ingestion.embedder import EmbeddingModel
    from squad_rag.retrieval.base import VectorIndex

logger = logging.getLogger(__name__)


class PassageRetriever:
    """Similarity search over the ingested passages.

    Parameters
    ----------
    model:
        The same embedding model family used at ingestion time.
    index:
        Vector index to query.
    namespace:
        Namespace the passages were written to.
    default_k:
        Default number of results returned by :meth:`search`.
    score_threshold:
        Minimum similarity score; results below this are discarded.
    text_key:
        Metadata key holding the passage text.
    """

    def __init__(
        self,
        model: EmbeddingModel,
        index: VectorIndex,
        *,
        namespace: str = settings.pinecone_namespace,
        default_k: int = settings.retrieval_k,
        score_threshold: float = 0.0,
        text_key: str = "context",
        embedding_model: str = settings.embedding_model,
    ) -> None:
        self._model = model
        self._index = index
        self.namespace = namespace
        self.default_k = default_k
        self.score_threshold = score_threshold
        self.text_key = text_key
        self.embedding_model = embedding_model

    async def search(self, query: str, *, k: int | None = None) -> list[RetrievalResult]:
        """Embed *query* and return the closest passages with citations."""
        self._model.ensure_initialized(self.embedding_model)
        embedding = await self._model.embed(query)
        return await self.search_by_embedding(embedding, k=k)

    async def search_by_embedding(
        self,
        embedding: list[float],
        *,
        k: int | None = None,
    ) -> list[RetrievalResult]:
        """Same as :meth:`search` but accepts a pre-computed embedding."""
        k = k or self.default_k
        raw_hits = await self._index.query(self.namespace, embedding, top_k=k)
        results = self._to_results(raw_hits)
        logger.info("Retrieved %d / %d passages above score %.2f",
                    len(results), len(raw_hits), self.score_threshold)
        return results

    def _to_results(self, raw_hits: list[dict[str, Any]]) -> list[RetrievalResult]:
        results: list[RetrievalResult] = []
        for hit in raw_hits:
            score = hit.get("score")
            if score is not None and score < self.score_threshold:
                continue

            meta = hit.get("metadata", {})
            citation = Citation(
                vector_id=hit.get("id"),
                question=str(meta.get("question", "")),
                answer=str(meta.get("answer", "")),
                score=score,
                metadata=meta,
            )
            content = meta.get(self.text_key) or meta.get("text", "")
            results.append(RetrievalResult(content=str(content), citation=citation))
        return results
