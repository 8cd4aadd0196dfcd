"""Pinecone implementation of the vector-index abstraction."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pinecone import Pinecone, ServerlessSpec
from pinecone.exceptions import PineconeApiException

from squad_rag.config import Settings, settings
from squad_rag.retrieval.base import VectorIndex

if TYPE_CHECKING:
    from squad_rag.ingestion.models import EmbeddingVector

logger = logging.getLogger(__name__)

_HTTP_CONFLICT = 409


def _http_status(exc: PineconeApiException) -> int | None:
    # Older SDK releases expose ``status``, newer ones ``status_code``.
    return getattr(exc, "status_code", None) or getattr(exc, "status", None)


class PineconeVectorIndex(VectorIndex):
    """Serverless Pinecone index.

    The SDK is synchronous; every call is pushed to a worker thread so
    the pipeline's event loop keeps running while a request is in flight.

    Parameters
    ----------
    index_name:
        Name of the Pinecone index.
    api_key:
        Pinecone API key.
    region:
        Serverless region used when the index has to be created.
    cloud:
        Serverless cloud provider (``aws`` | ``gcp`` | ``azure``).
    metric:
        Distance metric for a newly created index.
    client:
        Pre-built ``Pinecone`` client, mainly for tests.
    """

    def __init__(
        self,
        index_name: str,
        *,
        api_key: str,
        region: str,
        cloud: str = "aws",
        metric: str = "cosine",
        client: Pinecone | None = None,
    ) -> None:
        super().__init__(index_name)
        self._region = region
        self._cloud = cloud
        self._metric = metric
        self._client: Pinecone | None = client or Pinecone(api_key=api_key)
        self._index: Any = None

    @classmethod
    def from_settings(cls, config: Settings = settings) -> PineconeVectorIndex:
        """Build a handle from settings, failing fast on missing variables."""
        config.require_pinecone()
        return cls(
            config.pinecone_index,
            api_key=config.pinecone_api_key,
            region=config.pinecone_environment,
            cloud=config.pinecone_cloud,
            metric=config.pinecone_metric,
        )

    @property
    def client(self) -> Pinecone:
        if self._client is None:
            raise RuntimeError("PineconeVectorIndex has been closed")
        return self._client

    def _data_plane(self) -> Any:
        if self._index is None:
            self._index = self.client.Index(self.index_name)
        return self._index

    # -- VectorIndex overrides ------------------------------------------------

    async def ensure_exists(self, name: str, dimension: int) -> bool:
        existing = await asyncio.to_thread(lambda: self.client.list_indexes().names())
        if name in existing:
            logger.info("Using existing Pinecone index '%s'", name)
            return False

        logger.info("Creating Pinecone index '%s' (dim=%d) in %s/%s",
                    name, dimension, self._cloud, self._region)
        try:
            await asyncio.to_thread(
                self.client.create_index,
                name=name,
                dimension=dimension,
                metric=self._metric,
                spec=ServerlessSpec(cloud=self._cloud, region=self._region),
            )
        except PineconeApiException as exc:
            # Another process created it between list and create.
            if _http_status(exc) == _HTTP_CONFLICT:
                logger.info("Pinecone index '%s' already exists", name)
                return False
            raise
        return True

    async def upsert(self, namespace: str, vectors: list[EmbeddingVector]) -> None:
        payload = [v.to_payload() for v in vectors]
        index = self._data_plane()
        await asyncio.to_thread(index.upsert, vectors=payload, namespace=namespace)

    async def query(
        self,
        namespace: str,
        vector: list[float],
        *,
        top_k: int = 3,
    ) -> list[dict[str, Any]]:
        index = self._data_plane()
        response = await asyncio.to_thread(
            index.query,
            vector=vector,
            top_k=top_k,
            namespace=namespace,
            include_metadata=True,
        )
        return [
            {
                "id": match.id,
                "score": match.score,
                "metadata": dict(match.metadata or {}),
            }
            for match in response.matches
        ]

    def close(self) -> None:
        self._index = None
        self._client = None
