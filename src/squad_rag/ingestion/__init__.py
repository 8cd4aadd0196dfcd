"""
Ingestion: load SQuAD, embed passages and upsert them into the vector index.

Public surface
--------------
- :class:`IngestionPipeline`: end-to-end driver returning an :class:`IngestionReport`.
- :func:`iter_chunks`: lazy chunk producer over a :class:`TabularSource`.
- :class:`EmbeddingBatcher`: ordered, sequential sub-batch embedding.
- :class:`UpsertSink`: bounded-size upserts with progress callbacks.
- :func:`load_squad`: fetch and flatten the SQuAD dataset.
"""

from squad_rag.ingestion.chunker import iter_chunks
from squad_rag.ingestion.embedder import EmbeddingBatcher, EmbeddingModel, HuggingFaceEmbeddingModel
from squad_rag.ingestion.loader import load_squad, read_flat_csv
from squad_rag.ingestion.models import Chunk, EmbeddingVector, Record
from squad_rag.ingestion.pipeline import IngestionPipeline, IngestionReport, PipelineState
from squad_rag.ingestion.progress import ProgressCounter, ProgressReporter, TqdmProgressReporter
from squad_rag.ingestion.sink import UpsertSink
from squad_rag.ingestion.source import DataFrameSource, TabularSource

__all__ = [
    "Chunk",
    "DataFrameSource",
    "EmbeddingBatcher",
    "EmbeddingModel",
    "EmbeddingVector",
    "HuggingFaceEmbeddingModel",
    "IngestionPipeline",
    "IngestionReport",
    "PipelineState",
    "ProgressCounter",
    "ProgressReporter",
    "Record",
    "TabularSource",
    "TqdmProgressReporter",
    "UpsertSink",
    "iter_chunks",
    "load_squad",
    "read_flat_csv",
]
