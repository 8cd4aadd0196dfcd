"""Domain models flowing through the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from langchain_core.documents import Document
from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """One flattened dataset row: a question, its answer and the passage."""

    model_config = ConfigDict(frozen=True)

    id: str
    context: str
    question: str
    answer: str

    def to_document(self, *, keep_id: bool = True) -> Document:
        """Map the row to a ``Document`` whose text is the context passage.

        With ``keep_id=False`` the ``id`` key is left out of the metadata so
        the embedder assigns a fresh one.
        """
        metadata: dict[str, Any] = {
            "question": self.question,
            "answer": self.answer,
            "context": self.context,
        }
        if keep_id:
            metadata = {"id": self.id, **metadata}
        return Document(page_content=self.context, metadata=metadata)


class EmbeddingVector(BaseModel):
    """A single vector ready to be upserted.

    Attributes
    ----------
    id:
        Vector id; re-upserting the same id overwrites the stored vector.
    values:
        Dense embedding of the document text.
    metadata:
        Flat key/value payload stored alongside the vector.
    """

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Return the dict shape accepted by the index upsert API."""
        return {"id": self.id, "values": self.values, "metadata": self.metadata}


@dataclass(frozen=True)
class Chunk:
    """A contiguous slice of source rows, already mapped to documents."""

    offset: int
    documents: list[Document] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def end(self) -> int:
        """Offset one past the last row in this chunk."""
        return self.offset + len(self.documents)
