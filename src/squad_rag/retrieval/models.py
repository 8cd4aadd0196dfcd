"""Domain models for retrieval results and citation tracking."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class Citation(BaseModel):
    """Provenance of a retrieved passage.

    Attributes
    ----------
    vector_id:
        Id of the matched vector (the SQuAD question id when ids are kept).
    question:
        Dataset question stored alongside the passage.
    answer:
        Dataset answer stored alongside the passage.
    score:
        Similarity score returned by the index.
    metadata:
        Full metadata stored with the vector.
    retrieved_at:
        UTC timestamp of the retrieval.
    """

    vector_id: str | None = None
    question: str = ""
    answer: str = ""
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def short_ref(self) -> str:
        """Return a compact ``[id]`` reference string."""
        return f"[{self.vector_id or '?'}]"


class RetrievalResult(BaseModel):
    """A single retrieved passage together with its citation."""

    content: str
    citation: Citation

    def __str__(self) -> str:  # noqa: D105
        return f"{self.citation.short_ref()} {self.content[:120]}…"
