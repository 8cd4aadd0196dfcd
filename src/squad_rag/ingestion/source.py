"""Tabular row sources consumed by the chunk producer.

A source only has to report how many rows it holds and hand back an
ordered slice on request; it never has to materialise the whole dataset
for the pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from squad_rag.errors import SourceReadError
from squad_rag.ingestion.loader import read_flat_csv
from squad_rag.ingestion.models import Record

if TYPE_CHECKING:
    from collections.abc import Sequence

RECORD_COLUMNS = ["id", "context", "question", "answer"]


class TabularSource(ABC):
    """Backend-agnostic row source."""

    @abstractmethod
    def row_count(self) -> int:
        """Return the total number of rows."""
        ...

    @abstractmethod
    def slice(self, offset: int, length: int) -> list[Record]:
        """Return up to *length* rows starting at *offset*, in source order."""
        ...

    def close(self) -> None:
        """Release any held resources.  No-op by default."""


class DataFrameSource(TabularSource):
    """Row source backed by a pandas ``DataFrame``.

    Parameters
    ----------
    frame:
        Must contain at least the ``id``, ``context``, ``question`` and
        ``answer`` columns; extra columns are ignored.
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        missing = set(RECORD_COLUMNS) - set(frame.columns)
        if missing:
            raise ValueError(f"DataFrame missing required columns: {sorted(missing)}")
        self._frame: pd.DataFrame | None = frame.reset_index(drop=True)

    @classmethod
    def from_csv(cls, path: str | Path, *, deduplicate_contexts: bool = False) -> DataFrameSource:
        """Load a previously flattened dataset from a CSV file.

        Read failures and missing columns raise :class:`SourceReadError`.
        """
        frame = read_flat_csv(path, deduplicate_contexts=deduplicate_contexts)
        try:
            return cls(frame)
        except ValueError as exc:
            raise SourceReadError(f"Unusable CSV file {path}: {exc}") from exc

    @classmethod
    def from_records(cls, records: Sequence[Record]) -> DataFrameSource:
        return cls(pd.DataFrame([r.model_dump() for r in records], columns=RECORD_COLUMNS))

    @property
    def frame(self) -> pd.DataFrame:
        if self._frame is None:
            raise RuntimeError("DataFrameSource has been closed")
        return self._frame

    def row_count(self) -> int:
        return len(self.frame)

    def slice(self, offset: int, length: int) -> list[Record]:
        if offset < 0 or length < 0:
            raise ValueError(f"Invalid slice offset={offset} length={length}")
        rows = self.frame.iloc[offset : offset + length][RECORD_COLUMNS]
        return [
            Record(**{key: str(value) for key, value in row.items()})
            for row in rows.to_dict(orient="records")
        ]

    def close(self) -> None:
        self._frame = None
