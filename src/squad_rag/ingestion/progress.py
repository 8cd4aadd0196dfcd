"""Progress accounting for ingestion runs."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from tqdm.auto import tqdm

logger = logging.getLogger(__name__)


@dataclass
class ProgressCounter:
    """Rows durably upserted so far, out of ``total``."""

    total: int = 0
    count: int = 0

    @property
    def done(self) -> bool:
        return self.count >= self.total


class ProgressReporter(ABC):
    """Keeps a :class:`ProgressCounter` and renders it somewhere.

    Subclasses only implement the ``_on_*`` hooks; bookkeeping lives here
    so every reporter counts the same way.
    """

    def __init__(self) -> None:
        self.counter = ProgressCounter()

    def start(self, total: int, initial: int = 0) -> None:
        """Reset the counter to *initial* out of *total*."""
        self.counter = ProgressCounter(total=total, count=initial)
        self._on_start(total, initial)

    def advance(self, count: int) -> None:
        """Record *count* more rows as written."""
        self.counter.count += count
        self._on_advance(count)

    def stop(self) -> None:
        self._on_stop()

    @abstractmethod
    def _on_start(self, total: int, initial: int) -> None: ...

    @abstractmethod
    def _on_advance(self, count: int) -> None: ...

    @abstractmethod
    def _on_stop(self) -> None: ...


class TqdmProgressReporter(ProgressReporter):
    """Terminal progress bar."""

    def __init__(self, description: str = "Upserting", *, disable: bool = False) -> None:
        super().__init__()
        self._description = description
        self._disable = disable
        self._bar: tqdm | None = None

    def _on_start(self, total: int, initial: int) -> None:
        self._bar = tqdm(
            total=total,
            initial=initial,
            desc=self._description,
            unit="rows",
            disable=self._disable,
        )

    def _on_advance(self, count: int) -> None:
        if self._bar is not None:
            self._bar.update(count)

    def _on_stop(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None
        logger.debug("Progress stopped at %d / %d", self.counter.count, self.counter.total)
