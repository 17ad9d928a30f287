"""Base interfaces for record sources and mutation sinks.

A RecordSource enumerates catalog records once, in a stable order.
A MutationSink applies a whole Batch atomically or rejects it.

Both are explicitly opened and closed by their owner and support
``async with``.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from catalog_norm.normalization.schema import SourceRecord

if TYPE_CHECKING:
    from catalog_norm.batching.builder import Batch


class _Lifecycle:
    async def open(self) -> None:
        """Acquire connections. Default: nothing to do."""

    async def close(self) -> None:
        """Release connections. Default: nothing to do."""

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class RecordSource(_Lifecycle, ABC):
    """Abstract base class for catalog record enumeration."""

    @abstractmethod
    def iter_records(self) -> AsyncIterator[SourceRecord]:
        """Yield every record of the collection exactly once.

        Raises:
            EnumerationError: If the collection cannot be read.
        """
        ...


class MutationSink(_Lifecycle, ABC):
    """Abstract base class for atomic batch application."""

    @abstractmethod
    async def commit(self, batch: "Batch") -> None:
        """Apply every entry of ``batch`` or none of them.

        Raises:
            BatchRejectedError: If the store rejected the batch.
            StoreUnavailableError: If the store could not be reached.
        """
        ...
