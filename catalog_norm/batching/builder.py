"""Size-bounded batch building.

BatchBuilder folds an ordered stream of (ref, FieldUpdate) pairs into
batches of at most ``capacity`` entries. A batch is sealed the moment it
fills up and a fresh empty batch takes its place; the current batch is
sealed when the stream ends. Record-to-batch assignment follows arrival
order.

A stream of N records therefore yields ``N // capacity + 1`` batches: one
empty batch for an empty stream, and a trailing empty batch when N is a
positive multiple of the capacity.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from catalog_norm.config.settings import MAX_BATCH_SIZE
from catalog_norm.core.exceptions import BatchCapacityError, BatchSealedError
from catalog_norm.normalization.schema import FieldUpdate

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BatchEntry:
    """One targeted field update inside a batch."""

    ref: str
    update: FieldUpdate


@dataclass
class Batch:
    """An ordered, capacity-bounded group of field updates.

    Entries can be appended until the batch is sealed; afterwards the entry
    list is frozen into a tuple and the batch is ready to commit.
    """

    index: int
    capacity: int = MAX_BATCH_SIZE
    _entries: list[BatchEntry] = field(default_factory=list, repr=False)
    _sealed: tuple[BatchEntry, ...] | None = field(default=None, repr=False)

    @property
    def batch_id(self) -> str:
        return f"batch-{self.index:05d}"

    @property
    def entries(self) -> tuple[BatchEntry, ...]:
        if self._sealed is not None:
            return self._sealed
        return tuple(self._entries)

    @property
    def is_sealed(self) -> bool:
        return self._sealed is not None

    @property
    def is_full(self) -> bool:
        return len(self) >= self.capacity

    def __len__(self) -> int:
        if self._sealed is not None:
            return len(self._sealed)
        return len(self._entries)

    def add(self, ref: str, update: FieldUpdate) -> None:
        """Append an entry.

        Raises:
            BatchSealedError: If the batch is already sealed.
            BatchCapacityError: If the batch already holds ``capacity`` entries.
        """
        if self._sealed is not None:
            raise BatchSealedError(self.index, "Cannot add to a sealed batch", {"ref": ref})
        if len(self._entries) >= self.capacity:
            raise BatchCapacityError(
                self.index,
                f"Batch is full ({self.capacity} entries)",
                {"ref": ref},
            )
        self._entries.append(BatchEntry(ref=ref, update=update))

    def seal(self) -> "Batch":
        if self._sealed is None:
            self._sealed = tuple(self._entries)
            self._entries = []
        return self


class BatchBuilder:
    """Accumulates field updates and rolls over to a new batch at capacity.

    Example:
        builder = BatchBuilder()
        for record in records:
            builder.add(record.ref, build_field_update(record.data))
        batches = builder.finish()
    """

    def __init__(self, capacity: int = MAX_BATCH_SIZE):
        """Initialize the builder.

        Args:
            capacity: Entries per batch, 1..MAX_BATCH_SIZE.

        Raises:
            ValueError: If capacity is out of range.
        """
        if not 1 <= capacity <= MAX_BATCH_SIZE:
            raise ValueError(f"capacity must be between 1 and {MAX_BATCH_SIZE}, got {capacity}")
        self._capacity = capacity
        self._finished: list[Batch] = []
        self._current = Batch(index=0, capacity=capacity)
        self._count = 0
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def record_count(self) -> int:
        """Number of entries added so far."""
        return self._count

    def add(self, ref: str, update: FieldUpdate) -> None:
        if self._closed:
            raise RuntimeError("BatchBuilder.add() called after finish()")

        self._current.add(ref, update)
        self._count += 1

        if self._current.is_full:
            sealed = self._current.seal()
            self._finished.append(sealed)
            logger.debug("batch_sealed", batch_id=sealed.batch_id, size=len(sealed))
            self._current = Batch(index=len(self._finished), capacity=self._capacity)

    def finish(self) -> list[Batch]:
        """Seal the current batch and return every batch in index order.

        The current batch is sealed even when empty, so N records always
        produce ``N // capacity + 1`` batches.
        """
        if not self._closed:
            self._finished.append(self._current.seal())
            self._closed = True
            logger.info(
                "batches_built",
                records=self._count,
                batches=len(self._finished),
            )
        return list(self._finished)


def build_batches(
    pairs: Iterable[tuple[str, FieldUpdate]],
    capacity: int = MAX_BATCH_SIZE,
) -> list[Batch]:
    """Partition (ref, update) pairs into sealed batches."""
    builder = BatchBuilder(capacity)
    for ref, update in pairs:
        builder.add(ref, update)
    return builder.finish()
