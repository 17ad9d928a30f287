"""Concurrent per-batch commits.

commit_all() starts one task per sealed batch and waits for all of them.
Each batch succeeds or fails on its own; a failure is recorded against that
batch and never cancels or rolls back its siblings.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

import structlog

from catalog_norm.batching.builder import Batch

if TYPE_CHECKING:
    from catalog_norm.store.base import MutationSink

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BatchOutcome:
    """Result of committing one batch."""

    index: int
    batch_id: str
    size: int
    succeeded: bool
    committed: bool = True
    error: Optional[str] = None
    error_type: Optional[str] = None


@dataclass
class RunSummary:
    """What a maintenance run did."""

    records_scanned: int
    batches_built: int
    outcomes: list[BatchOutcome] = field(default_factory=list)
    dry_run: bool = False

    @property
    def failed_batches(self) -> list[BatchOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    @property
    def records_committed(self) -> int:
        return sum(o.size for o in self.outcomes if o.succeeded and o.committed)

    @property
    def succeeded(self) -> bool:
        return not self.failed_batches

    def as_dict(self) -> dict[str, Any]:
        return {
            "records_scanned": self.records_scanned,
            "batches_built": self.batches_built,
            "records_committed": self.records_committed,
            "dry_run": self.dry_run,
            "failed_batches": [
                {
                    "batch_id": outcome.batch_id,
                    "size": outcome.size,
                    "error_type": outcome.error_type,
                    "error": outcome.error,
                }
                for outcome in self.failed_batches
            ],
        }


async def _commit_one(
    sink: "MutationSink",
    batch: Batch,
    semaphore: Optional[asyncio.Semaphore],
) -> BatchOutcome:
    try:
        if semaphore is None:
            await sink.commit(batch)
        else:
            async with semaphore:
                await sink.commit(batch)
    except Exception as e:
        logger.error(
            "batch_commit_failed",
            batch_id=batch.batch_id,
            size=len(batch),
            error=str(e),
            error_type=type(e).__name__,
        )
        return BatchOutcome(
            index=batch.index,
            batch_id=batch.batch_id,
            size=len(batch),
            succeeded=False,
            error=str(e),
            error_type=type(e).__name__,
        )

    logger.info("batch_committed", batch_id=batch.batch_id, size=len(batch))
    return BatchOutcome(
        index=batch.index,
        batch_id=batch.batch_id,
        size=len(batch),
        succeeded=True,
    )


async def commit_all(
    batches: Sequence[Batch],
    sink: "MutationSink",
    *,
    concurrency: Optional[int] = None,
) -> list[BatchOutcome]:
    """Commit every batch concurrently and collect one outcome per batch.

    Args:
        batches: Sealed batches to commit.
        sink: Destination accepting whole batches.
        concurrency: Maximum commits in flight. None means unbounded.

    Returns:
        Outcomes ordered by batch index.
    """
    if concurrency is not None and concurrency < 1:
        raise ValueError(f"concurrency must be positive, got {concurrency}")

    semaphore = asyncio.Semaphore(concurrency) if concurrency else None
    logger.info(
        "batch_commits_started",
        batches=len(batches),
        concurrency=concurrency,
    )

    outcomes = await asyncio.gather(
        *(_commit_one(sink, batch, semaphore) for batch in batches)
    )
    return sorted(outcomes, key=lambda outcome: outcome.index)


def skipped_outcomes(batches: Sequence[Batch]) -> list[BatchOutcome]:
    """Outcomes for batches that were built but intentionally not sent."""
    return [
        BatchOutcome(
            index=batch.index,
            batch_id=batch.batch_id,
            size=len(batch),
            succeeded=True,
            committed=False,
        )
        for batch in batches
    ]
