"""Batch building and committing for field updates."""

from catalog_norm.batching.builder import Batch, BatchBuilder, BatchEntry, build_batches
from catalog_norm.batching.commit import BatchOutcome, RunSummary, commit_all, skipped_outcomes

__all__ = [
    "Batch",
    "BatchBuilder",
    "BatchEntry",
    "BatchOutcome",
    "RunSummary",
    "build_batches",
    "commit_all",
    "skipped_outcomes",
]
