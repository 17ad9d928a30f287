"""Unit tests for batch building and concurrent commits."""

import asyncio

import pytest

from catalog_norm.batching.builder import Batch, BatchBuilder, build_batches
from catalog_norm.batching.commit import RunSummary, commit_all, skipped_outcomes
from catalog_norm.core.exceptions import BatchCapacityError, BatchRejectedError, BatchSealedError
from catalog_norm.normalization.schema import SetValue
from catalog_norm.store.base import MutationSink


def pairs(count: int):
    return ((f"ref-{i}", {"name_norm": SetValue(str(i))}) for i in range(count))


class RecordingSink(MutationSink):
    """Sink that records commits and fails the configured batch indexes."""

    def __init__(self, fail_indexes=(), delay: float = 0.0):
        self.fail_indexes = set(fail_indexes)
        self.delay = delay
        self.committed: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def commit(self, batch):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if batch.index in self.fail_indexes:
                raise BatchRejectedError(batch.batch_id, "quota exceeded")
            self.committed.append(batch.index)
        finally:
            self.in_flight -= 1


class TestBatch:
    """Tests for the Batch container."""

    def test_add_and_seal(self):
        batch = Batch(index=3, capacity=2)
        batch.add("a", {})
        batch.seal()

        assert batch.is_sealed
        assert len(batch) == 1
        assert batch.entries[0].ref == "a"
        assert batch.batch_id == "batch-00003"

    def test_add_to_full_batch_raises(self):
        batch = Batch(index=0, capacity=1)
        batch.add("a", {})

        with pytest.raises(BatchCapacityError):
            batch.add("b", {})
        assert len(batch) == 1

    def test_add_to_sealed_batch_raises(self):
        batch = Batch(index=0).seal()

        with pytest.raises(BatchSealedError):
            batch.add("a", {})

    def test_entries_are_immutable_after_seal(self):
        batch = Batch(index=0)
        batch.add("a", {})
        batch.seal()
        assert isinstance(batch.entries, tuple)


class TestBatchBuilder:
    """Tests for BatchBuilder partitioning."""

    def test_1001_records_make_three_batches(self):
        batches = build_batches(pairs(1001), capacity=500)

        assert [len(b) for b in batches] == [500, 500, 1]
        assert [b.index for b in batches] == [0, 1, 2]
        assert all(b.is_sealed for b in batches)

    def test_empty_stream_makes_one_empty_batch(self):
        batches = build_batches(pairs(0))

        assert len(batches) == 1
        assert len(batches[0]) == 0
        assert batches[0].is_sealed

    def test_exact_multiple_ends_with_empty_batch(self):
        batches = build_batches(pairs(1000), capacity=500)

        assert [len(b) for b in batches] == [500, 500, 0]
        assert [b.index for b in batches] == [0, 1, 2]
        assert all(b.is_sealed for b in batches)

    def test_full_batch_is_replaced_immediately(self):
        builder = BatchBuilder(capacity=2)
        builder.add("a", {})
        builder.add("b", {})

        batches = builder.finish()

        assert [len(b) for b in batches] == [2, 0]
        assert builder.finish() == batches

    def test_every_record_appears_once_in_arrival_order(self):
        batches = build_batches(pairs(23), capacity=5)
        refs = [entry.ref for batch in batches for entry in batch.entries]

        assert refs == [f"ref-{i}" for i in range(23)]
        assert all(len(b) <= 5 for b in batches)

    def test_record_count(self):
        builder = BatchBuilder(capacity=10)
        for ref, update in pairs(12):
            builder.add(ref, update)
        assert builder.record_count == 12

    def test_finish_is_idempotent(self):
        builder = BatchBuilder(capacity=2)
        for ref, update in pairs(3):
            builder.add(ref, update)
        first = builder.finish()
        second = builder.finish()
        assert [b.batch_id for b in first] == [b.batch_id for b in second]

    def test_add_after_finish_raises(self):
        builder = BatchBuilder()
        builder.finish()
        with pytest.raises(RuntimeError):
            builder.add("a", {})

    @pytest.mark.parametrize("capacity", [0, -1, 501])
    def test_rejects_out_of_range_capacity(self, capacity):
        with pytest.raises(ValueError):
            BatchBuilder(capacity)


class TestCommitAll:
    """Tests for commit_all()."""

    @pytest.mark.asyncio
    async def test_all_batches_succeed(self):
        batches = build_batches(pairs(7), capacity=3)
        sink = RecordingSink()

        outcomes = await commit_all(batches, sink)

        assert [o.succeeded for o in outcomes] == [True, True, True]
        assert sorted(sink.committed) == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_failure_is_attributed_to_one_batch(self):
        """A rejected batch neither blocks nor rolls back its siblings."""
        batches = build_batches(pairs(8), capacity=3)
        sink = RecordingSink(fail_indexes={1})

        outcomes = await commit_all(batches, sink)

        assert [o.succeeded for o in outcomes] == [True, False, True]
        assert outcomes[1].batch_id == "batch-00001"
        assert outcomes[1].error_type == "BatchRejectedError"
        assert "quota exceeded" in outcomes[1].error
        assert sorted(sink.committed) == [0, 2]

    @pytest.mark.asyncio
    async def test_outcomes_ordered_by_index(self):
        batches = build_batches(pairs(9), capacity=2)
        outcomes = await commit_all(batches, RecordingSink())
        assert [o.index for o in outcomes] == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_commits_run_concurrently(self):
        batches = build_batches(pairs(7), capacity=2)
        sink = RecordingSink(delay=0.01)

        await commit_all(batches, sink)

        assert sink.max_in_flight == 4

    @pytest.mark.asyncio
    async def test_concurrency_limit(self):
        batches = build_batches(pairs(7), capacity=2)
        sink = RecordingSink(delay=0.01)

        await commit_all(batches, sink, concurrency=2)

        assert sink.max_in_flight <= 2
        assert sorted(sink.committed) == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_rejects_non_positive_concurrency(self):
        with pytest.raises(ValueError):
            await commit_all([], RecordingSink(), concurrency=0)


class TestRunSummary:
    """Tests for RunSummary reporting."""

    @pytest.mark.asyncio
    async def test_summary_lists_failed_batches(self):
        batches = build_batches(pairs(5), capacity=2)
        outcomes = await commit_all(batches, RecordingSink(fail_indexes={2}))
        summary = RunSummary(records_scanned=5, batches_built=3, outcomes=outcomes)

        assert not summary.succeeded
        assert summary.records_committed == 4
        assert summary.as_dict()["failed_batches"][0]["batch_id"] == "batch-00002"

    def test_skipped_outcomes_are_not_committed(self):
        batches = build_batches(pairs(3), capacity=2)
        summary = RunSummary(
            records_scanned=3,
            batches_built=2,
            outcomes=skipped_outcomes(batches),
            dry_run=True,
        )

        assert summary.succeeded
        assert summary.records_committed == 0
