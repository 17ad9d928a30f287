"""Unit tests for maintenance runs against the in-memory store."""

import pytest
from unittest.mock import patch

from catalog_norm.batching.builder import BatchBuilder, build_batches
from catalog_norm.core.exceptions import (
    BatchCapacityError,
    EnumerationError,
    StaleReferenceError,
)
from catalog_norm.maintenance import run_field_removal, run_normalization
from catalog_norm.normalization.schema import DELETE_FIELD, SetValue, SourceRecord
from catalog_norm.store.base import RecordSource
from catalog_norm.store.memory import InMemoryStore


class FailingSource(RecordSource):
    """Source that yields ``good`` records and then fails."""

    def __init__(self, good: int):
        self.good = good

    async def iter_records(self):
        for i in range(self.good):
            yield SourceRecord(ref=f"app-{i}", data={"name": "x"})
        raise ConnectionError("scan interrupted")


class TestInMemoryStore:
    """Tests for InMemoryStore semantics."""

    @pytest.mark.asyncio
    async def test_enumerates_in_insertion_order(self):
        store = InMemoryStore({"b": {}, "a": {}})
        refs = [record.ref async for record in store.iter_records()]
        assert refs == ["b", "a"]

    @pytest.mark.asyncio
    async def test_records_are_snapshots(self):
        store = InMemoryStore({"a": {"aliases": ["x"]}})
        records = [record async for record in store.iter_records()]
        records[0].data["aliases"].append("y")
        assert store.get("a") == {"aliases": ["x"]}

    @pytest.mark.asyncio
    async def test_commit_sets_and_deletes(self):
        store = InMemoryStore({"a": {"old": 1, "keep": 2}})
        batch = build_batches([("a", {"new": SetValue("v"), "old": DELETE_FIELD})])[0]

        await store.commit(batch)

        assert store.get("a") == {"keep": 2, "new": "v"}

    @pytest.mark.asyncio
    async def test_stale_reference_rejects_whole_batch(self):
        store = InMemoryStore({"a": {}})
        batch = build_batches(
            [("a", {"x": SetValue(1)}), ("gone", {"x": SetValue(2)})]
        )[0]

        with pytest.raises(StaleReferenceError):
            await store.commit(batch)
        assert store.get("a") == {}

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        async with InMemoryStore({"a": {}}) as store:
            assert store.get("a") == {}


class TestRunNormalization:
    """Tests for run_normalization()."""

    @pytest.mark.asyncio
    async def test_end_to_end(self, sample_record, test_settings):
        store = InMemoryStore({"app-1": sample_record})

        summary = await run_normalization(store, store, settings=test_settings)

        document = store.get("app-1")
        assert summary.succeeded
        assert summary.records_scanned == 1
        assert summary.batches_built == 1
        assert document["name_norm"] == "pranayama"
        assert document["aliases_norm"] == ["pranayama"]
        assert "pra" in document["name_norm_ngrams"]
        assert document["name"] == sample_record["name"]

    @pytest.mark.asyncio
    async def test_batches_follow_batch_size(self, catalog_documents, test_settings):
        store = InMemoryStore(catalog_documents(1001))

        summary = await run_normalization(store, store, settings=test_settings)

        assert summary.records_scanned == 1001
        assert [o.size for o in summary.outcomes] == [500, 500, 1]
        assert summary.records_committed == 1001
        assert all("name_norm" in doc for doc in store.documents.values())

    @pytest.mark.asyncio
    async def test_empty_catalog(self, test_settings):
        store = InMemoryStore()

        summary = await run_normalization(store, store, settings=test_settings)

        assert summary.records_scanned == 0
        assert summary.batches_built == 1
        assert summary.succeeded

    @pytest.mark.asyncio
    async def test_rerun_keeps_prior_aliases_norm(self, test_settings):
        """Second run recomputes names but keeps aliases_norm when aliases are gone."""
        store = InMemoryStore({"app-1": {"name": {"en": "Yoga"}, "aliases": ["Ｙｏｇａ"]}})
        await run_normalization(store, store, settings=test_settings)

        del store.documents["app-1"]["aliases"]
        store.documents["app-1"]["name"] = {"en": "Hatha"}
        await run_normalization(store, store, settings=test_settings)

        document = store.get("app-1")
        assert document["name_norm"] == "hatha"
        assert document["aliases_norm"] == ["yoga"]

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_block_others(self, catalog_documents, test_settings):
        documents = catalog_documents(5)
        store = InMemoryStore(documents)
        settings = test_settings.model_copy(update={"batch_size": 2})

        class VanishingStore(InMemoryStore):
            async def commit(self, batch):
                if batch.index == 1:
                    self.documents.pop(batch.entries[0].ref)
                await super().commit(batch)

        sink = VanishingStore(documents)
        summary = await run_normalization(store, sink, settings=settings)

        assert [o.succeeded for o in summary.outcomes] == [True, False, True]
        assert summary.failed_batches[0].error_type == "StaleReferenceError"
        assert "name_norm" not in sink.get("app-00003")
        assert "name_norm" in sink.get("app-00004")

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(self, catalog_documents, test_settings):
        store = InMemoryStore(catalog_documents(3))

        summary = await run_normalization(store, store, settings=test_settings, dry_run=True)

        assert summary.dry_run
        assert summary.records_committed == 0
        assert store.commits == []
        assert all("name_norm" not in doc for doc in store.documents.values())

    @pytest.mark.asyncio
    async def test_enumeration_failure_commits_nothing(self, test_settings):
        sink = InMemoryStore({f"app-{i}": {} for i in range(3)})

        with pytest.raises(EnumerationError) as exc_info:
            await run_normalization(FailingSource(3), sink, settings=test_settings)

        assert exc_info.value.details["records_scanned"] == 3
        assert sink.commits == []

    @pytest.mark.asyncio
    async def test_batch_defect_is_not_an_enumeration_failure(self, test_settings):
        store = InMemoryStore({"app-1": {"name": "x"}})

        with patch.object(BatchBuilder, "add", side_effect=BatchCapacityError(0, "Batch is full")):
            with pytest.raises(BatchCapacityError):
                await run_normalization(store, store, settings=test_settings)

        assert store.commits == []

    @pytest.mark.asyncio
    async def test_update_defect_is_not_an_enumeration_failure(self, test_settings):
        store = InMemoryStore({"app-1": {"name": "x"}})

        with patch(
            "catalog_norm.maintenance.build_field_update",
            side_effect=KeyError("name_norm"),
        ):
            with pytest.raises(KeyError):
                await run_normalization(store, store, settings=test_settings)


class TestRunFieldRemoval:
    """Tests for run_field_removal()."""

    @pytest.mark.asyncio
    async def test_removes_field_everywhere(self, test_settings):
        store = InMemoryStore({
            "a": {"name": "A", "aliases_norm": ["a"]},
            "b": {"name": "B"},
        })

        summary = await run_field_removal(store, store, "aliases_norm", settings=test_settings)

        assert summary.succeeded
        assert store.get("a") == {"name": "A"}
        assert store.get("b") == {"name": "B"}

    @pytest.mark.asyncio
    async def test_rejects_empty_field_name(self, test_settings):
        store = InMemoryStore()
        with pytest.raises(ValueError):
            await run_field_removal(store, store, "", settings=test_settings)
