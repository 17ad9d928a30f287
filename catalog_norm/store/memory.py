"""In-memory catalog store.

Implements both RecordSource and MutationSink over a dict of documents.
Used by the test suite and for local runs without a database.
"""

import copy
from collections.abc import AsyncIterator, Mapping
from typing import Any, Optional

import structlog

from catalog_norm.batching.builder import Batch
from catalog_norm.core.exceptions import StaleReferenceError
from catalog_norm.normalization.schema import SourceRecord, split_update
from catalog_norm.store.base import MutationSink, RecordSource

logger = structlog.get_logger(__name__)


class InMemoryStore(RecordSource, MutationSink):
    """Dict-backed document store.

    Records are enumerated in insertion order. A commit checks every
    reference first and applies nothing if one is missing.

    Args:
        documents: Initial documents keyed by reference.
    """

    def __init__(self, documents: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self._documents: dict[str, dict[str, Any]] = {
            ref: dict(data) for ref, data in (documents or {}).items()
        }
        self.commits: list[str] = []

    @property
    def documents(self) -> dict[str, dict[str, Any]]:
        return self._documents

    def get(self, ref: str) -> Optional[dict[str, Any]]:
        return self._documents.get(ref)

    async def iter_records(self) -> AsyncIterator[SourceRecord]:
        for ref, data in list(self._documents.items()):
            yield SourceRecord(ref=ref, data=copy.deepcopy(data))

    async def commit(self, batch: Batch) -> None:
        missing = [entry.ref for entry in batch.entries if entry.ref not in self._documents]
        if missing:
            raise StaleReferenceError(
                batch.batch_id,
                f"{len(missing)} record(s) no longer exist",
                {"refs": missing[:10]},
            )

        for entry in batch.entries:
            to_set, to_delete = split_update(entry.update)
            document = self._documents[entry.ref]
            document.update(copy.deepcopy(to_set))
            for name in to_delete:
                document.pop(name, None)

        self.commits.append(batch.batch_id)
        logger.debug("memory_batch_applied", batch_id=batch.batch_id, size=len(batch))
