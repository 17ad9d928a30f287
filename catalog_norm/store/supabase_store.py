"""Supabase-backed catalog store.

Catalog documents live in one table with two columns:

    id   TEXT PRIMARY KEY
    data JSONB          -- the document (name, aliases, name_norm, ...)

SupabaseRecordSource pages through the table ordered by id.
SupabaseMutationSink sends a whole batch to the ``apply_field_updates``
Postgres function (see scripts/setup_supabase.py), which runs in a single
transaction and raises on any unknown id, so a batch lands completely or
not at all.

supabase-py is synchronous; calls run in the default executor.
"""

import asyncio
from collections.abc import AsyncIterator
from typing import Any

import httpx
import structlog
from postgrest.exceptions import APIError
from supabase import Client
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from catalog_norm.batching.builder import Batch
from catalog_norm.core.exceptions import (
    BatchRejectedError,
    EnumerationError,
    RetryableError,
    StaleReferenceError,
    StoreUnavailableError,
)
from catalog_norm.normalization.schema import SourceRecord, split_update
from catalog_norm.store.base import MutationSink, RecordSource

logger = structlog.get_logger(__name__)

APPLY_FUNCTION = "apply_field_updates"
ID_COLUMN = "id"
DATA_COLUMN = "data"

# SQLSTATE raised by apply_field_updates for an unknown id (no_data_found).
STALE_REFERENCE_SQLSTATE = "P0002"


def serialize_batch(batch: Batch) -> list[dict[str, Any]]:
    """Convert a batch into the JSON payload of apply_field_updates.

    Each entry becomes ``{"id": ref, "set": {...}, "unset": [...]}``.
    """
    payload = []
    for entry in batch.entries:
        to_set, to_delete = split_update(entry.update)
        payload.append({"id": entry.ref, "set": to_set, "unset": to_delete})
    return payload


class _SupabaseTable:
    """Shared client handling and retry policy for one catalog table."""

    def __init__(
        self,
        client: Client,
        table: str,
        max_attempts: int = 3,
        retry_wait: float = 1.0,
    ):
        self._client = client
        self._table = table
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait

    @property
    def table(self) -> str:
        return self._table

    def _retrying(self, event: str, **context: Any) -> AsyncRetrying:
        """Retry RetryableError with exponential backoff, then re-raise."""
        return AsyncRetrying(
            retry=retry_if_exception_type(RetryableError),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._retry_wait, min=self._retry_wait, max=10),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                event,
                table=self._table,
                attempt=retry_state.attempt_number,
                error=str(retry_state.outcome.exception()),
                **context,
            ),
        )

    async def _run_sync(self, func, *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)


class SupabaseRecordSource(_SupabaseTable, RecordSource):
    """Enumerates catalog documents page by page.

    Args:
        client: Supabase client owned by the caller.
        table: Catalog table name.
        page_size: Rows per request.
        max_attempts: Attempts per page on transient errors.
        retry_wait: Backoff multiplier in seconds.
    """

    def __init__(
        self,
        client: Client,
        table: str,
        page_size: int = 1000,
        max_attempts: int = 3,
        retry_wait: float = 1.0,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        super().__init__(client, table, max_attempts, retry_wait)
        self._page_size = page_size

    def _fetch_page_sync(self, start: int) -> list[dict[str, Any]]:
        end = start + self._page_size - 1
        try:
            response = (
                self._client.table(self._table)
                .select(f"{ID_COLUMN}, {DATA_COLUMN}")
                .order(ID_COLUMN)
                .range(start, end)
                .execute()
            )
        except httpx.TransportError as e:
            raise StoreUnavailableError(
                f"Failed to read {self._table}: {e}",
                {"table": self._table, "offset": start},
            ) from e
        return response.data or []

    async def _fetch_page(self, start: int) -> list[dict[str, Any]]:
        async for attempt in self._retrying("catalog_page_retry", offset=start):
            with attempt:
                return await self._run_sync(self._fetch_page_sync, start)

    async def iter_records(self) -> AsyncIterator[SourceRecord]:
        start = 0
        while True:
            try:
                rows = await self._fetch_page(start)
            except (StoreUnavailableError, APIError) as e:
                logger.error(
                    "catalog_enumeration_failed",
                    table=self._table,
                    offset=start,
                    error=str(e),
                )
                raise EnumerationError(
                    f"Failed to enumerate {self._table}: {e}",
                    {"table": self._table, "offset": start},
                ) from e

            logger.debug("catalog_page_fetched", table=self._table, offset=start, rows=len(rows))
            for row in rows:
                data = row.get(DATA_COLUMN)
                yield SourceRecord(
                    ref=str(row[ID_COLUMN]),
                    data=data if isinstance(data, dict) else {},
                )

            if len(rows) < self._page_size:
                return
            start += self._page_size


class SupabaseMutationSink(_SupabaseTable, MutationSink):
    """Commits batches through the apply_field_updates function.

    Transport failures are retried; a rejection from Postgres is final.

    Args:
        client: Supabase client owned by the caller.
        table: Catalog table name.
        max_attempts: Attempts per batch on transient errors.
        retry_wait: Backoff multiplier in seconds.
    """

    def _apply_sync(self, batch_id: str, payload: list[dict[str, Any]]) -> Any:
        try:
            response = self._client.rpc(
                APPLY_FUNCTION,
                {"target_table": self._table, "updates": payload},
            ).execute()
        except httpx.TransportError as e:
            raise StoreUnavailableError(
                f"Store unreachable while committing {batch_id}: {e}",
                {"batch_id": batch_id},
            ) from e
        except APIError as e:
            details = {"code": e.code, "hint": e.hint}
            if e.code == STALE_REFERENCE_SQLSTATE:
                raise StaleReferenceError(batch_id, e.message or str(e), details) from e
            raise BatchRejectedError(batch_id, e.message or str(e), details) from e
        return response.data

    async def commit(self, batch: Batch) -> None:
        if len(batch) == 0:
            logger.debug("empty_batch_skipped", batch_id=batch.batch_id)
            return

        payload = serialize_batch(batch)
        async for attempt in self._retrying("batch_commit_retry", batch_id=batch.batch_id):
            with attempt:
                await self._run_sync(self._apply_sync, batch.batch_id, payload)
