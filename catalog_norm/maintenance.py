"""Maintenance runs over the whole catalog.

Both runs enumerate every record into batches first and commit afterwards,
so an enumeration failure leaves the store untouched:

- run_normalization: writes name_norm, name_norm_ngrams and aliases_norm
- run_field_removal: deletes one field from every record
"""

from collections.abc import Callable, Mapping
from typing import Any, Optional

import structlog

from catalog_norm.batching import BatchBuilder, RunSummary, commit_all, skipped_outcomes
from catalog_norm.config.settings import Settings, get_settings
from catalog_norm.core.exceptions import EnumerationError
from catalog_norm.normalization.fields import build_field_update, build_removal_update
from catalog_norm.normalization.schema import FieldUpdate
from catalog_norm.store.base import MutationSink, RecordSource

logger = structlog.get_logger(__name__)

UpdateFactory = Callable[[Mapping[str, Any]], FieldUpdate]


async def _run(
    run_name: str,
    source: RecordSource,
    sink: MutationSink,
    make_update: UpdateFactory,
    settings: Settings,
    dry_run: bool,
) -> RunSummary:
    log = logger.bind(run=run_name, dry_run=dry_run)
    log.info("maintenance_run_started", batch_size=settings.batch_size)

    builder = BatchBuilder(settings.batch_size)
    records = source.iter_records()
    while True:
        # Only the source is guarded; defects in update building propagate as is.
        try:
            record = await anext(records)
        except StopAsyncIteration:
            break
        except EnumerationError:
            log.error("maintenance_run_aborted", records_scanned=builder.record_count)
            raise
        except Exception as e:
            log.error(
                "maintenance_run_aborted",
                records_scanned=builder.record_count,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise EnumerationError(
                f"Enumeration failed after {builder.record_count} records: {e}",
                {"records_scanned": builder.record_count},
            ) from e

        builder.add(record.ref, make_update(record.data))

    batches = builder.finish()

    if dry_run:
        outcomes = skipped_outcomes(batches)
    else:
        outcomes = await commit_all(batches, sink, concurrency=settings.commit_concurrency)

    summary = RunSummary(
        records_scanned=builder.record_count,
        batches_built=len(batches),
        outcomes=outcomes,
        dry_run=dry_run,
    )
    log.info("maintenance_run_finished", **summary.as_dict())
    return summary


async def run_normalization(
    source: RecordSource,
    sink: MutationSink,
    *,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> RunSummary:
    """Write the search fields of every catalog record.

    Args:
        source: Catalog enumeration.
        sink: Batch destination.
        settings: Batch size, concurrency, locale, token lengths and field names.
        dry_run: Build batches without committing them.

    Returns:
        RunSummary with one outcome per batch.

    Raises:
        EnumerationError: If enumeration fails. Nothing is committed.
    """
    settings = settings or get_settings()

    def make_update(data: Mapping[str, Any]) -> FieldUpdate:
        return build_field_update(
            data,
            locale=settings.name_locale,
            ngram_lengths=settings.ngram_lengths,
            name_norm_field=settings.name_norm_field,
            ngrams_field=settings.ngrams_field,
            aliases_norm_field=settings.aliases_norm_field,
        )

    return await _run("normalize", source, sink, make_update, settings, dry_run)


async def run_field_removal(
    source: RecordSource,
    sink: MutationSink,
    field_name: str,
    *,
    settings: Optional[Settings] = None,
    dry_run: bool = False,
) -> RunSummary:
    """Delete ``field_name`` from every catalog record."""
    if not field_name:
        raise ValueError("field_name must not be empty")
    settings = settings or get_settings()
    removal = build_removal_update(field_name)

    return await _run(
        "remove_field",
        source,
        sink,
        lambda _data: dict(removal),
        settings,
        dry_run,
    )
