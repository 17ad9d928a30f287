"""
Dependency Injection Container for catalog-norm.

Owns the document store handles and their lifecycle. Nothing else creates
a Supabase client; runs receive the source and sink explicitly.

Usage:
    container = DependencyContainer()
    await container.initialize()

    summary = await run_normalization(container.source, container.sink)

    await container.shutdown()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from catalog_norm.config.settings import Settings, get_settings
from catalog_norm.core.exceptions import ConfigurationError, InitializationError

if TYPE_CHECKING:
    from supabase import Client

    from catalog_norm.store.base import MutationSink, RecordSource

logger = structlog.get_logger(__name__)


class DependencyContainer:
    """
    Central container for store dependencies.

    Services are created on first access and cached. Either inject a source
    and sink directly (tests, local runs) or let the container build the
    Supabase-backed ones from settings.

    Example:
        async with DependencyContainer() as container:
            source = container.source
            sink = container.sink
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        source: "RecordSource | None" = None,
        sink: "MutationSink | None" = None,
    ):
        """
        Initialize the container.

        Args:
            settings: Application settings. Defaults to get_settings().
            source: Pre-built record source. Defaults to Supabase.
            sink: Pre-built mutation sink. Defaults to Supabase.
        """
        self._settings = settings or get_settings()
        self._supabase: Client | None = None
        self._source = source
        self._sink = sink
        self._initialized = False

        logger.info("dependency_container_created")

    @property
    def settings(self) -> Settings:
        """Get application settings."""
        return self._settings

    @property
    def supabase(self) -> "Client":
        """
        Get Supabase client (lazy initialization).

        Raises:
            ConfigurationError: If Supabase credentials are not configured.
            InitializationError: If the client cannot be created.
        """
        if self._supabase is None:
            if not self._settings.has_supabase_credentials:
                raise ConfigurationError(
                    "SUPABASE_URL and SUPABASE_KEY must be set",
                    config_key="supabase_url",
                )
            try:
                from supabase import create_client

                self._supabase = create_client(
                    self._settings.supabase_url,
                    self._settings.supabase_key.get_secret_value(),
                )
                logger.info("supabase_client_created")
            except Exception as e:
                logger.error("supabase_client_creation_failed", error=str(e))
                raise InitializationError(
                    "SupabaseClient",
                    f"Failed to create Supabase client: {e}",
                    {"url": self._settings.supabase_url},
                ) from e
        return self._supabase

    @property
    def source(self) -> "RecordSource":
        """Get the record source (Supabase unless injected)."""
        if self._source is None:
            from catalog_norm.store.supabase_store import SupabaseRecordSource

            self._source = SupabaseRecordSource(
                self.supabase,
                table=self._settings.catalog_table,
                page_size=self._settings.page_size,
                max_attempts=self._settings.commit_max_attempts,
            )
        return self._source

    @property
    def sink(self) -> "MutationSink":
        """Get the mutation sink (Supabase unless injected)."""
        if self._sink is None:
            from catalog_norm.store.supabase_store import SupabaseMutationSink

            self._sink = SupabaseMutationSink(
                self.supabase,
                table=self._settings.catalog_table,
                max_attempts=self._settings.commit_max_attempts,
            )
        return self._sink

    async def initialize(self) -> None:
        """
        Open the source and the sink.

        Raises:
            InitializationError: If either fails to open.
            ConfigurationError: If required settings are missing.
        """
        if self._initialized:
            logger.warning("container_already_initialized")
            return

        logger.info("container_initializing")

        try:
            await self.source.open()
            if self.sink is not self.source:
                await self.sink.open()
            self._initialized = True
            logger.info("container_initialized")

        except (InitializationError, ConfigurationError):
            raise
        except Exception as e:
            logger.error(
                "container_initialization_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InitializationError(
                "DependencyContainer",
                f"Failed to initialize dependencies: {e}",
            ) from e

    async def shutdown(self) -> None:
        """
        Close the source and the sink.

        Close errors are logged, not raised.
        """
        logger.info("container_shutting_down")

        handles = [self._source]
        if self._sink is not self._source:
            handles.append(self._sink)

        for handle in handles:
            if handle is None:
                continue
            try:
                await handle.close()
            except Exception as e:
                logger.error(
                    "store_close_error",
                    store=type(handle).__name__,
                    error=str(e),
                )

        self._supabase = None
        self._initialized = False
        logger.info("container_shutdown_complete")

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized

    async def __aenter__(self) -> "DependencyContainer":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.shutdown()
