"""
Core exception hierarchy for catalog-norm.

Provides standardized exception types with categorization for retry logic.
Store adapters retry RetryableError subclasses; everything else surfaces.
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class CatalogNormError(Exception):
    """Base exception for all catalog-norm errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryableError(CatalogNormError):
    """
    Transient errors that should be retried.

    Examples: timeouts, dropped connections, temporary store outages.
    """

    pass


class PermanentError(CatalogNormError):
    """
    Errors that won't be fixed by retrying.

    Examples: rejected batches, missing configuration, programming defects.
    """

    pass


# =============================================================================
# Initialization / Configuration Errors
# =============================================================================


class InitializationError(PermanentError):
    """Raised when a critical component fails to initialize."""

    def __init__(self, component: str, message: str, details: Optional[dict[str, Any]] = None):
        self.component = component
        super().__init__(f"[{component}] {message}", details)


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)


# =============================================================================
# Batch Errors
# =============================================================================


class BatchError(PermanentError):
    """Base exception for batch construction defects.

    These indicate a bug in the caller, never a data problem.
    """

    def __init__(
        self,
        batch_index: int,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.batch_index = batch_index
        super().__init__(f"[batch {batch_index}] {message}", details)


class BatchCapacityError(BatchError):
    """Raised when an entry is added to a batch that is already full."""

    pass


class BatchSealedError(BatchError):
    """Raised when an entry is added to a sealed batch."""

    pass


# =============================================================================
# Store Errors
# =============================================================================


class StoreError(CatalogNormError):
    """Base exception for record source and mutation sink errors."""

    pass


class StoreUnavailableError(StoreError, RetryableError):
    """Raised when the store cannot be reached."""

    pass


class BatchRejectedError(StoreError, PermanentError):
    """Raised when the store rejects a batch as a whole."""

    def __init__(
        self,
        batch_id: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.batch_id = batch_id
        super().__init__(f"[{batch_id}] {message}", details)


class StaleReferenceError(BatchRejectedError):
    """Raised when a batch targets a record that no longer exists."""

    pass


class EnumerationError(StoreError, PermanentError):
    """Raised when enumerating the source records fails. Fatal for a run."""

    pass
