"""
Core infrastructure modules for catalog-norm.

Provides common utilities used across the application:
- exceptions: Standardized exception hierarchy
- container: Store handle ownership and lifecycle
"""

from catalog_norm.core.exceptions import (
    CatalogNormError,
    RetryableError,
    PermanentError,
    InitializationError,
    ConfigurationError,
    BatchError,
    BatchCapacityError,
    BatchSealedError,
    StoreError,
    StoreUnavailableError,
    BatchRejectedError,
    StaleReferenceError,
    EnumerationError,
)

from catalog_norm.core.container import DependencyContainer

__all__ = [
    # Exceptions
    "CatalogNormError",
    "RetryableError",
    "PermanentError",
    "InitializationError",
    "ConfigurationError",
    "BatchError",
    "BatchCapacityError",
    "BatchSealedError",
    "StoreError",
    "StoreUnavailableError",
    "BatchRejectedError",
    "StaleReferenceError",
    "EnumerationError",
    # Dependency Container
    "DependencyContainer",
]
