"""
catalog-norm - search-field maintenance for catalog records.

This package contains the modules that prepare catalog records for a
downstream exact/substring matcher:
- normalization: Unicode canonicalization, n-gram tokens, per-record field updates
- batching: size-bounded batch building and concurrent per-batch commits
- store: record sources and mutation sinks (Supabase, in-memory)
- maintenance: end-to-end normalization and field-removal runs
- config: Pydantic settings
- core: exception hierarchy and dependency container
"""

__version__ = "0.1.0"
