"""
Record sources and mutation sinks.

- base: RecordSource / MutationSink interfaces
- memory: dict-backed store for tests and local runs
- supabase_store: Supabase table enumeration and transactional batch commits

Example:
    from catalog_norm.store import InMemoryStore

    async with InMemoryStore({"app-1": {"name": "Yoga"}}) as store:
        async for record in store.iter_records():
            ...
"""

from catalog_norm.store.base import MutationSink, RecordSource
from catalog_norm.store.memory import InMemoryStore

__all__ = [
    "InMemoryStore",
    "MutationSink",
    "RecordSource",
]
