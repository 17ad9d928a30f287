"""Normalization infrastructure for catalog records.

Provides the search normalization pipeline, n-gram derivation and the
per-record FieldUpdate builder.
"""

from catalog_norm.normalization.fields import (
    build_field_update,
    build_removal_update,
    normalize_aliases,
    resolve_base_name,
)
from catalog_norm.normalization.schema import (
    DELETE_FIELD,
    DeleteField,
    FieldChange,
    FieldUpdate,
    SetValue,
    SourceRecord,
    split_update,
)
from catalog_norm.normalization.text import (
    DEFAULT_NGRAM_LENGTHS,
    derive_tokens,
    normalize_for_search,
    ordered_tokens,
)

__all__ = [
    "DEFAULT_NGRAM_LENGTHS",
    "DELETE_FIELD",
    "DeleteField",
    "FieldChange",
    "FieldUpdate",
    "SetValue",
    "SourceRecord",
    "build_field_update",
    "build_removal_update",
    "derive_tokens",
    "normalize_aliases",
    "normalize_for_search",
    "ordered_tokens",
    "resolve_base_name",
    "split_update",
]
