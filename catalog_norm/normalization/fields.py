"""Per-record field update construction.

Turns one catalog record snapshot into the FieldUpdate that writes its
search fields:

- name_norm: canonical form of the display name
- name_norm_ngrams: n-grams of name_norm
- aliases_norm: canonical form of every string alias, input order kept

Malformed or missing input degrades to empty values; nothing here raises.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from catalog_norm.normalization.schema import DELETE_FIELD, FieldUpdate, SetValue
from catalog_norm.normalization.text import (
    DEFAULT_NGRAM_LENGTHS,
    normalize_for_search,
    ordered_tokens,
)

NAME_FIELD = "name"
ALIASES_FIELD = "aliases"

NAME_NORM_FIELD = "name_norm"
NGRAMS_FIELD = "name_norm_ngrams"
ALIASES_NORM_FIELD = "aliases_norm"

DEFAULT_LOCALE = "en"


def resolve_base_name(name: Any, locale: str = DEFAULT_LOCALE) -> str:
    """Pick the display name to normalize.

    Precedence for a locale mapping: the value at ``locale``, then the
    first-inserted entry. A list contributes its first element. Only
    non-empty strings count. A plain string is used as is. Anything else
    resolves to "".
    """
    if isinstance(name, str):
        return name
    if isinstance(name, Mapping):
        preferred = name.get(locale)
        if isinstance(preferred, str) and preferred:
            return preferred
        first = next(iter(name.values()), None)
    elif isinstance(name, (list, tuple)):
        first = name[0] if name else None
    else:
        return ""

    if isinstance(first, str) and first:
        return first
    return ""


def _is_unset(value: Any) -> bool:
    """True for missing, null, false, zero, NaN or empty-string values.

    Any list or mapping, including an empty one, counts as set.
    """
    if value is None or isinstance(value, (bool, str)):
        return not value
    if isinstance(value, (int, float)):
        return value == 0 or value != value
    return False


def normalize_aliases(aliases: Iterable[Any]) -> list[str]:
    """Normalize string aliases, skipping non-strings."""
    return [normalize_for_search(alias) for alias in aliases if isinstance(alias, str)]


def build_field_update(
    data: Mapping[str, Any],
    *,
    locale: str = DEFAULT_LOCALE,
    ngram_lengths: Iterable[int] = DEFAULT_NGRAM_LENGTHS,
    name_norm_field: str = NAME_NORM_FIELD,
    ngrams_field: str = NGRAMS_FIELD,
    aliases_norm_field: str = ALIASES_NORM_FIELD,
) -> FieldUpdate:
    """Compute the search-field update for one record.

    Args:
        data: Current field values of the record.
        locale: Preferred key when ``name`` is a locale mapping.
        ngram_lengths: Token lengths derived from the canonical name.
        name_norm_field: Target field for the canonical name.
        ngrams_field: Target field for the token list.
        aliases_norm_field: Target field for the normalized aliases.

    Returns:
        FieldUpdate with name fields always set. The aliases field is set
        when ``aliases`` is a list, or when there is no ``aliases`` list and
        the prior normalized aliases value is missing, null or falsy. An
        existing list, even an empty one, is kept.
    """
    update: FieldUpdate = {}

    name_norm = normalize_for_search(resolve_base_name(data.get(NAME_FIELD), locale))
    update[name_norm_field] = SetValue(name_norm)
    update[ngrams_field] = SetValue(ordered_tokens(name_norm, ngram_lengths))

    aliases = data.get(ALIASES_FIELD)
    if isinstance(aliases, list):
        update[aliases_norm_field] = SetValue(normalize_aliases(aliases))
    elif _is_unset(data.get(aliases_norm_field)):
        # Reruns keep an earlier aliases_norm when the source has no aliases.
        update[aliases_norm_field] = SetValue([])

    return update


def build_removal_update(field_name: str) -> FieldUpdate:
    """FieldUpdate that deletes ``field_name`` from a record."""
    return {field_name: DELETE_FIELD}
