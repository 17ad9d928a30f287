"""Field update values and source records.

A FieldUpdate maps a field name to either SetValue(value) or DELETE_FIELD.
Sinks dispatch on the variant type; deleting a field is never confused with
setting it to None or to an empty list.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class SetValue:
    """Write ``value`` to the field."""

    value: Any


@dataclass(frozen=True)
class DeleteField:
    """Remove the field from the record."""


DELETE_FIELD = DeleteField()

FieldChange = Union[SetValue, DeleteField]
FieldUpdate = dict[str, FieldChange]


@dataclass(frozen=True)
class SourceRecord:
    """A record snapshot taken at enumeration time.

    Attributes:
        ref: Stable reference used to target the update.
        data: Field values of the record. Treated as read-only.
    """

    ref: str
    data: Mapping[str, Any] = field(default_factory=dict)


def split_update(update: FieldUpdate) -> tuple[dict[str, Any], list[str]]:
    """Split an update into (fields to set, fields to delete)."""
    to_set: dict[str, Any] = {}
    to_delete: list[str] = []
    for name, change in update.items():
        if isinstance(change, DeleteField):
            to_delete.append(name)
        elif isinstance(change, SetValue):
            to_set[name] = change.value
        else:
            raise TypeError(f"Unsupported field change for {name!r}: {change!r}")
    return to_set, to_delete
