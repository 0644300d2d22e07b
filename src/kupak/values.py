"""
Reconciling caller-supplied values with a pak's property schema.

Values are applied in three steps, in this order:

1. defaults are filled in for properties the caller did not supply,
2. every declared value is coerced to its property type where a natural
   textual coercion exists (best effort, failures leave the value as is),
3. every declared property is checked for presence and exact type.

Values for names that are not declared pass through untouched.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from kupak.errors import PropertyValueError
from kupak.models import Property, PropertyType

TRUE_STRINGS = frozenset({"true", "yes", "y", "ok", "t", "1"})
FALSE_STRINGS = frozenset({"false", "no", "n", "f", "0"})

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def string_to_bool(text: str) -> bool:
    """Parse a textual boolean, case-insensitively."""
    lowered = text.lower()
    if lowered in TRUE_STRINGS:
        return True
    if lowered in FALSE_STRINGS:
        return False
    raise ValueError(f"can't parse {text!r} as boolean")


def add_default_values(
    properties: Iterable[Property],
    values: Mapping[str, Any],
) -> dict[str, Any]:
    """Return a copy of *values* with defaults for missing properties."""
    merged = dict(values)
    for prop in properties:
        if prop.name not in merged:
            merged[prop.name] = prop.default
    return merged


def _normalize(prop_type: PropertyType, value: Any) -> Any:
    if value is None:
        return None
    text = str(value)
    if prop_type is PropertyType.INT:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if _INT_PATTERN.fullmatch(text):
            return int(text, 10)
        return value
    if prop_type is PropertyType.BOOL:
        try:
            return string_to_bool(text)
        except ValueError:
            return value
    return value


def normalize_values(
    properties: Iterable[Property],
    values: Mapping[str, Any],
) -> dict[str, Any]:
    """Return a copy of *values* with declared values coerced to their types."""
    normalized = dict(values)
    for prop in properties:
        if prop.name in normalized:
            normalized[prop.name] = _normalize(prop.type, normalized[prop.name])
    return normalized


def _matches(prop_type: PropertyType, value: Any) -> bool:
    if prop_type is PropertyType.INT:
        return isinstance(value, int) and not isinstance(value, bool)
    if prop_type is PropertyType.BOOL:
        return isinstance(value, bool)
    return isinstance(value, str)


def validate_values(
    properties: Iterable[Property],
    values: Mapping[str, Any],
) -> None:
    """
    Check that every declared property holds a value of its exact type.

    Raises:
        PropertyValueError: A value is missing or has the wrong type
    """
    for prop in properties:
        value = values.get(prop.name)
        if value is None:
            raise PropertyValueError(
                prop.name, f"required property {prop.name!r} is not specified"
            )
        if not _matches(prop.type, value):
            raise PropertyValueError(
                prop.name,
                f"value {value!r} for property {prop.name!r} is not a valid {prop.type.value}",
            )


def prepare_values(
    properties: Iterable[Property],
    values: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Fill defaults, normalize and validate *values* against *properties*."""
    properties = list(properties)
    prepared = add_default_values(properties, values or {})
    prepared = normalize_values(properties, prepared)
    validate_values(properties, prepared)
    return prepared
