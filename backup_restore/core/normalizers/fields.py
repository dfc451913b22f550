"""
Field extraction rules for raw backup records.

A target field is resolved from an ordered list of accessors; the first
accessor that yields a usable value wins. Keeping the list explicit makes
the precedence per field visible and testable.
"""

import math
import re
import uuid
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from backup_restore.core.identity import IdentityCanonicalizer

# Comma grouping in threes, e.g. "1,234,567.89"
_GROUPED_NUMBER = re.compile(r"[+-]?\d{1,3}(?:,\d{3})+(?:\.\d+)?")

FieldRule = Callable[[Mapping[str, Any]], Any]

# Epoch values above this are treated as milliseconds
_EPOCH_MILLIS_THRESHOLD = 1e11


def field(name: str) -> FieldRule:
    """Accessor for a top-level key."""

    def _get(record: Mapping[str, Any]) -> Any:
        return record.get(name)

    _get.__name__ = f"field({name})"
    return _get


def nested(*segments: str) -> FieldRule:
    """Accessor for a key inside nested mappings, e.g. nested("client", "id")."""

    def _get(record: Mapping[str, Any]) -> Any:
        current: Any = record
        for segment in segments:
            if not isinstance(current, Mapping):
                return None
            current = current.get(segment)
        return current

    _get.__name__ = f"nested({'.'.join(segments)})"
    return _get


def joined(*names: str, sep: str = " ") -> FieldRule:
    """Accessor composing several string keys, skipping blank parts."""

    def _get(record: Mapping[str, Any]) -> Any:
        parts = [
            str(record[name]).strip()
            for name in names
            if not is_blank(record.get(name))
        ]
        return sep.join(part for part in parts if part) or None

    _get.__name__ = f"joined({', '.join(names)})"
    return _get


def literal(value: Any) -> FieldRule:
    """Accessor that always yields a constant (chain terminator)."""

    def _get(record: Mapping[str, Any]) -> Any:
        return value

    _get.__name__ = f"literal({value!r})"
    return _get


def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty after stripping."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def first_present(record: Mapping[str, Any], rules: Iterable[FieldRule]) -> Any:
    """
    Return the first accessor value that is not None or a blank string.

    Returns:
        The value unchanged, or None if no accessor yields one
    """
    for rule in rules:
        value = rule(record)
        if not is_blank(value):
            return value
    return None


def first_non_empty(record: Mapping[str, Any], rules: Iterable[FieldRule]) -> str | None:
    """
    Return the first accessor value as a stripped, non-empty string.

    Mappings and lists are skipped.
    """
    for rule in rules:
        value = rule(record)
        if is_blank(value) or isinstance(value, (Mapping, list)):
            continue
        return str(value).strip()
    return None


def first_matching(
    record: Mapping[str, Any],
    rules: Iterable[FieldRule],
    coerce: Callable[[Any], Any],
) -> Any:
    """
    Return the first accessor value that coerce() accepts.

    coerce() returns None to reject a value; the chain then continues.
    """
    for rule in rules:
        value = rule(record)
        if value is None:
            continue
        coerced = coerce(value)
        if coerced is not None:
            return coerced
    return None


def to_number(value: Any) -> float | None:
    """
    Coerce ints, floats and numeric strings to a finite float.

    Commas are accepted only as thousands separators; "1,5" is rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if _GROUPED_NUMBER.fullmatch(text):
            text = text.replace(",", "")
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def to_bool(value: Any) -> bool | None:
    """Accept only explicit booleans."""
    return value if isinstance(value, bool) else None


def to_datetime(value: Any) -> datetime | None:
    """
    Parse a timestamp from a backup record.

    Accepts datetime values, ISO-8601 strings (a trailing "Z" is allowed),
    and epoch numbers in seconds or milliseconds. Naive values are taken as
    UTC. Anything else yields None.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        seconds = value / 1000 if abs(value) > _EPOCH_MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def first_identifier(
    record: Mapping[str, Any],
    rules: Iterable[FieldRule],
    namespace: uuid.UUID,
) -> str | None:
    """
    Canonicalize the first accessor value that yields an identifier.

    Values that cannot be identifiers (mappings, booleans) are skipped so a
    later key can still supply the id.
    """
    return first_matching(record, rules, IdentityCanonicalizer(namespace))
