"""
Identity canonicalization for imported records.

Source systems used several identifier schemes over time (UUIDs, Mongo-style
object ids, integers, free-form strings). Every record is keyed by a
canonical UUID string instead: canonical inputs are kept (lower-cased), all
other inputs are mapped to a name-based UUID (version 5) under a fixed
namespace, so re-importing the same backup always produces the same keys.

The namespace is a persistent invariant of the deployment. Changing it
reassigns every derived identifier, so new namespaces are added under a new
version key and never edited in place.
"""

import re
import uuid
from typing import Any

# Versioned namespaces for derived identifiers. Never modify an entry.
ID_NAMESPACES: dict[str, uuid.UUID] = {
    "v1": uuid.UUID("6f1c2a0e-4b7d-5e3a-9c8f-2d4b6a8e0c11"),
}

DEFAULT_NAMESPACE_VERSION = "v1"
DEFAULT_NAMESPACE = ID_NAMESPACES[DEFAULT_NAMESPACE_VERSION]

CANONICAL_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def get_namespace(version: str) -> uuid.UUID:
    """
    Look up a namespace by version key.

    Raises:
        KeyError: If the version is unknown
    """
    return ID_NAMESPACES[version]


def is_canonical(value: str) -> bool:
    """Return True if value is already a canonical identifier."""
    return bool(CANONICAL_ID_PATTERN.match(value))


def canonicalize(raw_value: Any, namespace: uuid.UUID = DEFAULT_NAMESPACE) -> str | None:
    """
    Map a source identifier to a canonical identifier.

    Args:
        raw_value: Identifier as found in the backup (any scalar)
        namespace: Namespace for derived identifiers

    Returns:
        Lower-case UUID string, or None for null/empty/non-scalar input

    Examples:
        >>> canonicalize("3F2504E0-4F89-41D3-9A0C-0305E82C3301")
        '3f2504e0-4f89-41d3-9a0c-0305e82c3301'
        >>> canonicalize("") is None
        True
    """
    if raw_value is None or isinstance(raw_value, (bool, dict, list, tuple, set)):
        return None

    text = str(raw_value)
    if text == "":
        return None

    if is_canonical(text):
        return text.lower()

    # sha1(namespace.bytes + name)[:16] with version 5 and RFC 4122 variant
    return str(uuid.uuid5(namespace, text))


class IdentityCanonicalizer:
    """Callable canonicalizer bound to one namespace."""

    def __init__(self, namespace: uuid.UUID = DEFAULT_NAMESPACE):
        self.namespace = namespace

    def __call__(self, raw_value: Any) -> str | None:
        return canonicalize(raw_value, self.namespace)

    def __repr__(self) -> str:
        return f"IdentityCanonicalizer(namespace={self.namespace})"
