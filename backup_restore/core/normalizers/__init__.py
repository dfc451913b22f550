"""
Record normalizers: one mapping function per entity type.
"""

from collections.abc import Callable, Iterable
from typing import Any

from pydantic import BaseModel

from .customer import normalize_customer
from .document import normalize_document
from .order import normalize_order
from .settings import NormalizerSettings

Normalizer = Callable[[Any, NormalizerSettings | None], BaseModel | None]

NORMALIZERS: dict[str, Normalizer] = {
    "customers": normalize_customer,
    "documents": normalize_document,
    "orders": normalize_order,
}


def normalize_records(
    entity_type: str,
    raw_records: Iterable[Any],
    settings: NormalizerSettings | None = None,
) -> list[BaseModel]:
    """
    Normalize raw records of one entity type, dropping those without an id.

    Raises:
        KeyError: If the entity type has no normalizer
    """
    normalizer = NORMALIZERS[entity_type]
    normalized = (normalizer(raw, settings) for raw in raw_records)
    return [record for record in normalized if record is not None]


__all__ = [
    "NORMALIZERS",
    "NormalizerSettings",
    "normalize_customer",
    "normalize_document",
    "normalize_order",
    "normalize_records",
]
