"""
Order record mapping.
"""

from collections.abc import Mapping
from typing import Any

from backup_restore.core.models import Order

from .document import CUSTOMER_ID_RULES
from .fields import (
    field,
    first_identifier,
    first_matching,
    first_non_empty,
    literal,
    nested,
    to_bool,
    to_datetime,
    to_number,
)
from .settings import NormalizerSettings

DEFAULT_CURRENCY = "ILS"
PAID_STATUS = "paid"

ID_RULES = (
    field("id"),
    nested("_id", "$oid"),
    field("_id"),
    field("uuid"),
    field("order_id"),
)

TOTAL_RULES = (
    field("total"),
    field("amount"),
    field("total_amount"),
    field("grand_total"),
    field("sum"),
)

CURRENCY_RULES = (
    field("currency"),
    field("currency_code"),
    field("currencyCode"),
    literal(DEFAULT_CURRENCY),
)

PAID_RULES = (
    field("paid"),
    field("is_paid"),
    field("isPaid"),
)

CREATED_AT_RULES = (
    field("created_at"),
    field("createdAt"),
)


def normalize_order(
    raw: Any,
    settings: NormalizerSettings | None = None,
) -> Order | None:
    """
    Map a raw order record to an Order.

    Returns:
        Order, or None when no canonical id can be derived
    """
    if not isinstance(raw, Mapping):
        return None
    settings = settings or NormalizerSettings()

    order_id = first_identifier(raw, ID_RULES, settings.namespace)
    if order_id is None:
        return None

    total = first_matching(raw, TOTAL_RULES, to_number)
    paid = first_matching(raw, PAID_RULES, to_bool)
    if paid is None:
        # Literal comparison; "PAID" or "Paid" do not count
        paid = raw.get("status") == PAID_STATUS

    return Order(
        id=order_id,
        customer_id=first_identifier(raw, CUSTOMER_ID_RULES, settings.namespace),
        total=total if total is not None else 0.0,
        currency=first_non_empty(raw, CURRENCY_RULES).upper(),
        paid=paid,
        created_at=first_matching(raw, CREATED_AT_RULES, to_datetime),
    )
