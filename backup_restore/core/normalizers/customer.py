"""
Customer record mapping.
"""

from collections.abc import Mapping
from typing import Any

from backup_restore.core.models import Customer

from .fields import (
    field,
    first_identifier,
    first_matching,
    first_non_empty,
    joined,
    literal,
    nested,
    to_datetime,
)
from .settings import NormalizerSettings

ID_RULES = (
    field("id"),
    nested("_id", "$oid"),
    field("_id"),
    field("uuid"),
    field("customer_id"),
)

FULL_NAME_RULES = (
    field("full_name"),
    field("name"),
    joined("first_name", "last_name"),
    literal("Unknown"),
)

EMAIL_RULES = (
    field("email"),
    field("email_address"),
    field("emailAddress"),
    nested("contact", "email"),
)

PHONE_RULES = (
    field("phone"),
    field("phone_number"),
    field("phoneNumber"),
    field("mobile"),
    nested("contact", "phone"),
)

CREATED_AT_RULES = (
    field("created_at"),
    field("createdAt"),
)


def normalize_customer(
    raw: Any,
    settings: NormalizerSettings | None = None,
) -> Customer | None:
    """
    Map a raw customer record to a Customer.

    Returns:
        Customer, or None when no canonical id can be derived
    """
    if not isinstance(raw, Mapping):
        return None
    settings = settings or NormalizerSettings()

    customer_id = first_identifier(raw, ID_RULES, settings.namespace)
    if customer_id is None:
        return None

    return Customer(
        id=customer_id,
        full_name=first_non_empty(raw, FULL_NAME_RULES),
        email=first_non_empty(raw, EMAIL_RULES),
        phone=first_non_empty(raw, PHONE_RULES),
        created_at=first_matching(raw, CREATED_AT_RULES, to_datetime),
    )
