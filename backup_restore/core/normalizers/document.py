"""
Document record mapping.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from backup_restore.core.models import Document

from .fields import (
    field,
    first_identifier,
    first_matching,
    first_non_empty,
    first_present,
    literal,
    nested,
    to_datetime,
)
from .settings import NormalizerSettings

ALLOWED_STATUSES = frozenset({"present", "missing"})
DEFAULT_STATUS = "present"

ID_RULES = (
    field("id"),
    nested("_id", "$oid"),
    field("_id"),
    field("uuid"),
    field("document_id"),
)

CUSTOMER_ID_RULES = (
    field("customer_id"),
    field("client_id"),
    field("customerId"),
    field("clientId"),
    nested("client", "id"),
    nested("customer", "id"),
)

TITLE_RULES = (
    field("title"),
    field("name"),
    field("file_name"),
    field("filename"),
    literal("Document"),
)

URL_RULES = (
    field("public_url"),
    field("share_url"),
)

STATUS_RULES = (
    field("status"),
)

CREATED_AT_RULES = (
    field("created_at"),
    field("createdAt"),
)


def build_public_url(raw: Mapping[str, Any], template: str) -> str | None:
    """
    Build a public-view URL from the record's share token, if any.

    Only the "{share_token}" placeholder is substituted; any other braces in
    the template are kept as written.
    """
    token = first_non_empty(raw, (field("share_token"),))
    if token is None:
        return None
    return template.replace("{share_token}", quote(token, safe=""))


def normalize_status(value: Any) -> str:
    """Lower-case a known status; coerce anything else to "present"."""
    if isinstance(value, str):
        status = value.strip().lower()
        if status in ALLOWED_STATUSES:
            return status
    return DEFAULT_STATUS


def normalize_document(
    raw: Any,
    settings: NormalizerSettings | None = None,
) -> Document | None:
    """
    Map a raw document record to a Document.

    Returns:
        Document, or None when no canonical id can be derived
    """
    if not isinstance(raw, Mapping):
        return None
    settings = settings or NormalizerSettings()

    document_id = first_identifier(raw, ID_RULES, settings.namespace)
    if document_id is None:
        return None

    url = first_non_empty(raw, URL_RULES)
    if url is None:
        url = build_public_url(raw, settings.public_view_url_template)

    return Document(
        id=document_id,
        customer_id=first_identifier(raw, CUSTOMER_ID_RULES, settings.namespace),
        title=first_non_empty(raw, TITLE_RULES),
        url=url,
        status=normalize_status(first_present(raw, STATUS_RULES)),
        created_at=first_matching(raw, CREATED_AT_RULES, to_datetime),
    )
