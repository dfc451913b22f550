"""
Settings shared by the record normalizers.
"""

import uuid

from pydantic import BaseModel, Field, field_validator

from backup_restore.core.identity import DEFAULT_NAMESPACE

DEFAULT_PUBLIC_VIEW_URL_TEMPLATE = "/public/view/{share_token}"


class NormalizerSettings(BaseModel):
    """
    Configurable inputs of the normalizers.

    Attributes:
        namespace: Namespace for derived canonical identifiers
        public_view_url_template: Template for document URLs built from a
            share token; must contain "{share_token}", which is substituted
            literally (other braces are left untouched)
    """

    namespace: uuid.UUID = DEFAULT_NAMESPACE
    public_view_url_template: str = Field(default=DEFAULT_PUBLIC_VIEW_URL_TEMPLATE)

    @field_validator("public_view_url_template")
    @classmethod
    def _has_placeholder(cls, value: str) -> str:
        if "{share_token}" not in value:
            raise ValueError("public_view_url_template must contain '{share_token}'")
        return value

    class Config:
        frozen = True
