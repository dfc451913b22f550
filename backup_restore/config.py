"""
Import job configuration.

All environment-derived settings are collected once at process start into an
ImportSettings value and passed to each component, so components never read
process-wide state on their own.
"""

import os
import uuid
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values
from pydantic import BaseModel, Field

from backup_restore.core.errors import ConfigurationMissing
from backup_restore.core.identity import DEFAULT_NAMESPACE_VERSION, ID_NAMESPACES, get_namespace
from backup_restore.core.normalizers.settings import (
    DEFAULT_PUBLIC_VIEW_URL_TEMPLATE,
    NormalizerSettings,
)
from backup_restore.utils.validation import ValidationError, validate_batch_size

REQUIRED_VARIABLES = (
    "AWS_REGION",
    "S3_BUCKET",
    "DATABASE_URL",
    "DATABASE_SERVICE_KEY",
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_flag(name: str, value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationMissing([name], f"{name} must be a boolean flag, got {value!r}")


class ImportSettings(BaseModel):
    """
    Settings for one import run.

    Attributes:
        aws_region: Storage region
        s3_bucket: Bucket holding the backups
        s3_prefix: Key prefix of the backups
        s3_endpoint_url: Endpoint override (MinIO, LocalStack)
        aws_access_key_id: Optional static credentials
        aws_secret_access_key: Optional static credentials
        aws_session_token: Optional session token
        database_url: PostgreSQL connection URL
        database_service_key: Database credential
        debug_list: Log every listed backup key
        debug_summary: Log shape and normalization diagnostics
        batch_size: Records per upsert batch
        id_namespace_version: Key into ID_NAMESPACES for derived identifiers
        public_view_url_template: Template for document share URLs
        archive_raw: Archive the raw payload before importing
        log_level: Logging level
        log_format: "json" or "text"
    """

    aws_region: str = Field(..., min_length=1)
    s3_bucket: str = Field(..., min_length=1)
    s3_prefix: str = ""
    s3_endpoint_url: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = Field(default=None, repr=False)
    aws_session_token: str | None = Field(default=None, repr=False)

    database_url: str = Field(..., min_length=1, repr=False)
    database_service_key: str = Field(..., min_length=1, repr=False)

    debug_list: bool = False
    debug_summary: bool = False
    batch_size: int = 1000
    id_namespace_version: str = DEFAULT_NAMESPACE_VERSION
    public_view_url_template: str = DEFAULT_PUBLIC_VIEW_URL_TEMPLATE
    archive_raw: bool = True

    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def namespace(self) -> uuid.UUID:
        return get_namespace(self.id_namespace_version)

    def normalizer_settings(self) -> NormalizerSettings:
        return NormalizerSettings(
            namespace=self.namespace,
            public_view_url_template=self.public_view_url_template,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        env_file: str | Path | None = None,
    ) -> "ImportSettings":
        """
        Collect settings from environment variables.

        Values from env_file (python-dotenv format) fill in variables that
        are not already set in the environment.

        Args:
            environ: Environment mapping (defaults to os.environ)
            env_file: Optional .env file

        Returns:
            ImportSettings

        Raises:
            ConfigurationMissing: If required variables are missing or a
                value is invalid
        """
        env: dict[str, str | None] = {}
        if env_file is not None:
            env_path = Path(env_file)
            if not env_path.exists():
                raise ConfigurationMissing(
                    [str(env_path)], f"Environment file not found: {env_path}"
                )
            env.update(dotenv_values(env_path))
        env.update(os.environ if environ is None else environ)

        def get(name: str) -> str | None:
            value = env.get(name)
            if value is None or not str(value).strip():
                return None
            return str(value).strip()

        missing = [name for name in REQUIRED_VARIABLES if get(name) is None]
        if missing:
            raise ConfigurationMissing(missing)

        batch_size_raw = get("IMPORT_BATCH_SIZE")
        try:
            batch_size = validate_batch_size(int(batch_size_raw)) if batch_size_raw else 1000
        except (ValueError, ValidationError) as e:
            raise ConfigurationMissing(
                ["IMPORT_BATCH_SIZE"], f"IMPORT_BATCH_SIZE is invalid: {e}"
            ) from e

        namespace_version = get("ID_NAMESPACE_VERSION") or DEFAULT_NAMESPACE_VERSION
        if namespace_version not in ID_NAMESPACES:
            raise ConfigurationMissing(
                ["ID_NAMESPACE_VERSION"],
                f"Unknown ID_NAMESPACE_VERSION {namespace_version!r}; "
                f"known: {', '.join(sorted(ID_NAMESPACES))}",
            )

        template = get("PUBLIC_VIEW_URL_TEMPLATE") or DEFAULT_PUBLIC_VIEW_URL_TEMPLATE
        if "{share_token}" not in template:
            raise ConfigurationMissing(
                ["PUBLIC_VIEW_URL_TEMPLATE"],
                "PUBLIC_VIEW_URL_TEMPLATE must contain '{share_token}'",
            )

        log_format = (get("LOG_FORMAT") or "json").lower()
        if log_format not in ("json", "text"):
            raise ConfigurationMissing(["LOG_FORMAT"], "LOG_FORMAT must be 'json' or 'text'")

        return cls(
            aws_region=get("AWS_REGION"),
            s3_bucket=get("S3_BUCKET"),
            s3_prefix=get("S3_PREFIX") or "",
            s3_endpoint_url=get("S3_ENDPOINT_URL"),
            aws_access_key_id=get("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=get("AWS_SECRET_ACCESS_KEY"),
            aws_session_token=get("AWS_SESSION_TOKEN"),
            database_url=get("DATABASE_URL"),
            database_service_key=get("DATABASE_SERVICE_KEY"),
            debug_list=_parse_flag("DEBUG_LIST", get("DEBUG_LIST"), False),
            debug_summary=_parse_flag("DEBUG_SUMMARY", get("DEBUG_SUMMARY"), False),
            batch_size=batch_size,
            id_namespace_version=namespace_version,
            public_view_url_template=template,
            archive_raw=_parse_flag("ARCHIVE_RAW", get("ARCHIVE_RAW"), True),
            log_level=(get("LOG_LEVEL") or "INFO").upper(),
            log_format=log_format,
        )
