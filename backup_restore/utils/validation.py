"""
Input validation utilities for the import job.

Provides validation for values that end up in SQL text or control batch
sizes, to keep dynamic SQL safe and configuration errors early.
"""

import re


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def sanitize_sql_identifier(identifier: str, field_name: str = "identifier") -> str:
    """
    Sanitize an SQL identifier (table name, column name, etc.).

    This is a strict validation that only allows safe SQL identifiers.
    Use this for dynamic table/column names to prevent SQL injection.

    Args:
        identifier: The identifier to sanitize
        field_name: Name of the field (for error messages)

    Returns:
        The validated identifier

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> sanitize_sql_identifier("customers")
        'customers'
        >>> sanitize_sql_identifier("raw_backups")
        'raw_backups'
        >>> sanitize_sql_identifier("orders; DROP TABLE orders;")  # doctest: +SKIP
        ValidationError: identifier contains invalid characters
    """
    if not identifier or not isinstance(identifier, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    identifier = identifier.strip()

    # SQL identifiers: alphanumeric and underscores only, must start with letter or underscore
    if not re.match(r'^[a-zA-Z_][a-zA-Z0-9_]*$', identifier):
        raise ValidationError(
            f"{field_name} contains invalid characters. "
            "SQL identifiers must start with a letter or underscore and contain only "
            "alphanumeric characters and underscores."
        )

    if len(identifier) > 63:  # PostgreSQL limit
        raise ValidationError(f"{field_name} exceeds PostgreSQL maximum length of 63 characters")

    return identifier


def validate_batch_size(batch_size: int, max_size: int = 50000) -> int:
    """
    Validate an upsert batch size.

    Args:
        batch_size: Number of records per batch
        max_size: Upper bound

    Returns:
        The validated batch size

    Raises:
        ValidationError: If not an integer in [1, max_size]
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise ValidationError("batch_size must be an integer")

    if batch_size < 1:
        raise ValidationError("batch_size must be at least 1")

    if batch_size > max_size:
        raise ValidationError(f"batch_size must not exceed {max_size}")

    return batch_size
