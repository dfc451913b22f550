"""
backup-restore: import a JSON backup snapshot from S3 into PostgreSQL.

Locates the newest backup object, normalizes customers, documents and orders
across historical backup layouts, and upserts them idempotently.
"""

__version__ = "0.3.0"
