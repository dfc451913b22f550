"""
Object storage capability and its S3 implementation.

The pipeline only needs two operations from storage: list one page of
objects under a prefix, and stream an object's bytes. S3ObjectStore maps
them onto boto3's list_objects_v2 and get_object.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any, NamedTuple

import boto3

from backup_restore.core.models import BackupObject
from backup_restore.observability.logger import get_logger

logger = get_logger(__name__)


class ObjectPage(NamedTuple):
    """One listing page; next_token is None on the last page."""

    objects: list[BackupObject]
    next_token: str | None = None


class ObjectStore(ABC):
    """Read-only object storage capability."""

    bucket: str

    @abstractmethod
    def list_page(self, prefix: str, continuation_token: str | None = None) -> ObjectPage:
        """
        List one page of objects under a prefix.

        Args:
            prefix: Key prefix (already normalized)
            continuation_token: Token returned by the previous page

        Returns:
            ObjectPage with the objects and the token for the next page
        """
        pass

    @abstractmethod
    def iter_chunks(self, key: str, chunk_size: int) -> Iterator[bytes]:
        """
        Stream the bytes of an object.

        Args:
            key: Object key
            chunk_size: Preferred chunk size in bytes

        Yields:
            Consecutive chunks of the object body
        """
        pass


class S3ObjectStore(ObjectStore):
    """
    ObjectStore backed by a boto3 S3 client.
    """

    def __init__(self, client: Any, bucket: str):
        """
        Initialize S3 object store.

        Args:
            client: boto3 S3 client
            bucket: Bucket name
        """
        self.client = client
        self.bucket = bucket

    def list_page(self, prefix: str, continuation_token: str | None = None) -> ObjectPage:
        kwargs = {"Bucket": self.bucket, "Prefix": prefix}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token

        resp = self.client.list_objects_v2(**kwargs)

        objects = [
            BackupObject(
                key=item["Key"],
                last_modified=item.get("LastModified"),
                size=item.get("Size"),
            )
            for item in resp.get("Contents", [])
            if item.get("Key")
        ]
        next_token = resp.get("NextContinuationToken") if resp.get("IsTruncated") else None
        return ObjectPage(objects=objects, next_token=next_token)

    def iter_chunks(self, key: str, chunk_size: int) -> Iterator[bytes]:
        logger.debug(f"Fetching s3://{self.bucket}/{key}")
        body = self.client.get_object(Bucket=self.bucket, Key=key)["Body"]
        try:
            yield from body.iter_chunks(chunk_size=chunk_size)
        finally:
            body.close()


def create_s3_client(
    region: str,
    endpoint_url: str | None = None,
    access_key_id: str | None = None,
    secret_access_key: str | None = None,
    session_token: str | None = None,
) -> Any:
    """
    Create a boto3 S3 client.

    The regional endpoint is set explicitly unless an override is given, so
    buckets outside us-east-1 do not answer with PermanentRedirect. Static
    credentials are used only when both key id and secret are provided;
    otherwise boto3's default credential chain applies.

    Args:
        region: AWS region, e.g. "eu-north-1"
        endpoint_url: Endpoint override (MinIO, LocalStack)
        access_key_id: Optional static access key id
        secret_access_key: Optional static secret key
        session_token: Optional session token for temporary credentials

    Returns:
        boto3 S3 client
    """
    kwargs: dict[str, Any] = {
        "region_name": region,
        "endpoint_url": endpoint_url or f"https://s3.{region}.amazonaws.com",
    }
    if access_key_id and secret_access_key:
        kwargs["aws_access_key_id"] = access_key_id
        kwargs["aws_secret_access_key"] = secret_access_key
        if session_token:
            kwargs["aws_session_token"] = session_token

    logger.info(f"Creating S3 client: region={region}, endpoint={kwargs['endpoint_url']}")
    return boto3.client("s3", **kwargs)
