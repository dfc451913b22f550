"""
Backup payload reader.

Streams an object from storage, inflates it when the key ends in `.gz`, and
parses the UTF-8 JSON text into one in-memory document.
"""

import json
import zlib
from collections.abc import Iterable
from contextlib import closing
from typing import Any

from backup_restore.core.errors import MalformedBackup
from backup_restore.observability.logger import get_logger

from .object_store import ObjectStore

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024

# wbits for a gzip header and trailer (single member)
_GZIP_WBITS = 16 + zlib.MAX_WBITS


def _reject_constant(name: str):
    # NaN and Infinity are not JSON
    raise ValueError(f"non-standard JSON constant {name}")


def gunzip_chunks(chunks: Iterable[bytes]) -> bytes:
    """
    Inflate a single-member gzip stream delivered in chunks.

    Raises:
        zlib.error: If the stream is corrupt
        EOFError: If the stream ends before the gzip trailer
    """
    decompressor = zlib.decompressobj(_GZIP_WBITS)
    parts = []
    for chunk in chunks:
        if decompressor.eof:
            # Bytes after the first member are ignored
            break
        parts.append(decompressor.decompress(chunk))
    parts.append(decompressor.flush())

    if not decompressor.eof:
        raise EOFError("compressed stream ended before the end-of-stream marker")
    return b"".join(parts)


class PayloadReader:
    """
    Reads and parses backup objects.
    """

    def __init__(self, store: ObjectStore, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize payload reader.

        Args:
            store: Object storage capability
            chunk_size: Read chunk size in bytes
        """
        self.store = store
        self.chunk_size = chunk_size

    def read_bytes(self, key: str) -> bytes:
        """
        Fetch the object body, inflated if the key ends in `.gz`.

        The chunk stream is closed before returning, including when bytes
        after the first gzip member are left unread.

        Raises:
            MalformedBackup: If decompression fails
        """
        with closing(self.store.iter_chunks(key, self.chunk_size)) as chunks:
            if not key.endswith(".gz"):
                return b"".join(chunks)

            try:
                return gunzip_chunks(chunks)
            except (zlib.error, EOFError) as e:
                raise MalformedBackup(key, f"decompression failed: {e}") from e

    def read(self, key: str) -> dict[str, Any]:
        """
        Fetch and parse a backup document.

        Args:
            key: Storage key of the backup object

        Returns:
            Parsed document (a JSON object)

        Raises:
            MalformedBackup: If the payload cannot be decompressed, decoded,
                or parsed, or is not a JSON object
        """
        payload = self.read_bytes(key)
        logger.info(f"Read {len(payload)} bytes from {key}")

        try:
            document = json.loads(payload.decode("utf-8"), parse_constant=_reject_constant)
        except UnicodeDecodeError as e:
            raise MalformedBackup(key, f"payload is not valid UTF-8: {e}") from e
        except ValueError as e:
            raise MalformedBackup(key, f"invalid JSON: {e}") from e

        if not isinstance(document, dict):
            raise MalformedBackup(
                key, f"expected a JSON object at top level, got {type(document).__name__}"
            )

        return document
