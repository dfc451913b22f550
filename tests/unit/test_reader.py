"""
Unit tests for the backup payload reader.
"""

import gzip
import json

import pytest

from backup_restore.core.errors import MalformedBackup
from backup_restore.storage import PayloadReader
from backup_restore.storage.object_store import ObjectStore
from backup_restore.storage.reader import gunzip_chunks

pytestmark = pytest.mark.unit


class ClosableChunks:
    """Chunk iterator that records whether it was closed"""

    def __init__(self, chunks):
        self._chunks = iter(chunks)
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        return next(self._chunks)

    def close(self):
        self.closed = True


class TrackingStore(ObjectStore):
    """Wraps another store and keeps every chunk stream it hands out"""

    def __init__(self, inner):
        self.inner = inner
        self.streams: list[ClosableChunks] = []

    def list_page(self, prefix, continuation_token=None):
        return self.inner.list_page(prefix, continuation_token)

    def iter_chunks(self, key, chunk_size):
        stream = ClosableChunks(self.inner.iter_chunks(key, chunk_size))
        self.streams.append(stream)
        return stream


class TestGunzipChunks:

    def test_single_member(self):
        data = gzip.compress(b"hello world")
        chunks = [data[i:i + 3] for i in range(0, len(data), 3)]
        assert gunzip_chunks(chunks) == b"hello world"

    def test_truncated_stream(self):
        data = gzip.compress(b"hello world" * 100)
        with pytest.raises(EOFError):
            gunzip_chunks([data[: len(data) // 2]])

    def test_trailing_member_ignored(self):
        data = gzip.compress(b"first") + gzip.compress(b"second")
        assert gunzip_chunks([data]) == b"first"


class TestPayloadReader:

    def test_plain_json(self, object_store):
        object_store.put_json("b/1.json", {"customers": [{"id": "c1"}]})
        assert PayloadReader(object_store).read("b/1.json") == {"customers": [{"id": "c1"}]}

    def test_gzip_json_in_small_chunks(self, object_store):
        document = {"orders": [{"id": i} for i in range(500)]}
        object_store.put_json("b/1.json.gz", document)

        assert PayloadReader(object_store, chunk_size=64).read("b/1.json.gz") == document

    def test_utf8_payload(self, object_store):
        object_store.put("b/1.json", json.dumps({"name": "דנה"}, ensure_ascii=False).encode())
        assert PayloadReader(object_store).read("b/1.json") == {"name": "דנה"}

    def test_corrupt_gzip(self, object_store):
        object_store.put("b/1.json.gz", b"definitely not gzip")
        with pytest.raises(MalformedBackup) as exc_info:
            PayloadReader(object_store).read("b/1.json.gz")
        assert exc_info.value.key == "b/1.json.gz"

    def test_truncated_gzip(self, object_store):
        data = gzip.compress(json.dumps({"a": list(range(1000))}).encode())
        object_store.put("b/1.json.gz", data[:-20])
        with pytest.raises(MalformedBackup, match="decompression"):
            PayloadReader(object_store).read("b/1.json.gz")

    def test_invalid_json(self, object_store):
        object_store.put("b/1.json", b"{not json")
        with pytest.raises(MalformedBackup, match="invalid JSON"):
            PayloadReader(object_store).read("b/1.json")

    def test_invalid_utf8(self, object_store):
        object_store.put("b/1.json", b'{"a": "\xff"}')
        with pytest.raises(MalformedBackup, match="UTF-8"):
            PayloadReader(object_store).read("b/1.json")

    def test_top_level_array(self, object_store):
        object_store.put_json("b/1.json", [1, 2])
        with pytest.raises(MalformedBackup, match="JSON object"):
            PayloadReader(object_store).read("b/1.json")

    def test_uncompressed_key_is_not_inflated(self, object_store):
        object_store.put("b/1.json", gzip.compress(b"{}"))
        with pytest.raises(MalformedBackup):
            PayloadReader(object_store).read("b/1.json")

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_standard_constants_rejected(self, object_store, constant):
        object_store.put("b/1.json", f'{{"orders": [{{"id": "o1", "total": {constant}}}]}}'.encode())
        with pytest.raises(MalformedBackup, match="invalid JSON"):
            PayloadReader(object_store).read("b/1.json")

    def test_stream_closed_when_trailing_bytes_left_unread(self, object_store):
        data = gzip.compress(b'{"customers": []}') + b"\x00" * 4096
        object_store.put("b/1.json.gz", data)
        store = TrackingStore(object_store)

        assert PayloadReader(store, chunk_size=16).read("b/1.json.gz") == {"customers": []}
        assert [stream.closed for stream in store.streams] == [True]

    def test_stream_closed_after_plain_read(self, object_store):
        object_store.put_json("b/1.json", {"customers": []})
        store = TrackingStore(object_store)

        PayloadReader(store).read("b/1.json")
        assert store.streams[0].closed

    def test_stream_closed_on_decompression_error(self, object_store):
        object_store.put("b/1.json.gz", b"definitely not gzip")
        store = TrackingStore(object_store)

        with pytest.raises(MalformedBackup):
            PayloadReader(store).read("b/1.json.gz")
        assert store.streams[0].closed
