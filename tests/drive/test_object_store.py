"""对象存储适配器测试：本地目录实现与基于 Stubber 的 S3 实现。"""

import io

import pytest
from botocore.response import StreamingBody
from botocore.stub import Stubber

from app.packages.drive.core.config import Settings
from app.packages.drive.core.exceptions import AppException, StorageReadError, StorageWriteError
from app.packages.drive.services.object_store import LocalObjectStore, S3ObjectStore, build_object_store


def test_put_get_roundtrip_in_chunks(tmp_path):
    store = LocalObjectStore(tmp_path)
    payload = b"0123456789" * 200_000
    store.put("u1/Docs/big.bin", payload, "application/octet-stream")

    chunks = list(store.get("u1/Docs/big.bin"))
    assert len(chunks) > 1
    assert b"".join(chunks) == payload


def test_get_missing_key_raises(tmp_path):
    store = LocalObjectStore(tmp_path)
    with pytest.raises(StorageReadError):
        store.get("u1/missing.txt")


def test_list_by_prefix_respects_segment_boundaries(tmp_path):
    store = LocalObjectStore(tmp_path)
    for key in ["u1/a/x.txt", "u1/a/b/y.txt", "u1/ab/z.txt", "u2/a/x.txt"]:
        store.put(key, b"-")

    assert store.list_by_prefix("u1/a/") == ["u1/a/b/y.txt", "u1/a/x.txt"]
    assert store.list_by_prefix("u1/missing/") == []


def test_delete_is_idempotent_and_prunes_empty_dirs(tmp_path):
    store = LocalObjectStore(tmp_path)
    store.put("u1/a/b/y.txt", b"-")
    store.delete("u1/a/b/y.txt")
    store.delete("u1/a/b/y.txt")

    assert store.list_by_prefix("u1/") == []
    assert not (tmp_path / "u1").exists()


@pytest.mark.parametrize(
    "order",
    [("u1/x/y.txt", "u1/x"), ("u1/x", "u1/x/y.txt")],
)
def test_file_and_folder_segment_of_same_name_coexist(tmp_path, order):
    store = LocalObjectStore(tmp_path)
    for key in order:
        store.put(key, key.encode())

    assert b"".join(store.get("u1/x")) == b"u1/x"
    assert b"".join(store.get("u1/x/y.txt")) == b"u1/x/y.txt"
    assert store.list_by_prefix("u1/x/") == ["u1/x/y.txt"]
    assert store.list_by_prefix("u1/") == ["u1/x", "u1/x/y.txt"]

    store.delete("u1/x")
    assert store.list_by_prefix("u1/") == ["u1/x/y.txt"]


def test_unusual_names_keep_their_keys(tmp_path):
    store = LocalObjectStore(tmp_path)
    keys = ["u1/100%/a b.txt", "u1/x@obj", "u1/x@obj/inner.txt", "u1/报告/年度.pdf"]
    for key in keys:
        store.put(key, b"-")
    assert store.list_by_prefix("u1/") == sorted(keys)


def test_keys_cannot_escape_root(tmp_path):
    store = LocalObjectStore(tmp_path / "root")
    with pytest.raises(AppException):
        store.put("../outside.txt", b"-")


def test_build_object_store_selects_backend(tmp_path):
    local = build_object_store(Settings(STORAGE_TYPE="LOCAL", LOCAL_STORAGE_ROOT=str(tmp_path)))
    assert isinstance(local, LocalObjectStore)

    s3 = build_object_store(_s3_settings())
    assert isinstance(s3, S3ObjectStore)
    assert s3.bucket == "bucket"

    with pytest.raises(AppException):
        build_object_store(Settings(STORAGE_TYPE="S3", AWS_S3_BUCKET_NAME="bucket", AWS_ACCESS_KEY_ID=None))
    with pytest.raises(AppException):
        build_object_store(Settings(STORAGE_TYPE="FTP"))


def _s3_settings() -> Settings:
    return Settings(
        STORAGE_TYPE="S3",
        AWS_S3_BUCKET_NAME="bucket",
        AWS_REGION="us-east-1",
        AWS_ACCESS_KEY_ID="testing",
        AWS_SECRET_ACCESS_KEY="testing",
    )


def test_s3_store_put_and_paginated_list():
    store = build_object_store(_s3_settings())
    with Stubber(store._client) as stubber:
        stubber.add_response(
            "put_object",
            {},
            {"Bucket": "bucket", "Key": "u1/Docs/a.txt", "Body": b"hello", "ContentType": "text/plain"},
        )
        stubber.add_response(
            "list_objects_v2",
            {"Contents": [{"Key": "u1/Docs/a.txt"}], "IsTruncated": True, "NextContinuationToken": "t1"},
            {"Bucket": "bucket", "Prefix": "u1/Docs/"},
        )
        stubber.add_response(
            "list_objects_v2",
            {"Contents": [{"Key": "u1/Docs/b/c.txt"}], "IsTruncated": False},
            {"Bucket": "bucket", "Prefix": "u1/Docs/", "ContinuationToken": "t1"},
        )

        store.put("u1/Docs/a.txt", b"hello", "text/plain")
        assert store.list_by_prefix("u1/Docs/") == ["u1/Docs/a.txt", "u1/Docs/b/c.txt"]
        stubber.assert_no_pending_responses()


def test_s3_client_errors_become_storage_errors():
    store = build_object_store(_s3_settings())
    with Stubber(store._client) as stubber:
        stubber.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

        with pytest.raises(StorageWriteError):
            store.delete("u1/a.txt")
        with pytest.raises(StorageReadError):
            store.get("u1/a.txt")


class _BrokenStream(io.BytesIO):
    """读到一半连接中断。"""

    def read(self, size=-1):
        if self.tell() >= 4:
            raise ConnectionResetError("connection reset by peer")
        return super().read(min(size, 4) if size and size > 0 else 4)


def test_s3_get_streams_body_and_wraps_mid_stream_failures():
    store = build_object_store(_s3_settings())
    with Stubber(store._client) as stubber:
        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(b"hello"), 5), "ContentLength": 5},
            {"Bucket": "bucket", "Key": "u1/ok.txt"},
        )
        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(_BrokenStream(b"partial-data"), 12), "ContentLength": 12},
            {"Bucket": "bucket", "Key": "u1/cut.txt"},
        )

        assert b"".join(store.get("u1/ok.txt")) == b"hello"

        body = store.get("u1/cut.txt")
        with pytest.raises(StorageReadError):
            list(body)
