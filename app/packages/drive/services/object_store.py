"""对象存储适配层：统一封装本地目录与 S3 的扁平键值操作。

网盘核心只依赖四个能力：put / get / delete / list_by_prefix。
适配层不做重试，底层异常统一转换为 ``StorageWriteError`` / ``StorageReadError``。
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Iterator, List, Optional
from urllib.parse import quote, unquote

import boto3
from fastapi import status

from app.packages.drive.core.config import Settings, get_settings
from app.packages.drive.core.constants import HTTP_STATUS_BAD_REQUEST
from app.packages.drive.core.exceptions import AppException, StorageReadError, StorageWriteError
from app.packages.drive.core.logger import logger

CHUNK_SIZE = 64 * 1024


class ObjectStore:
    """对象存储接口。"""

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Iterator[bytes]:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def list_by_prefix(self, prefix: str) -> List[str]:
        raise NotImplementedError


# ------------------------------------------
# 本地文件系统实现
# ------------------------------------------


class LocalObjectStore(ObjectStore):
    """把对象键映射为根目录下的文件。

    键按 '/' 切分后逐段做百分号编码，最后一段再追加 ``LEAF_SUFFIX`` 作为对象文件名。
    编码结果不会含有 '@'，因此对象文件与同名目录段（如 ``u1/x`` 与 ``u1/x/y.txt``）可以在磁盘上共存。
    """

    LEAF_SUFFIX = "@obj"

    def __init__(self, root: str | os.PathLike[str]):
        self.root = Path(root).resolve()
        if not self.root.exists():
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:  # pragma: no cover - 极端情况下可能失败
                raise AppException(f"无法创建本地存储根目录: {exc}", status.HTTP_500_INTERNAL_SERVER_ERROR) from exc

    # 统一的安全路径拼接，防止路径遍历
    def _inside_root(self, candidate: Path) -> Path:
        candidate = candidate.resolve()
        try:
            candidate.relative_to(self.root)
        except ValueError as exc:
            raise AppException("非法对象键: 越权访问", HTTP_STATUS_BAD_REQUEST) from exc
        return candidate

    def _resolve(self, key: str) -> Path:
        segments = key.lstrip("/").split("/")
        if not all(segments):
            raise AppException(f"非法对象键: {key}", HTTP_STATUS_BAD_REQUEST)
        *folders, leaf = [quote(segment, safe="") for segment in segments]
        return self._inside_root(self.root.joinpath(*folders, leaf + self.LEAF_SUFFIX))

    def _resolve_dir(self, head: str) -> Path:
        folders = [quote(segment, safe="") for segment in head.split("/") if segment]
        return self._inside_root(self.root.joinpath(*folders))

    def _key_of(self, file_path: Path) -> Optional[str]:
        *folders, leaf = file_path.relative_to(self.root).parts
        if not leaf.endswith(self.LEAF_SUFFIX):
            return None
        leaf = leaf[: -len(self.LEAF_SUFFIX)]
        return "/".join(unquote(part) for part in (*folders, leaf))

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        target = self._resolve(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "wb") as f:
                f.write(data)
        except OSError as exc:
            logger.exception("Local put failed for %s", key)
            raise StorageWriteError(f"写入对象失败: {key}") from exc

    def get(self, key: str) -> Iterator[bytes]:
        target = self._resolve(key)
        if not target.is_file():
            raise StorageReadError(f"对象不存在: {key}")
        try:
            f = open(target, "rb")
        except OSError as exc:
            raise StorageReadError(f"读取对象失败: {key}") from exc
        return self._iter_file(f)

    @staticmethod
    def _iter_file(f) -> Iterator[bytes]:
        with f:
            while True:
                chunk = f.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    def delete(self, key: str) -> None:
        target = self._resolve(key)
        try:
            # 允许幂等：不存在则忽略
            if target.is_file():
                target.unlink()
                self._prune_empty_parents(target.parent)
        except OSError as exc:
            logger.exception("Local delete failed for %s", key)
            raise StorageWriteError(f"删除对象失败: {key}") from exc

    def _prune_empty_parents(self, directory: Path) -> None:
        while directory != self.root and directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()
            directory = directory.parent

    def list_by_prefix(self, prefix: str) -> List[str]:
        # 只遍历前缀所在的目录，再按完整前缀过滤
        head = prefix.rsplit("/", 1)[0] if "/" in prefix else ""
        base = self._resolve_dir(head)
        if not base.is_dir():
            return []
        keys: list[str] = []
        try:
            for dirpath, _, filenames in os.walk(base):
                for filename in filenames:
                    key = self._key_of(Path(dirpath, filename))
                    if key is not None and key.startswith(prefix):
                        keys.append(key)
        except OSError as exc:
            raise StorageReadError(f"列举对象失败: {prefix}") from exc
        return sorted(keys)


# ------------------------------------------
# S3 实现（boto3）
# ------------------------------------------


class S3ObjectStore(ObjectStore):
    def __init__(
        self,
        *,
        bucket: str,
        region: str,
        access_key_id: str,
        secret_access_key: str,
        endpoint_url: Optional[str] = None,
    ):
        self.bucket = bucket
        self._client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url or None,
        )

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        params = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        try:
            self._client.put_object(**params)
        except Exception as exc:
            logger.exception("S3 put failed for %s", key)
            raise StorageWriteError(f"写入对象失败: {key}") from exc

    def get(self, key: str) -> Iterator[bytes]:
        try:
            resp = self._client.get_object(Bucket=self.bucket, Key=key)
        except Exception as exc:
            logger.exception("S3 get failed for %s", key)
            raise StorageReadError(f"读取对象失败: {key}") from exc
        return self._iter_body(resp["Body"], key)

    @staticmethod
    def _iter_body(body, key: str) -> Iterator[bytes]:
        # 响应头已返回后的流式读取失败同样转换为存储读取错误
        try:
            yield from body.iter_chunks(chunk_size=CHUNK_SIZE)
        except Exception as exc:
            logger.exception("S3 stream failed for %s", key)
            raise StorageReadError(f"读取对象失败: {key}") from exc
        finally:
            body.close()

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except Exception as exc:
            logger.exception("S3 delete failed for %s", key)
            raise StorageWriteError(f"删除对象失败: {key}") from exc

    def list_by_prefix(self, prefix: str) -> List[str]:
        keys: list[str] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
        except Exception as exc:
            logger.exception("S3 list failed for %s", prefix)
            raise StorageReadError(f"列举对象失败: {prefix}") from exc
        return keys


def build_object_store(settings: Settings) -> ObjectStore:
    t = (settings.storage_type or "").upper()
    if t == "LOCAL":
        return LocalObjectStore(settings.local_storage_path)
    if t == "S3":
        if not (
            settings.aws_region
            and settings.aws_s3_bucket_name
            and settings.aws_access_key_id
            and settings.aws_secret_access_key
        ):
            raise AppException(
                "S3 配置不完整：请设置 AWS_ACCESS_KEY_ID、AWS_SECRET_ACCESS_KEY、AWS_REGION 与 AWS_S3_BUCKET_NAME",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return S3ObjectStore(
            bucket=settings.aws_s3_bucket_name,
            region=settings.aws_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.aws_endpoint_url,
        )
    raise AppException(f"不支持的存储类型: {settings.storage_type}", HTTP_STATUS_BAD_REQUEST)


@lru_cache
def get_object_store() -> ObjectStore:
    return build_object_store(get_settings())
