"""Blob storage for uploaded media.

Two backends share the :class:`BlobStore` contract: a local directory served
through a static mount, and an S3-compatible bucket. Object keys are
``<time_ns>-<random><ext>`` so two uploads arriving in the same instant never
collide and the key itself records when it was written.
"""

from __future__ import annotations

import logging
import os
import secrets
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from pixhub.core.config import Settings
from pixhub.core.errors import StorageError

logger = logging.getLogger(__name__)

_MAX_EXTENSION_LENGTH = 16


@dataclass(frozen=True, slots=True)
class StoredBlob:
    key: str
    url: str
    size_bytes: int


class BlobStore(Protocol):
    async def put(self, data: bytes, filename: str, content_type: str) -> StoredBlob: ...

    async def exists(self, key: str) -> bool: ...

    async def delete(self, key: str) -> None: ...

    async def list_keys(self) -> list[str]: ...


def _safe_extension(filename: str) -> str:
    ext = PurePosixPath(str(filename or "").replace("\\", "/")).suffix.lower()
    if not ext or len(ext) > _MAX_EXTENSION_LENGTH or not ext[1:].isalnum():
        return ""
    return ext


def make_blob_name(filename: str) -> str:
    return f"{time.time_ns()}-{secrets.randbelow(10**9):09d}{_safe_extension(filename)}"


def blob_written_at(key: str) -> datetime | None:
    """Return the write time embedded in a key produced by :func:`make_blob_name`."""
    name = PurePosixPath(key).name
    head, sep, _ = name.partition("-")
    if not sep or not head.isdigit():
        return None
    return datetime.fromtimestamp(int(head) / 1_000_000_000, tz=timezone.utc)


class LocalBlobStore:
    def __init__(self, root: str | os.PathLike[str], url_prefix: str = "/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = "/" + str(url_prefix or "").strip("/")

    def _path_for(self, key: str) -> Path:
        name = PurePosixPath(key).name
        if not name or name != key:
            raise StorageError(f"Invalid blob key: {key!r}")
        return self.root / name

    def url_for(self, key: str) -> str:
        return f"{self.url_prefix}/{key}"

    def _write(self, key: str, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        # "xb" refuses to overwrite an existing blob.
        with open(self._path_for(key), "xb") as fh:
            fh.write(data)

    async def put(self, data: bytes, filename: str, content_type: str) -> StoredBlob:
        key = make_blob_name(filename)
        try:
            await run_in_threadpool(self._write, key, data)
        except OSError as exc:
            raise StorageError(f"Failed to write blob {key}") from exc
        logger.debug("Stored blob %s (%s, %d bytes)", key, content_type, len(data))
        return StoredBlob(key=key, url=self.url_for(key), size_bytes=len(data))

    async def exists(self, key: str) -> bool:
        return await run_in_threadpool(self._path_for(key).is_file)

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await run_in_threadpool(path.unlink, True)
        except OSError as exc:
            raise StorageError(f"Failed to delete blob {key}") from exc

    def _list(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_file())

    async def list_keys(self) -> list[str]:
        try:
            return await run_in_threadpool(self._list)
        except OSError as exc:
            raise StorageError("Failed to list blobs") from exc


class S3BlobStore:
    def __init__(
        self,
        *,
        bucket: str,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        region: str,
        key_prefix: str = "",
        client=None,
    ) -> None:
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region
        self.key_prefix = str(key_prefix or "").lstrip("/")
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=Config(signature_version="s3v4"),
        )
        self._bucket_checked = False

    def _ensure_bucket(self) -> None:
        if self._bucket_checked:
            return

        try:
            self._client.head_bucket(Bucket=self.bucket)
            self._bucket_checked = True
            return
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", "")).lower()
            if code not in {"404", "nosuchbucket", "notfound"}:
                raise

        create_args = {"Bucket": self.bucket}
        region = str(self.region or "").strip()
        if region and region != "us-east-1":
            create_args["CreateBucketConfiguration"] = {"LocationConstraint": region}
        self._client.create_bucket(**create_args)
        self._bucket_checked = True

    def url_for(self, key: str) -> str:
        base = str(self.endpoint_url or "").rstrip("/")
        return f"{base}/{self.bucket}/{key}"

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        self._ensure_bucket()
        self._client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)

    async def put(self, data: bytes, filename: str, content_type: str) -> StoredBlob:
        key = f"{self.key_prefix}{make_blob_name(filename)}"
        try:
            await run_in_threadpool(self._put, key, data, content_type)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload blob {key}") from exc
        return StoredBlob(key=key, url=self.url_for(key), size_bytes=len(data))

    def _exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", "")).lower()
            if code in {"nosuchkey", "404", "notfound"}:
                return False
            raise
        return True

    async def exists(self, key: str) -> bool:
        try:
            return await run_in_threadpool(self._exists, key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to look up blob {key}") from exc

    async def delete(self, key: str) -> None:
        try:
            await run_in_threadpool(self._client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to delete blob {key}") from exc

    def _list(self) -> list[str]:
        self._ensure_bucket()
        keys: list[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.bucket, Prefix=self.key_prefix):
            keys.extend(str(obj["Key"]) for obj in page.get("Contents", []))
        return keys

    async def list_keys(self) -> list[str]:
        try:
            return await run_in_threadpool(self._list)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Failed to list blobs") from exc


def build_blob_store(settings: Settings) -> BlobStore:
    if settings.blob_backend == "s3":
        return S3BlobStore(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            region=settings.s3_region,
            key_prefix=settings.s3_key_prefix,
        )
    return LocalBlobStore(settings.upload_dir, settings.upload_url_prefix)
