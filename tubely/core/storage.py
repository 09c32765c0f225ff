from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from tubely.errors import StorageError

from .config import Settings
from .logging import get_logger


@dataclass(frozen=True, slots=True)
class StorageLocator:
    """Bucket and key of a stored object, persisted on the record as ``"<bucket>,<key>"``."""

    bucket: str
    key: str

    def serialize(self) -> str:
        return f"{self.bucket},{self.key}"

    @classmethod
    def parse(cls, value: str) -> "StorageLocator":
        bucket, sep, key = value.partition(",")
        if not sep or not bucket or not key:
            raise ValueError(f"Malformed storage locator: {value!r}")
        return cls(bucket=bucket, key=key)


@dataclass(slots=True)
class PresignedURL:
    url: str
    expires_s: int
    method: str = "GET"


class ObjectStore(ABC):
    bucket: str

    @abstractmethod
    def put_file(self, key: str, path: Path, *, content_type: str) -> StorageLocator:
        """Write ``path`` under ``key`` in a single attempt, raising ``StorageError`` on failure."""

    @abstractmethod
    def presign_get(self, locator: StorageLocator, *, expires_s: int) -> PresignedURL: ...


class LocalObjectStore(ObjectStore):
    """Filesystem-backed object store suitable for development and tests."""

    def __init__(self, base_path: Path, bucket: str):
        self.base_path = base_path.resolve()
        self.bucket = bucket
        self.logger = get_logger(component="object_store", backend="local")

    def _resolve(self, bucket: str, key: str) -> Path:
        root = (self.base_path / bucket).resolve()
        target = (root / key).resolve()
        if root not in target.parents:
            raise StorageError(f"Object key escapes the bucket: {key}")
        return target

    def put_file(self, key: str, path: Path, *, content_type: str) -> StorageLocator:
        target = self._resolve(self.bucket, key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(path, target)
        except OSError as exc:
            raise StorageError("Failed to store the video", cause=exc) from exc
        self.logger.info("object_written", key=key, content_type=content_type, size_bytes=target.stat().st_size)
        return StorageLocator(bucket=self.bucket, key=key)

    def presign_get(self, locator: StorageLocator, *, expires_s: int) -> PresignedURL:
        target = self._resolve(locator.bucket, locator.key)
        return PresignedURL(url=target.as_uri(), expires_s=expires_s)


class S3ObjectStore(ObjectStore):
    def __init__(self, client: Any, bucket: str):
        self.client = client
        self.bucket = bucket
        self.logger = get_logger(component="object_store", backend="s3", bucket=bucket)

    def put_file(self, key: str, path: Path, *, content_type: str) -> StorageLocator:
        try:
            with path.open("rb") as body:
                self.client.put_object(Bucket=self.bucket, Key=key, Body=body, ContentType=content_type)
        except (BotoCoreError, ClientError, OSError) as exc:
            self.logger.error("object_write_failed", key=key, error=str(exc))
            raise StorageError("Failed to store the video in s3", cause=exc) from exc
        self.logger.info("object_written", key=key, content_type=content_type)
        return StorageLocator(bucket=self.bucket, key=key)

    def presign_get(self, locator: StorageLocator, *, expires_s: int) -> PresignedURL:
        try:
            url = self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": locator.bucket, "Key": locator.key},
                ExpiresIn=expires_s,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("Failed to get presigned s3 url", cause=exc) from exc
        return PresignedURL(url=url, expires_s=expires_s)


def build_s3_client(settings: Settings) -> Any:
    # total_max_attempts counts the first request; max_attempts would add one retry on top.
    return boto3.client(
        "s3",
        region_name=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        aws_access_key_id=settings.secrets.s3_access_key_id,
        aws_secret_access_key=settings.secrets.s3_secret_access_key,
        config=BotoConfig(signature_version="s3v4", retries={"total_max_attempts": 1, "mode": "standard"}),
    )


def get_object_store(settings: Settings) -> ObjectStore:
    if settings.storage_backend == "local":
        return LocalObjectStore(base_path=Path(settings.local_storage_base_path), bucket=settings.s3_bucket)
    if settings.storage_backend == "s3":
        return S3ObjectStore(build_s3_client(settings), bucket=settings.s3_bucket)
    raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")


__all__ = [
    "ObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
    "StorageLocator",
    "PresignedURL",
    "build_s3_client",
    "get_object_store",
]
