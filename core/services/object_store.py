# =============================================================================
# core/services/object_store.py - Object Store Backends
# =============================================================================
# Key-addressed byte storage for asset contents.
#
# Contract shared by all backends:
# - put(key, body, content_type, content_length) raises ObjectStoreError on
#   failure, including when the delivered length differs from the declared
#   one (nothing is written in that case)
# - get(key) returns a StoredObject, or None when the key does not exist
# - delete(key) is a no-op for an empty key or a missing object
#
# Backends:
# - S3ObjectStore: any S3-compatible bucket (AWS, Cloudflare R2, MinIO)
# - SupabaseObjectStore: a Supabase Storage bucket
# =============================================================================

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, BinaryIO

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from storage3.exceptions import StorageApiError

from app.config import Settings
from app.exceptions import ObjectStoreError
from core.models.asset import StoredObject
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_S3_MISSING_CODES = {"nosuchkey", "404", "notfound"}


def read_body(body: bytes | BinaryIO) -> bytes:
    """Materialise a request body (bytes or a file-like object)."""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    return body.read()


def check_length(key: str, payload: bytes, content_length: int) -> None:
    if len(payload) != content_length:
        raise ObjectStoreError(
            "put",
            key,
            f"content length mismatch (declared {content_length}, received {len(payload)})",
        )


class ObjectStore(ABC):
    """Base class for object store backends."""

    @abstractmethod
    def put(
        self,
        key: str,
        body: bytes | BinaryIO,
        content_type: str | None,
        content_length: int,
    ) -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> StoredObject | None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def ping(self) -> None:
        """Raise if the bucket is unreachable (used by readiness checks)."""
        ...


# =============================================================================
# S3 / R2
# =============================================================================

def get_s3_client(settings: Settings):
    """Build a boto3 S3 client from settings. Empty endpoint means AWS."""
    return boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT_URL.strip() or None,
        aws_access_key_id=settings.S3_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY or None,
        region_name=settings.S3_REGION_NAME,
        config=Config(
            signature_version="s3v4",
            connect_timeout=settings.S3_CONNECT_TIMEOUT_SECONDS,
            read_timeout=settings.S3_READ_TIMEOUT_SECONDS,
            retries={"max_attempts": settings.S3_MAX_ATTEMPTS, "mode": "standard"},
        ),
    )


class S3ObjectStore(ObjectStore):
    """Object store backed by an S3-compatible bucket."""

    def __init__(self, client: Any, bucket: str, cache_control: str | None = None):
        self.client = client
        self.bucket = bucket
        self.cache_control = cache_control

    def put(self, key, body, content_type, content_length):
        payload = read_body(body)
        check_length(key, payload, content_length)

        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": payload,
            "ContentType": content_type or DEFAULT_CONTENT_TYPE,
            "ContentLength": content_length,
        }
        if self.cache_control:
            params["CacheControl"] = self.cache_control

        try:
            self.client.put_object(**params)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 put failed for {key}: {e}")
            raise ObjectStoreError("put", key, str(e)) from e

        logger.info(f"Stored object {key} ({content_length} bytes)")

    def get(self, key):
        if not key:
            return None
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", "")).lower()
            if code in _S3_MISSING_CODES:
                return None
            raise ObjectStoreError("get", key, str(e)) from e
        except BotoCoreError as e:
            raise ObjectStoreError("get", key, str(e)) from e

        return StoredObject(
            body=obj["Body"].read(),
            content_type=obj.get("ContentType"),
            etag=obj.get("ETag"),
            cache_control=obj.get("CacheControl"),
        )

    def delete(self, key):
        if not key:
            return
        try:
            # S3 DeleteObject succeeds for missing keys
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"S3 delete failed for {key}: {e}")
            raise ObjectStoreError("delete", key, str(e)) from e

        logger.info(f"Deleted object {key}")

    def ping(self):
        self.client.head_bucket(Bucket=self.bucket)


# =============================================================================
# Supabase Storage
# =============================================================================

_MAX_AGE = re.compile(r"max-age=(\d+)")


def cache_seconds(cache_control: str | None, default: int = 3600) -> int:
    """Extract max-age from a Cache-Control value (Supabase only takes seconds)."""
    match = _MAX_AGE.search(cache_control or "")
    return int(match.group(1)) if match else default


def _is_missing(error: StorageApiError) -> bool:
    status = str(getattr(error, "status", "") or "")
    message = str(getattr(error, "message", "") or error).lower()
    return status in {"400", "404"} and "not found" in message


class SupabaseObjectStore(ObjectStore):
    """Object store backed by a Supabase Storage bucket."""

    def __init__(self, client: Any, bucket: str, cache_control: str | None = None):
        self.client = client
        self.bucket = bucket
        self.cache_seconds = cache_seconds(cache_control)

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def put(self, key, body, content_type, content_length):
        payload = read_body(body)
        check_length(key, payload, content_length)

        try:
            self._bucket().upload(
                path=key,
                file=payload,
                file_options={
                    "content-type": content_type or DEFAULT_CONTENT_TYPE,
                    "cache-control": str(self.cache_seconds),
                    "upsert": "false",
                },
            )
        except Exception as e:
            logger.error(f"Storage upload failed for {key}: {e}")
            raise ObjectStoreError("put", key, str(e)) from e

        logger.info(f"Uploaded file to storage: {key} ({content_length} bytes)")

    def get(self, key):
        if not key:
            return None
        try:
            data = self._bucket().download(key)
        except StorageApiError as e:
            if _is_missing(e):
                return None
            raise ObjectStoreError("get", key, str(e)) from e
        except Exception as e:
            raise ObjectStoreError("get", key, str(e)) from e

        # Storage downloads do not carry the content type; callers fall back
        # to the type recorded in the metadata row.
        return StoredObject(body=data)

    def delete(self, key):
        if not key:
            return
        try:
            self._bucket().remove([key])
        except Exception as e:
            logger.error(f"Failed to delete file {key}: {e}")
            raise ObjectStoreError("delete", key, str(e)) from e

        logger.info(f"Deleted file from storage: {key}")

    def ping(self):
        self.client.storage.get_bucket(self.bucket)


# =============================================================================
# Factory
# =============================================================================

def build_object_store(settings: Settings) -> ObjectStore:
    """Create the backend selected by OBJECT_STORE_BACKEND."""
    if settings.OBJECT_STORE_BACKEND == "s3":
        return S3ObjectStore(
            get_s3_client(settings),
            settings.STORAGE_BUCKET,
            cache_control=settings.ASSET_CACHE_CONTROL,
        )
    return SupabaseObjectStore(
        SupabaseClient.get_client(),
        settings.STORAGE_BUCKET,
        cache_control=settings.ASSET_CACHE_CONTROL,
    )
