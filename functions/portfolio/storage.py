"""
Storage abstraction for an S3-compatible object store and in-memory testing.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"
STREAM_CHUNK_SIZE = 64 * 1024


@dataclass
class StoredObject:
    body: Iterable[bytes]
    content_type: Optional[str] = None
    etag: Optional[str] = None
    cache_control: Optional[str] = None

    def read(self) -> bytes:
        return b"".join(self.body)


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        ...

    def get_object(self, key: str) -> Optional[StoredObject]:
        ...

    def get_bytes(self, key: str) -> Optional[bytes]:
        ...


def _chunks(data: bytes) -> Iterator[bytes]:
    for start in range(0, len(data), STREAM_CHUNK_SIZE):
        yield data[start : start + STREAM_CHUNK_SIZE]


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    stored_objects: dict = field(default_factory=dict)

    def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        self.stored_objects[key] = {
            "body": bytes(body),
            "content_type": content_type,
            "cache_control": cache_control,
            "etag": f'"{hashlib.md5(body).hexdigest()}"',
        }

    def get_object(self, key: str) -> Optional[StoredObject]:
        stored = self.stored_objects.get(key)
        if stored is None:
            return None
        return StoredObject(
            body=_chunks(stored["body"]),
            content_type=stored["content_type"],
            etag=stored["etag"],
            cache_control=stored["cache_control"],
        )

    def get_bytes(self, key: str) -> Optional[bytes]:
        stored = self.stored_objects.get(key)
        return stored["body"] if stored else None

    def reset(self) -> None:
        self.stored_objects.clear()


def _is_missing(error: ClientError) -> bool:
    code = error.response.get("Error", {}).get("Code")
    return code in ("NoSuchKey", "404", "NotFound")


@dataclass
class S3StorageClient:
    """
    S3-compatible storage client (Cloudflare R2, Tencent COS, AWS S3).
    """

    bucket: str
    region: str
    endpoint: str
    access_key_id: str
    secret_access_key: str
    addressing_style: str = "auto"

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": self.addressing_style},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        cache_control: Optional[str] = None,
    ) -> None:
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if cache_control:
            params["CacheControl"] = cache_control
        self._client.put_object(**params)

    def get_object(self, key: str) -> Optional[StoredObject]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as error:
            if _is_missing(error):
                return None
            raise
        return StoredObject(
            body=response["Body"].iter_chunks(chunk_size=STREAM_CHUNK_SIZE),
            content_type=response.get("ContentType"),
            etag=response.get("ETag"),
            cache_control=response.get("CacheControl"),
        )

    def get_bytes(self, key: str) -> Optional[bytes]:
        stored = self.get_object(key)
        return stored.read() if stored else None
