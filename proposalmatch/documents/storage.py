"""
storage.py - S3 object storage gateway for uploaded proposal files.

Key layout:  <prefix>/<epoch millis>_<sanitized file name>
URL:         https://<bucket>.s3.<region>.amazonaws.com/<key>

Design:
  - Client created once in main.py lifespan (ObjectStorage.from_settings) and
    stored on app.state.storage
  - is_configured() is a pre-flight gate, not a fallible call
  - boto3 is blocking: every call runs in asyncio.to_thread()
  - Every provider failure surfaces as StorageError with a fixed message;
    the provider text is logged, never returned. Callers on the upload
    path treat it as a warning
  - Logs key and size only, never file contents or credentials
"""
import asyncio
import logging
import re
import time
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from proposalmatch.config import Settings
from proposalmatch.errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "proposals"
SIGNED_URL_TTL = 3600  # 1 hour

# Caller-facing messages; the provider's own error text goes to the log only
UPLOAD_FAILED = "Storage upload failed"
SIGN_FAILED = "Could not sign storage URL"
DELETE_FAILED = "Storage delete failed"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


class StoredObject(BaseModel):
    key: str
    url: str


def sanitize_name(name: str) -> str:
    """Replace every character outside [A-Za-z0-9._-] with '_'."""
    return _UNSAFE_CHARS.sub("_", name or "") or "file"


def build_key(prefix: str, name: str, timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{prefix}/{timestamp_ms}_{sanitize_name(name)}"


class ObjectStorage:
    def __init__(
        self,
        bucket: str,
        region: str,
        access_key_id: str,
        secret_access_key: str,
        prefix: str = DEFAULT_PREFIX,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.prefix = prefix.strip("/") or DEFAULT_PREFIX
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        if client is None and self.is_configured():
            client = boto3.client(
                "s3",
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
            )
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorage":
        return cls(
            bucket=settings.aws_bucket,
            region=settings.aws_default_region,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            prefix=settings.storage_prefix,
        )

    def is_configured(self) -> bool:
        """True iff credentials, region and bucket are all present."""
        return bool(
            self._access_key_id
            and self._secret_access_key
            and self.region
            and self.bucket
        )

    def object_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def _require_client(self) -> Any:
        if not self.is_configured() or self._client is None:
            raise StorageError("Object storage is not configured", reason="NOT_CONFIGURED")
        return self._client

    async def upload(self, data: bytes, suggested_name: str, content_type: str) -> StoredObject:
        """
        Write data under a fresh, timestamp-prefixed key.

        Raises:
            StorageError: not configured, or the PUT failed.
        """
        client = self._require_client()
        key = build_key(self.prefix, suggested_name)
        try:
            await asyncio.to_thread(
                client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 upload failed key=%s size=%d error=%s", key, len(data), exc)
            raise StorageError(UPLOAD_FAILED) from exc

        logger.info("S3 upload complete key=%s size=%d", key, len(data))
        return StoredObject(key=key, url=self.object_url(key))

    async def signed_url(self, key: str, expires_in: int = SIGNED_URL_TTL) -> str:
        """Presigned GET URL for a private bucket."""
        client = self._require_client()
        try:
            return await asyncio.to_thread(
                client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 presign failed key=%s error=%s", key, exc)
            raise StorageError(SIGN_FAILED) from exc

    async def delete(self, key: str) -> None:
        client = self._require_client()
        try:
            await asyncio.to_thread(client.delete_object, Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 delete failed key=%s error=%s", key, exc)
            raise StorageError(DELETE_FAILED) from exc
        logger.info("S3 object deleted key=%s", key)
