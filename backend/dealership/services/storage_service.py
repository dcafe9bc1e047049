"""
S3 object storage for account media (profile pictures).

The database only keeps object keys; bytes live in the bucket.

Key conventions
───────────────
• Profile pictures : profile-pictures/account-{email}-{yyyyMMdd-HHmmss}.{ext}
"""

import asyncio
import functools
import re
import threading
from typing import Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from dealership.core.config import get_settings
from dealership.core.exceptions import StorageError
from dealership.core.logging import get_logger

logger = get_logger("storage")

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9@._\-]+")

# ── Thread-local boto3 client (boto3 clients are not thread-safe) ────────────
_thread_local = threading.local()


def _make_boto3_client():
    """Create a boto3 S3 client using current settings. Called once per thread."""
    s = get_settings()
    kwargs: dict = {
        "region_name": s.AWS_REGION or "us-east-1",
    }
    if s.AWS_ACCESS_KEY_ID:
        kwargs["aws_access_key_id"] = s.AWS_ACCESS_KEY_ID
    if s.AWS_SECRET_ACCESS_KEY:
        kwargs["aws_secret_access_key"] = s.AWS_SECRET_ACCESS_KEY
    if s.AWS_ENDPOINT_URL:
        # MinIO or LocalStack for local dev
        kwargs["endpoint_url"] = s.AWS_ENDPOINT_URL
    return boto3.client("s3", **kwargs)


def _s3():
    """Return this thread's S3 client, creating it if needed."""
    if not hasattr(_thread_local, "client"):
        _thread_local.client = _make_boto3_client()
    return _thread_local.client


def build_key(path_segments: Sequence[str], name_hint: str) -> str:
    """Join path segments and a file name into a key with no unsafe characters."""
    parts = [_UNSAFE_KEY_CHARS.sub("-", p.strip("/")) for p in path_segments if p.strip("/")]
    parts.append(_UNSAFE_KEY_CHARS.sub("-", name_hint))
    return "/".join(parts)


# ── Storage service ──────────────────────────────────────────────────────────
class StorageService:
    """
    Async-compatible S3 storage via boto3.

    All boto3 calls are synchronous and run through ``run_in_executor``.
    Every failure surfaces as ``StorageError``.
    """

    def __init__(self) -> None:
        s = get_settings()
        self.bucket: str = s.S3_BUCKET_NAME
        self.url_ttl: int = s.S3_PRESIGNED_URL_TTL

    @staticmethod
    async def _run(fn, *args, **kwargs):
        """Run a synchronous callable in the default thread-pool executor."""
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc

    async def upload(
        self,
        data: bytes,
        path_segments: Sequence[str],
        name_hint: str,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Store the bytes and return the object key to persist."""
        key = build_key(path_segments, name_hint)

        def _put():
            _s3().put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )

        await self._run(_put)
        logger.info("S3 upload: s3://%s/%s (%d bytes)", self.bucket, key, len(data))
        return key

    async def download(self, key: str) -> bytes:
        def _get() -> bytes:
            resp = _s3().get_object(Bucket=self.bucket, Key=key)
            return resp["Body"].read()

        data: bytes = await self._run(_get)
        logger.debug("S3 download: s3://%s/%s (%d bytes)", self.bucket, key, len(data))
        return data

    async def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error on S3."""
        def _del():
            _s3().delete_object(Bucket=self.bucket, Key=key)

        await self._run(_del)
        logger.info("S3 delete: s3://%s/%s", self.bucket, key)

    async def presigned_url(self, key: str, ttl: int | None = None) -> str:
        """Time-limited GET URL for the key (default TTL: S3_PRESIGNED_URL_TTL)."""
        expires = ttl if ttl is not None else self.url_ttl

        def _sign() -> str:
            return _s3().generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires,
            )

        return await self._run(_sign)


# ── Singleton ─────────────────────────────────────────────────────────────────
_storage_instance: Optional[StorageService] = None


def get_storage() -> StorageService:
    """Return the application-wide StorageService singleton."""
    global _storage_instance
    if _storage_instance is None:
        _storage_instance = StorageService()
    return _storage_instance
