from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Protocol

from gangesbot.core.config import settings

logger = logging.getLogger(__name__)


class BlobStoreUnavailable(RuntimeError):
    """The configured backend cannot be used (missing bucket, bad settings)."""


class BlobStore(Protocol):
    def upload(self, data: bytes, path: str, content_type: str) -> str:
        """Store ``data`` under ``path`` and return a public URL."""
        ...


class LocalBlobStore:
    """Writes files under MEDIA_ROOT; the app serves them from MEDIA_URL_PREFIX."""

    def __init__(self, root: str | Path, url_prefix: str):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, data: bytes, path: str, content_type: str) -> str:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Refusing to write outside media root: {path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return f"{self.url_prefix}/{path}"


class S3BlobStore:
    def __init__(self, bucket: str, region: Optional[str] = None, public_base_url: Optional[str] = None):
        if not bucket:
            raise BlobStoreUnavailable("S3_BUCKET_NAME is not set; S3 attachment storage is unavailable.")
        self.bucket = bucket
        self.region = region
        self.public_base_url = (public_base_url or f"https://{bucket}.s3.amazonaws.com").rstrip("/")
        self._client: Any = None

    @property
    def client(self) -> Any:
        # Lazy import: boto3 is only needed when the s3 backend is selected.
        if self._client is None:
            import boto3

            self._client = boto3.client("s3", region_name=self.region)
        return self._client

    def upload(self, data: bytes, path: str, content_type: str) -> str:
        self.client.put_object(Bucket=self.bucket, Key=path, Body=data, ContentType=content_type)
        return f"{self.public_base_url}/{path}"


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    if settings.BLOB_BACKEND == "s3":
        logger.info("Using S3 attachment storage (bucket=%s)", settings.S3_BUCKET_NAME)
        return S3BlobStore(settings.S3_BUCKET_NAME, settings.S3_REGION, settings.S3_PUBLIC_BASE_URL)
    return LocalBlobStore(settings.MEDIA_ROOT, settings.MEDIA_URL_PREFIX)
