"""Object storage service backed by MinIO.

Keys are namespaced under ``STORAGE_PREFIX``; every SDK call goes through
``log_outbound_call`` and SDK failures surface as ``StorageError``.
"""

import io
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Optional

from minio import Minio

from app.api.dependencies.storage import get_minio_client, public_base_url
from app.core.config import settings
from app.core.observability import log_outbound_call
from app.services.base import BaseService
from app.services.exceptions import StorageError, StorageNotConfiguredError


@dataclass(frozen=True)
class StoredObject:
    bucket: str
    key: str
    public_url: str


@dataclass(frozen=True)
class PresignedUpload:
    url: str
    bucket: str
    key: str
    public_url: str
    # Headers the uploader must send with the PUT
    headers: Dict[str, str] = field(default_factory=dict)


class StorageService(BaseService):
    """Upload, presign and address objects in the exports bucket."""

    def __init__(
        self,
        client: Optional[Minio] = None,
        bucket: Optional[str] = None,
        prefix: Optional[str] = None,
        base_url: Optional[str] = None,
        presign_ttl_seconds: Optional[int] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(correlation_id)
        self._client = client
        self.bucket = settings.MINIO_BUCKET if bucket is None else bucket
        self.prefix = settings.STORAGE_PREFIX if prefix is None else prefix
        self._base_url = base_url
        self.presign_ttl = timedelta(seconds=presign_ttl_seconds or settings.STORAGE_PRESIGN_TTL_SECONDS)

    @property
    def client(self) -> Minio:
        if self._client is None:
            self._client = get_minio_client()
        return self._client

    def _require_bucket(self) -> str:
        if not self.bucket:
            raise StorageNotConfiguredError(correlation_id=self.correlation_id)
        return self.bucket

    def build_object_key(self, path: str) -> str:
        cleaned_prefix = self.prefix.strip("/") + "/" if self.prefix else ""
        return re.sub(r"/{2,}", "/", f"{cleaned_prefix}{path}")

    def public_url(self, key: str) -> str:
        base = (self._base_url or public_base_url()).rstrip("/")
        return f"{base}/{key}"

    def create_presigned_upload(self, key: str, content_type: Optional[str] = None) -> PresignedUpload:
        bucket = self._require_bucket()
        try:
            url = log_outbound_call(
                "minio", key, "presigned_put_object", self.correlation_id,
                lambda: self.client.presigned_put_object(bucket, key, expires=self.presign_ttl),
            )
        except Exception as e:
            raise StorageError("presign_upload", str(e), key=key, correlation_id=self.correlation_id) from e
        return PresignedUpload(
            url=url,
            bucket=bucket,
            key=key,
            public_url=self.public_url(key),
            headers={"Content-Type": content_type or "application/octet-stream"},
        )

    def upload_object(self, key: str, body: bytes, content_type: Optional[str] = None) -> StoredObject:
        bucket = self._require_bucket()
        self.log_operation("storage_upload_attempt", key=key, size_bytes=len(body))
        try:
            log_outbound_call(
                "minio", key, "put_object", self.correlation_id,
                lambda: self.client.put_object(
                    bucket,
                    key,
                    io.BytesIO(body),
                    length=len(body),
                    content_type=content_type or "application/octet-stream",
                ),
            )
        except Exception as e:
            raise StorageError("upload", str(e), key=key, correlation_id=self.correlation_id) from e
        self.log_operation("storage_upload_success", key=key)
        return StoredObject(bucket=bucket, key=key, public_url=self.public_url(key))

    def create_presigned_download(self, key: str) -> str:
        bucket = self._require_bucket()
        try:
            return log_outbound_call(
                "minio", key, "presigned_get_object", self.correlation_id,
                lambda: self.client.presigned_get_object(bucket, key, expires=self.presign_ttl),
            )
        except Exception as e:
            raise StorageError("presign_download", str(e), key=key, correlation_id=self.correlation_id) from e
