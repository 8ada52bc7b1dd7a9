from functools import lru_cache

from minio import Minio
from app.core.config import settings

def _normalize_minio_endpoint(endpoint: str, default_secure: bool) -> tuple[str, bool]:
  ep = (endpoint or "").strip()
  secure = default_secure
  if ep.startswith("http://"):
    secure = False
    ep = ep[len("http://"):]
  elif ep.startswith("https://"):
    secure = True
    ep = ep[len("https://"):]
  if "/" in ep:
    ep = ep.split("/", 1)[0]
  return ep, secure


@lru_cache(maxsize=1)
def get_minio_client() -> Minio:
  """Shared MinIO client; the bucket is created on first use."""
  endpoint, secure = _normalize_minio_endpoint(settings.MINIO_ENDPOINT, settings.MINIO_SECURE)
  client = Minio(
    endpoint,
    access_key=settings.MINIO_ACCESS_KEY,
    secret_key=settings.MINIO_SECRET_KEY,
    secure=secure,
  )
  if settings.MINIO_BUCKET and not client.bucket_exists(settings.MINIO_BUCKET):
    client.make_bucket(settings.MINIO_BUCKET)
  return client


def public_base_url() -> str:
  """Base URL for links handed to clients: explicit setting, else the public MinIO endpoint."""
  if settings.STORAGE_PUBLIC_BASE_URL:
    return settings.STORAGE_PUBLIC_BASE_URL.rstrip("/")
  endpoint, secure = _normalize_minio_endpoint(settings.MINIO_PUBLIC_ENDPOINT, settings.MINIO_SECURE)
  scheme = "https" if secure else "http"
  return f"{scheme}://{endpoint}/{settings.MINIO_BUCKET}"
