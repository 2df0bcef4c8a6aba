from __future__ import annotations

import logging
import os
import re
import time
from io import BytesIO
from pathlib import Path

from PIL import Image
from pillow_heif import read_heif

from .errors import StoreError
from .roster import LogoFile

GCS_LOGO_BUCKET = os.getenv("GCS_LOGO_BUCKET")
GCS_LOGO_BASE_URL = os.getenv("GCS_LOGO_BASE_URL")
GCS_LOGO_CACHE_CONTROL = os.getenv("GCS_LOGO_CACHE_CONTROL", "public, max-age=86400")

BASE_DIR = Path(__file__).resolve().parent
STATIC_DIR = BASE_DIR / "static"
UPLOAD_DIR = STATIC_DIR / "uploads"

HEIC_SUFFIXES = {".heic", ".heif"}
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

logger = logging.getLogger(__name__)


def gcs_logos_enabled() -> bool:
    """Return True when a Google Cloud Storage bucket is configured for logos."""
    return bool(GCS_LOGO_BUCKET)


def gcs_public_url(object_name: str, bucket_name: str | None = None) -> str:
    bucket_name = bucket_name or GCS_LOGO_BUCKET
    if not bucket_name:
        raise RuntimeError("GCS_LOGO_BUCKET is not configured.")
    base_url = (GCS_LOGO_BASE_URL or f"https://storage.googleapis.com/{bucket_name}").rstrip("/")
    return f"{base_url}/{object_name.lstrip('/')}"


def logo_object_key(filename: str, *, now: float | None = None) -> str:
    """Timestamp-prefixed key so repeated uploads of ``logo.png`` never collide."""
    millis = int((time.time() if now is None else now) * 1000)
    basename = Path(filename or "logo").name
    cleaned = _UNSAFE_KEY_CHARS.sub("-", basename).strip("-.") or "logo"
    return f"{millis}-{cleaned}"


def prepare_logo(logo: LogoFile) -> LogoFile:
    """Convert HEIC/HEIF uploads to JPEG so every browser can render the logo."""
    suffix = Path(logo.filename).suffix.lower()
    if suffix not in HEIC_SUFFIXES:
        if suffix in {".jpg", ".jpeg"}:
            return LogoFile(logo.filename, "image/jpeg", logo.data)
        return logo
    try:
        heif_file = read_heif(logo.data)
        img = Image.frombytes(heif_file.mode, heif_file.size, heif_file.data, "raw")
        buffer = BytesIO()
        img.save(buffer, format="JPEG")
    except (OSError, ValueError, RuntimeError) as exc:
        raise StoreError(f"{logo.filename}: could not convert HEIC image.") from exc
    return LogoFile(f"{Path(logo.filename).stem}.jpg", "image/jpeg", buffer.getvalue())


class LocalBlobStorage:
    """Store uploads under ``static/uploads/<bucket>/`` and serve them from ``/static``."""

    def __init__(self, root: Path = UPLOAD_DIR, *, url_prefix: str = "/static/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        destination = self.root / bucket / key.lstrip("/")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if destination.exists():
                raise StoreError(f"{bucket}/{key} already exists.")
            with destination.open("wb") as buffer:
                buffer.write(data)
        except OSError as exc:
            logger.exception("Writing upload %s/%s failed", bucket, key)
            raise StoreError(str(exc)) from exc

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{self.url_prefix}/{bucket}/{key.lstrip('/')}"


class GcsBlobStorage:
    """Upload logos to the configured GCS bucket, one prefix per logical bucket."""

    def __init__(self, bucket_name: str | None = None) -> None:
        self.bucket_name = bucket_name or GCS_LOGO_BUCKET
        if not self.bucket_name:
            raise RuntimeError("GCS logo storage is not enabled.")

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        try:
            from google.api_core.exceptions import GoogleAPIError
            from google.auth.exceptions import GoogleAuthError
            from google.cloud import storage
        except ImportError as exc:  # pragma: no cover - dependency absent in some envs
            raise StoreError("google-cloud-storage is required to upload logos to GCS.") from exc

        object_name = self._object_name(bucket, key)
        try:
            client = storage.Client()
            blob = client.bucket(self.bucket_name).blob(object_name)
            blob.upload_from_file(BytesIO(data), content_type=content_type)
            if GCS_LOGO_CACHE_CONTROL:
                blob.cache_control = GCS_LOGO_CACHE_CONTROL
                blob.patch()
        except (GoogleAPIError, GoogleAuthError) as exc:
            logger.exception("GCS upload of %s failed", object_name)
            raise StoreError(str(exc)) from exc

    def get_public_url(self, bucket: str, key: str) -> str:
        return gcs_public_url(self._object_name(bucket, key), self.bucket_name)

    @staticmethod
    def _object_name(bucket: str, key: str) -> str:
        return f"{bucket}/{key.lstrip('/')}"


def build_blob_storage() -> LocalBlobStorage | GcsBlobStorage:
    if gcs_logos_enabled():
        return GcsBlobStorage()
    return LocalBlobStorage()
