import base64
import binascii
import logging
import os
import re
import uuid
from dataclasses import dataclass

from app.core.errors import UpstreamServiceError, ValidationError

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w/+.-]+)?;base64,(?P<data>.*)$", re.DOTALL)
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredObject:
    url: str
    public_id: str


def decode_payload(data: bytes | str, content_type: str | None = None) -> tuple[bytes, str]:
    """Accept raw bytes or a ``data:<mime>;base64,...`` string. Returns (bytes, content_type)."""
    if isinstance(data, bytes):
        return data, content_type or "application/octet-stream"
    m = _DATA_URI.match(data.strip())
    if not m:
        raise ValidationError("File must be bytes or a base64 data URI")
    try:
        raw = base64.b64decode(m.group("data"), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Invalid base64 file data")
    return raw, content_type or m.group("mime") or "application/octet-stream"


def safe_filename(filename: str | None) -> str:
    name = _UNSAFE.sub("-", os.path.basename(filename or "")).strip("-.")
    return name or "file"


class ObjectStorage:
    """Where uploaded documents and media live. ``public_id`` is the handle used to delete."""

    def __init__(self, root_folder: str = ""):
        self.root_folder = root_folder.strip("/")

    def object_key(self, folder: str, filename: str) -> str:
        parts = [p for p in (self.root_folder, folder.strip("/")) if p]
        parts.append(f"{uuid.uuid4().hex[:12]}-{safe_filename(filename)}")
        return "/".join(parts)

    def upload(self, data: bytes | str, folder: str, filename: str, content_type: str | None = None) -> StoredObject:
        raise NotImplementedError

    def delete(self, public_id: str) -> None:
        raise NotImplementedError


class LocalObjectStorage(ObjectStorage):
    def __init__(self, base_dir: str, public_base_url: str = "/media", root_folder: str = ""):
        super().__init__(root_folder)
        self.base_dir = base_dir
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, public_id: str) -> str:
        path = os.path.abspath(os.path.join(self.base_dir, public_id))
        if not path.startswith(os.path.abspath(self.base_dir) + os.sep):
            raise ValidationError("Invalid object id")
        return path

    def upload(self, data, folder, filename, content_type=None):
        raw, _ = decode_payload(data, content_type)
        key = self.object_key(folder, filename)
        path = self._path(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(raw)
        except OSError as e:
            raise UpstreamServiceError(f"Failed to store file: {e}") from e
        return StoredObject(url=f"{self.public_base_url}/{key}", public_id=key)

    def delete(self, public_id):
        try:
            os.remove(self._path(public_id))
        except FileNotFoundError:
            logger.info("Local object %s already gone", public_id)
        except OSError as e:
            raise UpstreamServiceError(f"Failed to delete file: {e}") from e


class GcsObjectStorage(ObjectStorage):
    def __init__(self, bucket_name: str, root_folder: str = ""):
        super().__init__(root_folder)
        if not bucket_name:
            raise RuntimeError("GCS_BUCKET_NAME is required for the gcs storage backend")
        self.bucket_name = bucket_name
        self._bucket = None

    @property
    def bucket(self):
        if self._bucket is None:
            from google.cloud import storage  # type: ignore

            self._bucket = storage.Client().bucket(self.bucket_name)
        return self._bucket

    def upload(self, data, folder, filename, content_type=None):
        from google.api_core import exceptions as gexc  # type: ignore

        raw, ctype = decode_payload(data, content_type)
        key = self.object_key(folder, filename)
        try:
            blob = self.bucket.blob(key)
            blob.upload_from_string(raw, content_type=ctype)
        except gexc.GoogleAPIError as e:
            raise UpstreamServiceError(f"Failed to upload to storage: {e}") from e
        return StoredObject(url=f"https://storage.googleapis.com/{self.bucket_name}/{key}", public_id=key)

    def delete(self, public_id):
        from google.api_core import exceptions as gexc  # type: ignore

        try:
            self.bucket.blob(public_id).delete()
        except gexc.NotFound:
            logger.info("GCS object %s already gone", public_id)
        except gexc.GoogleAPIError as e:
            raise UpstreamServiceError(f"Failed to delete from storage: {e}") from e


def build_storage(cfg) -> ObjectStorage:
    backend = (cfg.STORAGE_BACKEND or "local").lower()
    if backend == "gcs":
        return GcsObjectStorage(cfg.GCS_BUCKET_NAME, root_folder=cfg.STORAGE_ROOT_FOLDER)
    if backend != "local":
        raise RuntimeError(f"Unknown STORAGE_BACKEND {cfg.STORAGE_BACKEND!r}")
    return LocalObjectStorage(cfg.STORAGE_LOCAL_DIR, cfg.STORAGE_PUBLIC_BASE_URL, root_folder=cfg.STORAGE_ROOT_FOLDER)
