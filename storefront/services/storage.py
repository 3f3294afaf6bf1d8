"""
Storage backends for uploaded product images.

One backend is built at process start from settings (see build_storage_backend) and
passed down explicitly; nothing branches on the environment per call.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from storefront.core.errors import StorageUnavailableError

if TYPE_CHECKING:
    from storefront.core.config import Settings

logger = logging.getLogger(__name__)

S3_KEY_PREFIX = "products/"
_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


@dataclass(frozen=True)
class ImageUpload:
    """An accepted upload as handed to a backend."""

    filename: str
    content_type: str
    data: bytes


@dataclass(frozen=True)
class StoredObject:
    """Where a stored file ended up: public URL plus the key used to delete it."""

    url: str
    storage_key: str


def generate_object_name(original_filename: str) -> str:
    """
    Build a collision-resistant name: product-<ms timestamp>-<random>-<safe basename><ext>.
    The extension is preserved; everything non-alphanumeric in the basename becomes '-'.
    """
    path = PurePosixPath(original_filename.replace("\\", "/"))
    ext = path.suffix
    safe_name = _UNSAFE_NAME_CHARS.sub("-", path.stem) or "image"
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"product-{unique_suffix}-{safe_name}{ext}"


def key_from_url(url: str) -> str | None:
    """Recover an object key from a URL this backend returned; None if unparseable."""
    if not url:
        return None
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return None
    key = unquote(parsed.path.lstrip("/"))
    return key or None


class StorageBackend(ABC):
    """Interface shared by the local-disk and object-store backends."""

    @abstractmethod
    def store(self, files: list[ImageUpload]) -> list[StoredObject]:
        """Persist every file; on failure nothing from the batch is left behind."""

    @abstractmethod
    def delete(self, storage_key: str) -> bool:
        """Delete one stored file. Returns False (never raises) when it could not."""

    def delete_many(self, storage_keys: list[str]) -> int:
        """Delete several files; returns how many were actually removed."""
        return sum(1 for key in storage_keys if key and self.delete(key))


class LocalStorageBackend(StorageBackend):
    """Writes files into a directory that the app serves under /uploads."""

    def __init__(self, upload_dir: str | Path, public_base_url: str, url_path: str = "/uploads") -> None:
        self.upload_dir = Path(upload_dir)
        self.public_base_url = public_base_url.rstrip("/")
        self.url_path = "/" + url_path.strip("/")

    def url_for(self, filename: str) -> str:
        return f"{self.public_base_url}{self.url_path}/{filename}"

    def _path_for(self, filename: str) -> Path | None:
        # Only bare filenames are ever produced; anything else is not ours to delete.
        if not filename or PurePosixPath(filename).name != filename or filename in (".", ".."):
            return None
        return self.upload_dir / filename

    def store(self, files: list[ImageUpload]) -> list[StoredObject]:
        stored: list[StoredObject] = []
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            for payload in files:
                filename = generate_object_name(payload.filename)
                (self.upload_dir / filename).write_bytes(payload.data)
                stored.append(StoredObject(url=self.url_for(filename), storage_key=filename))
        except OSError as e:
            logger.error("Local upload failed after %s file(s): %s", len(stored), e)
            self.delete_many([s.storage_key for s in stored])
            raise StorageUnavailableError("Failed to store uploaded file") from e
        return stored

    def delete(self, storage_key: str) -> bool:
        path = self._path_for(storage_key)
        if path is None:
            logger.warning("Refusing to delete unexpected storage key %r", storage_key)
            return False
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Error deleting file %s: %s", path, e)
            return False


class S3StorageBackend(StorageBackend):
    """Puts public-read objects into an S3 bucket under products/."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        client: Any = None,
        key_prefix: str = S3_KEY_PREFIX,
    ) -> None:
        self.bucket = bucket
        self.region = region
        self.key_prefix = key_prefix
        self.client = client if client is not None else boto3.client("s3", region_name=region)

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def _resolve_key(self, key_or_url: str) -> str | None:
        if key_or_url.startswith(("http://", "https://")):
            return key_from_url(key_or_url)
        return key_or_url or None

    def store(self, files: list[ImageUpload]) -> list[StoredObject]:
        stored: list[StoredObject] = []
        for payload in files:
            key = f"{self.key_prefix}{generate_object_name(payload.filename)}"
            try:
                self.client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=payload.data,
                    ContentType=payload.content_type,
                    ACL="public-read",
                )
            except (BotoCoreError, ClientError) as e:
                logger.error("S3 upload failed for key %s: %s", key, e)
                self.delete_many([s.storage_key for s in stored])
                raise StorageUnavailableError("Failed to upload file to storage") from e
            stored.append(StoredObject(url=self.url_for(key), storage_key=key))
        return stored

    def delete(self, storage_key: str) -> bool:
        key = self._resolve_key(storage_key)
        if not key:
            logger.warning("Invalid S3 key or URL: %r", storage_key)
            return False
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete failed for key %s: %s", key, e)
            return False

    def delete_many(self, storage_keys: list[str]) -> int:
        keys = [k for k in (self._resolve_key(s) for s in storage_keys if s) if k]
        if not keys:
            return 0
        try:
            result = self.client.delete_objects(
                Bucket=self.bucket,
                Delete={"Objects": [{"Key": k} for k in keys], "Quiet": False},
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 bulk delete failed for %s key(s): %s", len(keys), e)
            return 0
        for err in result.get("Errors", []):
            logger.error("S3 could not delete %s: %s", err.get("Key"), err.get("Message"))
        return len(result.get("Deleted", []))


def build_storage_backend(settings: Settings) -> StorageBackend:
    """Select the backend once, from deployment configuration."""
    if settings.STORAGE_BACKEND == "s3":
        secret = settings.AWS_SECRET_ACCESS_KEY
        client = boto3.client(
            "s3",
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=secret.get_secret_value() if secret else None,
        )
        logger.info("Using S3 storage backend (bucket=%s)", settings.S3_BUCKET_NAME)
        return S3StorageBackend(
            bucket=settings.S3_BUCKET_NAME or "",
            region=settings.AWS_REGION,
            client=client,
        )
    logger.info("Using local storage backend (dir=%s)", settings.UPLOAD_DIR)
    return LocalStorageBackend(settings.UPLOAD_DIR, settings.PUBLIC_BASE_URL)
