"""Image attachment lifecycle: check uploads, store them, turn them into image rows, clean up."""

import logging
from dataclasses import dataclass

from storefront.core.errors import (
    FileTooLargeError,
    TooManyFilesError,
    UnsupportedFileTypeError,
)
from storefront.services.storage import ImageUpload, StorageBackend

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
MAX_IMAGES_PER_PRODUCT = 5
MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5 MB

__all__ = [
    "ALLOWED_IMAGE_TYPES",
    "ImageAttachment",
    "ImageAttachmentManager",
    "ImageUpload",
]


@dataclass(frozen=True)
class ImageAttachment:
    """A stored image ready to become a ProductImage row."""

    image_url: str
    image_filename: str
    is_primary: bool
    sort_order: int


class ImageAttachmentManager:
    """Wraps a storage backend with upload limits and best-effort cleanup."""

    def __init__(
        self,
        storage: StorageBackend,
        max_files: int = MAX_IMAGES_PER_PRODUCT,
        max_bytes: int = MAX_IMAGE_BYTES,
    ) -> None:
        self.storage = storage
        self.max_files = max_files
        self.max_bytes = max_bytes

    def check_uploads(self, uploads: list[ImageUpload]) -> None:
        """Raise the matching UploadError for the first rule a batch breaks."""
        if len(uploads) > self.max_files:
            raise TooManyFilesError(f"Too many files. At most {self.max_files} images are allowed")
        for upload in uploads:
            if upload.content_type not in ALLOWED_IMAGE_TYPES:
                raise UnsupportedFileTypeError()
            if len(upload.data) > self.max_bytes:
                raise FileTooLargeError(
                    f"File size exceeds the {self.max_bytes // (1024 * 1024)}MB limit"
                )

    def store(self, uploads: list[ImageUpload]) -> list[ImageAttachment]:
        """
        Check and persist a batch. The first file in upload order is primary and
        sort_order follows position. Returns [] for an empty batch.
        """
        if not uploads:
            return []
        self.check_uploads(uploads)
        stored = self.storage.store(uploads)
        return [
            ImageAttachment(
                image_url=obj.url,
                image_filename=obj.storage_key,
                is_primary=index == 0,
                sort_order=index,
            )
            for index, obj in enumerate(stored)
        ]

    def discard(self, attachments: list[ImageAttachment]) -> int:
        """Undo a store() whose owning rows never committed."""
        return self.remove([a.image_filename for a in attachments])

    def remove(self, storage_keys: list[str]) -> int:
        """Best-effort delete; failures are logged as dangling files, never raised."""
        keys = [k for k in storage_keys if k]
        if not keys:
            return 0
        try:
            deleted = self.storage.delete_many(keys)
        except Exception:
            logger.exception("Storage cleanup failed; %s file(s) may be dangling: %s", len(keys), keys)
            return 0
        if deleted < len(keys):
            logger.warning(
                "Storage cleanup removed %s of %s file(s); the rest may be dangling: %s",
                deleted,
                len(keys),
                keys,
            )
        return deleted
