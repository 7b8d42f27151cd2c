"""Product image and brand logo storage."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Annotated

from fastapi import Depends
from google.cloud import storage  # type: ignore[import]

from src.config import settings

logger = logging.getLogger(__name__)


def product_image_prefix(product_id: str) -> str:
    return f"products/{product_id}/"


class ImageStorage(ABC):
    """Abstract interface over the bucket holding catalog images."""

    @abstractmethod
    async def delete_product_images(self, product_id: str) -> int:
        """Delete every image stored for the product and return how many."""

    @abstractmethod
    async def delete_object(self, path: str) -> None:
        """Delete a single object, such as a brand logo."""


class CloudStorageImageStorage(ImageStorage):
    """Google Cloud Storage implementation running client calls in threads."""

    def __init__(self, client: storage.Client, bucket_name: str) -> None:
        self._bucket = client.bucket(bucket_name)

    async def delete_product_images(self, product_id: str) -> int:
        def _delete() -> int:
            blobs = list(self._bucket.list_blobs(prefix=product_image_prefix(product_id)))
            for blob in blobs:
                blob.delete()
            return len(blobs)

        deleted = await asyncio.to_thread(_delete)
        logger.debug("Deleted %d images for product %s", deleted, product_id)
        return deleted

    async def delete_object(self, path: str) -> None:
        await asyncio.to_thread(self._bucket.blob(path).delete)


_image_storage: ImageStorage | None = None


def get_image_storage() -> ImageStorage | None:
    """FastAPI dependency returning the image bucket, or ``None`` when unconfigured."""

    global _image_storage
    if _image_storage is None and settings.image_storage_enabled:
        _image_storage = CloudStorageImageStorage(
            storage.Client(project=settings.FIRESTORE_PROJECT),
            settings.IMAGE_BUCKET,
        )
    return _image_storage


ImageStorageDependency = Annotated[ImageStorage | None, Depends(get_image_storage)]
