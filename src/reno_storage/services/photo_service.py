from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional, Sequence

from ..integrations.base import ObjectStore, RecordStore, StorageConfigError, StorageError
from ..integrations.memory_store import InMemoryObjectStore, InMemoryRecordStore
from ..integrations.supabase_client import SupabaseClient
from ..models import PhotoRecord, PhotoUpload, photo_rows
from ..utils.object_keys import build_storage_path, log_code_points

logger = logging.getLogger(__name__)


class PhotoValidationError(ValueError):
    pass


class PhotoService:
    """Uploads inspiration photos and keeps their rows in the photos table."""

    def __init__(
        self,
        *,
        settings: Any,
        object_store: ObjectStore,
        record_store: RecordStore,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._settings = settings
        self._objects = object_store
        self._records = record_store
        self._clock = clock

    def validate_photos(self, photos: Sequence[PhotoUpload], *, existing_count: int = 0) -> List[PhotoUpload]:
        """Return the photos that may be uploaded.

        Non-image files and files over the size limit are skipped. Raises
        PhotoValidationError when nothing is left or the item would end up
        with more photos than allowed.
        """

        uploads = self._settings.uploads
        accepted: List[PhotoUpload] = []
        for photo in photos:
            if not photo.is_image:
                logger.info("Skipping %r: content type %s is not an image", photo.filename, photo.content_type)
                continue
            if photo.size > uploads.max_photo_bytes:
                logger.info("Skipping %r: %s bytes exceeds %s", photo.filename, photo.size, uploads.max_photo_bytes)
                continue
            accepted.append(photo)

        if not accepted:
            raise PhotoValidationError("No valid image files to upload")
        if existing_count + len(accepted) > uploads.max_photos:
            raise PhotoValidationError(f"Maximum {uploads.max_photos} photos allowed")
        return accepted

    async def upload_photos(
        self,
        inspiration_id: str,
        photos: Sequence[PhotoUpload],
        *,
        start_order: int = 0,
        on_uploaded: Optional[Callable[[PhotoRecord], None]] = None,
    ) -> List[PhotoRecord]:
        accepted = self.validate_photos(photos, existing_count=start_order)
        logger.info("Uploading %s photos for inspiration %s", len(accepted), inspiration_id)

        keys = [
            build_storage_path(inspiration_id, photo.filename, index, clock=self._clock)
            for index, photo in enumerate(accepted)
        ]

        async def _upload(index: int, photo: PhotoUpload) -> PhotoRecord:
            log_code_points(photo.filename, logger)
            key = keys[index]
            await self._objects.upload(
                key,
                photo.content,
                photo.content_type,
                cache_control=self._settings.uploads.cache_control,
                upsert=self._settings.uploads.upsert,
            )
            record = PhotoRecord(
                inspiration_id=inspiration_id,
                photo_url=self._objects.get_public_url(key),
                photo_order=start_order + index,
            )
            logger.debug("Stored %r as %s", photo.filename, key)
            if on_uploaded:
                on_uploaded(record)
            return record

        # Wait for every upload before deciding, so nothing keeps running after a failure.
        results = await asyncio.gather(
            *(_upload(index, photo) for index, photo in enumerate(accepted)),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            stored = [key for key, result in zip(keys, results) if not isinstance(result, BaseException)]
            await self._discard(stored)
            raise failures[0]

        records = [result for result in results if isinstance(result, PhotoRecord)]
        await self._records.insert(self._settings.uploads.photos_table, photo_rows(records))
        return records

    async def _discard(self, keys: List[str]) -> None:
        if not keys:
            return
        try:
            await self._objects.remove(keys)
        except StorageError as exc:
            logger.error("Could not remove %s orphaned objects %s: %s", len(keys), keys, exc)
        else:
            logger.info("Removed %s objects of a failed batch", len(keys))

    async def remove_photos(self, photo_ids: Sequence[str]) -> int:
        if not photo_ids:
            return 0
        deleted = await self._records.delete_in(self._settings.uploads.photos_table, "id", list(photo_ids))
        logger.info("Removed %s of %s photo records", deleted, len(photo_ids))
        return deleted


def create_photo_service(settings: Any) -> PhotoService:
    """Build a PhotoService for the configured STORAGE_BACKEND.

    Raises StorageConfigError when Supabase is selected but not configured.
    """

    backend = (getattr(settings, "STORAGE_BACKEND", "supabase") or "supabase").lower()
    if backend == "memory":
        return PhotoService(
            settings=settings,
            object_store=InMemoryObjectStore(f"memory://{settings.uploads.bucket}"),
            record_store=InMemoryRecordStore(),
        )
    if backend != "supabase":
        raise StorageConfigError(f"Unsupported STORAGE_BACKEND {backend!r}")
    client = SupabaseClient(_settings=settings)
    return PhotoService(settings=settings, object_store=client, record_store=client)
