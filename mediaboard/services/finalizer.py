"""Turns a complete chunked upload into a stored file and an attachment record."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.db.models import Attachment, FileType, UploadSession
from mediaboard.services.attachments import AttachmentRegistry, classify_file_type
from mediaboard.services.chunk_store import ChunkStore
from mediaboard.services.exceptions import (
    IncompleteUploadError,
    MissingChunkError,
    StorageError,
    UploadSizeMismatchError,
)
from mediaboard.services.storage import StorageService
from mediaboard.services.thumbnails import ThumbnailGenerator
from mediaboard.services.upload_sessions import UploadSessionStore

logger = logging.getLogger(__name__)


class Finalizer:
    """
    Reassembles chunks in index order, stores the artifact and records it.

    Guarantees:
    - nothing is written to storage or the registry unless every chunk is there
      and the assembled bytes add up to the declared size;
    - the session and its chunks survive any storage/database failure so the
      client can call finalize again without re-uploading;
    - the session is deleted in the same transaction that creates the
      attachment, so a second finalize finds nothing to finalize.
    """

    def __init__(
        self,
        sessions: UploadSessionStore,
        chunks: ChunkStore,
        storage: StorageService,
        thumbnails: Optional[ThumbnailGenerator],
        registry: AttachmentRegistry,
    ):
        self.sessions = sessions
        self.chunks = chunks
        self.storage = storage
        self.thumbnails = thumbnails
        self.registry = registry

    async def check_complete(self, db: AsyncSession, upload: UploadSession) -> int:
        """Raise IncompleteUploadError unless all expected indices were received."""
        expected = upload.expected_chunks
        received = set(await self.sessions.received_indices(db, upload.id))
        missing = [i for i in range(expected) if i not in received]
        if missing:
            raise IncompleteUploadError(
                received=expected - len(missing), expected=expected, missing=missing
            )
        return expected

    async def finalize(self, db: AsyncSession, upload: UploadSession) -> Attachment:
        """Run the full finalize sequence. The caller holds the session lock."""
        expected = await self.check_complete(db, upload)

        assembled = self.chunks.assembled_path(upload.id)
        try:
            total_size = await self.chunks.assemble(upload.id, expected, assembled)
        except MissingChunkError as e:
            logger.warning(f"Upload {upload.id}: chunks {e.missing} vanished before finalize")
            for index in e.missing:
                await self.sessions.forget_chunk(db, upload.id, index)
            await db.commit()
            raise
        except OSError as e:
            logger.error(f"Upload {upload.id}: assembly failed: {e}")
            raise StorageError("Failed to assemble upload") from e

        thumbnail_local: Optional[Path] = None
        try:
            if total_size != upload.declared_size:
                logger.error(
                    f"Upload {upload.id}: assembled {total_size} bytes, "
                    f"declared {upload.declared_size}"
                )
                raise UploadSizeMismatchError(upload.declared_size, total_size)

            file_type = classify_file_type(upload.mime_type)
            if file_type == FileType.VIDEO:
                thumbnail_local = await self._make_thumbnail(upload, assembled)

            return await self._store_and_record(
                db, upload, assembled, total_size, file_type, thumbnail_local
            )
        finally:
            await self.chunks.discard_staged(assembled)
            if thumbnail_local is not None:
                await self.chunks.discard_staged(thumbnail_local)

    async def _make_thumbnail(self, upload: UploadSession, video: Path) -> Optional[Path]:
        if self.thumbnails is None:
            return None
        target = self.chunks.session_dir(upload.id) / "thumbnail.jpg"
        if await self.thumbnails.generate(video, target):
            return target
        logger.warning(f"Upload {upload.id}: no thumbnail generated for {upload.file_name}")
        return None

    async def _store_and_record(
        self,
        db: AsyncSession,
        upload: UploadSession,
        assembled: Path,
        total_size: int,
        file_type: FileType,
        thumbnail_local: Optional[Path],
    ) -> Attachment:
        upload_id = upload.id
        storage_path = self.storage.object_path(upload.parent_type, upload.parent_id, upload.file_name)
        file_url = await asyncio.to_thread(
            self.storage.upload_file, assembled, storage_path, upload.mime_type
        )
        written = [storage_path]

        thumbnail_url = None
        if thumbnail_local is not None:
            thumb_path = self.storage.thumbnail_path(storage_path)
            try:
                thumbnail_url = await asyncio.to_thread(
                    self.storage.upload_file, thumbnail_local, thumb_path, "image/jpeg"
                )
                written.append(thumb_path)
            except StorageError:
                logger.warning(f"Upload {upload_id}: thumbnail upload failed, continuing without")

        try:
            attachment = await self.registry.create(
                db,
                upload.parent_type,
                upload.parent_id,
                file_name=upload.file_name,
                file_url=file_url,
                file_type=file_type,
                file_size=total_size,
                mime_type=upload.mime_type,
                storage_path=storage_path,
                thumbnail_url=thumbnail_url,
                uploaded_by=upload.owner_key_id,
            )
            await self.sessions.delete(db, upload_id)
            await db.commit()
        except Exception as e:
            await db.rollback()
            logger.error(f"Upload {upload_id}: recording attachment failed: {e}")
            await self._remove_objects(written)
            raise StorageError("Failed to record the uploaded file") from e

        return attachment

    async def _remove_objects(self, storage_paths: list[str]):
        for path in storage_paths:
            try:
                await asyncio.to_thread(self.storage.delete_object, path)
            except StorageError:
                logger.error(f"Orphaned object left in storage: {path}")
