"""Chunked upload service: session lifecycle, chunk receipt, finalize and sweep."""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.config import get_settings
from mediaboard.db.models import ApiKey, Attachment, ParentType, UploadSession
from mediaboard.db.timezone import utcnow
from mediaboard.services.attachments import AttachmentRegistry, attachment_registry
from mediaboard.services.chunk_store import ChunkStore
from mediaboard.services.exceptions import (
    ChunkSizeMismatchError,
    ClientInputError,
    InvalidChunkIndexError,
    PayloadTooLargeError,
    SessionNotFoundError,
)
from mediaboard.services.finalizer import Finalizer
from mediaboard.services.storage import StorageService
from mediaboard.services.thumbnails import ThumbnailGenerator, get_thumbnail_generator
from mediaboard.services.upload_sessions import SessionLocks, UploadSessionStore

settings = get_settings()
logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


class UploadService:
    """
    Service for resumable chunked uploads.

    Chunk bytes are streamed to disk outside of any lock; recording a chunk,
    finalizing and aborting take the per-session lock so they never
    interleave on the same upload.
    """

    def __init__(
        self,
        chunk_store: ChunkStore,
        storage: StorageService,
        thumbnails: Optional[ThumbnailGenerator] = None,
        registry: AttachmentRegistry = attachment_registry,
        chunk_size: int = settings.upload_chunk_size,
        max_upload_size: int = settings.max_upload_size,
        session_ttl: timedelta = timedelta(hours=settings.upload_session_ttl_hours),
    ):
        self.chunks = chunk_store
        self.registry = registry
        self.chunk_size = chunk_size
        self.max_upload_size = max_upload_size
        self.sessions = UploadSessionStore(session_ttl)
        self.locks = SessionLocks()
        self.finalizer = Finalizer(self.sessions, chunk_store, storage, thumbnails, registry)

    async def init_session(
        self,
        db: AsyncSession,
        principal: ApiKey,
        parent_type: ParentType,
        parent_id: int,
        file_name: str,
        file_size: int,
        mime_type: Optional[str] = None,
    ) -> UploadSession:
        """
        Open a new upload session for a file attached to ``parent``.

        Raises:
            ClientInputError: empty file name or non-positive size
            PayloadTooLargeError: file larger than the configured maximum
            ParentNotFoundError / PermissionDeniedError: parent not usable
        """
        file_name = (file_name or "").strip()
        if not file_name:
            raise ClientInputError("fileName is required")
        if file_size is None or file_size <= 0:
            raise ClientInputError("fileSize must be a positive number of bytes")
        if file_size > self.max_upload_size:
            raise PayloadTooLargeError(
                f"File of {file_size} bytes exceeds the limit of {self.max_upload_size} bytes",
                maxUploadSize=self.max_upload_size,
            )

        await self.registry.resolve_parent(db, parent_type, parent_id, principal)

        upload = await self.sessions.create(
            db,
            owner_key_id=principal.id,
            parent_type=parent_type,
            parent_id=parent_id,
            file_name=file_name,
            declared_size=file_size,
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            chunk_size=self.chunk_size,
        )
        await self.chunks.create(upload.id)
        await db.commit()

        logger.info(
            f"Upload session {upload.id} opened by {principal.name}: {file_name} "
            f"({file_size} bytes, {upload.expected_chunks} chunks) for {parent_type.value} {parent_id}"
        )
        return upload

    async def get_status(
        self, db: AsyncSession, principal: ApiKey, upload_id: str
    ) -> tuple[UploadSession, list[int]]:
        """Return the session and its received chunk indices in ascending order."""
        upload = await self.sessions.get(db, upload_id, principal.id)
        return upload, await self.sessions.received_indices(db, upload_id)

    async def put_chunk(
        self,
        db: AsyncSession,
        principal: ApiKey,
        upload_id: str,
        index: int,
        body: AsyncIterator[bytes],
    ) -> tuple[UploadSession, int]:
        """
        Store chunk ``index`` of an upload.

        Re-sending an index replaces its bytes and is counted once. Every
        chunk but the last must be exactly ``chunk_size`` bytes and the last
        one must hold the remainder of the declared size.

        Returns:
            Tuple of (upload_session, received_count)
        """
        upload = await self.sessions.get(db, upload_id, principal.id)
        expected = upload.expected_chunks
        if index < 0 or index >= expected:
            raise InvalidChunkIndexError(
                f"Chunk index {index} out of range 0..{expected - 1}",
                expected=expected,
            )

        length = upload.chunk_length(index)
        staged, size = await self.chunks.stage_chunk(upload_id, index, body, length)
        if size != length:
            await self.chunks.discard_staged(staged)
            raise ChunkSizeMismatchError(index, length, size)

        async with self.locks.get(upload_id):
            try:
                # Finalize, abort or the sweep may have consumed the session meanwhile
                upload = await self.sessions.get(db, upload_id, principal.id)
            except SessionNotFoundError:
                await self.chunks.discard_staged(staged)
                raise

            await self.chunks.commit_chunk(upload_id, index, staged)
            received = await self.sessions.record_chunk(db, upload, index, size)
            await db.commit()

        logger.debug(f"Upload {upload_id}: chunk {index} ({size} bytes), {received}/{expected}")
        return upload, received

    async def finalize(self, db: AsyncSession, principal: ApiKey, upload_id: str) -> Attachment:
        """Assemble, store and record a complete upload, then drop its session."""
        async with self.locks.get(upload_id):
            upload = await self.sessions.get(db, upload_id, principal.id)
            attachment = await self.finalizer.finalize(db, upload)

        await self.chunks.discard(upload_id)
        logger.info(
            f"Upload {upload_id} finalized as attachment {attachment.id} "
            f"({attachment.file_size} bytes)"
        )
        return attachment

    async def abort(self, db: AsyncSession, principal: ApiKey, upload_id: str):
        """Drop a session and whatever chunks it has received."""
        async with self.locks.get(upload_id):
            await self.sessions.get(db, upload_id, principal.id)
            await self.sessions.delete(db, upload_id)
            await db.commit()

        await self.chunks.discard(upload_id)
        logger.info(f"Upload {upload_id} aborted")

    async def sweep_expired(self, db: AsyncSession, now: Optional[datetime] = None) -> int:
        """
        Delete expired sessions with their chunks, and chunk directories
        that outlived the TTL without any session row.

        Returns:
            Number of removed sessions/directories
        """
        now = now or utcnow()
        removed = 0

        for upload_id in await self.sessions.list_expired(db, now):
            async with self.locks.get(upload_id):
                await self.sessions.delete(db, upload_id)
                await db.commit()
            await self.chunks.discard(upload_id)
            removed += 1

        stale = await self.chunks.list_sessions(
            older_than_seconds=self.sessions.ttl.total_seconds()
        )
        live = await self.sessions.existing_ids(db, stale)
        for upload_id in stale:
            if upload_id not in live:
                await self.chunks.discard(upload_id)
                removed += 1

        if removed:
            logger.info(f"Swept {removed} expired upload session(s)")
        return removed


def build_upload_service(
    storage: StorageService, upload_dir: Optional[str] = None
) -> UploadService:
    """UploadService wired from settings."""
    return UploadService(
        chunk_store=ChunkStore(Path(upload_dir or settings.upload_dir) / "chunks"),
        storage=storage,
        thumbnails=get_thumbnail_generator() if settings.thumbnail_enabled else None,
    )
