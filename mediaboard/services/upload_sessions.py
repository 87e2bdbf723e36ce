"""Persistence of chunked upload sessions and their received-chunk sets."""

import asyncio
import weakref
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.db.models import ParentType, UploadChunk, UploadSession
from mediaboard.db.timezone import as_utc, utcnow
from mediaboard.services.exceptions import SessionNotFoundError


class SessionLocks:
    """One asyncio.Lock per upload id, dropped once nobody holds a reference."""

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def get(self, upload_id: str) -> asyncio.Lock:
        lock = self._locks.get(upload_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[upload_id] = lock
        return lock


class UploadSessionStore:
    """
    Database-backed session store.

    ``receivedChunks`` is the set of ``upload_chunks`` rows of a session;
    the (session_id, chunk_index) unique constraint keeps each index once.
    """

    def __init__(self, ttl: timedelta):
        self.ttl = ttl

    async def create(
        self,
        db: AsyncSession,
        *,
        owner_key_id: str,
        parent_type: ParentType,
        parent_id: int,
        file_name: str,
        declared_size: int,
        mime_type: str,
        chunk_size: int,
    ) -> UploadSession:
        now = utcnow()
        upload = UploadSession(
            id=uuid4().hex,
            owner_key_id=owner_key_id,
            parent_type=parent_type,
            parent_id=parent_id,
            file_name=file_name,
            declared_size=declared_size,
            mime_type=mime_type,
            chunk_size=chunk_size,
            created_at=now,
            expires_at=now + self.ttl,
        )
        db.add(upload)
        await db.flush()
        return upload

    async def get(
        self,
        db: AsyncSession,
        upload_id: str,
        owner_key_id: str,
        now: Optional[datetime] = None,
    ) -> UploadSession:
        """
        Load a live session owned by ``owner_key_id``.

        Raises:
            SessionNotFoundError: unknown, consumed, expired or foreign session
        """
        result = await db.execute(
            select(UploadSession).where(
                UploadSession.id == upload_id,
                UploadSession.owner_key_id == owner_key_id,
            )
        )
        upload = result.scalar_one_or_none()
        if upload is None or as_utc(upload.expires_at) <= (now or utcnow()):
            raise SessionNotFoundError(upload_id)
        return upload

    async def received_indices(self, db: AsyncSession, upload_id: str) -> list[int]:
        result = await db.execute(
            select(UploadChunk.chunk_index)
            .where(UploadChunk.session_id == upload_id)
            .order_by(UploadChunk.chunk_index)
        )
        return list(result.scalars().all())

    async def received_count(self, db: AsyncSession, upload_id: str) -> int:
        result = await db.execute(
            select(func.count()).select_from(UploadChunk).where(UploadChunk.session_id == upload_id)
        )
        return result.scalar() or 0

    async def record_chunk(
        self, db: AsyncSession, upload: UploadSession, index: int, size: int
    ) -> int:
        """
        Add ``index`` to the received set (idempotent) and slide the expiry.

        Callers hold the session lock. Returns the received-chunk count.
        """
        result = await db.execute(
            select(UploadChunk).where(
                UploadChunk.session_id == upload.id,
                UploadChunk.chunk_index == index,
            )
        )
        chunk = result.scalar_one_or_none()
        now = utcnow()
        if chunk is None:
            db.add(UploadChunk(session_id=upload.id, chunk_index=index, size=size, received_at=now))
        else:
            chunk.size = size
            chunk.received_at = now

        upload.expires_at = now + self.ttl
        await db.flush()
        return await self.received_count(db, upload.id)

    async def forget_chunk(self, db: AsyncSession, upload_id: str, index: int):
        """Drop an index whose bytes are gone so status reports it as missing."""
        await db.execute(
            delete(UploadChunk).where(
                UploadChunk.session_id == upload_id,
                UploadChunk.chunk_index == index,
            )
        )

    async def delete(self, db: AsyncSession, upload_id: str):
        """Remove the session row and its chunk rows."""
        await db.execute(delete(UploadChunk).where(UploadChunk.session_id == upload_id))
        await db.execute(delete(UploadSession).where(UploadSession.id == upload_id))

    async def list_expired(self, db: AsyncSession, now: datetime) -> list[str]:
        result = await db.execute(
            select(UploadSession.id).where(UploadSession.expires_at <= now)
        )
        return list(result.scalars().all())

    async def existing_ids(self, db: AsyncSession, upload_ids: list[str]) -> set[str]:
        if not upload_ids:
            return set()
        result = await db.execute(
            select(UploadSession.id).where(UploadSession.id.in_(upload_ids))
        )
        return set(result.scalars().all())
