"""Attachment registry: metadata of uploaded files and access to their parents."""

import logging
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.db.models import (
    ApiKey,
    Attachment,
    Card,
    ClientSubmission,
    FileType,
    ParentType,
    PrincipalRole,
    TranscriptionStatus,
)
from mediaboard.services.exceptions import (
    AttachmentNotFoundError,
    ParentNotFoundError,
    PermissionDeniedError,
)

logger = logging.getLogger(__name__)

_DOCUMENT_MARKERS = ("pdf", "document", "msword", "spreadsheet", "presentation", "text/")


def classify_file_type(mime_type: Optional[str]) -> FileType:
    """Derive the coarse file type from a mime type by prefix."""
    mime_type = (mime_type or "").lower()
    if mime_type.startswith("video/"):
        return FileType.VIDEO
    if mime_type.startswith("audio/"):
        return FileType.AUDIO
    if mime_type.startswith("image/"):
        return FileType.IMAGE
    if any(marker in mime_type for marker in _DOCUMENT_MARKERS):
        return FileType.DOCUMENT
    return FileType.OTHER


def normalize_file_type(file_type: Optional[str], mime_type: Optional[str]) -> FileType:
    """Use a client-declared file type only when it is a known one."""
    try:
        return FileType(file_type)
    except ValueError:
        return classify_file_type(mime_type)


class AttachmentRegistry:
    """Service for creating and reading attachment records."""

    async def resolve_parent(
        self,
        db: AsyncSession,
        parent_type: ParentType,
        parent_id: int,
        principal: ApiKey,
    ) -> Union[ClientSubmission, Card]:
        """
        Load the entity an attachment would belong to and check access.

        Clients may only use their own submissions; cards are admin-only.
        """
        is_admin = principal.role == PrincipalRole.ADMIN

        if parent_type == ParentType.SUBMISSION:
            parent = await db.get(ClientSubmission, parent_id)
            if parent is None or (not is_admin and parent.client_key_id != principal.id):
                raise ParentNotFoundError(parent_type.value, parent_id)
            return parent

        if not is_admin:
            raise PermissionDeniedError("Only administrators can attach files to cards")
        parent = await db.get(Card, parent_id)
        if parent is None:
            raise ParentNotFoundError(parent_type.value, parent_id)
        return parent

    async def create(
        self,
        db: AsyncSession,
        parent_type: ParentType,
        parent_id: int,
        *,
        file_name: str,
        file_url: str,
        file_type: FileType,
        file_size: Optional[int],
        mime_type: Optional[str],
        storage_path: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
        uploaded_by: Optional[str] = None,
    ) -> Attachment:
        """Insert an attachment row (flushes, caller commits)."""
        attachment = Attachment(
            parent_type=parent_type,
            parent_id=parent_id,
            file_name=file_name,
            file_url=file_url,
            storage_path=storage_path,
            thumbnail_url=thumbnail_url,
            file_type=file_type,
            file_size=file_size,
            mime_type=mime_type,
            uploaded_by_key_id=uploaded_by,
            transcription_status=TranscriptionStatus.PENDING,
        )
        db.add(attachment)
        await db.flush()

        logger.info(
            f"Attachment {attachment.id} created for {parent_type.value} {parent_id}: "
            f"{file_name} ({file_type.value}, {file_size} bytes)"
        )
        return attachment

    async def get(self, db: AsyncSession, attachment_id: int) -> Attachment:
        attachment = await db.get(Attachment, attachment_id)
        if attachment is None:
            raise AttachmentNotFoundError(attachment_id)
        return attachment

    async def get_for_principal(
        self, db: AsyncSession, attachment_id: int, principal: ApiKey
    ) -> Attachment:
        """Get an attachment, hiding it from keys that cannot see its parent."""
        attachment = await self.get(db, attachment_id)
        try:
            await self.resolve_parent(db, attachment.parent_type, attachment.parent_id, principal)
        except (ParentNotFoundError, PermissionDeniedError):
            raise AttachmentNotFoundError(attachment_id)
        return attachment

    async def list_for_parent(
        self, db: AsyncSession, parent_type: ParentType, parent_id: int
    ) -> list[Attachment]:
        result = await db.execute(
            select(Attachment)
            .where(Attachment.parent_type == parent_type, Attachment.parent_id == parent_id)
            .order_by(Attachment.created_at, Attachment.id)
        )
        return list(result.scalars().all())

    async def list_for_parents(
        self, db: AsyncSession, parent_type: ParentType, parent_ids: list[int]
    ) -> dict[int, list[Attachment]]:
        """Attachments of many parents at once, keyed by parent id."""
        grouped: dict[int, list[Attachment]] = {pid: [] for pid in parent_ids}
        if not parent_ids:
            return grouped
        result = await db.execute(
            select(Attachment)
            .where(Attachment.parent_type == parent_type, Attachment.parent_id.in_(parent_ids))
            .order_by(Attachment.created_at, Attachment.id)
        )
        for attachment in result.scalars().all():
            grouped[attachment.parent_id].append(attachment)
        return grouped

    async def copy_to_parent(
        self,
        db: AsyncSession,
        attachments: list[Attachment],
        parent_type: ParentType,
        parent_id: int,
    ) -> list[Attachment]:
        """Duplicate attachment records (same stored objects) onto another parent."""
        copies = []
        for source in attachments:
            copy = Attachment(
                parent_type=parent_type,
                parent_id=parent_id,
                file_name=source.file_name,
                file_url=source.file_url,
                storage_path=source.storage_path,
                thumbnail_url=source.thumbnail_url,
                file_type=source.file_type,
                file_size=source.file_size,
                mime_type=source.mime_type,
                uploaded_by_key_id=source.uploaded_by_key_id,
                transcription=source.transcription,
                transcription_status=source.transcription_status,
            )
            db.add(copy)
            copies.append(copy)
        await db.flush()
        return copies

    async def update_transcription(
        self,
        db: AsyncSession,
        attachment_id: int,
        status: TranscriptionStatus,
        text: Optional[str] = None,
    ) -> Attachment:
        """Record transcription progress. The only mutation an attachment allows."""
        attachment = await self.get(db, attachment_id)
        attachment.transcription_status = status
        if text is not None:
            attachment.transcription = text
        await db.flush()

        logger.info(f"Attachment {attachment_id} transcription -> {status.value}")
        return attachment


# Singleton instance
attachment_registry = AttachmentRegistry()
