"""Direct-to-storage uploads: presigned targets and attachment linking."""

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.config import get_settings
from mediaboard.db.models import ApiKey, Attachment, ParentType
from mediaboard.services.attachments import (
    AttachmentRegistry,
    attachment_registry,
    normalize_file_type,
)
from mediaboard.services.exceptions import ClientInputError
from mediaboard.services.storage import StorageService

settings = get_settings()
logger = logging.getLogger(__name__)


class DirectUploadService:
    """
    Small files skip the chunk pipeline: the client PUTs the bytes to a
    presigned URL and then links the stored object as an attachment.
    """

    def __init__(
        self,
        storage: StorageService,
        registry: AttachmentRegistry = attachment_registry,
        verify: bool = settings.verify_direct_uploads,
    ):
        self.storage = storage
        self.registry = registry
        self.verify = verify

    async def request_target(
        self,
        db: AsyncSession,
        principal: ApiKey,
        parent_type: ParentType,
        parent_id: int,
        file_name: str,
        mime_type: str,
    ) -> dict:
        """Presign a PUT for a new object key under the parent's namespace."""
        if not (file_name or "").strip():
            raise ClientInputError("fileName is required")
        if not (mime_type or "").strip():
            raise ClientInputError("mimeType is required")

        await self.registry.resolve_parent(db, parent_type, parent_id, principal)

        storage_path = self.storage.object_path(parent_type, parent_id, file_name)
        target = await asyncio.to_thread(self.storage.generate_upload_url, storage_path, mime_type)
        logger.info(f"Direct upload target issued for {parent_type.value} {parent_id}: {storage_path}")
        return target

    async def link_attachment(
        self,
        db: AsyncSession,
        principal: ApiKey,
        parent_type: ParentType,
        parent_id: int,
        file_name: str,
        file_url: str,
        file_type: Optional[str] = None,
        file_size: Optional[int] = None,
        mime_type: Optional[str] = None,
    ) -> Attachment:
        """
        Record an already stored object as an attachment of ``parent``.

        With verification on, the URL must point into our bucket and the
        object must exist; the stored size is the one storage reports.
        """
        if not (file_name or "").strip():
            raise ClientInputError("fileName is required")
        if not (file_url or "").strip():
            raise ClientInputError("fileUrl is required")

        await self.registry.resolve_parent(db, parent_type, parent_id, principal)

        storage_path = None
        if self.verify:
            storage_path, file_size = await self._verify(file_url, file_size)

        attachment = await self.registry.create(
            db,
            parent_type,
            parent_id,
            file_name=file_name,
            file_url=file_url,
            file_type=normalize_file_type(file_type, mime_type),
            file_size=file_size,
            mime_type=mime_type,
            storage_path=storage_path,
            uploaded_by=principal.id,
        )
        await db.commit()
        return attachment

    async def _verify(self, file_url: str, declared_size: Optional[int]) -> tuple[str, int]:
        storage_path = self.storage.key_from_url(file_url)
        if storage_path is None:
            raise ClientInputError("fileUrl does not point into the upload bucket")

        actual_size = await asyncio.to_thread(self.storage.head_object, storage_path)
        if actual_size is None:
            raise ClientInputError(
                "No stored object found at fileUrl, upload it first", storagePath=storage_path
            )
        if declared_size is not None and declared_size != actual_size:
            raise ClientInputError(
                f"fileSize {declared_size} does not match the stored size {actual_size}",
                storedSize=actual_size,
            )
        return storage_path, actual_size
