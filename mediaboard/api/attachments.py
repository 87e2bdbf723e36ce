"""Attachment API routes: linking direct uploads, reading and transcription."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.api.dependencies import get_direct_upload_service
from mediaboard.auth.security import require_admin, require_auth
from mediaboard.db.models import ApiKey, ParentType
from mediaboard.db.session import get_db
from mediaboard.schemas.schemas import (
    AttachmentCreate,
    AttachmentLink,
    AttachmentResponse,
    TranscriptionUpdate,
)
from mediaboard.services.attachments import attachment_registry
from mediaboard.services.direct_upload import DirectUploadService

router = APIRouter(prefix="/v1", tags=["Attachments"])


async def _link(
    db: AsyncSession,
    api_key: ApiKey,
    direct: DirectUploadService,
    parent_type: ParentType,
    parent_id: int,
    payload: AttachmentLink,
):
    return await direct.link_attachment(
        db,
        api_key,
        parent_type=parent_type,
        parent_id=parent_id,
        file_name=payload.file_name,
        file_url=payload.file_url,
        file_type=payload.file_type,
        file_size=payload.file_size,
        mime_type=payload.mime_type,
    )


@router.post(
    "/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Link a directly uploaded file",
    description="Create an attachment for an object already PUT to a presigned URL.",
)
async def create_attachment(
    payload: AttachmentCreate,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
    direct: DirectUploadService = Depends(get_direct_upload_service),
):
    return await _link(db, api_key, direct, payload.parent_type, payload.parent_id, payload)


@router.post(
    "/submissions/{submission_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file to a submission",
)
async def attach_to_submission(
    submission_id: int,
    payload: AttachmentLink,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
    direct: DirectUploadService = Depends(get_direct_upload_service),
):
    return await _link(db, api_key, direct, ParentType.SUBMISSION, submission_id, payload)


@router.get(
    "/submissions/{submission_id}/attachments",
    response_model=list[AttachmentResponse],
    summary="List the files of a submission",
)
async def list_submission_attachments(
    submission_id: int,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
):
    await attachment_registry.resolve_parent(db, ParentType.SUBMISSION, submission_id, api_key)
    return await attachment_registry.list_for_parent(db, ParentType.SUBMISSION, submission_id)


@router.post(
    "/cards/{card_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file to a card",
)
async def attach_to_card(
    card_id: int,
    payload: AttachmentLink,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
    direct: DirectUploadService = Depends(get_direct_upload_service),
):
    return await _link(db, api_key, direct, ParentType.CARD, card_id, payload)


@router.get(
    "/cards/{card_id}/attachments",
    response_model=list[AttachmentResponse],
    summary="List the files of a card",
)
async def list_card_attachments(
    card_id: int,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    await attachment_registry.resolve_parent(db, ParentType.CARD, card_id, api_key)
    return await attachment_registry.list_for_parent(db, ParentType.CARD, card_id)


@router.get(
    "/attachments/{attachment_id}",
    response_model=AttachmentResponse,
    summary="Get an attachment",
)
async def get_attachment(
    attachment_id: int,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
):
    return await attachment_registry.get_for_principal(db, attachment_id, api_key)


@router.patch(
    "/attachments/{attachment_id}/transcription",
    response_model=AttachmentResponse,
    summary="Record transcription progress",
    description="Used by the transcription worker. Admin only.",
)
async def update_transcription(
    attachment_id: int,
    payload: TranscriptionUpdate,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    attachment = await attachment_registry.update_transcription(
        db, attachment_id, payload.status, payload.text
    )
    await db.commit()
    return attachment
