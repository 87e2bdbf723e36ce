"""Chunked and direct upload API routes."""

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.api.dependencies import get_direct_upload_service, get_upload_service
from mediaboard.auth.security import require_auth
from mediaboard.db.models import ApiKey
from mediaboard.db.session import get_db
from mediaboard.middleware.rate_limit import rate_limit_uploads
from mediaboard.schemas.schemas import (
    AttachmentResponse,
    ChunkAcceptedResponse,
    DirectUploadTargetRequest,
    DirectUploadTargetResponse,
    UploadSessionCreate,
    UploadSessionResponse,
    UploadStatusResponse,
)
from mediaboard.services.direct_upload import DirectUploadService
from mediaboard.services.uploads import UploadService

router = APIRouter(prefix="/v1/uploads", tags=["Uploads"])


@router.post(
    "/sessions",
    response_model=UploadSessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a chunked upload session",
    description="Declare a file and get the chunk size to split it into.",
)
@rate_limit_uploads()
async def init_upload(
    request: Request,
    payload: UploadSessionCreate,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
    uploads: UploadService = Depends(get_upload_service),
):
    """
    Open an upload session.

    - **parentType** / **parentId**: submission or card the file belongs to
    - **fileName**, **fileSize** (bytes), **mimeType**

    Send chunks ``0 .. expectedChunks - 1`` with PUT, in any order, then
    call finalize.
    """
    upload = await uploads.init_session(
        db,
        api_key,
        parent_type=payload.parent_type,
        parent_id=payload.parent_id,
        file_name=payload.file_name,
        file_size=payload.file_size,
        mime_type=payload.mime_type,
    )
    return UploadSessionResponse(
        upload_id=upload.id,
        chunk_size=upload.chunk_size,
        expected_chunks=upload.expected_chunks,
        expires_at=upload.expires_at,
    )


@router.get(
    "/sessions/{upload_id}/status",
    response_model=UploadStatusResponse,
    summary="Get upload progress",
    description="List the chunk indices received so far, to resume an interrupted upload.",
)
async def get_upload_status(
    upload_id: str,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
    uploads: UploadService = Depends(get_upload_service),
):
    upload, received = await uploads.get_status(db, api_key, upload_id)
    return UploadStatusResponse(
        upload_id=upload.id,
        file_name=upload.file_name,
        file_size=upload.declared_size,
        mime_type=upload.mime_type,
        chunk_size=upload.chunk_size,
        expected_chunks=upload.expected_chunks,
        uploaded_chunks=received,
        expires_at=upload.expires_at,
    )


@router.put(
    "/sessions/{upload_id}/chunks/{index}",
    response_model=ChunkAcceptedResponse,
    summary="Upload one chunk",
    description="Raw request body holds the chunk bytes. Re-sending an index replaces it.",
)
async def put_chunk(
    request: Request,
    upload_id: str,
    index: int = Path(..., description="Zero-based chunk index"),
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
    uploads: UploadService = Depends(get_upload_service),
):
    upload, received = await uploads.put_chunk(db, api_key, upload_id, index, request.stream())
    return ChunkAcceptedResponse(
        chunk_index=index,
        uploaded_chunks=received,
        expected_chunks=upload.expected_chunks,
    )


@router.post(
    "/sessions/{upload_id}/finalize",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Finalize an upload",
    description="Reassemble the chunks, store the file and create the attachment.",
)
async def finalize_upload(
    upload_id: str,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
    uploads: UploadService = Depends(get_upload_service),
):
    """
    Finalize an upload.

    Fails with 400 and the missing chunk indices while the upload is
    incomplete. After a storage failure the session is kept and finalize
    can simply be retried.
    """
    return await uploads.finalize(db, api_key, upload_id)


@router.delete(
    "/sessions/{upload_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Abort an upload",
    description="Discard the session and all chunks received so far.",
)
async def abort_upload(
    upload_id: str,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
    uploads: UploadService = Depends(get_upload_service),
):
    await uploads.abort(db, api_key, upload_id)


@router.post(
    "/direct-target",
    response_model=DirectUploadTargetResponse,
    summary="Get a presigned upload URL",
    description="For small files: PUT the bytes to uploadUrl, then link publicUrl as an attachment.",
)
@rate_limit_uploads()
async def request_direct_target(
    request: Request,
    payload: DirectUploadTargetRequest,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
    direct: DirectUploadService = Depends(get_direct_upload_service),
):
    return await direct.request_target(
        db,
        api_key,
        parent_type=payload.parent_type,
        parent_id=payload.parent_id,
        file_name=payload.file_name,
        mime_type=payload.mime_type,
    )
