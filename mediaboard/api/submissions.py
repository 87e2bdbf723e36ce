"""Client submission API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.auth.security import require_admin, require_auth
from mediaboard.db.models import ApiKey, SubmissionStatus
from mediaboard.db.session import get_db
from mediaboard.schemas.schemas import (
    AttachmentResponse,
    CardResponse,
    PromoteRequest,
    SubmissionCreate,
    SubmissionListResponse,
    SubmissionResponse,
    SubmissionUpdate,
)
from mediaboard.services.submissions import submission_service

router = APIRouter(prefix="/v1/submissions", tags=["Submissions"])


def _to_response(submission, attachments) -> SubmissionResponse:
    response = SubmissionResponse.model_validate(submission)
    response.attachments = [AttachmentResponse.model_validate(a) for a in attachments]
    return response


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a submission",
    description="Submit a request; attach files to it afterwards.",
)
async def create_submission(
    payload: SubmissionCreate,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
):
    submission = await submission_service.create(
        db,
        api_key,
        title=payload.title,
        urgency=payload.urgency,
        requested_due_date=payload.requested_due_date,
        notes=payload.notes,
    )
    return _to_response(submission, [])


@router.get(
    "",
    response_model=SubmissionListResponse,
    summary="List submissions",
    description="Clients see their own submissions; admins see the whole inbox.",
)
async def list_submissions(
    status_filter: Optional[SubmissionStatus] = Query(
        None, alias="status", description="Filter by status"
    ),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize", description="Items per page"),
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
):
    submissions, total = await submission_service.list_submissions(
        db, api_key, status=status_filter, page=page, page_size=page_size
    )
    attachments = await submission_service.attachments_for(db, submissions)

    total_pages = (total + page_size - 1) // page_size if total > 0 else 0
    return SubmissionListResponse(
        submissions=[_to_response(s, attachments[s.id]) for s in submissions],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


@router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Get a submission",
)
async def get_submission(
    submission_id: int,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_auth),
):
    submission = await submission_service.get(db, submission_id, api_key)
    attachments = await submission_service.attachments_for(db, [submission])
    return _to_response(submission, attachments[submission.id])


@router.patch(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Update a submission",
    description="Change the status or admin notes. Admin only.",
)
async def update_submission(
    submission_id: int,
    payload: SubmissionUpdate,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    submission = await submission_service.update(
        db,
        submission_id,
        api_key,
        status=payload.status,
        admin_notes=payload.admin_notes,
    )
    attachments = await submission_service.attachments_for(db, [submission])
    return _to_response(submission, attachments[submission.id])


@router.post(
    "/{submission_id}/card",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Promote a submission to a card",
    description="Create a card at the top of a list with the submission's files. Admin only.",
)
async def promote_submission(
    submission_id: int,
    payload: PromoteRequest,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    return await submission_service.promote_to_card(
        db,
        submission_id,
        api_key,
        list_id=payload.list_id,
        title=payload.title,
        description=payload.description,
    )
