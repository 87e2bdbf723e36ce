"""Service layer for client submissions and their promotion to cards."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.db.models import (
    ApiKey,
    Attachment,
    Card,
    ClientSubmission,
    ParentType,
    PrincipalRole,
    SubmissionStatus,
    Urgency,
)
from mediaboard.services.attachments import AttachmentRegistry, attachment_registry
from mediaboard.services.boards import BoardService, board_service
from mediaboard.services.exceptions import PermissionDeniedError, SubmissionNotFoundError

logger = logging.getLogger(__name__)


class SubmissionService:
    """Service for managing client submissions."""

    def __init__(
        self,
        registry: AttachmentRegistry = attachment_registry,
        boards: BoardService = board_service,
    ):
        self.registry = registry
        self.boards = boards

    async def create(
        self,
        db: AsyncSession,
        principal: ApiKey,
        title: str,
        urgency: Urgency = Urgency.NORMAL,
        requested_due_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> ClientSubmission:
        submission = ClientSubmission(
            client_key_id=principal.id,
            title=title,
            urgency=urgency,
            requested_due_date=requested_due_date,
            notes=notes,
            status=SubmissionStatus.PENDING,
        )
        db.add(submission)
        await db.commit()

        logger.info(f"Submission {submission.id} created by {principal.name} ({urgency.value})")
        return submission

    async def get(self, db: AsyncSession, submission_id: int, principal: ApiKey) -> ClientSubmission:
        """Get a submission visible to ``principal`` (own, or any for admins)."""
        submission = await db.get(ClientSubmission, submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        if principal.role != PrincipalRole.ADMIN and submission.client_key_id != principal.id:
            raise SubmissionNotFoundError(submission_id)
        return submission

    async def list_submissions(
        self,
        db: AsyncSession,
        principal: ApiKey,
        status: Optional[SubmissionStatus] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ClientSubmission], int]:
        """
        List submissions, newest first.

        Returns:
            Tuple of (submissions, total_count)
        """
        query = select(ClientSubmission)
        count_query = select(func.count()).select_from(ClientSubmission)

        if principal.role != PrincipalRole.ADMIN:
            query = query.where(ClientSubmission.client_key_id == principal.id)
            count_query = count_query.where(ClientSubmission.client_key_id == principal.id)
        if status:
            query = query.where(ClientSubmission.status == status)
            count_query = count_query.where(ClientSubmission.status == status)

        total = (await db.execute(count_query)).scalar() or 0

        offset = (page - 1) * page_size
        query = (
            query.order_by(ClientSubmission.created_at.desc(), ClientSubmission.id.desc())
            .offset(offset)
            .limit(page_size)
        )
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def attachments_for(
        self, db: AsyncSession, submissions: list[ClientSubmission]
    ) -> dict[int, list[Attachment]]:
        return await self.registry.list_for_parents(
            db, ParentType.SUBMISSION, [s.id for s in submissions]
        )

    async def update(
        self,
        db: AsyncSession,
        submission_id: int,
        principal: ApiKey,
        status: Optional[SubmissionStatus] = None,
        admin_notes: Optional[str] = None,
    ) -> ClientSubmission:
        """Admin-side triage: change the status and/or admin notes."""
        if principal.role != PrincipalRole.ADMIN:
            raise PermissionDeniedError("Only administrators can update submissions")

        submission = await self.get(db, submission_id, principal)
        if status is not None:
            submission.status = status
        if admin_notes is not None:
            submission.admin_notes = admin_notes
        await db.commit()

        logger.info(f"Submission {submission_id} updated: status={submission.status.value}")
        return submission

    async def promote_to_card(
        self,
        db: AsyncSession,
        submission_id: int,
        principal: ApiKey,
        list_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Card:
        """
        Turn a submission into a card at the top of ``list_id``.

        The submission's attachments are copied onto the card and the
        submission moves to ``in_production``.
        """
        if principal.role != PrincipalRole.ADMIN:
            raise PermissionDeniedError("Only administrators can create cards")

        submission = await self.get(db, submission_id, principal)
        board_list = await self.boards.get_list(db, list_id)

        card = await self.boards.add_card(
            db,
            board_list,
            title=title or submission.title,
            description=description if description is not None else submission.notes,
            due_date=submission.requested_due_date,
            priority=submission.urgency.value,
            submission_id=submission.id,
            position=0,
        )

        attachments = await self.registry.list_for_parent(db, ParentType.SUBMISSION, submission.id)
        await self.registry.copy_to_parent(db, attachments, ParentType.CARD, card.id)

        submission.status = SubmissionStatus.IN_PRODUCTION
        submission.assigned_board_id = board_list.board_id
        submission.assigned_card_id = card.id
        await db.commit()

        logger.info(
            f"Submission {submission_id} promoted to card {card.id} on board "
            f"{board_list.board_id} with {len(attachments)} attachment(s)"
        )
        return card


# Singleton instance
submission_service = SubmissionService()
