"""Kanban board API routes (admin only)."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.auth.security import require_admin
from mediaboard.db.models import ApiKey
from mediaboard.db.session import get_db
from mediaboard.schemas.schemas import (
    BoardCreate,
    BoardDetailResponse,
    BoardResponse,
    CardCreate,
    CardMove,
    CardResponse,
    ListCreate,
    ListMove,
    ListResponse,
)
from mediaboard.services.boards import board_service

router = APIRouter(prefix="/v1", tags=["Boards"])


@router.post(
    "/boards",
    response_model=BoardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a board",
)
async def create_board(
    payload: BoardCreate,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    return await board_service.create_board(
        db, api_key, title=payload.title, description=payload.description, color=payload.color
    )


@router.get(
    "/boards",
    response_model=list[BoardResponse],
    summary="List boards",
)
async def list_boards(
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    return await board_service.list_boards(db)


@router.get(
    "/boards/{board_id}",
    response_model=BoardDetailResponse,
    summary="Get a board",
    description="The board with its lists and cards in position order.",
)
async def get_board(
    board_id: int,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    return await board_service.get_board(db, board_id)


@router.post(
    "/boards/{board_id}/lists",
    response_model=ListResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a list to a board",
)
async def create_list(
    board_id: int,
    payload: ListCreate,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    return await board_service.add_list(db, board_id, payload.title, payload.position)


@router.patch(
    "/lists/{list_id}/move",
    response_model=ListResponse,
    summary="Reorder a list",
)
async def move_list(
    list_id: int,
    payload: ListMove,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    return await board_service.move_list(db, list_id, payload.position)


@router.post(
    "/lists/{list_id}/cards",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a card to a list",
)
async def create_card(
    list_id: int,
    payload: CardCreate,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    return await board_service.create_card(
        db,
        list_id,
        title=payload.title,
        description=payload.description,
        due_date=payload.due_date,
        priority=payload.priority,
        position=payload.position,
    )


@router.patch(
    "/cards/{card_id}/move",
    response_model=CardResponse,
    summary="Move a card",
    description="Reorder a card within its list or move it to another list.",
)
async def move_card(
    card_id: int,
    payload: CardMove,
    db: AsyncSession = Depends(get_db),
    api_key: ApiKey = Depends(require_admin),
):
    return await board_service.move_card(db, card_id, payload.position, payload.list_id)
