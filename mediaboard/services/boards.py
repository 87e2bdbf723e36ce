"""Kanban boards, lists and cards.

Positions are kept contiguous: every insert or move rewrites the affected
list(s) to ``0 .. n - 1`` in display order.
"""

import logging
from datetime import date
from typing import Optional, Sequence, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mediaboard.db.models import ApiKey, Board, BoardList, Card
from mediaboard.services.exceptions import (
    BoardNotFoundError,
    CardNotFoundError,
    ClientInputError,
    ListNotFoundError,
)

logger = logging.getLogger(__name__)

Positioned = TypeVar("Positioned", BoardList, Card)


def place(items: Sequence[Positioned], item: Positioned, position: Optional[int]) -> list[Positioned]:
    """
    Put ``item`` at ``position`` among ``items`` and renumber everything.

    ``position`` is clamped to the valid range; None appends.
    """
    ordered = [i for i in items if i is not item]
    if position is None or position > len(ordered):
        position = len(ordered)
    ordered.insert(max(position, 0), item)
    for index, entry in enumerate(ordered):
        entry.position = index
    return ordered


class BoardService:
    """Service for boards, their lists and cards."""

    async def create_board(
        self,
        db: AsyncSession,
        principal: ApiKey,
        title: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Board:
        if not (title or "").strip():
            raise ClientInputError("title is required")
        board = Board(
            title=title,
            description=description,
            color=color,
            owner_key_id=principal.id,
        )
        db.add(board)
        await db.commit()

        logger.info(f"Board {board.id} created by {principal.name}")
        return board

    async def list_boards(self, db: AsyncSession, include_archived: bool = False) -> list[Board]:
        query = select(Board)
        if not include_archived:
            query = query.where(Board.is_archived.is_(False))
        result = await db.execute(query.order_by(Board.created_at, Board.id))
        return list(result.scalars().all())

    async def get_board(self, db: AsyncSession, board_id: int) -> Board:
        """Load a board with its lists and cards in position order."""
        result = await db.execute(
            select(Board)
            .where(Board.id == board_id)
            .options(selectinload(Board.lists).selectinload(BoardList.cards))
            .execution_options(populate_existing=True)
        )
        board = result.scalar_one_or_none()
        if board is None:
            raise BoardNotFoundError(board_id)
        return board

    async def get_list(self, db: AsyncSession, list_id: int) -> BoardList:
        board_list = await db.get(BoardList, list_id)
        if board_list is None:
            raise ListNotFoundError(list_id)
        return board_list

    async def get_card(self, db: AsyncSession, card_id: int) -> Card:
        card = await db.get(Card, card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    async def _lists_of(self, db: AsyncSession, board_id: int) -> list[BoardList]:
        result = await db.execute(
            select(BoardList)
            .where(BoardList.board_id == board_id)
            .order_by(BoardList.position, BoardList.id)
        )
        return list(result.scalars().all())

    async def _cards_of(self, db: AsyncSession, list_id: int) -> list[Card]:
        result = await db.execute(
            select(Card).where(Card.list_id == list_id).order_by(Card.position, Card.id)
        )
        return list(result.scalars().all())

    async def add_list(
        self, db: AsyncSession, board_id: int, title: str, position: Optional[int] = None
    ) -> BoardList:
        if await db.get(Board, board_id) is None:
            raise BoardNotFoundError(board_id)
        if not (title or "").strip():
            raise ClientInputError("title is required")

        board_list = BoardList(board_id=board_id, title=title)
        place(await self._lists_of(db, board_id), board_list, position)
        db.add(board_list)
        await db.commit()
        return board_list

    async def add_card(
        self,
        db: AsyncSession,
        board_list: BoardList,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[date] = None,
        priority: Optional[str] = None,
        submission_id: Optional[int] = None,
        position: Optional[int] = None,
    ) -> Card:
        """Insert a card into ``board_list`` (flushes, caller commits)."""
        if not (title or "").strip():
            raise ClientInputError("title is required")

        card = Card(
            list_id=board_list.id,
            title=title,
            description=description,
            due_date=due_date,
            priority=priority,
            submission_id=submission_id,
        )
        place(await self._cards_of(db, board_list.id), card, position)
        db.add(card)
        await db.flush()
        return card

    async def create_card(
        self,
        db: AsyncSession,
        list_id: int,
        title: str,
        description: Optional[str] = None,
        due_date: Optional[date] = None,
        priority: Optional[str] = None,
        position: Optional[int] = None,
    ) -> Card:
        board_list = await self.get_list(db, list_id)
        card = await self.add_card(
            db,
            board_list,
            title=title,
            description=description,
            due_date=due_date,
            priority=priority,
            position=position,
        )
        await db.commit()
        return card

    async def move_list(self, db: AsyncSession, list_id: int, position: int) -> BoardList:
        board_list = await self.get_list(db, list_id)
        place(await self._lists_of(db, board_list.board_id), board_list, position)
        await db.commit()
        return board_list

    async def move_card(
        self,
        db: AsyncSession,
        card_id: int,
        position: int,
        list_id: Optional[int] = None,
    ) -> Card:
        """
        Move a card within its list, or into ``list_id`` at ``position``.

        Both the source and the target list end up numbered ``0 .. n - 1``.
        """
        card = await self.get_card(db, card_id)
        source_id = card.list_id
        target_id = list_id if list_id is not None else source_id

        if target_id != source_id:
            target = await self.get_list(db, target_id)
            source_cards = [c for c in await self._cards_of(db, source_id) if c is not card]
            for index, entry in enumerate(source_cards):
                entry.position = index
            card.list_id = target.id

        place(
            [c for c in await self._cards_of(db, target_id) if c is not card],
            card,
            position,
        )
        await db.commit()

        logger.info(f"Card {card_id} moved to list {target_id} position {card.position}")
        return card


# Singleton instance
board_service = BoardService()
