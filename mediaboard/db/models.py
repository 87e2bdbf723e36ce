"""Database models for the mediaboard service."""

import enum
import math
from datetime import date, datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediaboard.db.session import Base
from mediaboard.db.timezone import utcnow


def _enum(enum_cls: type[enum.Enum]) -> Enum:
    """Store enum values (not member names) so migrations and data agree."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=20,
    )


class PrincipalRole(str, enum.Enum):
    """Role carried by an API key."""

    ADMIN = "admin"
    CLIENT = "client"


class ParentType(str, enum.Enum):
    """Entities that can own attachments."""

    SUBMISSION = "submission"
    CARD = "card"


class FileType(str, enum.Enum):
    """Coarse media category derived from the mime type."""

    VIDEO = "video"
    AUDIO = "audio"
    IMAGE = "image"
    DOCUMENT = "document"
    OTHER = "other"


class TranscriptionStatus(str, enum.Enum):
    """Status of the transcription attached to an audio/video file."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Urgency(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    URGENT = "urgent"
    CRITICAL = "critical"


class SubmissionStatus(str, enum.Enum):
    """Admin-side workflow status of a client submission."""

    PENDING = "pending"
    IN_REVIEW = "in_review"
    IN_PRODUCTION = "in_production"
    DONE = "done"
    ARCHIVED = "archived"


class ApiKey(Base):
    """API keys for authentication."""

    __tablename__ = "api_keys"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), primary_key=True, default=lambda: str(uuid4())
    )
    key_hash: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    key_prefix: Mapped[str] = mapped_column(String(12), index=True)  # "mb_" + first 9 chars
    name: Mapped[str] = mapped_column(String(100))
    owner: Mapped[str] = mapped_column(String(100))
    role: Mapped[PrincipalRole] = mapped_column(_enum(PrincipalRole), default=PrincipalRole.CLIENT)
    is_active: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class ClientSubmission(Base):
    """A client request (files + urgency + deadline) shown in the admin inbox."""

    __tablename__ = "client_submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_key_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("api_keys.id"), index=True
    )
    title: Mapped[str] = mapped_column(String(500))
    urgency: Mapped[Urgency] = mapped_column(_enum(Urgency), default=Urgency.NORMAL)
    requested_due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[SubmissionStatus] = mapped_column(
        _enum(SubmissionStatus), default=SubmissionStatus.PENDING, index=True
    )
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assigned_board_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    assigned_card_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )


class Board(Base):
    """A Kanban board."""

    __tablename__ = "boards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_key_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), ForeignKey("api_keys.id"))
    color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_archived: Mapped[bool] = mapped_column(default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    lists: Mapped[list["BoardList"]] = relationship(
        "BoardList",
        back_populates="board",
        order_by="BoardList.position",
        cascade="all, delete-orphan",
    )


class BoardList(Base):
    """A column on a board."""

    __tablename__ = "lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("boards.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(255))
    position: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    board: Mapped["Board"] = relationship("Board", back_populates="lists")
    cards: Mapped[list["Card"]] = relationship(
        "Card",
        back_populates="board_list",
        order_by="Card.position",
        cascade="all, delete-orphan",
    )


class Card(Base):
    """A Kanban card, optionally created from a client submission."""

    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    list_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("lists.id", ondelete="CASCADE"), index=True
    )
    submission_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("client_submissions.id"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(500))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    priority: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_archived: Mapped[bool] = mapped_column(default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow
    )

    board_list: Mapped["BoardList"] = relationship("BoardList", back_populates="cards")


class Attachment(Base):
    """Metadata of an uploaded file owned by a submission or a card."""

    __tablename__ = "attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    parent_type: Mapped[ParentType] = mapped_column(_enum(ParentType), index=True)
    parent_id: Mapped[int] = mapped_column(Integer, index=True)

    file_name: Mapped[str] = mapped_column(String(500))
    file_url: Mapped[str] = mapped_column(Text)
    storage_path: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    file_type: Mapped[FileType] = mapped_column(_enum(FileType), default=FileType.OTHER)
    file_size: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    uploaded_by_key_id: Mapped[Optional[str]] = mapped_column(Uuid(as_uuid=False), nullable=True)

    # Written only by the transcription collaborator
    transcription: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transcription_status: Mapped[TranscriptionStatus] = mapped_column(
        _enum(TranscriptionStatus), default=TranscriptionStatus.PENDING
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )


class UploadSession(Base):
    """An in-progress chunked upload, bound to the API key that started it."""

    __tablename__ = "upload_sessions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)
    owner_key_id: Mapped[str] = mapped_column(Uuid(as_uuid=False), index=True)
    parent_type: Mapped[ParentType] = mapped_column(_enum(ParentType))
    parent_id: Mapped[int] = mapped_column(Integer)

    file_name: Mapped[str] = mapped_column(String(500))
    declared_size: Mapped[int] = mapped_column(BigInteger)
    mime_type: Mapped[str] = mapped_column(String(100))
    chunk_size: Mapped[int] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    @property
    def expected_chunks(self) -> int:
        return math.ceil(self.declared_size / self.chunk_size)

    def chunk_length(self, index: int) -> int:
        """Exact byte length of chunk ``index``; only the last one may be short."""
        return min(self.chunk_size, self.declared_size - index * self.chunk_size)


class UploadChunk(Base):
    """One received chunk of an upload session (insert-once per index)."""

    __tablename__ = "upload_chunks"
    __table_args__ = (
        UniqueConstraint("session_id", "chunk_index", name="uq_upload_chunks_session_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("upload_sessions.id", ondelete="CASCADE"), index=True
    )
    chunk_index: Mapped[int] = mapped_column(Integer)
    size: Mapped[int] = mapped_column(Integer)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
