"""Pydantic schemas for request/response validation.

Wire format is camelCase (``uploadId``, ``fileName``); Python attributes stay
snake_case and either spelling is accepted on input.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mediaboard.db.models import (
    FileType,
    ParentType,
    PrincipalRole,
    SubmissionStatus,
    TranscriptionStatus,
    Urgency,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ============== Upload Schemas ==============


class UploadSessionCreate(CamelModel):
    """Request to open a chunked upload session."""

    parent_type: ParentType = Field(..., description="Entity the file is attached to")
    parent_id: int = Field(..., ge=1)
    file_name: str = Field(..., min_length=1, max_length=500)
    file_size: int = Field(..., gt=0, description="Declared total size in bytes")
    mime_type: Optional[str] = Field(None, max_length=100)


class UploadSessionResponse(CamelModel):
    """Response after opening an upload session."""

    upload_id: str
    chunk_size: int
    expected_chunks: int
    expires_at: datetime


class UploadStatusResponse(CamelModel):
    """Progress of an upload session."""

    upload_id: str
    file_name: str
    file_size: int
    mime_type: str
    chunk_size: int
    expected_chunks: int
    uploaded_chunks: list[int]
    expires_at: datetime


class ChunkAcceptedResponse(CamelModel):
    """Response after storing one chunk."""

    accepted: bool = True
    chunk_index: int
    uploaded_chunks: int = Field(..., description="Number of distinct chunks received so far")
    expected_chunks: int


class DirectUploadTargetRequest(CamelModel):
    """Request a presigned URL to PUT a small file straight to storage."""

    parent_type: ParentType
    parent_id: int = Field(..., ge=1)
    file_name: str = Field(..., min_length=1, max_length=500)
    mime_type: str = Field(..., min_length=1, max_length=100)


class DirectUploadTargetResponse(CamelModel):
    upload_url: str
    public_url: str
    storage_path: str
    expires_in: int


# ============== Attachment Schemas ==============


class AttachmentLink(CamelModel):
    """Metadata of a file already placed in storage via a direct upload."""

    file_name: str = Field(..., min_length=1, max_length=500)
    file_url: str = Field(..., min_length=1)
    file_type: Optional[str] = Field(
        None, description="Declared type; unknown values fall back to the mime type"
    )
    file_size: Optional[int] = Field(None, ge=0)
    mime_type: Optional[str] = Field(None, max_length=100)


class AttachmentCreate(AttachmentLink):
    """Link request carrying its parent in the body."""

    parent_type: ParentType
    parent_id: int = Field(..., ge=1)


class AttachmentResponse(CamelModel):
    id: int
    parent_type: ParentType
    parent_id: int
    file_name: str
    file_url: str
    thumbnail_url: Optional[str] = None
    file_type: FileType
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    transcription: Optional[str] = None
    transcription_status: TranscriptionStatus
    created_at: datetime


class TranscriptionUpdate(CamelModel):
    status: TranscriptionStatus
    text: Optional[str] = None


# ============== Submission Schemas ==============


class SubmissionCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    urgency: Urgency = Urgency.NORMAL
    requested_due_date: Optional[date] = None
    notes: Optional[str] = None


class SubmissionUpdate(CamelModel):
    status: Optional[SubmissionStatus] = None
    admin_notes: Optional[str] = None


class SubmissionResponse(CamelModel):
    id: int
    client_key_id: str
    title: str
    urgency: Urgency
    requested_due_date: Optional[date] = None
    notes: Optional[str] = None
    status: SubmissionStatus
    admin_notes: Optional[str] = None
    assigned_board_id: Optional[int] = None
    assigned_card_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    attachments: list[AttachmentResponse] = []


class SubmissionListResponse(CamelModel):
    """Paginated list of submissions."""

    submissions: list[SubmissionResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class PromoteRequest(CamelModel):
    """Create a card from a submission."""

    list_id: int = Field(..., ge=1)
    title: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None


# ============== Board Schemas ==============


class BoardCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(None, max_length=50)


class ListCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    position: Optional[int] = Field(None, ge=0)


class CardCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[str] = Field(None, max_length=20)
    position: Optional[int] = Field(None, ge=0)


class ListMove(CamelModel):
    position: int = Field(..., ge=0)


class CardMove(CamelModel):
    position: int = Field(..., ge=0)
    list_id: Optional[int] = Field(None, ge=1, description="Target list; defaults to the current one")


class CardResponse(CamelModel):
    id: int
    list_id: int
    submission_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    position: int
    due_date: Optional[date] = None
    priority: Optional[str] = None
    is_archived: bool
    created_at: datetime


class ListResponse(CamelModel):
    id: int
    board_id: int
    title: str
    position: int


class ListDetailResponse(ListResponse):
    cards: list[CardResponse] = []


class BoardResponse(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    color: Optional[str] = None
    is_archived: bool
    created_at: datetime


class BoardDetailResponse(BoardResponse):
    lists: list[ListDetailResponse] = []


# ============== API Key Schemas ==============


class ApiKeyCreate(BaseModel):
    """Request to create a new API key."""

    name: str = Field(..., min_length=1, max_length=100)
    owner: str = Field(..., min_length=1, max_length=100)
    role: PrincipalRole = PrincipalRole.CLIENT
    expires_in_days: Optional[int] = Field(None, ge=1, le=365)


class ApiKeyResponse(BaseModel):
    """Response after creating an API key (only time full key is shown)."""

    id: str
    api_key: str  # Full key, shown only once
    key_prefix: str
    name: str
    owner: str
    role: PrincipalRole
    created_at: datetime
    expires_at: Optional[datetime] = None


class ApiKeyInfo(BaseModel):
    """API key info (without full key)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    key_prefix: str
    name: str
    owner: str
    role: PrincipalRole
    is_active: bool
    created_at: datetime
    expires_at: Optional[datetime] = None


# ============== Health & Misc Schemas ==============


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    database: str
    redis: str
    storage: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: Optional[str] = None
