"""Service error hierarchy for the upload pipeline and its collaborators.

Every error carries the HTTP status it maps to and a stable ``code`` so the
API layer can render it without knowing the concrete class:

- ClientInputError: malformed request data (4xx, never retried server-side)
- NotFoundError: unknown, consumed, expired or foreign resource (404)
- PermissionDeniedError: authenticated but not allowed (403)
- IncompleteUploadError: finalize before every chunk arrived (400)
- UploadSizeMismatchError: assembled bytes differ from the declared size (400)
- StorageError: disk or object storage write failed (500, session kept)
"""

from typing import Any


class ServiceError(Exception):
    """Base exception for all service errors."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details


class ClientInputError(ServiceError):
    """Malformed input: missing fields, empty chunk body, bad values."""

    status_code = 400
    code = "invalid_input"


class InvalidChunkIndexError(ClientInputError):
    """Chunk index outside ``0 .. expectedChunks - 1``."""

    code = "invalid_chunk_index"


class PayloadTooLargeError(ClientInputError):
    """Chunk larger than the session chunk size, or file over the limit."""

    status_code = 413
    code = "payload_too_large"


class NotFoundError(ServiceError):
    status_code = 404
    code = "not_found"


class SessionNotFoundError(NotFoundError):
    """Unknown, expired, already finalized, or owned by another key."""

    code = "session_not_found"

    def __init__(self, upload_id: str):
        super().__init__(f"Upload session {upload_id} not found", uploadId=upload_id)


class AttachmentNotFoundError(NotFoundError):
    code = "attachment_not_found"

    def __init__(self, attachment_id: int):
        super().__init__(f"Attachment {attachment_id} not found")


class ParentNotFoundError(NotFoundError):
    code = "parent_not_found"

    def __init__(self, parent_type: str, parent_id: int):
        super().__init__(f"{parent_type.capitalize()} {parent_id} not found")


class PermissionDeniedError(ServiceError):
    status_code = 403
    code = "permission_denied"


class IncompleteUploadError(ServiceError):
    """Finalize called while chunks are still missing."""

    status_code = 400
    code = "incomplete_upload"

    def __init__(self, received: int, expected: int, missing: list[int]):
        super().__init__(
            f"Upload incomplete: {received}/{expected} chunks received",
            received=received,
            expected=expected,
            missingChunks=missing,
        )
        self.received = received
        self.expected = expected
        self.missing = missing


class MissingChunkError(IncompleteUploadError):
    """Chunks recorded as received disappeared from disk before assembly."""

    code = "missing_chunk"

    def __init__(self, missing: list[int], expected: int):
        super().__init__(received=expected - len(missing), expected=expected, missing=missing)
        self.index = missing[0]
        self.message = f"Chunk {self.index} is missing from storage, upload it again"
        self.args = (self.message,)
        self.details["chunkIndex"] = self.index


class ChunkSizeMismatchError(ClientInputError):
    """Every chunk but the last must be exactly ``chunkSize`` bytes; the last one holds the rest."""

    code = "chunk_size_mismatch"

    def __init__(self, index: int, expected_size: int, size: int):
        super().__init__(
            f"Chunk {index} must be {expected_size} bytes, got {size}",
            chunkIndex=index,
            expectedSize=expected_size,
            receivedSize=size,
        )


class UploadSizeMismatchError(ServiceError):
    """Assembled bytes do not add up to the declared file size."""

    status_code = 400
    code = "size_mismatch"

    def __init__(self, declared_size: int, assembled_size: int):
        super().__init__(
            f"Assembled {assembled_size} bytes but {declared_size} were declared",
            declaredSize=declared_size,
            assembledSize=assembled_size,
        )


class StorageError(ServiceError):
    """Underlying disk or object storage operation failed."""

    status_code = 500
    code = "storage_failure"


class SubmissionNotFoundError(NotFoundError):
    code = "submission_not_found"

    def __init__(self, submission_id: int):
        super().__init__(f"Submission {submission_id} not found")


class BoardNotFoundError(NotFoundError):
    code = "board_not_found"

    def __init__(self, board_id: int):
        super().__init__(f"Board {board_id} not found")


class ListNotFoundError(NotFoundError):
    code = "list_not_found"

    def __init__(self, list_id: int):
        super().__init__(f"List {list_id} not found")


class CardNotFoundError(NotFoundError):
    code = "card_not_found"

    def __init__(self, card_id: int):
        super().__init__(f"Card {card_id} not found")
