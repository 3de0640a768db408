"""Domain error codes for the ticketing module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_BATCH_INPUT = "INVALID_BATCH_INPUT"
    EMPTY_TIER_LIST = "EMPTY_TIER_LIST"
    INVALID_BATCH_ID = "INVALID_BATCH_ID"
    BATCH_NOT_FOUND = "BATCH_NOT_FOUND"
    QR_RENDER_FAILED = "QR_RENDER_FAILED"
    BATCH_INSERT_FAILED = "BATCH_INSERT_FAILED"
    TIER_INSERT_FAILED = "TIER_INSERT_FAILED"
    TICKET_CHUNK_INSERT_FAILED = "TICKET_CHUNK_INSERT_FAILED"
    TICKET_COUNT_MISMATCH = "TICKET_COUNT_MISMATCH"
    BATCH_DELETION_FAILED = "BATCH_DELETION_FAILED"
    INVALID_PROGRESS_TRANSITION = "INVALID_PROGRESS_TRANSITION"
    RUN_NOT_FOUND = "RUN_NOT_FOUND"
    DOCUMENT_GENERATION_FAILED = "DOCUMENT_GENERATION_FAILED"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def _attach(self, **context: object) -> None:
        for name, value in context.items():
            object.__setattr__(self, name, value)


class PersistenceError(DomainError):
    """Base for store write failures during issuance or deletion."""


class InvalidBatchInputError(DomainError):
    """Raised when batch or tier input fails validation."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(
            code=ErrorCode.INVALID_BATCH_INPUT,
            message=". ".join(errors),
        )
        self._attach(errors=tuple(errors))


class EmptyTierListError(DomainError):
    """Raised when issuance is requested with no pricing tiers."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.EMPTY_TIER_LIST,
            message="At least one pricing tier is required",
        )


class InvalidBatchIdError(DomainError):
    """Raised when a batch ID is invalid."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_BATCH_ID,
            message="Invalid batch ID format",
        )


class BatchNotFoundError(DomainError):
    """Raised when a batch is not found."""

    def __init__(self, batch_id: str) -> None:
        super().__init__(
            code=ErrorCode.BATCH_NOT_FOUND,
            message="Ticket batch not found",
        )
        self._attach(batch_id=batch_id)


class QRRenderError(DomainError):
    """Raised when a QR image cannot be produced for a payload."""

    def __init__(self, reason: str, ticket_number: int | None = None) -> None:
        prefix = f"Ticket {ticket_number}: " if ticket_number is not None else ""
        super().__init__(
            code=ErrorCode.QR_RENDER_FAILED,
            message=f"{prefix}QR code generation failed: {reason}",
        )
        self._attach(ticket_number=ticket_number)


class BatchInsertError(PersistenceError):
    """Raised when the batch row cannot be written."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            code=ErrorCode.BATCH_INSERT_FAILED,
            message=f"Failed to create ticket batch: {reason}",
        )


class TierInsertError(PersistenceError):
    """Raised when the tier rows cannot be written."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            code=ErrorCode.TIER_INSERT_FAILED,
            message=f"Failed to create ticket tiers: {reason}",
        )


class TicketChunkInsertError(PersistenceError):
    """Raised when one chunk of ticket rows cannot be written."""

    def __init__(self, chunk_index: int, reason: str) -> None:
        super().__init__(
            code=ErrorCode.TICKET_CHUNK_INSERT_FAILED,
            message=f"Failed to insert ticket batch {chunk_index}: {reason}",
        )
        self._attach(chunk_index=chunk_index)


class TicketCountMismatchError(PersistenceError):
    """Raised when the store accepted fewer or more tickets than were sent."""

    def __init__(self, expected: int, inserted: int) -> None:
        super().__init__(
            code=ErrorCode.TICKET_COUNT_MISMATCH,
            message=f"Expected {expected} tickets, but {inserted} were created",
        )
        self._attach(expected=expected, inserted=inserted)


class BatchDeletionError(PersistenceError):
    """Raised when one stage of a batch deletion fails."""

    def __init__(self, stage: str, reason: str) -> None:
        super().__init__(
            code=ErrorCode.BATCH_DELETION_FAILED,
            message=f"Failed to delete {stage}: {reason}",
        )
        self._attach(stage=stage)


class InvalidProgressTransitionError(DomainError):
    """Raised when a progress tracker is driven through an illegal transition."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_PROGRESS_TRANSITION,
            message=f"Cannot move issuance progress from {current} to {target}",
        )


class RunNotFoundError(DomainError):
    """Raised when a background issuance run id is unknown."""

    def __init__(self, run_id: str) -> None:
        super().__init__(
            code=ErrorCode.RUN_NOT_FOUND,
            message="Issuance run not found",
        )
        self._attach(run_id=run_id)


class DocumentGenerationError(DomainError):
    """Raised when a ticket document cannot be rendered or stored."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            code=ErrorCode.DOCUMENT_GENERATION_FAILED,
            message=reason,
        )
