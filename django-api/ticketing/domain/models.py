"""Domain models representing persisted and in-flight state.

These are pure domain objects with no API input rules.
Django ORM models are in ticketing/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ticketing.domain.value_objects import (
    BatchId,
    Money,
    PendingTierRef,
    Quantity,
    TicketId,
    TierId,
)


@dataclass(frozen=True)
class EventDetails:
    """Event metadata supplied by the organizer when creating a batch."""

    title: str
    description: str | None = None
    event_date: str | None = None
    event_start_time: str | None = None
    event_end_time: str | None = None
    home_team: str | None = None
    away_team: str | None = None
    stadium_name: str | None = None
    competition: str | None = None


@dataclass(frozen=True)
class TierSpec:
    """A pricing tier as requested, before it is stored."""

    name: str
    price: Money
    quantity: Quantity
    description: str | None = None

    def __post_init__(self) -> None:
        if self.quantity.value < 1:
            raise ValueError("Tier quantity must be at least 1")


@dataclass(frozen=True)
class PricingTier:
    """Domain representation of a stored PricingTier."""

    id: TierId
    batch_id: BatchId
    name: str
    price: Money
    quantity: Quantity
    position: int
    description: str | None
    created_at: datetime


@dataclass(frozen=True)
class IndividualTicket:
    """Domain representation of one physical ticket."""

    id: TicketId
    batch_id: BatchId
    tier_id: TierId | None
    code: str
    ticket_number: int
    qr_payload: str
    qr_image: str | None
    is_used: bool
    validated_at: datetime | None
    seat_section: str | None
    seat_row: str | None
    seat_number: str | None
    created_at: datetime
    tier_name: str | None = None
    price: Money | None = None


@dataclass(frozen=True)
class EventBatch:
    """Domain representation of an EventBatch."""

    id: BatchId
    owner_id: str
    event: EventDetails
    price: Money
    quantity: Quantity
    document_url: str | None
    created_at: datetime
    updated_at: datetime
    tiers: tuple[PricingTier, ...] = ()
    tickets: tuple[IndividualTicket, ...] = ()

    @property
    def title(self) -> str:
        return self.event.title


@dataclass(frozen=True)
class TicketDraft:
    """A ticket issued by the engine but not yet written to the store."""

    code: str
    ticket_number: int
    tier_ref: PendingTierRef
    tier_name: str
    price: Money
    qr_payload: str
    qr_image: str
    seat_section: str | None = None
    seat_row: str | None = None
    seat_number: str | None = None


@dataclass(frozen=True)
class QRPayload:
    """Fields embedded in a ticket's QR code."""

    ticket_id: str
    event_title: str
    price: Money
    timestamp: int
    checksum: str
    batch_id: str | None = None
    home_team: str | None = None
    away_team: str | None = None
    stadium_name: str | None = None
    event_date: str | None = None
    event_start_time: str | None = None
    tier_name: str | None = None
    ticket_number: int | None = None
    tier_index: int | None = None


@dataclass(frozen=True)
class LiteralTicketRef:
    """A scanned string that is not a structured payload."""

    value: str
    is_uuid: bool


class ProgressStatus(Enum):
    IDLE = "idle"
    CREATING = "creating"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ERROR = "error"


@dataclass(frozen=True)
class Progress:
    """Snapshot of an issuance run."""

    current: int = 0
    total: int = 0
    percentage: int = 0
    current_tier: str | None = None
    status: ProgressStatus = ProgressStatus.IDLE
    error: str | None = None


class ScanOutcome(Enum):
    ACCEPTED = "accepted"
    ALREADY_USED = "already_used"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ScanResult:
    """Outcome of resolving one scanned string."""

    outcome: ScanOutcome
    ticket: IndividualTicket | None = None
    checksum_verified: bool = False
    validated_at: datetime | None = None


@dataclass(frozen=True)
class IssuanceResult:
    """Outcome of one issuance run."""

    batch: EventBatch
    tickets: tuple[IndividualTicket, ...] = field(default_factory=tuple)
    progress: Progress = field(default_factory=Progress)
    document_url: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.progress.status is ProgressStatus.CANCELLED
