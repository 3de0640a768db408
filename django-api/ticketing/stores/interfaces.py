"""Store interfaces (repository pattern).

Stores must be swappable and return domain models.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from ticketing.domain import (
    BatchId,
    EventBatch,
    EventDetails,
    IndividualTicket,
    Money,
    PricingTier,
    Quantity,
    TicketId,
    TierId,
    TierSpec,
)


@dataclass(frozen=True)
class TicketRow:
    """A ticket ready for insertion, with its tier already resolved."""

    code: str
    tier_id: TierId
    ticket_number: int
    qr_payload: str
    qr_image: str | None
    seat_section: str | None
    seat_row: str | None
    seat_number: str | None


class TicketStore(ABC):
    """Interface for batch, tier and ticket persistence."""

    @abstractmethod
    def insert_batch(
        self,
        owner_id: str,
        event: EventDetails,
        price: Money,
        quantity: Quantity,
    ) -> EventBatch:
        """Insert the batch row and return it with its assigned id."""
        ...

    @abstractmethod
    def insert_tiers(self, batch_id: BatchId, tiers: Sequence[TierSpec]) -> list[PricingTier]:
        """Insert all tiers in one request, returned in declaration order."""
        ...

    @abstractmethod
    def insert_tickets(self, batch_id: BatchId, rows: Sequence[TicketRow]) -> list[IndividualTicket]:
        """Insert one chunk of tickets.

        Idempotent on ticket code: rows whose code already exists are not
        inserted again, and the existing row is returned in their place.
        """
        ...

    @abstractmethod
    def set_document_url(self, batch_id: BatchId, url: str | None) -> None:
        """Attach or replace the generated document reference."""
        ...

    @abstractmethod
    def get_batch(self, batch_id: BatchId, owner_id: str | None = None) -> EventBatch | None:
        """Return a batch with its tiers and tickets, or None if not found."""
        ...

    @abstractmethod
    def list_batches(self, owner_id: str | None = None) -> list[EventBatch]:
        """Return batches newest first, tiers and tickets included.

        With no owner_id, every owner's batches are returned.
        """
        ...

    @abstractmethod
    def find_tickets(self, identifiers: Sequence[str], owner_id: str | None = None) -> list[IndividualTicket]:
        """Return tickets whose id, code or QR payload equals one of ``identifiers``."""
        ...

    @abstractmethod
    def mark_used(self, ticket_id: TicketId, validated_at: datetime) -> bool:
        """Set the used flag only if it is currently unset.

        Returns True when this call flipped the flag.
        """
        ...

    @abstractmethod
    def get_ticket(self, ticket_id: TicketId) -> IndividualTicket | None:
        ...

    @abstractmethod
    def count_tickets(self, batch_id: BatchId) -> int:
        ...

    @abstractmethod
    def delete_tickets(self, batch_id: BatchId) -> int:
        ...

    @abstractmethod
    def delete_tiers(self, batch_id: BatchId) -> int:
        ...

    @abstractmethod
    def delete_batch(self, batch_id: BatchId, owner_id: str | None = None) -> int:
        ...


class DocumentStore(ABC):
    """Interface for storing generated documents."""

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` under ``path`` and return a publicly fetchable URL."""
        ...
