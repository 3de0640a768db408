"""Scan validation.

Resolves a scanned string to one ticket and admits it at most once. The
used flag is flipped with a conditional update, so two scanners racing on
the same ticket cannot both be accepted.
"""

import logging
from dataclasses import replace

from django.utils import timezone

from ticketing.domain import codec
from ticketing.domain.models import IndividualTicket, LiteralTicketRef, QRPayload, ScanOutcome, ScanResult
from ticketing.stores.interfaces import TicketStore

logger = logging.getLogger(__name__)


class ValidationResolver:
    """Accepts, or rejects as already used or not found, one scan at a time."""

    def __init__(self, store: TicketStore) -> None:
        self._store = store

    def resolve(self, scanned: str, owner_id: str | None = None) -> tuple[IndividualTicket | None, bool]:
        """Find the ticket a scanned string refers to, without changing it."""
        raw = scanned.strip()
        if not raw:
            return None, False

        decoded = codec.decode(raw)
        if isinstance(decoded, QRPayload):
            verified = codec.verify(decoded)
            if not verified:
                logger.warning("Scanned payload failed checksum", extra={"ticket_code": decoded.ticket_id})
            matches = self._store.find_tickets([decoded.ticket_id], owner_id)
            ticket = _pick(matches, decoded.ticket_id)
            if ticket is not None:
                return ticket, verified

        if isinstance(decoded, LiteralTicketRef) and decoded.is_uuid:
            logger.info("Scanned legacy ticket id", extra={"ticket_ref": decoded.value})

        # Literal fallback: the stored payload verbatim, or a plain id/code.
        matches = self._store.find_tickets([raw], owner_id)
        return _pick(matches, raw), False

    def validate(self, scanned: str, owner_id: str | None = None) -> ScanResult:
        ticket, verified = self.resolve(scanned, owner_id)
        if ticket is None:
            logger.info("Scan rejected: ticket not found")
            return ScanResult(outcome=ScanOutcome.NOT_FOUND)

        if ticket.is_used:
            return self._already_used(ticket, verified)

        validated_at = timezone.now()
        if not self._store.mark_used(ticket.id, validated_at):
            # Another scanner got there between our read and our update.
            current = self._store.get_ticket(ticket.id) or ticket
            return self._already_used(current, verified)

        accepted = replace(ticket, is_used=True, validated_at=validated_at)
        logger.info(
            "Ticket accepted",
            extra={"ticket_id": str(ticket.id), "ticket_number": ticket.ticket_number},
        )
        return ScanResult(
            outcome=ScanOutcome.ACCEPTED,
            ticket=accepted,
            checksum_verified=verified,
            validated_at=validated_at,
        )

    def _already_used(self, ticket: IndividualTicket, verified: bool) -> ScanResult:
        logger.info(
            "Scan rejected: ticket already used",
            extra={"ticket_id": str(ticket.id), "validated_at": str(ticket.validated_at)},
        )
        return ScanResult(
            outcome=ScanOutcome.ALREADY_USED,
            ticket=ticket,
            checksum_verified=verified,
            validated_at=ticket.validated_at,
        )


def _pick(matches: list[IndividualTicket], identifier: str) -> IndividualTicket | None:
    """Prefer an exact id or code match over a payload match."""
    for ticket in matches:
        if identifier in (str(ticket.id), ticket.code):
            return ticket
    for ticket in matches:
        if ticket.qr_payload == identifier:
            return ticket
    return None
