"""Ticket issuance engine.

Expands event metadata and an ordered tier list into ticket drafts. Ticket
numbers are global across the batch: tier 0 gets 1..q0, tier 1 gets
q0+1..q0+q1, and so on.
"""

import logging
from collections.abc import Iterator, Sequence
from decimal import Decimal

from ticketing.domain import codec
from ticketing.domain.errors import EmptyTierListError, QRRenderError
from ticketing.domain.models import EventDetails, TicketDraft, TierSpec
from ticketing.domain.value_objects import BatchId, Money, PendingTierRef, Quantity
from ticketing.services.progress import CancellationToken
from ticketing.services.qr_renderer import QRRenderer

logger = logging.getLogger(__name__)


def ticket_code(batch_id: BatchId | str, ticket_number: int) -> str:
    return f"{batch_id}_ticket_{ticket_number:04d}"


def aggregate_quantity(tiers: Sequence[TierSpec]) -> Quantity:
    return Quantity(sum(tier.quantity.value for tier in tiers))


def aggregate_price(tiers: Sequence[TierSpec]) -> Money:
    """Quantity-weighted mean of the tier prices, unrounded."""
    if not tiers:
        raise EmptyTierListError()
    revenue = sum((tier.price.amount * tier.quantity.value for tier in tiers), Decimal("0"))
    return Money(revenue / aggregate_quantity(tiers).value)


def total_revenue(tiers: Sequence[TierSpec]) -> Money:
    return Money(sum((tier.price.amount * tier.quantity.value for tier in tiers), Decimal("0")))


class IssuanceEngine:
    """Builds QR payloads and images for every unit of every tier."""

    def __init__(self, renderer: QRRenderer | None = None) -> None:
        self._renderer = renderer or QRRenderer()

    def issue(
        self,
        event: EventDetails,
        tiers: Sequence[TierSpec],
        batch_id: BatchId,
        token: CancellationToken | None = None,
    ) -> Iterator[TicketDraft]:
        """Yield drafts in ticket-number order.

        The token is polled before each unit; once it is set no further
        drafts are produced. A render failure stops issuance.
        """
        if not tiers:
            raise EmptyTierListError()

        ticket_number = 0
        for tier_index, tier in enumerate(tiers):
            logger.info(
                "Issuing tickets for tier",
                extra={"tier": tier.name, "tier_index": tier_index, "quantity": tier.quantity.value},
            )
            for _ in range(tier.quantity.value):
                if token is not None and token.cancelled:
                    logger.info("Issuance cancelled", extra={"issued": ticket_number})
                    return
                ticket_number += 1
                yield self._issue_unit(event, tier, tier_index, batch_id, ticket_number)

    def issue_all(
        self,
        event: EventDetails,
        tiers: Sequence[TierSpec],
        batch_id: BatchId,
    ) -> list[TicketDraft]:
        return list(self.issue(event, tiers, batch_id))

    def _issue_unit(
        self,
        event: EventDetails,
        tier: TierSpec,
        tier_index: int,
        batch_id: BatchId,
        ticket_number: int,
    ) -> TicketDraft:
        code = ticket_code(batch_id, ticket_number)
        payload = codec.build_payload(
            code,
            event.title,
            tier.price,
            batch_id=str(batch_id),
            home_team=event.home_team,
            away_team=event.away_team,
            stadium_name=event.stadium_name,
            event_date=event.event_date,
            event_start_time=event.event_start_time,
            tier_name=tier.name,
            ticket_number=ticket_number,
            tier_index=tier_index,
        )
        encoded = codec.encode(payload)
        try:
            image = self._renderer.render(encoded)
        except QRRenderError as exc:
            raise QRRenderError(exc.message, ticket_number=ticket_number) from exc
        return TicketDraft(
            code=code,
            ticket_number=ticket_number,
            tier_ref=PendingTierRef(tier_index),
            tier_name=tier.name,
            price=tier.price,
            qr_payload=encoded,
            qr_image=image,
            seat_number=str(ticket_number),
        )
