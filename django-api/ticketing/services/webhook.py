"""Best-effort notification of external systems after issuance."""

import logging
from collections.abc import Sequence

import httpx
from django.utils import timezone

from ticketing.conf import ticketing_settings
from ticketing.domain.models import EventBatch, IndividualTicket, PricingTier

logger = logging.getLogger(__name__)


def build_ticket_created_payload(
    batch: EventBatch,
    tickets: Sequence[IndividualTicket],
    tiers: Sequence[PricingTier],
) -> dict:
    event = batch.event
    revenue = sum(tier.price.amount * tier.quantity.value for tier in tiers)
    tier_names = {tier.id: (tier.name, tier.price) for tier in tiers}
    ticket_rows = []
    for ticket in tickets:
        tier_name, tier_price = tier_names.get(ticket.tier_id, (ticket.tier_name, ticket.price))
        ticket_rows.append(
            {
                "id": str(ticket.id),
                "ticketNumber": ticket.ticket_number,
                "tierName": tier_name,
                "price": float(tier_price.amount) if tier_price is not None else None,
                "qrCode": ticket.qr_payload,
                "seatSection": ticket.seat_section,
                "seatRow": ticket.seat_row,
                "seatNumber": ticket.seat_number,
            }
        )
    return {
        "ticketBatch": {
            "id": str(batch.id),
            "eventTitle": event.title,
            "description": event.description,
            "price": float(batch.price.amount),
            "quantity": batch.quantity.value,
            "eventDate": event.event_date,
            "eventStartTime": event.event_start_time,
            "eventEndTime": event.event_end_time,
            "homeTeam": event.home_team,
            "awayTeam": event.away_team,
            "stadiumName": event.stadium_name,
            "competition": event.competition,
            "createdAt": batch.created_at.isoformat(),
        },
        "tickets": ticket_rows,
        "tiers": [
            {
                "id": str(tier.id),
                "tierName": tier.name,
                "tierPrice": float(tier.price.amount),
                "tierQuantity": tier.quantity.value,
                "tierDescription": tier.description,
            }
            for tier in tiers
        ],
        "totalRevenue": float(revenue),
        "timestamp": timezone.now().isoformat(),
    }


class WebhookNotifier:
    """POSTs issuance events to a fixed endpoint. Never raises, never retries."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url if url is not None else ticketing_settings.WEBHOOK_URL
        self.timeout = timeout if timeout is not None else ticketing_settings.WEBHOOK_TIMEOUT
        self._transport = transport

    def send(self, event_type: str, data: dict) -> bool:
        if not self.url:
            logger.debug("No webhook URL configured; skipping", extra={"event_type": event_type})
            return False
        body = {
            "type": event_type,
            "data": data,
            "timestamp": timezone.now().isoformat(),
            "source": "ticket-manager",
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=body)
        except httpx.HTTPError:
            logger.warning("Webhook delivery failed", extra={"event_type": event_type}, exc_info=True)
            return False
        if response.status_code >= 400:
            logger.warning(
                "Webhook endpoint rejected notification",
                extra={"event_type": event_type, "status": response.status_code, "body": response.text[:200]},
            )
            return False
        logger.info("Webhook delivered", extra={"event_type": event_type})
        return True

    def ticket_created(
        self,
        batch: EventBatch,
        tickets: Sequence[IndividualTicket],
        tiers: Sequence[PricingTier],
    ) -> bool:
        return self.send("new_ticket", build_ticket_created_payload(batch, tickets, tiers))
