"""Pytest configuration and shared fixtures."""

import uuid
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

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
from ticketing.domain.errors import QRRenderError
from ticketing.stores.interfaces import DocumentStore, TicketStore


class StoreFailure(Exception):
    """Raised by FakeTicketStore when a failure is injected."""


class FakeTicketStore(TicketStore):
    """In-memory TicketStore with per-operation failure injection.

    ``fail_ticket_calls`` holds 1-based insert_tickets call numbers that fail.
    """

    def __init__(self) -> None:
        self.batches: dict[BatchId, EventBatch] = {}
        self.tiers: dict[BatchId, list[PricingTier]] = {}
        self.tickets: dict[BatchId, list[IndividualTicket]] = {}
        self.fail_batch = False
        self.fail_tiers = False
        self.fail_ticket_calls: set[int] = set()
        self.fail_delete_stage: str | None = None
        self.fail_document_url = False
        self.drop_tickets = 0
        self.ticket_calls = 0
        self.mark_used_result: bool | None = None

    def insert_batch(self, owner_id, event, price, quantity):
        if self.fail_batch:
            raise StoreFailure("batch insert refused")
        now = datetime.now(timezone.utc)
        batch = EventBatch(
            id=BatchId(uuid.uuid4()),
            owner_id=owner_id,
            event=event,
            price=price,
            quantity=quantity,
            document_url=None,
            created_at=now,
            updated_at=now,
        )
        self.batches[batch.id] = batch
        self.tiers[batch.id] = []
        self.tickets[batch.id] = []
        return batch

    def insert_tiers(self, batch_id, tiers):
        if self.fail_tiers:
            raise StoreFailure("tier insert refused")
        rows = [
            PricingTier(
                id=TierId(uuid.uuid4()),
                batch_id=batch_id,
                name=tier.name,
                price=tier.price,
                quantity=tier.quantity,
                position=position,
                description=tier.description,
                created_at=datetime.now(timezone.utc),
            )
            for position, tier in enumerate(tiers)
        ]
        self.tiers[batch_id].extend(rows)
        return rows

    def insert_tickets(self, batch_id, rows):
        self.ticket_calls += 1
        if self.ticket_calls in self.fail_ticket_calls:
            raise StoreFailure("chunk insert refused")
        stored = self.tickets[batch_id]
        by_code = {ticket.code: ticket for ticket in stored}
        tiers = {tier.id: tier for tier in self.tiers[batch_id]}
        result = []
        for row in rows:
            if row.code not in by_code:
                tier = tiers.get(row.tier_id)
                ticket = IndividualTicket(
                    id=TicketId(uuid.uuid4()),
                    batch_id=batch_id,
                    tier_id=row.tier_id,
                    code=row.code,
                    ticket_number=row.ticket_number,
                    qr_payload=row.qr_payload,
                    qr_image=row.qr_image,
                    is_used=False,
                    validated_at=None,
                    seat_section=row.seat_section,
                    seat_row=row.seat_row,
                    seat_number=row.seat_number,
                    created_at=datetime.now(timezone.utc),
                    tier_name=tier.name if tier else None,
                    price=tier.price if tier else None,
                )
                stored.append(ticket)
                by_code[row.code] = ticket
            result.append(by_code[row.code])
        if self.drop_tickets:
            result = result[: len(result) - self.drop_tickets]
        return result

    def set_document_url(self, batch_id, url):
        if self.fail_document_url:
            raise StoreFailure("document url update refused")
        self.batches[batch_id] = replace(self.batches[batch_id], document_url=url)

    def get_batch(self, batch_id, owner_id=None):
        batch = self.batches.get(batch_id)
        if batch is None or (owner_id is not None and batch.owner_id != owner_id):
            return None
        return replace(
            batch,
            tiers=tuple(self.tiers.get(batch_id, [])),
            tickets=tuple(sorted(self.tickets.get(batch_id, []), key=lambda t: t.ticket_number)),
        )

    def list_batches(self, owner_id=None):
        batches = [
            self.get_batch(batch_id)
            for batch_id, batch in self.batches.items()
            if owner_id is None or batch.owner_id == owner_id
        ]
        return sorted(batches, key=lambda b: b.created_at, reverse=True)

    def find_tickets(self, identifiers, owner_id=None):
        found = []
        for batch_id, tickets in self.tickets.items():
            batch = self.batches.get(batch_id)
            if batch is None or (owner_id is not None and batch.owner_id != owner_id):
                continue
            for ticket in tickets:
                if {str(ticket.id), ticket.code, ticket.qr_payload} & set(identifiers):
                    found.append(ticket)
        return found

    def mark_used(self, ticket_id, validated_at):
        for tickets in self.tickets.values():
            for index, ticket in enumerate(tickets):
                if ticket.id != ticket_id:
                    continue
                if self.mark_used_result is False:
                    # Simulate a concurrent scanner winning the update.
                    tickets[index] = replace(ticket, is_used=True, validated_at=validated_at)
                    return False
                if ticket.is_used:
                    return False
                tickets[index] = replace(ticket, is_used=True, validated_at=validated_at)
                return True
        return False

    def get_ticket(self, ticket_id):
        for tickets in self.tickets.values():
            for ticket in tickets:
                if ticket.id == ticket_id:
                    return ticket
        return None

    def count_tickets(self, batch_id):
        return len(self.tickets.get(batch_id, []))

    def delete_tickets(self, batch_id):
        if self.fail_delete_stage == "tickets":
            raise StoreFailure("ticket delete refused")
        return len(self.tickets.pop(batch_id, []))

    def delete_tiers(self, batch_id):
        if self.fail_delete_stage == "tiers":
            raise StoreFailure("tier delete refused")
        return len(self.tiers.pop(batch_id, []))

    def delete_batch(self, batch_id, owner_id=None):
        if self.fail_delete_stage == "batch":
            raise StoreFailure("batch delete refused")
        return 1 if self.batches.pop(batch_id, None) else 0


class FakeDocumentStore(DocumentStore):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.uploads: dict[str, bytes] = {}

    def upload(self, path, data, content_type):
        if self.fail:
            raise StoreFailure("upload refused")
        self.uploads[path] = data
        return f"https://files.example.test/{path}"


class StubRenderer:
    """QR renderer returning a fixed data URI; can fail at one payload index."""

    def __init__(self, fail_at: int | None = None) -> None:
        self.fail_at = fail_at
        self.calls = 0

    def render(self, payload: str) -> str:
        self.calls += 1
        if self.fail_at is not None and self.calls == self.fail_at:
            raise QRRenderError("encoder refused payload")
        return "data:image/png;base64,AAAA"


def make_tier(name: str = "Standard", price: str = "50", quantity: int = 2, description=None) -> TierSpec:
    return TierSpec(name=name, price=Money(Decimal(price)), quantity=Quantity(quantity), description=description)


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / "media"
    settings.MEDIA_URL = "/media/"
    return settings.MEDIA_ROOT


@pytest.fixture
def owner_headers() -> dict[str, str]:
    return {"HTTP_X_USER_ID": "owner-1"}


@pytest.fixture
def store() -> FakeTicketStore:
    return FakeTicketStore()


@pytest.fixture
def document_store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def event() -> EventDetails:
    return EventDetails(
        title="Lions vs Tigers",
        home_team="Lions",
        away_team="Tigers",
        stadium_name="North Ground",
        event_date="2025-06-01",
        event_start_time="19:30",
    )


@pytest.fixture
def vip_and_standard() -> list[TierSpec]:
    return [make_tier("VIP", "100", 2), make_tier("Standard", "50", 3)]
