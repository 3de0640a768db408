"""Django ORM implementation of the TicketStore."""

import uuid
from collections.abc import Sequence
from datetime import datetime

from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage
from django.db import transaction
from django.db.models import Q

from ticketing import models
from ticketing.cache import invalidate_batch
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
from ticketing.stores.interfaces import DocumentStore, TicketRow, TicketStore


def _to_tier(row: models.PricingTier) -> PricingTier:
    return PricingTier(
        id=TierId(row.id),
        batch_id=BatchId(row.batch_id),
        name=row.tier_name,
        price=Money(row.tier_price),
        quantity=Quantity(row.tier_quantity),
        position=row.position,
        description=row.tier_description,
        created_at=row.created_at,
    )


def _to_ticket(row: models.IndividualTicket, tier: models.PricingTier | None = None) -> IndividualTicket:
    return IndividualTicket(
        id=TicketId(row.id),
        batch_id=BatchId(row.batch_id),
        tier_id=TierId(row.tier_id) if row.tier_id else None,
        code=row.code,
        ticket_number=row.ticket_number,
        qr_payload=row.qr_code,
        qr_image=row.qr_code_image,
        is_used=row.is_used,
        validated_at=row.validated_at,
        seat_section=row.seat_section,
        seat_row=row.seat_row,
        seat_number=row.seat_number,
        created_at=row.created_at,
        tier_name=tier.tier_name if tier else None,
        price=Money(tier.tier_price) if tier else None,
    )


def _to_batch(row: models.EventBatch, with_children: bool = True) -> EventBatch:
    tiers: tuple[PricingTier, ...] = ()
    tickets: tuple[IndividualTicket, ...] = ()
    if with_children:
        tier_rows = list(row.tiers.all())
        by_id = {tier.id: tier for tier in tier_rows}
        tiers = tuple(_to_tier(tier) for tier in tier_rows)
        tickets = tuple(_to_ticket(ticket, by_id.get(ticket.tier_id)) for ticket in row.tickets.all())
    return EventBatch(
        id=BatchId(row.id),
        owner_id=row.owner_id,
        event=EventDetails(
            title=row.event_title,
            description=row.description,
            event_date=row.event_date,
            event_start_time=row.event_start_time,
            event_end_time=row.event_end_time,
            home_team=row.home_team,
            away_team=row.away_team,
            stadium_name=row.stadium_name,
            competition=row.competition,
        ),
        price=Money(row.price),
        quantity=Quantity(row.quantity),
        document_url=row.pdf_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
        tiers=tiers,
        tickets=tickets,
    )


class DjangoTicketStore(TicketStore):
    """Relational ticket store using the Django ORM."""

    def insert_batch(
        self,
        owner_id: str,
        event: EventDetails,
        price: Money,
        quantity: Quantity,
    ) -> EventBatch:
        row = models.EventBatch.objects.create(
            owner_id=owner_id,
            event_title=event.title,
            description=event.description,
            event_date=event.event_date,
            event_start_time=event.event_start_time,
            event_end_time=event.event_end_time,
            home_team=event.home_team,
            away_team=event.away_team,
            stadium_name=event.stadium_name,
            competition=event.competition,
            price=price.amount,
            quantity=quantity.value,
        )
        return _to_batch(row, with_children=False)

    def insert_tiers(self, batch_id: BatchId, tiers: Sequence[TierSpec]) -> list[PricingTier]:
        rows = models.PricingTier.objects.bulk_create(
            [
                models.PricingTier(
                    id=uuid.uuid4(),
                    batch_id=batch_id.value,
                    tier_name=tier.name,
                    tier_price=tier.price.amount,
                    tier_quantity=tier.quantity.value,
                    tier_description=tier.description,
                    position=position,
                )
                for position, tier in enumerate(tiers)
            ]
        )
        self._invalidate(batch_id)
        return [_to_tier(row) for row in rows]

    def insert_tickets(self, batch_id: BatchId, rows: Sequence[TicketRow]) -> list[IndividualTicket]:
        codes = [row.code for row in rows]
        with transaction.atomic():
            existing = {
                ticket.code: ticket
                for ticket in models.IndividualTicket.objects.filter(code__in=codes)
            }
            created = models.IndividualTicket.objects.bulk_create(
                [
                    models.IndividualTicket(
                        id=uuid.uuid4(),
                        batch_id=batch_id.value,
                        tier_id=row.tier_id.value,
                        code=row.code,
                        ticket_number=row.ticket_number,
                        qr_code=row.qr_payload,
                        qr_code_image=row.qr_image,
                        seat_section=row.seat_section,
                        seat_row=row.seat_row,
                        seat_number=row.seat_number,
                    )
                    for row in rows
                    if row.code not in existing
                ]
            )
        by_code = existing | {ticket.code: ticket for ticket in created}
        tiers = {tier.id: tier for tier in models.PricingTier.objects.filter(batch_id=batch_id.value)}
        self._invalidate(batch_id)
        return [_to_ticket(by_code[code], tiers.get(by_code[code].tier_id)) for code in codes if code in by_code]

    def set_document_url(self, batch_id: BatchId, url: str | None) -> None:
        row = models.EventBatch.objects.get(pk=batch_id.value)
        row.pdf_url = url
        row.save(update_fields=["pdf_url", "updated_at"])

    def get_batch(self, batch_id: BatchId, owner_id: str | None = None) -> EventBatch | None:
        queryset = models.EventBatch.objects.prefetch_related("tiers", "tickets")
        if owner_id is not None:
            queryset = queryset.filter(owner_id=owner_id)
        row = queryset.filter(pk=batch_id.value).first()
        return _to_batch(row) if row else None

    def list_batches(self, owner_id: str | None = None) -> list[EventBatch]:
        queryset = models.EventBatch.objects.prefetch_related("tiers", "tickets")
        if owner_id is not None:
            queryset = queryset.filter(owner_id=owner_id)
        return [_to_batch(row) for row in queryset]

    def find_tickets(self, identifiers: Sequence[str], owner_id: str | None = None) -> list[IndividualTicket]:
        uuids = []
        for identifier in identifiers:
            try:
                uuids.append(uuid.UUID(identifier))
            except ValueError:
                continue
        condition = Q(code__in=identifiers) | Q(qr_code__in=identifiers)
        if uuids:
            condition |= Q(pk__in=uuids)
        queryset = models.IndividualTicket.objects.select_related("tier").filter(condition)
        if owner_id is not None:
            queryset = queryset.filter(batch__owner_id=owner_id)
        return [_to_ticket(row, row.tier) for row in queryset]

    def mark_used(self, ticket_id: TicketId, validated_at: datetime) -> bool:
        updated = models.IndividualTicket.objects.filter(pk=ticket_id.value, is_used=False).update(
            is_used=True, validated_at=validated_at
        )
        if updated:
            batch_id = (
                models.IndividualTicket.objects.filter(pk=ticket_id.value)
                .values_list("batch_id", flat=True)
                .first()
            )
            invalidate_batch(batch_id)
        return updated == 1

    def get_ticket(self, ticket_id: TicketId) -> IndividualTicket | None:
        row = models.IndividualTicket.objects.select_related("tier").filter(pk=ticket_id.value).first()
        return _to_ticket(row, row.tier) if row else None

    def count_tickets(self, batch_id: BatchId) -> int:
        return models.IndividualTicket.objects.filter(batch_id=batch_id.value).count()

    def delete_tickets(self, batch_id: BatchId) -> int:
        deleted, _ = models.IndividualTicket.objects.filter(batch_id=batch_id.value).delete()
        return deleted

    def delete_tiers(self, batch_id: BatchId) -> int:
        deleted, _ = models.PricingTier.objects.filter(batch_id=batch_id.value).delete()
        return deleted

    def delete_batch(self, batch_id: BatchId, owner_id: str | None = None) -> int:
        queryset = models.EventBatch.objects.filter(pk=batch_id.value)
        if owner_id is not None:
            queryset = queryset.filter(owner_id=owner_id)
        deleted, _ = queryset.delete()
        return deleted

    def _invalidate(self, batch_id: BatchId) -> None:
        owner_id = (
            models.EventBatch.objects.filter(pk=batch_id.value).values_list("owner_id", flat=True).first()
        )
        invalidate_batch(batch_id, owner_id)


class DjangoDocumentStore(DocumentStore):
    """Stores documents through a Django storage backend."""

    def __init__(self, storage: Storage | None = None) -> None:
        self._storage = storage or default_storage

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        if self._storage.exists(path):
            self._storage.delete(path)
        content = ContentFile(data)
        content.content_type = content_type
        name = self._storage.save(path, content)
        return self._storage.url(name)
