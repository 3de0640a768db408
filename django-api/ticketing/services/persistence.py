"""Persistence gateway.

Issuance writes go to the store in three dependent stages with no
transaction spanning them: the batch row, then all tier rows, then the
ticket rows in fixed-size chunks. Each stage is recorded on an
IssuanceSaga so a caller can deliberately undo a half-finished run.
"""

import logging
from collections.abc import Iterable, Sequence
from itertools import islice

from ticketing.domain.errors import (
    BatchDeletionError,
    BatchInsertError,
    TicketChunkInsertError,
    TicketCountMismatchError,
    TierInsertError,
)
from ticketing.domain.models import (
    EventBatch,
    EventDetails,
    IndividualTicket,
    PricingTier,
    TicketDraft,
    TierSpec,
)
from ticketing.domain.value_objects import BatchId, TierIdMapping
from ticketing.services.issuance import aggregate_price, aggregate_quantity
from ticketing.stores.interfaces import TicketRow, TicketStore

logger = logging.getLogger(__name__)


def chunked(items: Iterable, size: int) -> Iterable[list]:
    iterator = iter(items)
    while chunk := list(islice(iterator, size)):
        yield chunk


class IssuanceSaga:
    """Records what one issuance run has written, stage by stage."""

    def __init__(self, store: TicketStore, owner_id: str, chunk_size: int) -> None:
        self._store = store
        self.owner_id = owner_id
        self.chunk_size = chunk_size
        self.batch: EventBatch | None = None
        self.tiers: list[PricingTier] = []
        self.tier_mapping: TierIdMapping | None = None
        self.tickets: list[IndividualTicket] = []
        self.chunks_written = 0

    @property
    def batch_id(self) -> BatchId:
        if self.batch is None:
            raise RuntimeError("Batch has not been created")
        return self.batch.id

    def create_batch(self, event: EventDetails, tiers: Sequence[TierSpec]) -> EventBatch:
        try:
            self.batch = self._store.insert_batch(
                self.owner_id,
                event,
                aggregate_price(tiers),
                aggregate_quantity(tiers),
            )
        except Exception as exc:
            logger.error("Ticket batch creation failed", exc_info=True)
            raise BatchInsertError(str(exc)) from exc
        logger.info("Ticket batch created", extra={"batch_id": str(self.batch.id)})
        return self.batch

    def create_tiers(self, tiers: Sequence[TierSpec]) -> TierIdMapping:
        try:
            inserted = self._store.insert_tiers(self.batch_id, tiers)
        except Exception as exc:
            logger.error(
                "Ticket tier creation failed; batch row left in place",
                extra={"batch_id": str(self.batch_id)},
                exc_info=True,
            )
            raise TierInsertError(str(exc)) from exc
        if len(inserted) != len(tiers):
            raise TierInsertError(f"expected {len(tiers)} tiers, store returned {len(inserted)}")
        self.tiers = sorted(inserted, key=lambda tier: tier.position)
        self.tier_mapping = TierIdMapping([tier.id for tier in self.tiers])
        logger.info("Ticket tiers created", extra={"batch_id": str(self.batch_id), "tiers": len(inserted)})
        return self.tier_mapping

    def write_tickets(self, drafts: Sequence[TicketDraft]) -> list[IndividualTicket]:
        """Write drafts in chunks; a failed chunk keeps earlier chunks committed."""
        if self.tier_mapping is None:
            raise RuntimeError("Tiers have not been created")
        rows = [self._to_row(draft) for draft in drafts]
        written: list[IndividualTicket] = []
        for chunk in chunked(rows, self.chunk_size):
            chunk_index = self.chunks_written + 1
            try:
                inserted = self._store.insert_tickets(self.batch_id, chunk)
            except Exception as exc:
                logger.error(
                    "Ticket chunk insertion failed",
                    extra={"batch_id": str(self.batch_id), "chunk": chunk_index, "size": len(chunk)},
                    exc_info=True,
                )
                raise TicketChunkInsertError(chunk_index, str(exc)) from exc
            self.chunks_written = chunk_index
            self.tickets.extend(inserted)
            written.extend(inserted)
            logger.debug(
                "Ticket chunk inserted",
                extra={"batch_id": str(self.batch_id), "chunk": chunk_index, "size": len(inserted)},
            )
        return written

    def finish(self, expected: int) -> list[IndividualTicket]:
        """Check that the store holds exactly ``expected`` tickets for this run."""
        inserted = len(self.tickets)
        if inserted != expected:
            logger.error(
                "Ticket count mismatch",
                extra={"batch_id": str(self.batch_id), "expected": expected, "inserted": inserted},
            )
            raise TicketCountMismatchError(expected, inserted)
        return self.tickets

    def attach_document(self, url: str) -> bool:
        """Best-effort fourth write; failure is only a warning."""
        try:
            self._store.set_document_url(self.batch_id, url)
        except Exception:
            logger.warning(
                "Could not attach document to batch",
                extra={"batch_id": str(self.batch_id)},
                exc_info=True,
            )
            return False
        return True

    def compensate(self) -> None:
        """Delete everything this run created, newest stage first.

        Never called automatically; a caller decides when a partial run
        should be discarded rather than kept.
        """
        if self.batch is None:
            return
        logger.warning("Compensating partial issuance run", extra={"batch_id": str(self.batch_id)})
        if self.tickets:
            self._store.delete_tickets(self.batch_id)
        if self.tiers:
            self._store.delete_tiers(self.batch_id)
        self._store.delete_batch(self.batch_id)
        self.tickets.clear()
        self.tiers.clear()
        self.tier_mapping = None
        self.batch = None

    def _to_row(self, draft: TicketDraft) -> TicketRow:
        return TicketRow(
            code=draft.code,
            tier_id=self.tier_mapping.resolve(draft.tier_ref),
            ticket_number=draft.ticket_number,
            qr_payload=draft.qr_payload,
            qr_image=draft.qr_image,
            seat_section=draft.seat_section,
            seat_row=draft.seat_row,
            seat_number=draft.seat_number,
        )


class PersistenceGateway:
    """Entry point for issuance writes and ordered batch deletion."""

    def __init__(self, store: TicketStore, chunk_size: int = 100) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._store = store
        self.chunk_size = chunk_size

    def begin(self, owner_id: str) -> IssuanceSaga:
        return IssuanceSaga(self._store, owner_id, self.chunk_size)

    def persist(
        self,
        owner_id: str,
        event: EventDetails,
        tiers: Sequence[TierSpec],
        drafts_for_batch,
    ) -> IssuanceSaga:
        """Run all three stages for drafts produced by ``drafts_for_batch(batch_id)``."""
        saga = self.begin(owner_id)
        saga.create_batch(event, tiers)
        saga.create_tiers(tiers)
        drafts = list(drafts_for_batch(saga.batch_id))
        saga.write_tickets(drafts)
        saga.finish(len(drafts))
        return saga

    def delete_batch(self, batch_id: BatchId, owner_id: str | None = None) -> None:
        """Delete tickets, then tiers, then the batch; stop at the first failure."""
        stages = (
            ("individual tickets", lambda: self._store.delete_tickets(batch_id)),
            ("ticket tiers", lambda: self._store.delete_tiers(batch_id)),
            ("ticket batch", lambda: self._store.delete_batch(batch_id, owner_id)),
        )
        for stage, delete in stages:
            try:
                delete()
            except Exception as exc:
                logger.error(
                    "Batch deletion failed",
                    extra={"batch_id": str(batch_id), "stage": stage},
                    exc_info=True,
                )
                raise BatchDeletionError(stage, str(exc)) from exc
        logger.info("Ticket batch deleted", extra={"batch_id": str(batch_id)})
