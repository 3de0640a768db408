"""Batch service - all business logic lives here.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
import time
from collections.abc import Sequence

from ticketing.conf import ticketing_settings
from ticketing.domain.errors import (
    BatchNotFoundError,
    DocumentGenerationError,
    DomainError,
    InvalidBatchIdError,
    QRRenderError,
)
from ticketing.domain.models import (
    EventBatch,
    EventDetails,
    IssuanceResult,
    ProgressStatus,
    ScanResult,
    TicketDraft,
    TierSpec,
)
from ticketing.domain.value_objects import BatchId
from ticketing.services.documents import DocumentService
from ticketing.services.input_validation import validate_batch_request
from ticketing.services.issuance import IssuanceEngine, aggregate_quantity
from ticketing.services.persistence import IssuanceSaga, PersistenceGateway
from ticketing.services.progress import CancellationToken, ProgressTracker
from ticketing.services.validation import ValidationResolver
from ticketing.services.webhook import WebhookNotifier
from ticketing.stores.interfaces import TicketStore

logger = logging.getLogger(__name__)


def parse_batch_id(batch_id: str) -> BatchId:
    try:
        return BatchId.from_string(batch_id)
    except (ValueError, AttributeError, TypeError):
        raise InvalidBatchIdError() from None


class BatchService:
    """Service for ticket batch issuance, lookup, deletion and scanning."""

    def __init__(
        self,
        store: TicketStore,
        engine: IssuanceEngine | None = None,
        documents: DocumentService | None = None,
        webhook: WebhookNotifier | None = None,
        chunk_size: int | None = None,
        unit_delay: float | None = None,
    ) -> None:
        self._store = store
        self._engine = engine or IssuanceEngine()
        self._documents = documents
        self._webhook = webhook or WebhookNotifier()
        self._gateway = PersistenceGateway(store, chunk_size or ticketing_settings.CHUNK_SIZE)
        self._unit_delay = ticketing_settings.UNIT_DELAY_SECONDS if unit_delay is None else unit_delay
        self._resolver = ValidationResolver(store)

    def create_batch(
        self,
        owner_id: str,
        event: EventDetails,
        tiers: Sequence[TierSpec],
        token: CancellationToken | None = None,
        tracker: ProgressTracker | None = None,
    ) -> IssuanceResult:
        """Create a batch and issue all of its tickets.

        Raises:
            EmptyTierListError / InvalidBatchInputError: Before anything is written.
            QRRenderError / PersistenceError: Mid-run; rows already written stay.
        """
        validate_batch_request(event, tiers)
        token = token or CancellationToken()
        tracker = tracker or ProgressTracker()
        total = aggregate_quantity(tiers).value

        tracker.start(total)
        saga = self._gateway.begin(owner_id)
        try:
            saga.create_batch(event, tiers)
            saga.create_tiers(tiers)
            issued = self._issue_and_write(saga, event, tiers, token, tracker)
            saga.finish(issued)
        except DomainError as exc:
            if tracker.status is ProgressStatus.CREATING:
                tracker.mark_error(exc.message)
            raise
        except Exception:
            if tracker.status is ProgressStatus.CREATING:
                tracker.mark_error("Unexpected error while creating tickets")
            raise

        if issued < total:
            tracker.mark_cancelled()
            logger.warning(
                "Issuance cancelled; batch keeps its requested quantity",
                extra={"batch_id": str(saga.batch_id), "issued": issued, "requested": total},
            )
            return IssuanceResult(
                batch=saga.batch,
                tickets=tuple(saga.tickets),
                progress=tracker.snapshot,
            )

        tracker.mark_completed()
        document_url = self._attach_document(saga)
        self._webhook.ticket_created(saga.batch, saga.tickets, saga.tiers)
        batch = self._store.get_batch(saga.batch_id) or saga.batch
        logger.info(
            "Issuance completed",
            extra={"batch_id": str(saga.batch_id), "tickets": len(saga.tickets)},
        )
        return IssuanceResult(
            batch=batch,
            tickets=tuple(saga.tickets),
            progress=tracker.snapshot,
            document_url=document_url,
        )

    def _issue_and_write(
        self,
        saga: IssuanceSaga,
        event: EventDetails,
        tiers: Sequence[TierSpec],
        token: CancellationToken,
        tracker: ProgressTracker,
    ) -> int:
        buffer: list[TicketDraft] = []
        issued = 0
        current_tier: str | None = None

        def flush() -> None:
            inserted = saga.write_tickets(buffer)
            for draft in buffer[: len(inserted)]:
                tracker.advance(draft.tier_name)
            buffer.clear()

        try:
            for draft in self._engine.issue(event, tiers, saga.batch_id, token):
                if draft.tier_name != current_tier:
                    current_tier = draft.tier_name
                    tracker.set_tier(current_tier)
                buffer.append(draft)
                issued += 1
                if len(buffer) >= saga.chunk_size:
                    flush()
                if self._unit_delay:
                    time.sleep(self._unit_delay)
        except QRRenderError:
            # Tickets issued before the failure are kept.
            if buffer:
                flush()
            raise
        if buffer:
            flush()
        return issued

    def _attach_document(self, saga: IssuanceSaga) -> str | None:
        if self._documents is None:
            return None
        batch = self._store.get_batch(saga.batch_id)
        if batch is None:
            return None
        try:
            url = self._documents.generate(batch)
        except DomainError:
            logger.warning(
                "Ticket document generation failed; tickets remain valid",
                extra={"batch_id": str(saga.batch_id)},
                exc_info=True,
            )
            return None
        return url if saga.attach_document(url) else None

    def list_batches(self, owner_id: str | None = None) -> list[EventBatch]:
        """Return batches, newest first, optionally for one owner only."""
        return self._store.list_batches(owner_id)

    def get_batch(self, batch_id: str, owner_id: str | None = None) -> EventBatch:
        """Return a batch by ID.

        Raises:
            InvalidBatchIdError: If the batch_id is not a valid UUID.
            BatchNotFoundError: If the batch does not exist.
        """
        batch = self._store.get_batch(parse_batch_id(batch_id), owner_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    def delete_batch(self, batch_id: str, owner_id: str | None = None) -> None:
        """Delete a batch with its tiers and tickets.

        Raises:
            InvalidBatchIdError / BatchNotFoundError: As for get_batch.
            BatchDeletionError: Naming the stage that failed.
        """
        batch = self.get_batch(batch_id, owner_id)
        self._gateway.delete_batch(batch.id, owner_id)

    def regenerate_document(self, batch_id: str, owner_id: str | None = None) -> str:
        """Render and attach a fresh document for an existing batch.

        Raises:
            DocumentGenerationError: If rendering or upload fails, or no
                document storage is configured.
        """
        batch = self.get_batch(batch_id, owner_id)
        if self._documents is None:
            raise DocumentGenerationError("Document storage is not configured")
        url = self._documents.generate(batch)
        self._store.set_document_url(batch.id, url)
        return url

    def validation_stats(self, batch_id: str, owner_id: str | None = None) -> dict[str, int]:
        batch = self.get_batch(batch_id, owner_id)
        validated = sum(1 for ticket in batch.tickets if ticket.is_used)
        return {
            "total": len(batch.tickets),
            "validated": validated,
            "remaining": len(batch.tickets) - validated,
        }

    def validate_ticket(self, scanned: str, owner_id: str | None = None) -> ScanResult:
        return self._resolver.validate(scanned, owner_id)

    def find_incomplete_batches(self, owner_id: str | None = None) -> list[tuple[EventBatch, int]]:
        """Return batches whose stored ticket count differs from their quantity."""
        incomplete = []
        for batch in self._store.list_batches(owner_id):
            stored = self._store.count_tickets(batch.id)
            if stored != batch.quantity.value:
                incomplete.append((batch, stored))
        return incomplete

