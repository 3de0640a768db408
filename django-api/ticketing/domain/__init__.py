from ticketing.domain.models import (
    EventBatch,
    EventDetails,
    IndividualTicket,
    IssuanceResult,
    LiteralTicketRef,
    PricingTier,
    Progress,
    ProgressStatus,
    QRPayload,
    ScanOutcome,
    ScanResult,
    TicketDraft,
    TierSpec,
)
from ticketing.domain.value_objects import (
    BatchId,
    Money,
    PendingTierRef,
    Quantity,
    TicketId,
    TierId,
    TierIdMapping,
)

__all__ = [
    "EventBatch",
    "EventDetails",
    "IndividualTicket",
    "IssuanceResult",
    "LiteralTicketRef",
    "PricingTier",
    "Progress",
    "ProgressStatus",
    "QRPayload",
    "ScanOutcome",
    "ScanResult",
    "TicketDraft",
    "TierSpec",
    "BatchId",
    "TierId",
    "TicketId",
    "Money",
    "Quantity",
    "PendingTierRef",
    "TierIdMapping",
]
