"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self
from uuid import UUID


@dataclass(frozen=True)
class BatchId:
    """Unique identifier for an EventBatch."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TierId:
    """Unique identifier for a PricingTier."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TicketId:
    """Unique identifier for an IndividualTicket."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    @classmethod
    def of(cls, value: Decimal | float | int | str) -> Self:
        return cls(amount=Decimal(str(value)))

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class Quantity:
    """Non-negative integer count of tickets."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Quantity cannot be negative")


@dataclass(frozen=True)
class PendingTierRef:
    """Reference to a tier by declaration position, before it has a stored id."""

    index: int

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError("Tier index cannot be negative")


class TierIdMapping:
    """Resolves pending tier references to the ids assigned by the store."""

    def __init__(self, tier_ids: list[TierId]) -> None:
        self._tier_ids = tuple(tier_ids)

    def resolve(self, ref: PendingTierRef) -> TierId:
        try:
            return self._tier_ids[ref.index]
        except IndexError:
            raise KeyError(f"No stored tier for position {ref.index}") from None

    def __len__(self) -> int:
        return len(self._tier_ids)

    def __iter__(self):
        return iter(self._tier_ids)
