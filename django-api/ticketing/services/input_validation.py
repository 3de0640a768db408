"""Input rules checked before an issuance run starts."""

import re
from collections.abc import Sequence
from decimal import Decimal

from ticketing.domain.errors import EmptyTierListError, InvalidBatchInputError
from ticketing.domain.models import EventDetails, TierSpec

MAX_PRICE = Decimal("10000")
MAX_QUANTITY = 10_000

_WHITESPACE = re.compile(r"\s+")


def sanitize_string(value: str | None, max_length: int = 1000) -> str | None:
    """Trim, drop angle brackets, collapse whitespace, cap length."""
    if value is None:
        return None
    cleaned = _WHITESPACE.sub(" ", value.replace("<", "").replace(">", "")).strip()
    return cleaned[:max_length]


def event_title(title: str | None, home_team: str | None, away_team: str | None) -> str:
    if title:
        return title
    if home_team and away_team:
        return f"{home_team} vs {away_team}"
    return ""


def validate_event(event: EventDetails) -> list[str]:
    errors = []
    if not event.title:
        errors.append("Event title is required")
    elif not 3 <= len(event.title) <= 200:
        errors.append("Event title must be between 3 and 200 characters")
    if event.description and len(event.description) > 1000:
        errors.append("Description must be less than 1000 characters")
    for label, value in (("Event date", event.event_date), ("Start time", event.event_start_time)):
        if value is not None and not value.strip():
            errors.append(f"{label} cannot be blank")
    return errors


def validate_tiers(tiers: Sequence[TierSpec]) -> list[str]:
    errors = []
    for position, tier in enumerate(tiers, start=1):
        if not tier.name:
            errors.append(f"Tier {position}: Name is required")
        elif not 2 <= len(tier.name) <= 50:
            errors.append(f"Tier {position}: Name must be between 2 and 50 characters")
        if tier.price.amount > MAX_PRICE:
            errors.append(f"Tier {position}: Price cannot exceed {MAX_PRICE}")
        if tier.quantity.value > MAX_QUANTITY:
            errors.append(f"Tier {position}: Quantity cannot exceed {MAX_QUANTITY} tickets")
        if tier.description and len(tier.description) > 500:
            errors.append(f"Tier {position}: Description must be less than 500 characters")
    return errors


def validate_batch_request(event: EventDetails, tiers: Sequence[TierSpec]) -> None:
    """Raise if the request must not start issuance.

    Raises:
        EmptyTierListError: If no tiers were given.
        InvalidBatchInputError: If any event or tier rule is broken.
    """
    if not tiers:
        raise EmptyTierListError()
    errors = validate_event(event) + validate_tiers(tiers)
    if errors:
        raise InvalidBatchInputError(errors)
