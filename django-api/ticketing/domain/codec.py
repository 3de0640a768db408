"""QR payload codec.

The payload is a JSON object carrying the ticket's identifying fields and a
short checksum. The checksum is a 32-bit rolling hash: it catches typos and
truncated scans, it does not stop anyone from forging a payload.
"""

import json
import re
import time
from decimal import Decimal, InvalidOperation

from ticketing.domain.models import LiteralTicketRef, QRPayload
from ticketing.domain.value_objects import Money

CHECKSUM_SEPARATOR = "|"

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Wire key -> QRPayload attribute, for the optional fields.
_OPTIONAL_FIELDS = {
    "batchId": "batch_id",
    "homeTeam": "home_team",
    "awayTeam": "away_team",
    "stadiumName": "stadium_name",
    "eventDate": "event_date",
    "eventStartTime": "event_start_time",
    "tierName": "tier_name",
    "ticketNumber": "ticket_number",
    "tierIndex": "tier_index",
}


def _format_price(price: Money | Decimal | float | int | str) -> str:
    """Full-precision price text; 100, 100.0 and 100.00 hash alike."""
    amount = price.amount if isinstance(price, Money) else Decimal(str(price))
    return format(amount.normalize(), "f")


def compute_checksum(
    ticket_id: str,
    batch_id: str | None,
    event_title: str,
    price: Money | Decimal | float | int | str,
    timestamp: int,
) -> str:
    """Return the 8-hex-digit checksum over the basis fields, in order."""
    basis = CHECKSUM_SEPARATOR.join(
        [ticket_id, batch_id or "", event_title, _format_price(price), str(timestamp)]
    )
    value = 0
    for char in basis:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    return f"{value:08x}"


def build_payload(
    ticket_id: str,
    event_title: str,
    price: Money,
    *,
    batch_id: str | None = None,
    timestamp: int | None = None,
    **optional,
) -> QRPayload:
    """Assemble payload fields and stamp them with a checksum."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return QRPayload(
        ticket_id=ticket_id,
        event_title=event_title,
        price=price,
        timestamp=timestamp,
        checksum=compute_checksum(ticket_id, batch_id, event_title, price, timestamp),
        batch_id=batch_id,
        **optional,
    )


def encode(payload: QRPayload) -> str:
    """Serialize payload fields to the QR wire format."""
    document: dict[str, object] = {
        "id": payload.ticket_id,
        "eventTitle": payload.event_title,
        "price": float(payload.price.amount),
    }
    for wire_key, attr in _OPTIONAL_FIELDS.items():
        value = getattr(payload, attr)
        if value is not None:
            document[wire_key] = value
    document["timestamp"] = payload.timestamp
    document["checksum"] = payload.checksum
    return json.dumps(document, separators=(",", ":"), ensure_ascii=False)


def decode(raw: str) -> QRPayload | LiteralTicketRef:
    """Parse a scanned string.

    Anything that is not a JSON object with a ticket id is returned as a
    literal reference, so bare UUIDs printed on older tickets still resolve.
    """
    text = raw.strip()
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return LiteralTicketRef(value=text, is_uuid=bool(_UUID_RE.match(text)))

    if not isinstance(document, dict):
        return LiteralTicketRef(value=text, is_uuid=False)

    ticket_id = document.get("id") or document.get("ticketId")
    if not isinstance(ticket_id, str) or not ticket_id:
        return LiteralTicketRef(value=text, is_uuid=False)

    optional = {
        attr: document[wire_key]
        for wire_key, attr in _OPTIONAL_FIELDS.items()
        if document.get(wire_key) is not None
    }
    try:
        price = Money.of(document.get("price", 0))
    except (InvalidOperation, ValueError):
        price = Money(Decimal("0"))
    timestamp = document.get("timestamp")
    return QRPayload(
        ticket_id=ticket_id,
        event_title=str(document.get("eventTitle", "")),
        price=price,
        timestamp=timestamp if type(timestamp) is int else -1,
        checksum=str(document.get("checksum", "")),
        **optional,
    )


def verify(fields: QRPayload | LiteralTicketRef | None) -> bool:
    """Recompute the checksum and compare. Never raises."""
    if not isinstance(fields, QRPayload):
        return False
    if fields.timestamp < 0 or not fields.checksum:
        return False
    try:
        expected = compute_checksum(
            fields.ticket_id,
            fields.batch_id,
            fields.event_title,
            fields.price,
            fields.timestamp,
        )
    except (InvalidOperation, TypeError, ValueError):
        return False
    return expected == fields.checksum
