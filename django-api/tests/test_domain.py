"""Unit tests for domain primitives and the QR payload codec.

These test invariants that must hold at construction time.
Run with: pytest tests/test_domain.py -v
"""

import json
import uuid
from decimal import Decimal

import pytest

from ticketing.domain import (
    BatchId,
    LiteralTicketRef,
    Money,
    PendingTierRef,
    QRPayload,
    Quantity,
    TierId,
    TierIdMapping,
)
from ticketing.domain import codec
from ticketing.domain.errors import ErrorCode, InvalidBatchInputError, TicketChunkInsertError


class TestMoney:
    """Tests for Money value object."""

    def test_money_accepts_zero(self):
        assert Money(Decimal("0")).amount == Decimal("0")

    def test_money_rejects_negative_amount(self):
        """Money raises ValueError for negative amount."""
        with pytest.raises(ValueError):
            Money(Decimal("-0.01"))

    def test_money_str_format(self):
        """Money string representation is formatted to 2 decimal places."""
        assert str(Money(Decimal("70"))) == "70.00"
        assert str(Money.of(12.5)) == "12.50"


class TestQuantity:
    def test_quantity_rejects_negative_value(self):
        with pytest.raises(ValueError):
            Quantity(-1)


class TestIds:
    def test_from_string_valid_uuid(self):
        value = uuid.uuid4()
        assert BatchId.from_string(str(value)).value == value

    def test_from_string_invalid_uuid_raises(self):
        with pytest.raises(ValueError):
            BatchId.from_string("not-a-uuid")


class TestTierIdMapping:
    """Pending tier references resolve to stored ids by position."""

    def test_resolves_by_declaration_position(self):
        ids = [TierId(uuid.uuid4()), TierId(uuid.uuid4())]
        mapping = TierIdMapping(ids)

        assert mapping.resolve(PendingTierRef(1)) == ids[1]
        assert len(mapping) == 2

    def test_unknown_position_raises_key_error(self):
        mapping = TierIdMapping([TierId(uuid.uuid4())])
        with pytest.raises(KeyError):
            mapping.resolve(PendingTierRef(1))

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            PendingTierRef(-1)


class TestDomainErrors:
    def test_input_error_keeps_individual_messages(self):
        error = InvalidBatchInputError(["Event title is required", "Tier 1: Name is required"])

        assert error.code is ErrorCode.INVALID_BATCH_INPUT
        assert error.errors == ("Event title is required", "Tier 1: Name is required")
        assert "Tier 1" in error.message

    def test_chunk_error_reports_one_based_index(self):
        error = TicketChunkInsertError(2, "timeout")

        assert error.chunk_index == 2
        assert str(error).startswith("TICKET_CHUNK_INSERT_FAILED: Failed to insert ticket batch 2")


class TestChecksum:
    """Checksum is a 32-bit rolling hash rendered as 8 hex digits."""

    def test_known_value(self):
        # "a|b|c|1|5" hashed with h = h*31 + ord(c), masked to 32 bits.
        expected = 0
        for char in "a|b|c|1|5":
            expected = (expected * 31 + ord(char)) & 0xFFFFFFFF

        assert codec.compute_checksum("a", "b", "c", Money(Decimal("1")), 5) == f"{expected:08x}"

    def test_always_eight_hex_digits(self):
        checksum = codec.compute_checksum("", None, "", Money(Decimal("0")), 0)

        assert len(checksum) == 8
        int(checksum, 16)

    def test_equal_prices_hash_alike(self):
        checksums = {
            codec.compute_checksum("t", "b", "e", price, 1)
            for price in (Money(Decimal("100")), Money(Decimal("100.0")), Money(Decimal("100.00")), "100")
        }

        assert len(checksums) == 1

    def test_missing_batch_id_hashes_as_empty(self):
        assert codec.compute_checksum("t", None, "e", Money(Decimal("1")), 1) == codec.compute_checksum(
            "t", "", "e", Money(Decimal("1")), 1
        )


class TestCodec:
    """Tests for encode/decode/verify of QR payloads."""

    def _payload(self, **overrides) -> QRPayload:
        fields = {
            "ticket_id": "b1_ticket_0001",
            "event_title": "Lions vs Tigers",
            "price": Money(Decimal("49.99")),
            "batch_id": "b1",
            "timestamp": 1_700_000_000_000,
            "tier_name": "VIP",
            "ticket_number": 1,
        }
        fields.update(overrides)
        return codec.build_payload(
            fields.pop("ticket_id"), fields.pop("event_title"), fields.pop("price"), **fields
        )

    def test_encoded_payload_decodes_and_verifies(self):
        decoded = codec.decode(codec.encode(self._payload()))

        assert isinstance(decoded, QRPayload)
        assert decoded.ticket_id == "b1_ticket_0001"
        assert decoded.tier_name == "VIP"
        assert codec.verify(decoded) is True

    def test_encoding_uses_wire_names_and_omits_missing_fields(self):
        document = json.loads(codec.encode(self._payload()))

        assert document["id"] == "b1_ticket_0001"
        assert document["eventTitle"] == "Lions vs Tigers"
        assert document["price"] == 49.99
        assert document["batchId"] == "b1"
        assert "homeTeam" not in document

    def test_tampered_price_fails_verification(self):
        document = json.loads(codec.encode(self._payload()))
        document["price"] = 1.0

        assert codec.verify(codec.decode(json.dumps(document))) is False

    def test_tampered_title_fails_verification(self):
        document = json.loads(codec.encode(self._payload()))
        document["eventTitle"] = "Lions vs Bears"

        assert codec.verify(codec.decode(json.dumps(document))) is False

    def test_bare_uuid_is_literal_reference(self):
        value = str(uuid.uuid4())
        decoded = codec.decode(f"  {value}\n")

        assert decoded == LiteralTicketRef(value=value, is_uuid=True)
        assert codec.verify(decoded) is False

    def test_non_json_text_is_literal_reference(self):
        assert codec.decode("hello") == LiteralTicketRef(value="hello", is_uuid=False)

    def test_json_without_ticket_id_is_literal_reference(self):
        decoded = codec.decode('{"eventTitle": "x"}')

        assert isinstance(decoded, LiteralTicketRef)
        assert decoded.is_uuid is False

    def test_legacy_ticket_id_key_is_accepted(self):
        decoded = codec.decode('{"ticketId": "abc", "eventTitle": "x", "price": 1}')

        assert isinstance(decoded, QRPayload)
        assert decoded.ticket_id == "abc"

    def test_malformed_fields_decode_without_raising(self):
        decoded = codec.decode('{"id": "abc", "price": "lots", "timestamp": "soon"}')

        assert isinstance(decoded, QRPayload)
        assert decoded.price == Money(Decimal("0"))
        assert codec.verify(decoded) is False

    def test_missing_checksum_fails_verification(self):
        document = json.loads(codec.encode(self._payload()))
        del document["checksum"]

        assert codec.verify(codec.decode(json.dumps(document))) is False

    def test_sub_cent_price_change_fails_verification(self):
        document = json.loads(codec.encode(self._payload()))
        document["price"] = 49.994

        assert codec.verify(codec.decode(json.dumps(document))) is False

    @pytest.mark.parametrize(
        "wire_key, value",
        [("id", "b1_ticket_0002"), ("batchId", "b2"), ("timestamp", 1_700_000_000_001)],
    )
    def test_tampered_basis_field_fails_verification(self, wire_key, value):
        document = json.loads(codec.encode(self._payload()))
        document[wire_key] = value

        assert codec.verify(codec.decode(json.dumps(document))) is False
