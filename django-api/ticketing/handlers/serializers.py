"""Serializers for parsing requests and transforming domain models to API responses."""

from rest_framework import serializers

from ticketing.domain import EventDetails, Money, Quantity, TierSpec
from ticketing.services.input_validation import event_title, sanitize_string


class TierInputSerializer(serializers.Serializer):
    """One pricing tier in a batch creation request."""

    name = serializers.CharField(allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    @staticmethod
    def to_domain(data: dict) -> TierSpec:
        return TierSpec(
            name=sanitize_string(data["name"], 50) or "",
            price=Money(data["price"]),
            quantity=Quantity(data["quantity"]),
            description=sanitize_string(data.get("description"), 500) or None,
        )


class BatchCreateSerializer(serializers.Serializer):
    """Request body for creating a batch (synchronously or as a background run)."""

    event_title = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    event_date = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=False)
    event_start_time = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, trim_whitespace=False
    )
    event_end_time = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    home_team = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    away_team = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    stadium_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    competition = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    tiers = TierInputSerializer(many=True, allow_empty=True)

    def to_domain(self) -> tuple[EventDetails, list[TierSpec]]:
        data = self.validated_data

        def text(field: str) -> str | None:
            return sanitize_string(data.get(field)) or None

        home_team, away_team = text("home_team"), text("away_team")
        event = EventDetails(
            title=event_title(sanitize_string(data.get("event_title"), 200), home_team, away_team),
            description=text("description"),
            event_date=data.get("event_date"),
            event_start_time=data.get("event_start_time"),
            event_end_time=text("event_end_time"),
            home_team=home_team,
            away_team=away_team,
            stadium_name=text("stadium_name"),
            competition=text("competition"),
        )
        return event, [TierInputSerializer.to_domain(tier) for tier in data["tiers"]]


class ScanSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=4000)


class PricingTierSerializer(serializers.Serializer):
    """Serializer for PricingTier domain model."""

    id = serializers.CharField()
    name = serializers.CharField()
    price = serializers.DecimalField(source="price.amount", max_digits=10, decimal_places=2)
    quantity = serializers.IntegerField(source="quantity.value")
    description = serializers.CharField(allow_null=True)
    position = serializers.IntegerField()


class TicketSerializer(serializers.Serializer):
    """Serializer for IndividualTicket domain model."""

    id = serializers.CharField()
    code = serializers.CharField()
    tier_id = serializers.CharField(allow_null=True)
    tier_name = serializers.CharField(allow_null=True)
    price = serializers.SerializerMethodField()
    ticket_number = serializers.IntegerField()
    qr_code = serializers.CharField(source="qr_payload")
    qr_code_image = serializers.CharField(source="qr_image", allow_null=True)
    is_used = serializers.BooleanField()
    validated_at = serializers.DateTimeField(allow_null=True)
    seat_section = serializers.CharField(allow_null=True)
    seat_row = serializers.CharField(allow_null=True)
    seat_number = serializers.CharField(allow_null=True)

    def get_price(self, obj) -> str | None:
        return str(obj.price) if obj.price is not None else None


class EventBatchSerializer(serializers.Serializer):
    """Serializer for EventBatch domain model, without its tickets."""

    id = serializers.CharField()
    event_title = serializers.CharField(source="event.title")
    description = serializers.CharField(source="event.description", allow_null=True)
    event_date = serializers.CharField(source="event.event_date", allow_null=True)
    event_start_time = serializers.CharField(source="event.event_start_time", allow_null=True)
    event_end_time = serializers.CharField(source="event.event_end_time", allow_null=True)
    home_team = serializers.CharField(source="event.home_team", allow_null=True)
    away_team = serializers.CharField(source="event.away_team", allow_null=True)
    stadium_name = serializers.CharField(source="event.stadium_name", allow_null=True)
    competition = serializers.CharField(source="event.competition", allow_null=True)
    price = serializers.DecimalField(source="price.amount", max_digits=10, decimal_places=2)
    quantity = serializers.IntegerField(source="quantity.value")
    pdf_url = serializers.CharField(source="document_url", allow_null=True)
    created_at = serializers.DateTimeField()
    tiers = PricingTierSerializer(many=True)


class EventBatchDetailSerializer(EventBatchSerializer):
    """Serializer for EventBatch domain model including its tickets."""

    tickets = TicketSerializer(many=True)


class ProgressSerializer(serializers.Serializer):
    current = serializers.IntegerField()
    total = serializers.IntegerField()
    percentage = serializers.IntegerField()
    current_tier = serializers.CharField(allow_null=True)
    status = serializers.CharField(source="status.value")
    error = serializers.CharField(allow_null=True)


class IssuanceResultSerializer(serializers.Serializer):
    batch = EventBatchSerializer()
    tickets = TicketSerializer(many=True)
    progress = ProgressSerializer()
    pdf_url = serializers.CharField(source="document_url", allow_null=True)
    cancelled = serializers.BooleanField()


class IssuanceRunSerializer(serializers.Serializer):
    id = serializers.CharField()
    batch_id = serializers.CharField(allow_null=True)
    progress = ProgressSerializer()


class ScanResultSerializer(serializers.Serializer):
    outcome = serializers.CharField(source="outcome.value")
    ticket = TicketSerializer(allow_null=True)
    checksum_verified = serializers.BooleanField()
    validated_at = serializers.DateTimeField(allow_null=True)
