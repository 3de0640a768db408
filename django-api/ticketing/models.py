"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
"""

import uuid

from django.db import models


class EventBatch(models.Model):
    """Persistence model for a created event listing."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.CharField(max_length=255, db_index=True)
    event_title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    event_date = models.CharField(max_length=50, blank=True, null=True)
    event_start_time = models.CharField(max_length=50, blank=True, null=True)
    event_end_time = models.CharField(max_length=50, blank=True, null=True)
    home_team = models.CharField(max_length=255, blank=True, null=True)
    away_team = models.CharField(max_length=255, blank=True, null=True)
    stadium_name = models.CharField(max_length=255, blank=True, null=True)
    competition = models.CharField(max_length=255, blank=True, null=True)
    price = models.DecimalField(max_digits=24, decimal_places=12)
    quantity = models.PositiveIntegerField()
    pdf_url = models.URLField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["owner_id", "-created_at"]),
        ]

    def __str__(self) -> str:
        return self.event_title


class PricingTier(models.Model):
    """Persistence model for a pricing tier within a batch."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    batch = models.ForeignKey(EventBatch, on_delete=models.CASCADE, related_name="tiers")
    tier_name = models.CharField(max_length=50)
    tier_price = models.DecimalField(max_digits=10, decimal_places=2)
    tier_quantity = models.PositiveIntegerField()
    tier_description = models.TextField(blank=True, null=True)
    position = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["position"]
        indexes = [
            models.Index(fields=["batch", "position"]),
        ]

    def __str__(self) -> str:
        return f"{self.tier_name} - {self.tier_price}"


class IndividualTicket(models.Model):
    """Persistence model for one physical ticket."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    batch = models.ForeignKey(EventBatch, on_delete=models.CASCADE, related_name="tickets")
    tier = models.ForeignKey(
        PricingTier, on_delete=models.CASCADE, related_name="tickets", null=True, blank=True
    )
    code = models.CharField(max_length=100, unique=True)
    ticket_number = models.PositiveIntegerField()
    qr_code = models.TextField()
    qr_code_image = models.TextField(blank=True, null=True)
    is_used = models.BooleanField(default=False)
    validated_at = models.DateTimeField(blank=True, null=True)
    seat_section = models.CharField(max_length=50, blank=True, null=True)
    seat_row = models.CharField(max_length=50, blank=True, null=True)
    seat_number = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["ticket_number"]
        constraints = [
            models.UniqueConstraint(fields=["batch", "ticket_number"], name="unique_ticket_number_per_batch"),
        ]
        indexes = [
            models.Index(fields=["batch", "ticket_number"]),
        ]

    def __str__(self) -> str:
        return f"{self.batch_id} #{self.ticket_number}"
