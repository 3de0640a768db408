"""Tests for the reconcile_batches management command."""

from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command

from ticketing.models import EventBatch, IndividualTicket


@pytest.fixture
def partial_batch():
    batch = EventBatch.objects.create(owner_id="owner-1", event_title="Half Done", price=Decimal("10"), quantity=3)
    IndividualTicket.objects.create(batch=batch, code="half_1", ticket_number=1, qr_code="half_1")
    return batch


@pytest.fixture
def complete_batch():
    batch = EventBatch.objects.create(owner_id="owner-1", event_title="All Done", price=Decimal("10"), quantity=1)
    IndividualTicket.objects.create(batch=batch, code="done_1", ticket_number=1, qr_code="done_1")
    return batch


@pytest.mark.django_db
class TestReconcileBatches:
    def test_reports_incomplete_batches_only(self, partial_batch, complete_batch):
        out = StringIO()

        call_command("reconcile_batches", stdout=out)

        assert f"Batch {partial_batch.pk} (Half Done): stored=1 expected=3" in out.getvalue()
        assert str(complete_batch.pk) not in out.getvalue()
        assert EventBatch.objects.count() == 2

    def test_delete_removes_incomplete_batches(self, partial_batch, complete_batch):
        out = StringIO()

        call_command("reconcile_batches", "--delete", stdout=out)

        assert list(EventBatch.objects.values_list("pk", flat=True)) == [complete_batch.pk]
        assert IndividualTicket.objects.filter(batch=partial_batch.pk).count() == 0
        assert "deleted 1" in out.getvalue()
