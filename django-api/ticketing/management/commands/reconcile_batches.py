from django.core.management.base import BaseCommand

from ticketing.domain.errors import DomainError
from ticketing.services.batch_service import BatchService
from ticketing.stores.django_store import DjangoTicketStore


class Command(BaseCommand):
    help = "Report ticket batches whose stored tickets do not match their quantity"

    def add_arguments(self, parser):
        parser.add_argument("--owner", help="Only check batches belonging to this owner")
        parser.add_argument(
            "--delete",
            action="store_true",
            help="Delete incomplete batches together with their tiers and tickets",
        )

    def handle(self, *args, **options):
        service = BatchService(DjangoTicketStore())
        incomplete = service.find_incomplete_batches(options.get("owner"))
        deleted = 0
        for batch, stored in incomplete:
            self.stdout.write(
                f"Batch {batch.id} ({batch.title}): stored={stored} expected={batch.quantity.value}"
            )
            if not options.get("delete"):
                continue
            try:
                service.delete_batch(str(batch.id))
            except DomainError as exc:
                self.stderr.write(self.style.ERROR(f"Could not delete batch {batch.id}: {exc.message}"))
                continue
            deleted += 1

        summary = f"Found {len(incomplete)} incomplete batches"
        if options.get("delete"):
            summary += f", deleted {deleted}"
        self.stdout.write(self.style.SUCCESS(summary))
