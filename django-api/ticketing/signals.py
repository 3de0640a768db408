"""Django signals for cache invalidation.

Bulk inserts and queryset updates do not send these signals; the Django
store invalidates explicitly after those.
"""

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from ticketing.cache import invalidate_batch
from ticketing.models import EventBatch, IndividualTicket, PricingTier


@receiver([post_save, post_delete], sender=EventBatch)
def invalidate_batch_cache(sender, instance, **kwargs):
    """Invalidate caches when a batch is saved or deleted."""
    invalidate_batch(instance.pk, instance.owner_id)


@receiver([post_save, post_delete], sender=PricingTier)
def invalidate_tier_cache(sender, instance, **kwargs):
    """Invalidate caches when a tier is saved or deleted."""
    owner_id = (
        EventBatch.objects.filter(pk=instance.batch_id).values_list("owner_id", flat=True).first()
    )
    invalidate_batch(instance.batch_id, owner_id)


@receiver([post_save, post_delete], sender=IndividualTicket)
def invalidate_ticket_cache(sender, instance, **kwargs):
    """Invalidate the batch detail cache when a ticket is saved or deleted."""
    invalidate_batch(instance.batch_id)
