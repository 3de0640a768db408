"""Cache keys for batch API responses."""

from django.core.cache import cache


def batch_list_key(owner_id: str) -> str:
    return f"batches:{owner_id}:list"


def batch_detail_key(batch_id) -> str:
    return f"batches:{batch_id}"


def invalidate_batch(batch_id, owner_id: str | None = None) -> None:
    keys = [batch_detail_key(batch_id)]
    if owner_id:
        keys.append(batch_list_key(owner_id))
    cache.delete_many(keys)
