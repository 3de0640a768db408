from ticketing.handlers.views import (
    BatchDetailView,
    BatchDocumentView,
    BatchListView,
    BatchStatsView,
    RunCancelView,
    RunDetailView,
    RunListView,
    ScanView,
)

__all__ = [
    "BatchListView",
    "BatchDetailView",
    "BatchDocumentView",
    "BatchStatsView",
    "RunListView",
    "RunDetailView",
    "RunCancelView",
    "ScanView",
]
