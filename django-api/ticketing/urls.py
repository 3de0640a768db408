from django.urls import path

from ticketing.handlers import (
    BatchDetailView,
    BatchDocumentView,
    BatchListView,
    BatchStatsView,
    RunCancelView,
    RunDetailView,
    RunListView,
    ScanView,
)

urlpatterns = [
    path("batches", BatchListView.as_view(), name="batch-list"),
    path("batches/<str:batch_id>", BatchDetailView.as_view(), name="batch-detail"),
    path(
        "batches/<str:batch_id>/document",
        BatchDocumentView.as_view(),
        name="batch-document",
    ),
    path("batches/<str:batch_id>/stats", BatchStatsView.as_view(), name="batch-stats"),
    path("runs", RunListView.as_view(), name="run-list"),
    path("runs/<str:run_id>", RunDetailView.as_view(), name="run-detail"),
    path("runs/<str:run_id>/cancel", RunCancelView.as_view(), name="run-cancel"),
    path("scan", ScanView.as_view(), name="scan"),
]
