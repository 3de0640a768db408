"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Call services for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details

Every endpoint is scoped to the caller named by the ``X-User-ID`` header.
"""

import logging

from django.core.cache import cache
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from ticketing.cache import batch_detail_key, batch_list_key
from ticketing.conf import ticketing_settings
from ticketing.domain.errors import DomainError, ErrorCode, PersistenceError
from ticketing.handlers.serializers import (
    BatchCreateSerializer,
    EventBatchDetailSerializer,
    EventBatchSerializer,
    IssuanceResultSerializer,
    IssuanceRunSerializer,
    ScanResultSerializer,
    ScanSerializer,
)
from ticketing.services.batch_service import BatchService
from ticketing.services.documents import DocumentService
from ticketing.services.runs import IssuanceRunRegistry
from ticketing.services.webhook import WebhookNotifier
from ticketing.stores.django_store import DjangoDocumentStore, DjangoTicketStore

logger = logging.getLogger(__name__)

OWNER_HEADER = "X-User-ID"

ERROR_STATUS = {
    ErrorCode.INVALID_BATCH_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMPTY_TIER_LIST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_BATCH_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BATCH_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RUN_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.QR_RENDER_FAILED: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.DOCUMENT_GENERATION_FAILED: status.HTTP_502_BAD_GATEWAY,
}


def get_batch_service() -> BatchService:
    return BatchService(
        store=DjangoTicketStore(),
        documents=DocumentService(DjangoDocumentStore()),
        webhook=WebhookNotifier(),
    )


_run_registry: IssuanceRunRegistry | None = None


def get_run_registry() -> IssuanceRunRegistry:
    global _run_registry
    if _run_registry is None:
        _run_registry = IssuanceRunRegistry(get_batch_service)
    return _run_registry


def error_response(exc: DomainError) -> Response:
    if isinstance(exc, PersistenceError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = ERROR_STATUS.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = {"error": exc.code.value, "message": exc.message}
    errors = getattr(exc, "errors", None)
    if errors:
        body["errors"] = list(errors)
    if code >= 500:
        logger.error("Request failed", extra={"error_code": exc.code.value})
    return Response(body, status=code)


def missing_owner() -> Response:
    return Response(
        {"error": "UNAUTHORIZED", "message": f"Missing {OWNER_HEADER} header"},
        status=status.HTTP_401_UNAUTHORIZED,
    )


def invalid_body(errors) -> Response:
    return Response(
        {"error": ErrorCode.INVALID_BATCH_INPUT.value, "message": "Invalid request body", "errors": errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


class OwnerScopedView(APIView):
    """Base view resolving the calling owner before dispatching."""

    owner_id: str | None = None

    def initial(self, request: Request, *args, **kwargs) -> None:
        super().initial(request, *args, **kwargs)
        self.owner_id = (request.headers.get(OWNER_HEADER) or "").strip() or None

    def handle_exception(self, exc):
        if isinstance(exc, DomainError):
            return error_response(exc)
        return super().handle_exception(exc)


class BatchListView(OwnerScopedView):
    """Handler for GET and POST /api/batches"""

    def get(self, request: Request) -> Response:
        if self.owner_id is None:
            return missing_owner()
        key = batch_list_key(self.owner_id)
        data = cache.get(key)
        if data is None:
            batches = get_batch_service().list_batches(self.owner_id)
            data = EventBatchSerializer(batches, many=True).data
            cache.set(key, data, ticketing_settings.CACHE_TIMEOUT)
        return Response(data)

    def post(self, request: Request) -> Response:
        if self.owner_id is None:
            return missing_owner()
        serializer = BatchCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_body(serializer.errors)
        event, tiers = serializer.to_domain()
        result = get_batch_service().create_batch(self.owner_id, event, tiers)
        return Response(IssuanceResultSerializer(result).data, status=status.HTTP_201_CREATED)


class BatchDetailView(OwnerScopedView):
    """Handler for GET and DELETE /api/batches/{batch_id}"""

    def get(self, request: Request, batch_id: str) -> Response:
        if self.owner_id is None:
            return missing_owner()
        key = batch_detail_key(batch_id)
        cached = cache.get(key)
        if cached is not None and cached["owner_id"] == self.owner_id:
            return Response(cached["data"])
        batch = get_batch_service().get_batch(batch_id, self.owner_id)
        data = EventBatchDetailSerializer(batch).data
        cache.set(key, {"owner_id": self.owner_id, "data": data}, ticketing_settings.CACHE_TIMEOUT)
        return Response(data)

    def delete(self, request: Request, batch_id: str) -> Response:
        if self.owner_id is None:
            return missing_owner()
        get_batch_service().delete_batch(batch_id, self.owner_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class BatchDocumentView(OwnerScopedView):
    """Handler for POST /api/batches/{batch_id}/document"""

    def post(self, request: Request, batch_id: str) -> Response:
        if self.owner_id is None:
            return missing_owner()
        url = get_batch_service().regenerate_document(batch_id, self.owner_id)
        return Response({"pdf_url": url})


class BatchStatsView(OwnerScopedView):
    """Handler for GET /api/batches/{batch_id}/stats"""

    def get(self, request: Request, batch_id: str) -> Response:
        if self.owner_id is None:
            return missing_owner()
        return Response(get_batch_service().validation_stats(batch_id, self.owner_id))


class RunListView(OwnerScopedView):
    """Handler for POST /api/runs"""

    def post(self, request: Request) -> Response:
        if self.owner_id is None:
            return missing_owner()
        serializer = BatchCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_body(serializer.errors)
        event, tiers = serializer.to_domain()
        run = get_run_registry().start(self.owner_id, event, tiers)
        return Response(IssuanceRunSerializer(run).data, status=status.HTTP_202_ACCEPTED)


class RunDetailView(OwnerScopedView):
    """Handler for GET /api/runs/{run_id}"""

    def get(self, request: Request, run_id: str) -> Response:
        if self.owner_id is None:
            return missing_owner()
        run = get_run_registry().get(run_id, self.owner_id)
        return Response(IssuanceRunSerializer(run).data)


class RunCancelView(OwnerScopedView):
    """Handler for POST /api/runs/{run_id}/cancel"""

    def post(self, request: Request, run_id: str) -> Response:
        if self.owner_id is None:
            return missing_owner()
        run = get_run_registry().cancel(run_id, self.owner_id)
        return Response(IssuanceRunSerializer(run).data, status=status.HTTP_202_ACCEPTED)


class ScanView(OwnerScopedView):
    """Handler for POST /api/scan"""

    def post(self, request: Request) -> Response:
        if self.owner_id is None:
            return missing_owner()
        serializer = ScanSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_body(serializer.errors)
        result = get_batch_service().validate_ticket(serializer.validated_data["code"], self.owner_id)
        return Response(ScanResultSerializer(result).data)
