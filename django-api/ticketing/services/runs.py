"""Background issuance runs with pollable progress and cooperative cancel."""

import logging
import threading
import time
import uuid
from collections.abc import Callable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field

from django.db import close_old_connections

from ticketing.conf import ticketing_settings
from ticketing.domain.errors import DomainError, RunNotFoundError
from ticketing.domain.models import EventDetails, IssuanceResult, Progress, ProgressStatus, TierSpec
from ticketing.services.batch_service import BatchService
from ticketing.services.input_validation import validate_batch_request
from ticketing.services.progress import CancellationToken, ProgressTracker

logger = logging.getLogger(__name__)


@dataclass
class IssuanceRun:
    id: str
    owner_id: str
    token: CancellationToken = field(default_factory=CancellationToken)
    tracker: ProgressTracker = field(default_factory=ProgressTracker)
    future: Future | None = None
    result: IssuanceResult | None = None
    finished_at: float | None = None

    @property
    def progress(self) -> Progress:
        return self.tracker.snapshot

    @property
    def batch_id(self) -> str | None:
        return str(self.result.batch.id) if self.result else None


class IssuanceRunRegistry:
    """Runs issuance off the request thread, one run at a time.

    Finished runs stay pollable for ``retention`` seconds and are then evicted.
    """

    def __init__(
        self,
        service_factory: Callable[[], BatchService],
        executor: Executor | None = None,
        retention: float | None = None,
    ) -> None:
        self._service_factory = service_factory
        self._retention = ticketing_settings.RUN_RETENTION_SECONDS if retention is None else retention
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="issuance")
        self._runs: dict[str, IssuanceRun] = {}
        self._lock = threading.Lock()

    def start(self, owner_id: str, event: EventDetails, tiers: Sequence[TierSpec]) -> IssuanceRun:
        """Queue a run; input errors are raised here, before anything is queued."""
        validate_batch_request(event, tiers)
        run = IssuanceRun(id=str(uuid.uuid4()), owner_id=owner_id)
        with self._lock:
            self._evict_finished()
            self._runs[run.id] = run
        run.future = self._executor.submit(self._execute, run, event, tiers)
        logger.info("Issuance run queued", extra={"run_id": run.id})
        return run

    def get(self, run_id: str, owner_id: str | None = None) -> IssuanceRun:
        with self._lock:
            self._evict_finished()
            run = self._runs.get(run_id)
        if run is None or (owner_id is not None and run.owner_id != owner_id):
            raise RunNotFoundError(run_id)
        return run

    def cancel(self, run_id: str, owner_id: str | None = None) -> IssuanceRun:
        run = self.get(run_id, owner_id)
        run.token.cancel()
        logger.info("Issuance run cancellation requested", extra={"run_id": run_id})
        return run

    def _evict_finished(self) -> None:
        cutoff = time.monotonic() - self._retention
        expired = [
            run_id
            for run_id, run in self._runs.items()
            if run.finished_at is not None and run.finished_at <= cutoff
        ]
        for run_id in expired:
            del self._runs[run_id]
        if expired:
            logger.debug("Evicted finished issuance runs", extra={"evicted": len(expired)})

    def _execute(self, run: IssuanceRun, event: EventDetails, tiers: Sequence[TierSpec]) -> IssuanceResult | None:
        close_old_connections()
        try:
            run.result = self._service_factory().create_batch(
                run.owner_id, event, tiers, token=run.token, tracker=run.tracker
            )
            return run.result
        except DomainError as exc:
            logger.error("Issuance run failed", extra={"run_id": run.id, "error": exc.message})
            return None
        except Exception:
            logger.exception("Issuance run crashed", extra={"run_id": run.id})
            if run.tracker.status is ProgressStatus.CREATING:
                run.tracker.mark_error("Unexpected error while creating tickets")
            return None
        finally:
            run.finished_at = time.monotonic()
            close_old_connections()
