"""Progress tracking and cooperative cancellation for issuance runs.

State machine:

    idle -> creating            start(total)
    creating -> creating        advance(tier_name)
    creating -> completed       current reaches total, or mark_completed()
    creating -> cancelled       mark_cancelled()
    creating -> error           mark_error(message)
    completed|cancelled|error -> idle    reset()
"""

import threading
from collections.abc import Callable
from dataclasses import replace

from ticketing.domain.errors import InvalidProgressTransitionError
from ticketing.domain.models import Progress, ProgressStatus

ProgressListener = Callable[[Progress], None]

_TERMINAL = {ProgressStatus.COMPLETED, ProgressStatus.CANCELLED, ProgressStatus.ERROR}


class CancellationToken:
    """Flag set by a caller and polled by the issuance loop between units."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ProgressTracker:
    """Observable progress of a single issuance run."""

    def __init__(self) -> None:
        self._progress = Progress()
        self._listeners: list[ProgressListener] = []
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> Progress:
        return self._progress

    @property
    def status(self) -> ProgressStatus:
        return self._progress.status

    def subscribe(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def start(self, total: int) -> None:
        self._transition({ProgressStatus.IDLE}, Progress(total=total, status=ProgressStatus.CREATING))

    def set_tier(self, tier_name: str) -> None:
        self._transition({ProgressStatus.CREATING}, current_tier=tier_name)

    def advance(self, tier_name: str | None = None) -> None:
        """Record one persisted ticket."""
        with self._lock:
            progress = self._require(ProgressStatus.CREATING, ProgressStatus.CREATING)
            current = progress.current + 1
            updated = replace(
                progress,
                current=current,
                percentage=_percentage(current, progress.total),
                current_tier=tier_name if tier_name is not None else progress.current_tier,
            )
            if current >= progress.total:
                updated = replace(updated, status=ProgressStatus.COMPLETED)
            self._progress = updated
        self._notify()

    def mark_completed(self) -> None:
        if self._progress.status is ProgressStatus.COMPLETED:
            return
        self._transition({ProgressStatus.CREATING}, status=ProgressStatus.COMPLETED)

    def mark_cancelled(self) -> None:
        self._transition({ProgressStatus.CREATING}, status=ProgressStatus.CANCELLED)

    def mark_error(self, message: str) -> None:
        self._transition({ProgressStatus.CREATING}, status=ProgressStatus.ERROR, error=message)

    def reset(self) -> None:
        self._transition(_TERMINAL, Progress())

    def _transition(
        self,
        allowed: set[ProgressStatus],
        progress: Progress | None = None,
        **changes,
    ) -> None:
        with self._lock:
            if self._progress.status not in allowed:
                target = (progress.status if progress else changes.get("status", self._progress.status))
                raise InvalidProgressTransitionError(self._progress.status.value, target.value)
            self._progress = progress if progress is not None else replace(self._progress, **changes)
        self._notify()

    def _require(self, expected: ProgressStatus, target: ProgressStatus) -> Progress:
        if self._progress.status is not expected:
            raise InvalidProgressTransitionError(self._progress.status.value, target.value)
        return self._progress

    def _notify(self) -> None:
        snapshot = self._progress
        for listener in list(self._listeners):
            listener(snapshot)


def _percentage(current: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half up, so 1 of 8 reads 13.
    return (current * 200 + total) // (2 * total)
