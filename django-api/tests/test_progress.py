"""Unit tests for progress tracking and cancellation."""

import pytest

from ticketing.domain import ProgressStatus
from ticketing.domain.errors import InvalidProgressTransitionError
from ticketing.services.progress import CancellationToken, ProgressTracker


class TestProgressTracker:
    """Tests for the progress state machine."""

    def test_starts_idle(self):
        tracker = ProgressTracker()

        assert tracker.status is ProgressStatus.IDLE
        assert tracker.snapshot.total == 0

    def test_advance_updates_percentage_and_tier(self):
        tracker = ProgressTracker()
        tracker.start(3)
        tracker.advance("VIP")

        snapshot = tracker.snapshot
        assert (snapshot.current, snapshot.percentage, snapshot.current_tier) == (1, 33, "VIP")
        assert snapshot.status is ProgressStatus.CREATING

    def test_reaching_total_completes(self):
        tracker = ProgressTracker()
        tracker.start(2)
        tracker.advance()
        tracker.advance()

        assert tracker.status is ProgressStatus.COMPLETED
        assert tracker.snapshot.percentage == 100
        tracker.mark_completed()
        assert tracker.status is ProgressStatus.COMPLETED

    def test_error_keeps_message(self):
        tracker = ProgressTracker()
        tracker.start(5)
        tracker.mark_error("boom")

        assert tracker.status is ProgressStatus.ERROR
        assert tracker.snapshot.error == "boom"

    def test_cannot_start_twice(self):
        tracker = ProgressTracker()
        tracker.start(1)

        with pytest.raises(InvalidProgressTransitionError):
            tracker.start(1)

    def test_cannot_advance_when_idle(self):
        with pytest.raises(InvalidProgressTransitionError):
            ProgressTracker().advance()

    def test_cannot_cancel_completed_run(self):
        tracker = ProgressTracker()
        tracker.start(1)
        tracker.advance()

        with pytest.raises(InvalidProgressTransitionError):
            tracker.mark_cancelled()

    def test_reset_only_from_terminal_state(self):
        tracker = ProgressTracker()
        tracker.start(2)
        with pytest.raises(InvalidProgressTransitionError):
            tracker.reset()

        tracker.mark_cancelled()
        tracker.reset()
        assert tracker.status is ProgressStatus.IDLE

    def test_listeners_receive_snapshots(self):
        tracker = ProgressTracker()
        seen = []
        tracker.subscribe(lambda progress: seen.append((progress.current, progress.status)))
        tracker.start(1)
        tracker.advance()

        assert seen == [(0, ProgressStatus.CREATING), (1, ProgressStatus.COMPLETED)]


class TestCancellationToken:
    def test_cancel_sets_flag(self):
        token = CancellationToken()
        assert token.cancelled is False

        token.cancel()
        assert token.cancelled is True


class TestPercentage:
    def test_halves_round_up(self):
        tracker = ProgressTracker()
        tracker.start(8)
        tracker.advance()

        assert tracker.snapshot.percentage == 13

    def test_two_of_three(self):
        tracker = ProgressTracker()
        tracker.start(3)
        tracker.advance()
        tracker.advance()

        assert tracker.snapshot.percentage == 67
