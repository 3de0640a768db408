"""Tests for background issuance runs."""

import threading

import pytest
from conftest import StubRenderer, make_tier

from ticketing.domain import ProgressStatus
from ticketing.domain.errors import EmptyTierListError, RunNotFoundError
from ticketing.services.batch_service import BatchService
from ticketing.services.issuance import IssuanceEngine
from ticketing.services.runs import IssuanceRunRegistry
from ticketing.services.webhook import WebhookNotifier


class GatedRenderer(StubRenderer):
    """Blocks each render until the test lets it through."""

    def __init__(self) -> None:
        super().__init__()
        self.gate = threading.Semaphore(0)

    def render(self, payload: str) -> str:
        self.gate.acquire(timeout=5)
        return super().render(payload)


@pytest.fixture
def registry_for(store):
    registries = []

    def build(renderer=None):
        def factory():
            return BatchService(
                store,
                engine=IssuanceEngine(renderer or StubRenderer()),
                webhook=WebhookNotifier(url=""),
                chunk_size=1,
                unit_delay=0,
            )

        registry = IssuanceRunRegistry(factory)
        registries.append(registry)
        return registry

    yield build
    for registry in registries:
        registry._executor.shutdown(wait=True)


class TestIssuanceRunRegistry:
    def test_run_completes_in_background(self, store, event, vip_and_standard, registry_for):
        registry = registry_for()

        run = registry.start("owner-1", event, vip_and_standard)
        run.future.result(timeout=10)

        assert run.progress.status is ProgressStatus.COMPLETED
        assert run.batch_id is not None
        assert store.count_tickets(run.result.batch.id) == 5

    def test_invalid_request_rejected_before_queueing(self, event, registry_for):
        with pytest.raises(EmptyTierListError):
            registry_for().start("owner-1", event, [])

    def test_cancel_stops_run(self, store, event, registry_for):
        renderer = GatedRenderer()
        registry = registry_for(renderer)
        run = registry.start("owner-1", event, [make_tier(quantity=10)])

        for _ in range(3):
            renderer.gate.release()
        registry.cancel(run.id, "owner-1")
        for _ in range(10):
            renderer.gate.release()
        run.future.result(timeout=10)

        assert run.progress.status is ProgressStatus.CANCELLED
        assert run.progress.current < 10
        assert run.result.cancelled is True

    def test_failed_run_reports_error(self, store, event, registry_for):
        store.fail_tiers = True
        registry = registry_for()

        run = registry.start("owner-1", event, [make_tier()])
        run.future.result(timeout=10)

        assert run.progress.status is ProgressStatus.ERROR
        assert "Failed to create ticket tiers" in run.progress.error
        assert run.result is None

    def test_other_owner_cannot_see_run(self, event, registry_for):
        registry = registry_for()
        run = registry.start("owner-1", event, [make_tier()])
        run.future.result(timeout=10)

        with pytest.raises(RunNotFoundError):
            registry.get(run.id, "owner-2")

    def test_unknown_run(self, registry_for):
        with pytest.raises(RunNotFoundError):
            registry_for().get("missing")


class TestRunRetention:
    """Finished runs are evicted once their retention has passed."""

    def test_finished_run_is_evicted(self, store, event):
        registry = IssuanceRunRegistry(
            lambda: BatchService(
                store, engine=IssuanceEngine(StubRenderer()), webhook=WebhookNotifier(url=""), unit_delay=0
            ),
            retention=0,
        )
        run = registry.start("owner-1", event, [make_tier()])
        run.future.result(timeout=10)
        registry._executor.shutdown(wait=True)

        assert run.finished_at is not None
        with pytest.raises(RunNotFoundError):
            registry.get(run.id, "owner-1")

    def test_running_run_is_kept(self, store, event):
        renderer = GatedRenderer()
        registry = IssuanceRunRegistry(
            lambda: BatchService(
                store, engine=IssuanceEngine(renderer), webhook=WebhookNotifier(url=""), unit_delay=0
            ),
            retention=0,
        )
        run = registry.start("owner-1", event, [make_tier(quantity=1)])

        assert registry.get(run.id, "owner-1") is run

        renderer.gate.release()
        run.future.result(timeout=10)
        registry._executor.shutdown(wait=True)
