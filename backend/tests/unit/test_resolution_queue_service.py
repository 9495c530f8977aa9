"""Unit tests for the bounded-concurrency resolution queue and its trigger."""

import asyncio

import pytest

from poi_planner.models import POI, ExternalUrl
from poi_planner.services.resolution_queue import (
    ResolutionQueue,
    ResolutionResult,
    ResolutionTrigger,
    TriggerStrategy,
)


def build_pois(count: int) -> dict[str, POI]:
    return {
        f"p{i}": POI(id=f"p{i}", title=f"Stop {i}", lat=52.5 + i * 0.001, lng=13.4)
        for i in range(count)
    }


class TrackingResolver:
    """Records calls and the peak number of concurrent resolutions."""

    def __init__(self, succeed: bool = True, delay: float = 0.01) -> None:
        self.succeed = succeed
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0

    async def resolve(self, poi: POI) -> bool:
        self.calls.append(poi.id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if self.succeed:
            poi.image = ExternalUrl(url=f"https://example.org/{poi.id}.jpg")
        return self.succeed


class ExplodingResolver:
    async def resolve(self, poi: POI) -> bool:
        raise RuntimeError("boom")


def _queue(resolver, pois: dict[str, POI], concurrency=2) -> ResolutionQueue:
    return ResolutionQueue(resolver, pois.get, concurrency=concurrency)


class TestResolutionQueue:
    def test_rejects_zero_concurrency(self) -> None:
        with pytest.raises(ValueError):
            ResolutionQueue(TrackingResolver(), {}.get, concurrency=0)

    @pytest.mark.asyncio
    async def test_never_exceeds_concurrency_limit(self) -> None:
        pois = build_pois(5)
        resolver = TrackingResolver()
        queue = _queue(resolver, pois, concurrency=2)

        for poi_id in pois:
            queue.enqueue(poi_id)
        assert queue.in_flight_count == 2
        assert queue.pending_count == 3

        await queue.join()
        assert resolver.max_active == 2
        assert queue.peak_in_flight == 2
        assert sorted(resolver.calls) == sorted(pois)
        assert queue.is_idle()

    @pytest.mark.asyncio
    async def test_fifo_start_order(self) -> None:
        pois = build_pois(4)
        resolver = TrackingResolver()
        queue = _queue(resolver, pois, concurrency=1)
        queue.enqueue_many(["p3", "p1", "p2", "p0"])
        await queue.join()
        assert resolver.calls == ["p3", "p1", "p2", "p0"]

    @pytest.mark.asyncio
    async def test_double_enqueue_resolves_once(self) -> None:
        pois = build_pois(1)
        resolver = TrackingResolver(succeed=False)
        queue = _queue(resolver, pois)
        assert queue.enqueue("p0") is True
        assert queue.enqueue("p0") is False
        await queue.join()
        assert resolver.calls == ["p0"]

    @pytest.mark.asyncio
    async def test_double_enqueue_while_pending(self) -> None:
        pois = build_pois(2)
        resolver = TrackingResolver()
        queue = _queue(resolver, pois, concurrency=1)
        queue.enqueue("p0")
        assert queue.enqueue("p1") is True
        assert queue.enqueue("p1") is False
        assert queue.pending_count == 1
        await queue.join()
        assert resolver.calls == ["p0", "p1"]

    @pytest.mark.asyncio
    async def test_pois_with_image_skipped_without_using_a_slot(self) -> None:
        pois = build_pois(3)
        pois["p0"].image = ExternalUrl(url="https://example.org/p0.jpg")
        resolver = TrackingResolver()
        queue = _queue(resolver, pois, concurrency=1)

        queue.enqueue_many(["p0", "p1"])
        # p0 was skipped, so p1 took the only slot immediately
        assert queue.in_flight_count == 1
        assert queue.pending_count == 0
        await queue.join()
        assert resolver.calls == ["p1"]

    @pytest.mark.asyncio
    async def test_unknown_ids_skipped(self) -> None:
        resolver = TrackingResolver()
        queue = _queue(resolver, build_pois(1))
        queue.enqueue("ghost")
        await queue.join()
        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_unbounded_concurrency(self) -> None:
        pois = build_pois(6)
        resolver = TrackingResolver()
        queue = _queue(resolver, pois, concurrency=None)
        queue.enqueue_many(pois)
        assert queue.in_flight_count == 6
        await queue.join()
        assert resolver.max_active == 6

    @pytest.mark.asyncio
    async def test_listeners_notified(self) -> None:
        pois = build_pois(2)
        queue = _queue(TrackingResolver(), pois)
        results: list[ResolutionResult] = []
        unsubscribe = queue.subscribe(results.append)

        queue.enqueue("p0")
        await queue.join()
        unsubscribe()
        queue.enqueue("p1")
        await queue.join()

        assert [r.poi_id for r in results] == ["p0"]
        assert results[0].success is True
        assert results[0].image == ExternalUrl(url="https://example.org/p0.jpg")

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stall_queue(self) -> None:
        pois = build_pois(3)
        resolver = TrackingResolver()
        queue = _queue(resolver, pois, concurrency=1)

        def bad_listener(result: ResolutionResult) -> None:
            raise RuntimeError("render failed")

        queue.subscribe(bad_listener)
        queue.enqueue_many(pois)
        await queue.join()
        assert len(resolver.calls) == 3

    @pytest.mark.asyncio
    async def test_resolver_exception_releases_slot(self) -> None:
        pois = build_pois(3)
        queue = _queue(ExplodingResolver(), pois, concurrency=1)
        results: list[ResolutionResult] = []
        queue.subscribe(results.append)
        queue.enqueue_many(pois)
        await queue.join()
        assert [r.success for r in results] == [False, False, False]
        assert queue.is_idle()

    @pytest.mark.asyncio
    async def test_stats(self) -> None:
        pois = build_pois(3)
        queue = _queue(TrackingResolver(), pois, concurrency=2)
        queue.enqueue_many(pois)
        await queue.join()
        stats = queue.stats()
        assert stats.completed == 3
        assert stats.succeeded == 3
        assert stats.pending == 0
        assert stats.in_flight == 0
        assert stats.concurrency == 2

    @pytest.mark.asyncio
    async def test_requeue_after_failure(self) -> None:
        pois = build_pois(1)
        resolver = TrackingResolver(succeed=False)
        queue = _queue(resolver, pois)
        queue.enqueue("p0")
        await queue.join()
        queue.enqueue("p0")
        await queue.join()
        assert resolver.calls == ["p0", "p0"]


class TestResolutionTrigger:
    @pytest.mark.asyncio
    async def test_visibility_enqueues_once_per_cycle(self) -> None:
        pois = build_pois(3)
        resolver = TrackingResolver(succeed=False)
        queue = _queue(resolver, pois)
        trigger = ResolutionTrigger(queue, pois.get, TriggerStrategy.VISIBILITY)

        assert trigger.begin_render_cycle(pois) == 0
        assert trigger.mark_visible(["p0", "p1"]) == 2
        await queue.join()
        assert trigger.mark_visible(["p0", "p1"]) == 0
        assert resolver.calls == ["p0", "p1"]

        # New render cycle: still-imageless POIs are eligible again
        trigger.begin_render_cycle(pois)
        assert trigger.mark_visible(["p0"]) == 1
        await queue.join()

    @pytest.mark.asyncio
    async def test_visibility_skips_pois_with_images(self) -> None:
        pois = build_pois(2)
        pois["p1"].image = ExternalUrl(url="https://example.org/p1.jpg")
        queue = _queue(TrackingResolver(), pois)
        trigger = ResolutionTrigger(queue, pois.get)
        assert trigger.mark_visible(["p1", "unknown"]) == 0

    @pytest.mark.asyncio
    async def test_eager_enqueues_whole_listing(self) -> None:
        pois = build_pois(4)
        pois["p2"].image = ExternalUrl(url="https://example.org/p2.jpg")
        resolver = TrackingResolver()
        queue = _queue(resolver, pois, concurrency=None)
        trigger = ResolutionTrigger(queue, pois.get, TriggerStrategy.EAGER)

        assert trigger.begin_render_cycle(pois) == 3
        await queue.join()
        assert sorted(resolver.calls) == ["p0", "p1", "p3"]
