"""Bounded-concurrency photo resolution queue.

POI ids are admitted FIFO and resolved as asyncio tasks, at most
``concurrency`` at a time (``None`` = unbounded). Completion order is not
guaranteed. Everything runs on one event loop: the pump and the resolver's
mutations happen between awaits, so no locking is needed.

In-flight resolutions are never cancelled; a POI that scrolled out of view
is still resolved and cached for later.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from poi_planner.models import POI, ImageRef
from poi_planner.services.photo_resolver import PhotoResolver

logger = logging.getLogger(__name__)

POILookup = Callable[[str], Optional[POI]]


@dataclass
class ResolutionResult:
    """Outcome of one resolution, delivered to subscribers."""
    poi_id: str
    success: bool
    image: Optional[ImageRef] = None


@dataclass
class QueueStats:
    pending: int
    in_flight: int
    peak_in_flight: int
    completed: int
    succeeded: int
    concurrency: Optional[int]


ResolutionListener = Callable[[ResolutionResult], None]


def has_usable_image(poi: POI) -> bool:
    return poi.image is not None


class ResolutionQueue:
    """FIFO admission, bounded in-flight resolutions."""

    DEFAULT_CONCURRENCY = 2

    def __init__(
        self,
        resolver: PhotoResolver,
        poi_lookup: POILookup,
        concurrency: Optional[int] = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency is not None and concurrency < 1:
            raise ValueError("concurrency must be at least 1 (or None for unbounded)")
        self._resolver = resolver
        self._poi_lookup = poi_lookup
        self._concurrency = concurrency
        self._pending: deque[str] = deque()
        self._pending_ids: set[str] = set()
        self._in_flight: set[str] = set()
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[ResolutionListener] = []
        self._peak_in_flight = 0
        self._completed = 0
        self._succeeded = 0

    @property
    def concurrency(self) -> Optional[int]:
        return self._concurrency

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    @property
    def peak_in_flight(self) -> int:
        return self._peak_in_flight

    def is_idle(self) -> bool:
        return not self._pending and not self._in_flight

    def enqueue(self, poi_id: str) -> bool:
        """Admit ``poi_id`` unless it is already pending or in flight.

        Must be called with a running event loop.

        Returns:
            True if the id was newly admitted.
        """
        if poi_id in self._pending_ids or poi_id in self._in_flight:
            return False
        self._pending.append(poi_id)
        self._pending_ids.add(poi_id)
        self._pump()
        return True

    def enqueue_many(self, poi_ids: Iterable[str]) -> int:
        return sum(1 for poi_id in poi_ids if self.enqueue(poi_id))

    def subscribe(self, listener: ResolutionListener) -> Callable[[], None]:
        """Register a completion listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _has_free_slot(self) -> bool:
        return self._concurrency is None or len(self._in_flight) < self._concurrency

    def _pump(self) -> None:
        while self._pending and self._has_free_slot():
            poi_id = self._pending.popleft()
            self._pending_ids.discard(poi_id)

            poi = self._poi_lookup(poi_id)
            if poi is None:
                logger.info(f"[QUEUE] {poi_id}: unknown POI, skipped")
                continue
            if has_usable_image(poi):
                continue

            self._in_flight.add(poi_id)
            self._peak_in_flight = max(self._peak_in_flight, len(self._in_flight))
            task = asyncio.create_task(self._run(poi), name=f"resolve-photo:{poi_id}")
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _run(self, poi: POI) -> None:
        try:
            success = await self._resolver.resolve(poi)
        except Exception:
            logger.exception(f"[QUEUE] {poi.id}: resolver raised")
            success = False
        finally:
            self._in_flight.discard(poi.id)

        self._completed += 1
        if success:
            self._succeeded += 1
        self._notify(ResolutionResult(poi_id=poi.id, success=success, image=poi.image))
        self._pump()

    def _notify(self, result: ResolutionResult) -> None:
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception:
                logger.exception(f"[QUEUE] listener failed for {result.poi_id}")

    async def join(self) -> None:
        """Wait until nothing is pending or in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def stats(self) -> QueueStats:
        return QueueStats(
            pending=len(self._pending),
            in_flight=len(self._in_flight),
            peak_in_flight=self._peak_in_flight,
            completed=self._completed,
            succeeded=self._succeeded,
            concurrency=self._concurrency,
        )


class TriggerStrategy(str, Enum):
    """When POIs are handed to the resolution queue."""

    VISIBILITY = "visibility"  # as they scroll into view
    EAGER = "eager"            # every listed POI as soon as a listing renders


class ResolutionTrigger:
    """Turns listing/visibility events into queue admissions.

    Each id is observed at most once per render cycle, so repeated
    visibility reports for the same card do not re-enqueue it.
    """

    def __init__(
        self,
        queue: ResolutionQueue,
        poi_lookup: POILookup,
        strategy: TriggerStrategy = TriggerStrategy.VISIBILITY,
    ) -> None:
        self._queue = queue
        self._poi_lookup = poi_lookup
        self._strategy = strategy
        self._observed: set[str] = set()

    @property
    def strategy(self) -> TriggerStrategy:
        return self._strategy

    def begin_render_cycle(self, listed_ids: Iterable[str] = ()) -> int:
        """Start a new render cycle for the given listing.

        Returns:
            Number of POIs enqueued (only non-zero for the eager strategy).
        """
        self._observed = set()
        if self._strategy is TriggerStrategy.EAGER:
            return self._observe(listed_ids)
        return 0

    def mark_visible(self, poi_ids: Iterable[str]) -> int:
        """Report POIs that became visible; returns how many were enqueued."""
        return self._observe(poi_ids)

    def _observe(self, poi_ids: Iterable[str]) -> int:
        enqueued = 0
        for poi_id in poi_ids:
            if poi_id in self._observed:
                continue
            self._observed.add(poi_id)
            poi = self._poi_lookup(poi_id)
            if poi is None or has_usable_image(poi):
                continue
            if self._queue.enqueue(poi_id):
                enqueued += 1
        return enqueued
