"""Runtime configuration read from the environment (and an optional .env)."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from poi_planner.models import Coordinates
from poi_planner.services.resolution_queue import ResolutionQueue, TriggerStrategy
from poi_planner.services.route_sequencer import DEFAULT_WALKING_SPEED_KMH

load_dotenv()

# Leonardo Hotel Berlin Mitte, Bertolt-Brecht-Platz 4 (approximate)
DEFAULT_ORIGIN = (52.5226, 13.38635)
DEFAULT_ORIGIN_NAME = "Leonardo Hotel Berlin Mitte"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    dataset_path: Path
    store_backend: str = "memory"
    redis_url: str = "redis://localhost:6379"
    trigger_strategy: TriggerStrategy = TriggerStrategy.VISIBILITY
    # None = unbounded
    photo_concurrency: Optional[int] = ResolutionQueue.DEFAULT_CONCURRENCY
    wiki_timeout: float = 8.0
    wiki_user_agent: Optional[str] = None
    origin: Optional[Coordinates] = None
    origin_name: str = DEFAULT_ORIGIN_NAME
    walking_speed_kmh: float = DEFAULT_WALKING_SPEED_KMH

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValueError: On malformed values.
        """
        strategy = TriggerStrategy(os.getenv("PHOTO_TRIGGER_STRATEGY", "visibility").strip().lower())

        raw_concurrency = os.getenv("PHOTO_CONCURRENCY", "").strip()
        if raw_concurrency:
            concurrency = int(raw_concurrency)
            if concurrency < 0:
                raise ValueError("PHOTO_CONCURRENCY must be >= 0")
            photo_concurrency = concurrency or None
        elif strategy is TriggerStrategy.EAGER:
            photo_concurrency = None
        else:
            photo_concurrency = ResolutionQueue.DEFAULT_CONCURRENCY

        origin = None
        if os.getenv("ROUTE_ORIGIN_DISABLED", "").strip().lower() not in ("1", "true", "yes"):
            origin = Coordinates(
                lat=_env_float("ROUTE_ORIGIN_LAT", DEFAULT_ORIGIN[0]),
                lng=_env_float("ROUTE_ORIGIN_LNG", DEFAULT_ORIGIN[1]),
            )

        return cls(
            dataset_path=Path(os.getenv("POI_DATASET_PATH", "pois.json")),
            store_backend=os.getenv("POI_STORE_BACKEND", "memory").strip().lower(),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
            trigger_strategy=strategy,
            photo_concurrency=photo_concurrency,
            wiki_timeout=_env_float("WIKI_TIMEOUT_SECONDS", 8.0),
            wiki_user_agent=os.getenv("WIKI_USER_AGENT") or None,
            origin=origin,
            origin_name=os.getenv("ROUTE_ORIGIN_NAME", DEFAULT_ORIGIN_NAME),
            walking_speed_kmh=_env_float("WALKING_SPEED_KMH", DEFAULT_WALKING_SPEED_KMH),
        )
