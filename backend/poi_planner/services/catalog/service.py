"""POI catalog: dataset loading, record validation and filtering.

The dataset is a JSON array of POI records, provided as a complete snapshot
at startup. Records use the dataset's own field names::

    {"id": "brandenburger-tor", "title": "Brandenburger Tor",
     "theme": "Monumenten", "lat": 52.5163, "lng": 13.3777,
     "wikidataId": "Q82425",
     "info": {"nl": "https://nl.wikipedia.org/wiki/Brandenburger_Tor"},
     "image": {"commonsFile": "Brandenburger Tor abends.jpg"}}

Malformed records are excluded instead of failing the whole load.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from pydantic import ValidationError

from poi_planner.models import POI, CommonsFile, ExternalUrl, ImageRef, POIInfo

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of dataset record validation."""
    is_valid: bool
    missing_fields: list[str]
    poi: Optional[POI] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_image(raw: Any) -> Optional[ImageRef]:
    """Map the dataset's ``image`` object onto an ImageRef variant."""
    if not isinstance(raw, dict):
        return None
    source_page = raw.get("sourcePage") or None
    if raw.get("commonsFile"):
        return CommonsFile(filename=str(raw["commonsFile"]), source_page=source_page)
    if raw.get("url"):
        return ExternalUrl(url=str(raw["url"]), source_page=source_page)
    return None


def _parse_info(raw: Any) -> Optional[POIInfo]:
    if not isinstance(raw, dict):
        return None
    info = POIInfo(nl=raw.get("nl") or None, en=raw.get("en") or None)
    return info if (info.nl or info.en) else None


def validate_record(record: Any) -> ValidationResult:
    """Validate one dataset record and build its POI.

    Required: non-blank ``id`` and ``title``, numeric ``lat`` in -90..90 and
    ``lng`` in -180..180. Invalid optional fields are dropped.
    """
    if not isinstance(record, dict):
        return ValidationResult(is_valid=False, missing_fields=["id", "title", "lat", "lng"])

    missing: list[str] = []

    poi_id = record.get("id")
    if not isinstance(poi_id, (str, int)) or isinstance(poi_id, bool) or not str(poi_id).strip():
        missing.append("id")

    title = record.get("title")
    if not isinstance(title, str) or not title.strip():
        missing.append("title")

    lat = record.get("lat")
    if not _is_number(lat) or not -90 <= lat <= 90:
        missing.append("lat")

    lng = record.get("lng")
    if not _is_number(lng) or not -180 <= lng <= 180:
        missing.append("lng")

    if missing:
        return ValidationResult(is_valid=False, missing_fields=missing)

    try:
        image = _parse_image(record.get("image"))
    except ValidationError:
        image = None

    wikidata_id = record.get("wikidataId")
    try:
        poi = POI(
            id=str(poi_id).strip(),
            title=title.strip(),
            theme=str(record.get("theme") or "").strip(),
            lat=float(lat),
            lng=float(lng),
            wikidata_id=wikidata_id if isinstance(wikidata_id, str) and wikidata_id else None,
            info=_parse_info(record.get("info")),
            image=image,
        )
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        return ValidationResult(is_valid=False, missing_fields=fields)

    return ValidationResult(is_valid=True, missing_fields=[], poi=poi)


def _sort_key(poi: POI) -> str:
    return f"{poi.theme} {poi.title}".casefold()


class POICatalog:
    """The session's POI collection, sorted by theme then title."""

    def __init__(self, pois: Iterable[POI] = ()) -> None:
        self._pois: list[POI] = []
        self._by_id: dict[str, POI] = {}
        for poi in pois:
            if poi.id in self._by_id:
                logger.info(f"[CATALOG] Duplicate id {poi.id!r}, keeping the first record")
                continue
            self._by_id[poi.id] = poi
            self._pois.append(poi)
        self._pois.sort(key=_sort_key)

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "POICatalog":
        pois: list[POI] = []
        skipped = 0
        for index, record in enumerate(records):
            result = validate_record(record)
            if result.is_valid and result.poi is not None:
                pois.append(result.poi)
            else:
                skipped += 1
                logger.info(f"[CATALOG] Skipping record #{index}: invalid {', '.join(result.missing_fields)}")
        catalog = cls(pois)
        logger.info(f"[CATALOG] Loaded {len(catalog)} POIs ({skipped} skipped)")
        return catalog

    @classmethod
    def load_file(cls, path: str | Path) -> "POICatalog":
        """Load a JSON dataset file.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If it is not a JSON array.
        """
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, list):
            raise ValueError(f"POI dataset {path} must be a JSON array")
        return cls.from_records(data)

    @property
    def by_id(self) -> dict[str, POI]:
        return self._by_id

    def get(self, poi_id: str) -> Optional[POI]:
        return self._by_id.get(poi_id)

    def themes(self) -> list[str]:
        return sorted({poi.theme for poi in self._pois if poi.theme}, key=str.casefold)

    def filter(self, theme: Optional[str] = None, query: Optional[str] = None) -> list[POI]:
        """POIs matching ``theme`` exactly and containing ``query`` in the title."""
        needle = (query or "").strip().casefold()
        return [
            poi for poi in self._pois
            if (not theme or poi.theme == theme)
            and (not needle or needle in poi.title.casefold())
        ]

    def __contains__(self, poi_id: object) -> bool:
        return poi_id in self._by_id

    def __iter__(self) -> Iterator[POI]:
        return iter(self._pois)

    def __len__(self) -> int:
        return len(self._pois)
