"""Core data models for the POI walk planner.

Pydantic models for coordinates, points of interest (POIs), image
references, image-cache entries and route summaries.
"""

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from poi_planner.utils.wikimedia import commons_file_page, commons_file_path


class Coordinates(BaseModel):
    """Geographic coordinates with validation.

    Latitude must be between -90 and 90 degrees.
    Longitude must be between -180 and 180 degrees.
    """

    lat: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    lng: float = Field(..., ge=-180, le=180, description="Longitude in degrees")


class CommonsFile(BaseModel):
    """Image stored on Wikimedia Commons, referenced by filename."""

    kind: Literal["commons_file"] = "commons_file"
    filename: str = Field(..., min_length=1, description="Commons filename without 'File:'")
    source_page: Optional[str] = Field(None, description="Attribution page URL")

    @property
    def display_url(self) -> str:
        return commons_file_path(self.filename)

    @property
    def attribution_url(self) -> str:
        return self.source_page or commons_file_page(self.filename)


class ExternalUrl(BaseModel):
    """Image addressed by a direct URL (e.g. a Wikipedia page thumbnail)."""

    kind: Literal["external_url"] = "external_url"
    url: str = Field(..., min_length=1, description="Direct image URL")
    source_page: Optional[str] = Field(None, description="Attribution page URL")

    @property
    def display_url(self) -> str:
        return self.url

    @property
    def attribution_url(self) -> Optional[str]:
        return self.source_page


ImageRef = Annotated[Union[CommonsFile, ExternalUrl], Field(discriminator="kind")]


class POIInfo(BaseModel):
    """'More info' links per language."""

    nl: Optional[str] = None
    en: Optional[str] = None

    def preferred(self) -> Optional[str]:
        return self.nl or self.en


class POI(BaseModel):
    """Point of Interest model.

    ``id`` is stable and unique within a catalog. ``image`` and
    ``wikidata_id`` are the only fields filled in after load, by the
    photo resolver.
    """

    id: str = Field(..., min_length=1, description="Stable unique identifier")
    title: str = Field(..., min_length=1, description="Display name")
    theme: str = Field(default="", description="Theme/category used for filtering")
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    wikidata_id: Optional[str] = Field(None, description="Wikidata QID, e.g. 'Q82425'")
    info: Optional[POIInfo] = None
    image: Optional[ImageRef] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)

    @property
    def info_url(self) -> Optional[str]:
        return self.info.preferred() if self.info else None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ImageCacheEntry(BaseModel):
    """A successfully resolved image for one POI."""

    ref: ImageRef
    resolved_at: datetime = Field(default_factory=_utcnow)


class RouteSummary(BaseModel):
    """Straight-line estimate of a walking route."""

    stop_count: int = Field(..., ge=2)
    distance_km: float = Field(..., ge=0, description="Sum of straight-line legs")
    walking_minutes: int = Field(..., ge=0)
    starts_at_origin: bool = False
