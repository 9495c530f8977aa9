"""API routes for the POI walk planner.

- Listing/filtering POIs and reporting visibility (drives photo resolution)
- Favorites
- Route editing, nearest-neighbour optimization and straight-line summary
- Layout preference

Unknown ids in route and visibility operations are silent no-ops; only the
single-POI endpoints answer 404.
"""

import logging
from dataclasses import asdict
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from poi_planner.models import POI, Coordinates, RouteSummary
from poi_planner.services.planner import Planner

logger = logging.getLogger(__name__)

router = APIRouter()


# Service instance, set by the application lifespan
_planner: Planner | None = None


def set_planner(planner: Planner | None) -> None:
    global _planner
    _planner = planner


def get_planner() -> Planner:
    if _planner is None:
        raise HTTPException(status_code=503, detail="Planner not initialised")
    return _planner


# Request/Response models
class POIView(BaseModel):
    """A POI as shown in listings and the details panel."""
    poi: POI
    is_favorite: bool = False
    image_url: Optional[str] = Field(None, description="Direct image URL to display")
    image_page: Optional[str] = Field(None, description="Attribution page for the image")
    info_url: Optional[str] = None


class POIListResponse(BaseModel):
    count: int
    pois: list[POIView]


class VisibleRequest(BaseModel):
    poi_ids: list[str] = Field(default_factory=list)


class VisibleResponse(BaseModel):
    enqueued: int


class PhotoResponse(BaseModel):
    success: bool
    view: POIView


class PhotoQueueStatus(BaseModel):
    strategy: str
    pending: int
    in_flight: int
    peak_in_flight: int
    completed: int
    succeeded: int
    concurrency: Optional[int] = None
    cached_images: int


class FavoritesResponse(BaseModel):
    favorites: list[str]


class FavoriteToggleResponse(BaseModel):
    poi_id: str
    is_favorite: bool


class RouteResponse(BaseModel):
    """Current route; ``ids`` may contain stale ids, ``stops`` never does."""
    ids: list[str]
    stops: list[POIView]
    summary: Optional[RouteSummary] = None
    origin: Optional[Coordinates] = None
    origin_name: Optional[str] = None


class AddStopRequest(BaseModel):
    poi_id: str = Field(..., min_length=1)


class MoveStopRequest(BaseModel):
    direction: Literal[-1, 1]


class ReplaceRouteRequest(BaseModel):
    poi_ids: list[str]


class OptimizeRequest(BaseModel):
    start_at_origin: bool = True


class FromFavoritesRequest(BaseModel):
    theme: Optional[str] = None
    q: Optional[str] = None
    start_at_origin: bool = True


class LayoutPreference(BaseModel):
    sidebar_width: Optional[int] = None


class LayoutUpdate(BaseModel):
    sidebar_width: float = Field(..., gt=0)


def _view(planner: Planner, poi: POI) -> POIView:
    image = poi.image
    return POIView(
        poi=poi,
        is_favorite=planner.is_favorite(poi.id),
        image_url=image.display_url if image else None,
        image_page=image.attribution_url if image else None,
        info_url=poi.info_url,
    )


def _get_poi_or_404(planner: Planner, poi_id: str) -> POI:
    poi = planner.catalog.get(poi_id)
    if poi is None:
        raise HTTPException(status_code=404, detail=f"Unknown POI: {poi_id}")
    return poi


def _route_response(planner: Planner, start_at_origin: bool = True) -> RouteResponse:
    origin = planner.sequencer.origin if start_at_origin else None
    return RouteResponse(
        ids=list(planner.route_ids),
        stops=[_view(planner, poi) for poi in planner.route_stops()],
        summary=planner.route_summary(start_at_origin),
        origin=origin,
        origin_name=planner.origin_name if origin else None,
    )


# ─── POIs ───

@router.get("/themes", response_model=list[str])
async def list_themes(planner: Planner = Depends(get_planner)) -> list[str]:
    return planner.catalog.themes()


@router.get("/pois", response_model=POIListResponse)
async def list_pois(
    theme: Optional[str] = None,
    q: Optional[str] = None,
    planner: Planner = Depends(get_planner),
) -> POIListResponse:
    """Filtered POI listing. Starts a new photo render cycle."""
    pois = planner.list_pois(theme, q)
    return POIListResponse(count=len(pois), pois=[_view(planner, poi) for poi in pois])


@router.post("/pois/visible", response_model=VisibleResponse)
async def report_visible(
    request: VisibleRequest, planner: Planner = Depends(get_planner)
) -> VisibleResponse:
    """Visibility signal from the UI: queue photo resolution for new cards."""
    enqueued = planner.mark_visible(request.poi_ids)
    if enqueued:
        logger.info(f"[PHOTO] {enqueued} POIs queued for photo resolution")
    return VisibleResponse(enqueued=enqueued)


@router.get("/pois/{poi_id}", response_model=POIView)
async def get_poi(poi_id: str, planner: Planner = Depends(get_planner)) -> POIView:
    return _view(planner, _get_poi_or_404(planner, poi_id))


@router.post("/pois/{poi_id}/photo", response_model=PhotoResponse)
async def resolve_photo(poi_id: str, planner: Planner = Depends(get_planner)) -> PhotoResponse:
    """Resolve a POI's photo now (details panel) and return the updated view."""
    poi = _get_poi_or_404(planner, poi_id)
    success = await planner.resolve_photo(poi_id)
    return PhotoResponse(success=bool(success), view=_view(planner, poi))


@router.get("/photos/status", response_model=PhotoQueueStatus)
async def photo_status(planner: Planner = Depends(get_planner)) -> PhotoQueueStatus:
    return PhotoQueueStatus(
        strategy=planner.trigger.strategy.value,
        cached_images=len(planner.image_cache),
        **asdict(planner.queue.stats()),
    )


# ─── Favorites ───

@router.get("/favorites", response_model=FavoritesResponse)
async def list_favorites(planner: Planner = Depends(get_planner)) -> FavoritesResponse:
    return FavoritesResponse(favorites=sorted(planner.favorites))


@router.post("/favorites/{poi_id}", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    poi_id: str, planner: Planner = Depends(get_planner)
) -> FavoriteToggleResponse:
    _get_poi_or_404(planner, poi_id)
    state = await planner.toggle_favorite(poi_id)
    return FavoriteToggleResponse(poi_id=poi_id, is_favorite=bool(state))


# ─── Route ───

@router.get("/route", response_model=RouteResponse)
async def get_route(
    start_at_origin: bool = True, planner: Planner = Depends(get_planner)
) -> RouteResponse:
    return _route_response(planner, start_at_origin)


@router.post("/route/stops", response_model=RouteResponse)
async def add_stop(request: AddStopRequest, planner: Planner = Depends(get_planner)) -> RouteResponse:
    await planner.add_stop(request.poi_id)
    return _route_response(planner)


@router.delete("/route/stops/{poi_id}", response_model=RouteResponse)
async def remove_stop(poi_id: str, planner: Planner = Depends(get_planner)) -> RouteResponse:
    await planner.remove_stop(poi_id)
    return _route_response(planner)


@router.post("/route/stops/{poi_id}/move", response_model=RouteResponse)
async def move_stop(
    poi_id: str, request: MoveStopRequest, planner: Planner = Depends(get_planner)
) -> RouteResponse:
    await planner.move_stop(poi_id, request.direction)
    return _route_response(planner)


@router.put("/route", response_model=RouteResponse)
async def replace_route(
    request: ReplaceRouteRequest, planner: Planner = Depends(get_planner)
) -> RouteResponse:
    await planner.replace_route(request.poi_ids)
    return _route_response(planner)


@router.delete("/route", response_model=RouteResponse)
async def clear_route(planner: Planner = Depends(get_planner)) -> RouteResponse:
    await planner.clear_route()
    return _route_response(planner)


@router.post("/route/optimize", response_model=RouteResponse)
async def optimize_route(
    request: OptimizeRequest, planner: Planner = Depends(get_planner)
) -> RouteResponse:
    await planner.optimize_route(request.start_at_origin)
    return _route_response(planner, request.start_at_origin)


@router.post("/route/from-favorites", response_model=RouteResponse)
async def route_from_favorites(
    request: FromFavoritesRequest, planner: Planner = Depends(get_planner)
) -> RouteResponse:
    """Route through the favorites of the current listing, optimized."""
    await planner.route_from_favorites(request.theme, request.q, request.start_at_origin)
    return _route_response(planner, request.start_at_origin)


# ─── Preferences ───

@router.get("/preferences/layout", response_model=LayoutPreference)
async def get_layout(planner: Planner = Depends(get_planner)) -> LayoutPreference:
    return LayoutPreference(sidebar_width=planner.sidebar_width)


@router.put("/preferences/layout", response_model=LayoutPreference)
async def set_layout(
    request: LayoutUpdate, planner: Planner = Depends(get_planner)
) -> LayoutPreference:
    width = await planner.set_sidebar_width(request.sidebar_width)
    return LayoutPreference(sidebar_width=width)
