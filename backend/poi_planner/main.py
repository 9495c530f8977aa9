"""POI Walk Planner FastAPI Application.

Main entry point for the backend API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from poi_planner import __version__
from poi_planner.api import router, set_planner
from poi_planner.config import Settings
from poi_planner.models import AppError, ErrorCode
from poi_planner.services.planner import create_planner
from poi_planner.services.resolution_queue import ResolutionResult

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


def _log_resolution(result: ResolutionResult) -> None:
    if result.success:
        logger.info(f"[PHOTO] {result.poi_id}: photo ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = Settings.from_env()
    planner = await create_planner(settings)
    unsubscribe = planner.queue.subscribe(_log_resolution)
    set_planner(planner)
    logger.info(
        f"Planner ready: {len(planner.catalog)} POIs, photo trigger={settings.trigger_strategy.value}, "
        f"concurrency={settings.photo_concurrency or 'unbounded'}"
    )
    yield
    # In-flight resolutions are not cancelled; they finish or die with the loop
    unsubscribe()
    set_planner(None)
    await planner.close()


app = FastAPI(
    title="POI Walk Planner API",
    description="Browse city POIs, collect favorites and plan a walking route",
    version=__version__,
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error.model_dump(mode="json")},
    )


# Global exception handlers
@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors."""
    return _error_response(
        422,
        AppError(
            code=ErrorCode.VALIDATION_ERROR,
            message=str(exc),
            user_message="Invalid request format. Please check your input.",
        ),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.exception("Unhandled error")
    return _error_response(
        500,
        AppError(
            code=ErrorCode.API_ERROR,
            message=str(exc),
            user_message="Something went wrong. Please try again.",
        ),
    )


# Include API routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
