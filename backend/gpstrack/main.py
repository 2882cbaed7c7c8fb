"""
GPS Track Engine - FastAPI Backend

Main application entry point and configuration.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gpstrack.api.schemas import ErrorResponse
from gpstrack.api.tracks import folder_router, router as tracks_router
from gpstrack.services.errors import ParseError, UnsupportedFormat
from gpstrack.services.repository import get_repository, init_repository


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# Default data folder (can be overridden via API or environment)
DEFAULT_DATA_FOLDER = Path("./data/tracks")
DATA_FOLDER_ENV = "GPSTRACK_DATA_FOLDER"

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting GPS Track Engine")

    repo = get_repository()
    if repo.data_folder is None:
        data_folder = Path(os.getenv(DATA_FOLDER_ENV, str(DEFAULT_DATA_FOLDER)))
        if data_folder.exists():
            init_repository(data_folder)
            logger.info(f"Initialized repository with folder: {data_folder}")
        else:
            logger.info(f"Default data folder not found: {data_folder}")
            logger.info("Use POST /folder to set data folder")

    yield

    logger.info("Shutting down GPS Track Engine")


app = FastAPI(
    title="GPS Track Engine",
    description="""
    Ingest recorded positioning logs and serve normalized tracks.

    ## Formats
    - GPX (.gpx)
    - NMEA-0183 / JPS (.jps, .nmea)
    - FlightCell JSON-lines GPS logs (.log), merged with the flight-data log

    ## Data Flow
    1. Set data folder via POST /folder, or upload via POST /tracks
    2. List available tracks via GET /tracks
    3. Get points, statistics, segment colors or profile per track
    4. Export a track via GET /tracks/{id}/export.gpx
    """,
    version=VERSION,
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError):
    """Turn a failed log parse into a 415 (unknown format) or 422 response."""
    status_code = 415 if isinstance(exc, UnsupportedFormat) else 422
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=exc.code).model_dump(),
    )


app.include_router(tracks_router)
app.include_router(folder_router)


@app.get("/")
async def root():
    """Root endpoint - basic health check."""
    return {
        "name": "GPS Track Engine",
        "version": VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    repo = get_repository()

    return {
        "status": "healthy",
        "data_folder": str(repo.data_folder) if repo.data_folder else None,
        "track_count": repo.track_count,
    }
