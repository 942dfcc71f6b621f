"""FastAPI adapter exposing the feed server over HTTP."""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel

from . import __version__
from .errors import FeedError, ValidationError
from .server import CalendarFeedServer

app = FastAPI(
    title="iCal Feed Aggregator",
    description="Merged community event calendars as CSV, HTML or JSON",
    version=__version__,
)


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    version: str
    sources: dict


@lru_cache
def get_server() -> CalendarFeedServer:
    return CalendarFeedServer()


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return PlainTextResponse(str(exc), status_code=400)


@app.exception_handler(FeedError)
async def feed_error_handler(request: Request, exc: FeedError):
    return PlainTextResponse(str(exc), status_code=500)


@app.get("/api/GetOne")
async def get_one(
    url: Optional[str] = Query(None),
    format: Optional[str] = Query(None),
    town: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    server: CalendarFeedServer = Depends(get_server),
):
    """Render one caller-supplied feed."""
    rendered = await server.get_one(url, format=format, town=town, location=location)
    return Response(content=rendered.body, media_type=rendered.content_type)


@app.get("/api/GetMany")
async def get_many(
    format: Optional[str] = Query(None),
    server: CalendarFeedServer = Depends(get_server),
):
    """Render every configured source merged together."""
    rendered = await server.get_many(format=format)
    return Response(content=rendered.body, media_type=rendered.content_type)


@app.get("/api/sources")
async def list_sources(server: CalendarFeedServer = Depends(get_server)):
    return await server.list_sources()


@app.get("/health", response_model=HealthResponse)
async def health_check(server: CalendarFeedServer = Depends(get_server)):
    """Health check endpoint with per-source status."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        sources=await server.health(),
    )
