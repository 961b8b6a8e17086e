"""FastAPI application for the event_link API."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from event_link.api.routes.events import router as events_router, users_router
from event_link.api.routes.external_events import router as external_events_router
from event_link.api.routes.health import router as health_router
from event_link.config.settings import get_settings
from event_link.db.engine import dispose_engine
from event_link.errors import EventNotFound, StoreUnavailable, UnlinkedEventError, ValidationError
from event_link.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_logging(json_output=settings.log_json, log_level=settings.log_level)
    yield
    await dispose_engine()


app = FastAPI(title="Event Link API", version="0.1.0", lifespan=lifespan)

# The mobile client calls from arbitrary origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(UnlinkedEventError)
async def unlinked_event_handler(request: Request, exc: UnlinkedEventError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(EventNotFound)
async def event_not_found_handler(request: Request, exc: EventNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": "Event store unavailable"})


app.include_router(health_router)
app.include_router(events_router)
app.include_router(users_router)
app.include_router(external_events_router)
