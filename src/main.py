from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.adapters.api.controllers.cities import router as cities_router
from src.adapters.api.controllers.graph import router as graph_router
from src.adapters.api.controllers.routes import router as routes_router
from src.adapters.api.dependencies import seed_local_graph
from src.domain.exceptions import (
    GraphUnavailable,
    NoPathFound,
    NoStopsForCity,
    RouteNotFound,
    RoutingError,
    ValidationFailed,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[RoutingError], int], ...] = (
    (GraphUnavailable, 503),
    (NoStopsForCity, 404),
    (NoPathFound, 404),
    (RouteNotFound, 404),
    (ValidationFailed, 422),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    try:
        seed_local_graph()
    except (OSError, ValueError, RuntimeError):
        # The API still serves /health and reports the graph as unavailable.
        logger.exception("Could not seed the local graph")
    yield


app = FastAPI(title="TripGraph", lifespan=lifespan)
app.include_router(routes_router)
app.include_router(cities_router)
app.include_router(graph_router)


@app.exception_handler(RoutingError)
async def routing_error_handler(request: Request, exc: RoutingError) -> JSONResponse:
    status = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status = code
            break

    content: dict[str, object] = {
        "detail": str(exc) or exc.__class__.__name__,
        "error": exc.__class__.__name__,
    }
    if isinstance(exc, ValidationFailed):
        content["errors"] = exc.errors
    return JSONResponse(status_code=status, content=content)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Ensure API errors are JSON so clients can display them.

    Starlette's default 500 handler may return plain text/HTML.
    """

    logging.getLogger("uvicorn.error").exception(
        "Unhandled exception", extra={"path": str(request.url.path)}
    )

    reveal = (os.getenv("TRIPGRAPH_REVEAL_ERRORS") or "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }

    if reveal or isinstance(exc, (FileNotFoundError, RuntimeError, ValueError)):
        detail = str(exc) or exc.__class__.__name__
    else:
        detail = "Internal Server Error"

    return JSONResponse(status_code=500, content={"detail": detail})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
