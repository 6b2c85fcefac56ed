from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from typing import Optional
import logging

from shoplist.api.dependencies import get_core
from shoplist.api.routes import catalog, history, lists, sessions
from shoplist.events.web_observers import start as start_event_observers, get_events as get_web_events
from shoplist.utilities.errors import (
    InvalidFormat,
    NotFound,
    SessionConflict,
    ShoplistError,
    StorageError,
    UnsupportedVersion,
    ValidationError,
)

# Logging
logger = logging.getLogger("shoplist_app")

# Initialize FastAPI app
app = FastAPI(title="Shopping List & Price Tracker API")

# Include routers
app.include_router(catalog.router)
app.include_router(lists.router)
app.include_router(sessions.router)
app.include_router(history.router)

# Most specific first: SessionConflict is a ValidationError
_STATUS_BY_ERROR = (
    (SessionConflict, 409),
    (NotFound, 404),
    (UnsupportedVersion, 422),
    (InvalidFormat, 400),
    (ValidationError, 400),
    (StorageError, 500),
)


def _status_for(exc: ShoplistError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


@app.exception_handler(ShoplistError)
def _core_error_handler(request: Request, exc: ShoplistError):
    status = _status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    content = {"detail": str(exc)}
    if isinstance(exc, SessionConflict) and exc.active_list_id:
        content["active_list_id"] = exc.active_list_id
    return JSONResponse(status_code=status, content=content)


@app.on_event("startup")
def _startup():
    """Register event bus subscribers, then prepare storage and run maintenance."""
    start_event_observers()
    core = app.dependency_overrides.get(get_core, get_core)()
    try:
        core.startup()
    except StorageError as e:
        logger.error("Data directory %s is not usable: %s", core.data_dir, e)
        raise
    logger.info("Shopping core ready on %s", core.data_dir)


# -------------------- API: Events (polled by frontend) --------------------
@app.get('/api/events')
def api_events(
    since: Optional[int] = Query(default=None, description="Return events with id greater than this value")
):
    """
    Return recent core events (price recorded, session finalized, back-fill failed, orphans swept).

    Client polling strategy:
        1. First call without 'since' to load the current backlog.
        2. Store 'next_cursor' from response.
        3. Subsequent polls: /api/events?since=<next_cursor>
    """
    return get_web_events(since)
