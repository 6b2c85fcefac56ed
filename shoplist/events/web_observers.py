"""Web-facing observers for core events.

This module subscribes to the GLOBAL_EVENT_BUS for:
  - catalog.price_recorded
  - session.finalized
  - session.backfill_failed
  - images.orphans_swept

and stores a lightweight in-memory ring buffer of recent events that the
FastAPI layer exposes so a client can show "price saved" / "receipt link
failed" notices without reloading.

Design:
  * Each event stored with an auto-increment integer id (cursor) so clients
    can request only newer events (since=<last_id_seen>).
  * A Lock guards the buffer; uvicorn runs sync endpoints in a threadpool.
  * A MAX_EVENTS cap prevents unbounded memory growth.
"""
from __future__ import annotations
from typing import List, Dict, Any
from threading import Lock
from datetime import datetime, timezone
import logging

from .Event_Bus import (
    GLOBAL_EVENT_BUS, PRICE_RECORDED, SESSION_FINALIZED, BACKFILL_FAILED, ORPHANS_SWEPT
)

logger = logging.getLogger(__name__)

_lock = Lock()
_events: List[Dict[str, Any]] = []
_next_id = 1
MAX_EVENTS = 300
_started = False

_COPIED_FIELDS = ('master_item_id', 'variant_index', 'price', 'session_id', 'list_id', 'list_name',
                  'total', 'calculated_total', 'key', 'error', 'count')


def _record(event_name: str, payload: Any):  # signature expected by EventBus
    global _next_id
    with _lock:
        evt = {
            'id': _next_id,
            'type': event_name,
            'ts': datetime.now(timezone.utc).isoformat()
        }
        if isinstance(payload, dict):
            for k in _COPIED_FIELDS:
                if k in payload:
                    evt[k] = payload[k]
        _events.append(evt)
        _next_id += 1
        # Trim buffer
        if len(_events) > MAX_EVENTS:
            del _events[: len(_events) - MAX_EVENTS]


def start():
    """Idempotent start: subscribe observers once."""
    global _started
    if _started:
        return
    for name in (PRICE_RECORDED, SESSION_FINALIZED, BACKFILL_FAILED, ORPHANS_SWEPT):
        GLOBAL_EVENT_BUS.subscribe(name, _record)
    _started = True
    logger.info("Web observers for core events started")


def get_events(since: int | None = None) -> Dict[str, Any]:
    """Return events newer than 'since' (exclusive).

    If since is None, returns the last N (up to MAX_EVENTS) events.
    Response includes next_cursor (largest id) so client can poll with since=next_cursor.
    """
    with _lock:
        if since is None:
            data = list(_events)
        else:
            data = [e for e in _events if e['id'] > since]
        next_cursor = _events[-1]['id'] if _events else since or 0
    return {'events': data, 'next_cursor': next_cursor}


__all__ = ['start', 'get_events']
