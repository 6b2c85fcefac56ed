"""Event helper utilities.

Thin publishing functions so managers do not build payload dicts inline.

Quick import:
    from shoplist.events.event_helpers import (
        publish_price_recorded, publish_session_finalized,
        publish_backfill_failed, publish_orphans_swept
    )
"""
from __future__ import annotations
from typing import Iterable, Optional
from .Event_Bus import (
    EventBus, GLOBAL_EVENT_BUS,
    PRICE_RECORDED, SESSION_FINALIZED, BACKFILL_FAILED, ORPHANS_SWEPT
)

__all__ = [
    'publish_price_recorded', 'publish_session_finalized', 'publish_backfill_failed',
    'publish_orphans_swept'
]


def _bus(bus: Optional[EventBus]) -> EventBus:
    return bus if bus is not None else GLOBAL_EVENT_BUS


def publish_price_recorded(master_item_id: str, variant_index: int, price: float, bus: Optional[EventBus] = None):
    _bus(bus).publish(PRICE_RECORDED, {
        'master_item_id': master_item_id,
        'variant_index': variant_index,
        'price': price,
    })


def publish_session_finalized(session, bus: Optional[EventBus] = None):
    _bus(bus).publish(SESSION_FINALIZED, {
        'session_id': session.id,
        'list_id': session.list_id,
        'list_name': session.list_name,
        'total': session.total,
        'calculated_total': session.calculated_total,
    })


def publish_backfill_failed(session_id: str, key: str, error: str, bus: Optional[EventBus] = None):
    _bus(bus).publish(BACKFILL_FAILED, {
        'session_id': session_id,
        'key': key,
        'error': error,
    })


def publish_orphans_swept(references: Iterable[str], bus: Optional[EventBus] = None):
    refs = list(references)
    _bus(bus).publish(ORPHANS_SWEPT, {
        'count': len(refs),
        'references': refs,
    })
