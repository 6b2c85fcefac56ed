"""Simple Event Bus / Observer implementation for core notifications.

Event names used so far:
  catalog.price_recorded -> payload {"master_item_id": str, "variant_index": int, "price": float}
  session.finalized -> payload {"session_id": str, "list_id": str, "total": float, "calculated_total": float}
  session.backfill_failed -> payload {"session_id": str, "key": str, "error": str}
  images.orphans_swept -> payload {"count": int, "references": [str, ...]}

Subscribers are callables taking (event_name, payload). Delivery is synchronous
and a failing subscriber never breaks the publisher.
"""
from __future__ import annotations
from collections import defaultdict
from typing import Callable, Any, Dict, List
import logging

logger = logging.getLogger(__name__)

# --- Event name constants (used across modules) ---
PRICE_RECORDED = "catalog.price_recorded"
SESSION_FINALIZED = "session.finalized"
BACKFILL_FAILED = "session.backfill_failed"
ORPHANS_SWEPT = "images.orphans_swept"


class EventBus:
	def __init__(self):
		self._subscribers: Dict[str, List[Callable[[str, Any], None]]] = defaultdict(list)

	def subscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		if callback not in self._subscribers[event_name]:
			self._subscribers[event_name].append(callback)

	def unsubscribe(self, event_name: str, callback: Callable[[str, Any], None]):
		try:
			self._subscribers[event_name].remove(callback)
		except (ValueError, KeyError):
			pass

	def publish(self, event_name: str, payload: Any):
		for cb in list(self._subscribers.get(event_name, [])):
			try:
				cb(event_name, payload)
			except Exception as e:
				logger.error("Error delivering %s to %s: %s", event_name, cb, e)


# A singleton-like instance (can be imported)
GLOBAL_EVENT_BUS = EventBus()


__all__ = [
	'EventBus', 'GLOBAL_EVENT_BUS',
	'PRICE_RECORDED', 'SESSION_FINALIZED', 'BACKFILL_FAILED', 'ORPHANS_SWEPT'
]
