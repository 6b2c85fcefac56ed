"""Timestamp and id helpers (epoch milliseconds everywhere on disk)."""
import time
from uuid import uuid4


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return uuid4().hex
