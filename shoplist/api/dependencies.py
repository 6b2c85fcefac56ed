"""FastAPI dependency giving routes the process-wide ShoppingCore."""
from functools import lru_cache

from shoplist.infra.paths import DATA_DIR
from shoplist.logic.core import ShoppingCore


@lru_cache(maxsize=1)
def _core_for(data_dir: str) -> ShoppingCore:
    return ShoppingCore(data_dir)


def get_core() -> ShoppingCore:
    return _core_for(str(DATA_DIR))
