"""One-time upgrade of catalog records written before brand variants existed.

A flat record (brand/default_price/image on the item) becomes a single
variant; a variant without price history gets one record at its default
price dated at the item's creation. Records are rewritten only when their
stored form is outdated, so later runs are no-ops.
"""
import logging

from shoplist.domain.MasterItem import MasterItem
from shoplist.infra.Collection_Store import CollectionStore
from shoplist.utilities.constants import MASTER_ITEMS

logger = logging.getLogger(__name__)


def migrate_legacy_items(store: CollectionStore) -> int:
    migrated = 0
    for raw in store.list(MASTER_ITEMS):
        if not MasterItem.is_legacy(raw):
            continue
        try:
            item = MasterItem.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Cannot migrate master item {raw.get('id')!r}: {e}")
            continue
        store.save(MASTER_ITEMS, item.id, item.to_dict())
        logger.info(f"Migrated item: {item.name}")
        migrated += 1
    if migrated:
        logger.info(f"Migration completed successfully ({migrated} item(s))")
    return migrated
