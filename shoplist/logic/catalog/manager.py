"""Catalog manager: master items, their brand variants and price history.

Owns MasterItem/BrandVariant/PriceRecord lifetimes. Invariant kept on every
write: ``variant.average_price == mean(r.price for r in variant.price_history)``.
History is append-only; the only later change to a record is the one-time
back-fill of its session/list/receipt fields after a trip is archived.
"""
import logging
import math
from typing import List, Optional, Tuple

from shoplist.domain.MasterItem import BrandVariant, MasterItem, PriceRecord
from shoplist.events.Event_Bus import EventBus
from shoplist.events.event_helpers import publish_price_recorded
from shoplist.infra.Collection_Store import CollectionStore, Repository
from shoplist.infra.Image_Store import ImageStore
from shoplist.utilities.clock import new_id, now_ms
from shoplist.utilities.constants import MASTER_ITEMS
from shoplist.utilities.errors import LastVariant, NotFound, ValidationError

logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} cannot be empty")
    return value.strip()


def _require_price(value) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid price: {value!r}")
    if math.isnan(price) or math.isinf(price) or price < 0:
        raise ValidationError(f"Invalid price: {value!r}")
    return price


class CatalogManager:
    def __init__(self, store: CollectionStore, images: ImageStore, bus: Optional[EventBus] = None):
        self.repo = Repository(store, MASTER_ITEMS, MasterItem.from_dict)
        self.images = images
        self.bus = bus

    # --- master items ---------------------------------------------------------
    def list_master_items(self) -> List[MasterItem]:
        return sorted(self.repo.all(), key=lambda i: i.updated_at, reverse=True)

    def get_master_item(self, item_id: str) -> MasterItem:
        return self.repo.require(item_id, "master item")

    def save_master_item(self, item: MasterItem) -> MasterItem:
        _require_text(item.name, "Item name")
        if not item.variants:
            raise ValidationError("An item needs at least one brand variant")
        self.repo.save(item)
        return item

    def create_master_item(self, name: str, brand: str, price, image: Optional[str] = None,
                           category: Optional[str] = None) -> MasterItem:
        name = _require_text(name, "Item name")
        brand = _require_text(brand, "Brand")
        price = _require_price(price)
        now = now_ms()
        variant = BrandVariant(brand=brand, default_price=price, image=image, created_at=now)
        item = MasterItem(id=new_id(), name=name, variants=[variant], category=category, created_at=now)
        self.repo.save(item)
        logger.info("Created master item %s (%s)", item.name, item.id)
        return item

    def update_master_item(self, item: MasterItem, name: str, category: Optional[str] = None) -> MasterItem:
        item.name = _require_text(name, "Item name")
        item.category = category
        item.touch()
        self.repo.save(item)
        return item

    def search_master_items(self, query: str) -> List[MasterItem]:
        '''Case-insensitive match on the item name or any variant brand.'''
        items = self.list_master_items()
        q = (query or "").strip().lower()
        if not q:
            return items
        return [i for i in items
                if q in i.name.lower() or any(q in v.brand.lower() for v in i.variants)]

    def delete_master_item(self, item_id: str) -> None:
        """Delete every variant image, then the record itself.

        Lists that already snapshotted this item keep their copies.
        """
        item = self.get_master_item(item_id)
        for variant in item.variants:
            if variant.image:
                self.images.delete(variant.image)
        self.repo.delete(item.id)
        logger.info("Deleted master item %s (%s)", item.name, item.id)

    def find_or_create_variant(self, name: str, brand: str) -> Tuple[str, int]:
        """Local ``(master_item_id, variant_index)`` for a name and brand seen on another device.

        Matching ignores case and surrounding whitespace. A known name with an
        unknown brand gains a variant; an unknown name becomes a new item.
        Anything created this way starts at price 0.
        """
        name = _require_text(name, "Item name")
        brand = _require_text(brand, "Brand")
        wanted = brand.lower()
        for item in self.list_master_items():
            if item.name.strip().lower() != name.lower():
                continue
            for index, variant in enumerate(item.variants):
                if variant.brand.strip().lower() == wanted:
                    return item.id, index
            index = self.add_variant(item, brand, 0)
            logger.info("Added brand %s to %s for an imported list", brand, item.name)
            return item.id, index
        item = self.create_master_item(name, brand, 0)
        return item.id, 0

    # --- variants -------------------------------------------------------------
    @staticmethod
    def variant_of(item: MasterItem, variant_index: int) -> BrandVariant:
        if not isinstance(variant_index, int) or not 0 <= variant_index < len(item.variants):
            raise NotFound("variant", f"{item.id}_{variant_index}")
        return item.variants[variant_index]

    def get_variant(self, item_id: str, variant_index: int) -> BrandVariant:
        return self.variant_of(self.get_master_item(item_id), variant_index)

    def add_variant(self, item: MasterItem, brand: str, price, image: Optional[str] = None) -> int:
        '''Append a brand option seeded with one price record; returns its index.'''
        variant = BrandVariant(brand=_require_text(brand, "Brand"), default_price=_require_price(price),
                               image=image)
        item.variants.append(variant)
        item.touch()
        self.repo.save(item)
        return len(item.variants) - 1

    def update_variant(self, item: MasterItem, variant_index: int, brand: str, price,
                       image: Optional[str] = None) -> BrandVariant:
        variant = self.variant_of(item, variant_index)
        brand = _require_text(brand, "Brand")
        price = _require_price(price)
        if price != variant.default_price:
            # history first, then the sticker price; unchanged prices add nothing
            variant.append_price(PriceRecord(price))
            variant.default_price = price
        variant.brand = brand
        if image is not None:
            variant.image = image
        variant.updated_at = now_ms()
        item.touch()
        self.repo.save(item)
        return variant

    def delete_variant(self, item: MasterItem, variant_index: int) -> None:
        variant = self.variant_of(item, variant_index)
        if len(item.variants) <= 1:
            raise LastVariant("An item must keep at least one brand variant")
        if variant.image:
            self.images.delete(variant.image)
        del item.variants[variant_index]
        if item.default_variant_index == variant_index:
            item.default_variant_index = 0
        elif item.default_variant_index > variant_index:
            item.default_variant_index -= 1
        item.touch()
        self.repo.save(item)

    # --- price history ----------------------------------------------------------
    def record_price(self, master_item_id: str, variant_index: int, price, list_id: Optional[str] = None,
                     list_name: Optional[str] = None, receipt_image: Optional[str] = None) -> PriceRecord:
        '''Append an observed price; it also becomes the variant's current price.'''
        price = _require_price(price)
        item = self.get_master_item(master_item_id)
        variant = self.variant_of(item, variant_index)
        record = variant.append_price(PriceRecord(price, list_id=list_id, list_name=list_name,
                                                  receipt_image=receipt_image))
        variant.default_price = price
        item.touch()
        self.repo.save(item)
        logger.info("Price history updated for %s (%s): %.2f", item.name, variant.brand, price)
        publish_price_recorded(master_item_id, variant_index, price, bus=self.bus)
        return record

    def backfill_price_record(self, master_item_id: str, variant_index: int, session_id: str,
                              list_id: Optional[str], list_name: Optional[str],
                              receipt_image: Optional[str], since: int) -> Optional[PriceRecord]:
        """Attach a session to the newest un-attributed record dated at or after ``since``.

        Returns None when no such record exists (nothing is changed then).
        """
        item = self.get_master_item(master_item_id)
        variant = self.variant_of(item, variant_index)
        target = None
        for record in reversed(variant.price_history):
            if record.date < since:
                break
            if not record.is_backfilled:
                target = record
                break
        if target is None:
            return None
        target.session_id = session_id
        target.list_id = list_id
        target.list_name = list_name
        target.receipt_image = receipt_image
        self.repo.save(item)
        return target
