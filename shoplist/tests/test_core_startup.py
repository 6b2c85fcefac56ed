import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from shoplist.events.Event_Bus import ORPHANS_SWEPT, EventBus
from shoplist.logic.core import ShoppingCore
from shoplist.utilities.constants import ACTIVE_SESSION_SLOT, MASTER_ITEMS, PRODUCT, RECEIPT


class TestCoreStartup(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.bus = EventBus()
        self.swept = []
        self.bus.subscribe(ORPHANS_SWEPT, lambda name, payload: self.swept.append(payload))
        self.core = ShoppingCore(Path(self.tmp) / "data", bus=self.bus, sweep_on_startup=True)
        self.core.initialize()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _image(self, purpose, name):
        src = Path(self.tmp) / name
        src.write_bytes(name.encode("utf-8"))
        return self.core.images.save(src, purpose)

    def test_initialize_creates_layout(self):
        root = Path(self.tmp) / "data"
        for sub in ("master_items", "shopping_lists", "sessions", "images/products", "images/receipts"):
            self.assertTrue((root / sub).is_dir(), sub)

    def test_startup_sweeps_only_orphans(self):
        variant_image = self._image(PRODUCT, "variant.jpg")
        list_image = self._image(PRODUCT, "list.jpg")
        active_receipt = self._image(RECEIPT, "active.jpg")
        orphan_product = self._image(PRODUCT, "orphan.jpg")
        orphan_receipt = self._image(RECEIPT, "orphan-receipt.jpg")

        self.core.catalog.create_master_item("Milk", "X", 1.0, image=variant_image)
        cheese = self.core.catalog.create_master_item("Cheese", "Y", 4.0, image=list_image)
        shopping_list = self.core.lists.create_list("Weekly")
        self.core.lists.add_catalog_item_to_list(shopping_list.id, cheese.id, 0)
        # the list snapshot outlives the catalog entry and still owns the file
        cheese.variants[0].image = None
        self.core.catalog.save_master_item(cheese)
        self.core.tracker.open_session(shopping_list.id)
        self.core.tracker.attach_receipt(active_receipt)

        self.core.startup()

        remaining = set(self.core.images.list_references())
        self.assertEqual(remaining, {variant_image, list_image, active_receipt})
        self.assertEqual(sorted(self.swept[0]["references"]), sorted([orphan_product, orphan_receipt]))

    def test_startup_migrates_legacy_items(self):
        self.core.store.save(MASTER_ITEMS, "old", {"id": "old", "name": "Tea", "brand": "Leaf",
                                                   "default_price": 2.0, "created_at": 10})
        self.core.startup()
        item = self.core.catalog.get_master_item("old")
        self.assertEqual(item.variants[0].brand, "Leaf")
        self.assertIn("variants", self.core.store.get(MASTER_ITEMS, "old"))

    def test_startup_without_sweep(self):
        orphan = self._image(PRODUCT, "orphan.jpg")
        core = ShoppingCore(Path(self.tmp) / "data", bus=self.bus, sweep_on_startup=False)
        core.startup()
        self.assertIn(orphan, core.images.list_references())

    def test_startup_survives_malformed_active_session(self):
        orphan = self._image(PRODUCT, "orphan.jpg")
        self.core.store.write_slot(ACTIVE_SESSION_SLOT, {"id": "s1", "list_id": "x", "checked": {"k_0": True}})
        self.core.startup()
        self.assertNotIn(orphan, self.core.images.list_references())

    def test_startup_survives_unexpected_maintenance_errors(self):
        orphan = self._image(PRODUCT, "orphan.jpg")
        with mock.patch("shoplist.logic.core.migrate_legacy_items", side_effect=RuntimeError("boom")), \
                mock.patch.object(self.core, "collect_image_references", side_effect=AttributeError("boom")):
            self.core.startup()
        self.assertIn(orphan, self.core.images.list_references())


if __name__ == "__main__":
    unittest.main()
