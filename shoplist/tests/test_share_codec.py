import json
import shutil
import tempfile
import unittest
from pathlib import Path

from shoplist.domain.ShoppingList import ShoppingList, ShoppingListItem
from shoplist.events.Event_Bus import EventBus
from shoplist.logic.core import ShoppingCore
from shoplist.logic.sharing.codec import export_list, import_list, safe_filename
from shoplist.utilities.errors import InvalidFormat, UnsupportedVersion
from shoplist.utilities.export_import import export_list_file, import_list_file


def _milk_run():
    return ShoppingList(id="l1", name="Milk Run", items=[
        ShoppingListItem(master_item_id="m1", variant_index=0, name="Milk", brand="X",
                         last_price=1.99, average_price=1.8, price_at_add=1.99, image="images/products/1.jpg"),
    ])


class TestShareCodec(unittest.TestCase):

    def test_export_format(self):
        payload = json.loads(export_list(_milk_run()).decode("utf-8"))
        self.assertEqual(payload["version"], 1)
        self.assertIn("exportedAt", payload)
        self.assertEqual(payload["list"], {
            "name": "Milk Run",
            "items": [{"name": "Milk", "brand": "X", "masterItemId": "m1", "variantIndex": 0}],
        })

    def test_round_trip_zeroes_prices(self):
        imported = import_list(export_list(_milk_run()))
        self.assertNotEqual(imported.id, "l1")
        self.assertEqual(imported.name, "Milk Run (imported)")
        self.assertEqual(len(imported.items), 1)
        item = imported.items[0]
        self.assertEqual((item.master_item_id, item.variant_index, item.name, item.brand), ("m1", 0, "Milk", "X"))
        self.assertEqual((item.last_price, item.price_at_add, item.average_price), (0, 0, 0))
        self.assertIsNone(item.image)

    def test_newer_version_rejected(self):
        data = json.dumps({"version": 99, "list": {"name": "Future", "items": []}})
        with self.assertRaises(UnsupportedVersion) as ctx:
            import_list(data.encode("utf-8"))
        self.assertEqual(ctx.exception.version, 99)

    def test_invalid_payloads(self):
        for raw in (b"not json", b"[]", b'{"list": {"name": "x", "items": []}}',
                    b'{"version": 1, "list": {"name": "x"}}',
                    b'{"version": 1, "list": {"name": "x", "items": {}}}',
                    b'{"version": 1, "list": {"name": "  ", "items": []}}',
                    b"\xff\xfe\x00"):
            with self.assertRaises(InvalidFormat, msg=raw):
                import_list(raw)

    def test_safe_filename(self):
        self.assertEqual(safe_filename("Milk Run"), "Milk_Run")
        self.assertEqual(safe_filename("Party! @ Home's"), "Party__Homes")
        self.assertEqual(safe_filename("???"), "Shopping_List")


class TestListFiles(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.core = ShoppingCore(Path(self.tmp) / "data", bus=EventBus(), sweep_on_startup=False)
        self.core.initialize()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_export_then_import_file(self):
        milk = self.core.catalog.create_master_item("Milk", "X", 1.99)
        shopping_list = self.core.lists.create_list("Milk Run")
        self.core.lists.add_catalog_item_to_list(shopping_list.id, milk.id, 0)

        path = export_list_file(self.core, shopping_list.id, Path(self.tmp) / "out")
        self.assertEqual(path.name, "Milk_Run.shoplist")

        imported = import_list_file(self.core, path)
        self.assertEqual(self.core.lists.get_list(imported.id).name, "Milk Run (imported)")
        self.assertEqual(len(self.core.lists.list_lists()), 2)

    def test_rejected_import_writes_nothing(self):
        wrong_ext = Path(self.tmp) / "list.json"
        wrong_ext.write_text("{}", encoding="utf-8")
        with self.assertRaises(InvalidFormat):
            import_list_file(self.core, wrong_ext)

        future = Path(self.tmp) / "future.shoplist"
        future.write_text(json.dumps({"version": 99, "list": {"name": "F", "items": []}}), encoding="utf-8")
        with self.assertRaises(UnsupportedVersion):
            import_list_file(self.core, future)

        self.assertEqual(self.core.lists.list_lists(), [])
        self.assertEqual(self.core.catalog.list_master_items(), [])

    def _foreign_file(self, *items):
        return json.dumps({"version": 1, "exportedAt": 1, "list": {"name": "Shared", "items": list(items)}})

    def test_import_relinks_to_local_catalog(self):
        milk = self.core.catalog.create_master_item("Milk", "X", 1.99)
        imported = self.core.import_list(self._foreign_file(
            {"name": "Milk", "brand": "x", "masterItemId": "abc", "variantIndex": 3},
            {"name": "Eggs", "brand": "Farm", "masterItemId": "def", "variantIndex": 0},
            {"name": "milk ", "brand": "Organic", "masterItemId": "abc", "variantIndex": 1},
            {"name": "MILK", "brand": "X", "masterItemId": "zzz", "variantIndex": 0},
        ))
        links = [(i.master_item_id, i.variant_index) for i in self.core.lists.get_list(imported.id).items]
        self.assertEqual(len(links), 3)
        self.assertEqual(links[0], (milk.id, 0))
        self.assertEqual(links[2], (milk.id, 1))

        organic = self.core.catalog.get_variant(milk.id, 1)
        self.assertEqual((organic.brand, organic.default_price), ("Organic", 0))
        eggs = self.core.catalog.get_master_item(links[1][0])
        self.assertEqual((eggs.name, eggs.variants[0].brand, eggs.variants[0].default_price), ("Eggs", "Farm", 0))
        self.assertEqual(len(self.core.catalog.list_master_items()), 2)
        self.assertEqual(self.core.catalog.get_variant(milk.id, 0).default_price, 1.99)

    def test_shopping_an_imported_list_builds_price_history(self):
        imported = self.core.import_list(self._foreign_file(
            {"name": "Eggs", "brand": "Farm", "masterItemId": "from-another-phone", "variantIndex": 0},
        ))
        item = imported.items[0]
        self.core.tracker.open_session(imported.id)
        self.core.tracker.edit_price(item.key, "2.50")
        self.assertTrue(self.core.tracker.toggle_check(item.key))

        history = self.core.catalog.get_variant(item.master_item_id, 0).price_history
        self.assertEqual([r.price for r in history], [0, 2.5])

        result = self.core.tracker.complete_session("2.50")
        self.assertEqual(result.backfill_failures, [])
        history = self.core.catalog.get_variant(item.master_item_id, 0).price_history
        self.assertEqual(history[-1].session_id, result.session.id)
        self.assertEqual(history[-1].list_id, imported.id)


if __name__ == "__main__":
    unittest.main()
