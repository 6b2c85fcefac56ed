import shutil
import tempfile
import unittest
from pathlib import Path

from shoplist.domain.ShoppingList import ShoppingList
from shoplist.infra.Blob_Store import DirectoryBlobStore
from shoplist.infra.Collection_Store import CollectionStore, Repository
from shoplist.utilities.constants import ACTIVE_SESSION_SLOT, SHOPPING_LISTS
from shoplist.utilities.errors import NotFound, StorageError


class TestCollectionStore(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.blobs = DirectoryBlobStore(self.tmp)
        self.store = CollectionStore(self.blobs)

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_save_overwrites_same_id(self):
        self.store.save(SHOPPING_LISTS, "a", {"id": "a", "name": "First"})
        self.store.save(SHOPPING_LISTS, "a", {"id": "a", "name": "Second"})
        records = self.store.list(SHOPPING_LISTS)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["name"], "Second")

    def test_list_skips_malformed_records(self):
        self.store.save(SHOPPING_LISTS, "good", {"id": "good", "name": "Weekly"})
        self.blobs.write(f"{SHOPPING_LISTS}/broken.json", b"{not json")
        self.blobs.write(f"{SHOPPING_LISTS}/notes.txt", b"ignored")
        self.store.save(SHOPPING_LISTS, "noid", {"name": "missing id"})

        raw = self.store.list(SHOPPING_LISTS)
        self.assertEqual(len(raw), 2)

        parsed = self.store.list(SHOPPING_LISTS, ShoppingList.from_dict)
        self.assertEqual([l.id for l in parsed], ["good"])

    def test_list_of_missing_collection_is_empty(self):
        self.assertEqual(self.store.list("nothing_here"), [])

    def test_delete_missing_is_noop(self):
        self.assertFalse(self.store.delete(SHOPPING_LISTS, "ghost"))
        self.store.save(SHOPPING_LISTS, "x", {"id": "x"})
        self.assertTrue(self.store.delete(SHOPPING_LISTS, "x"))
        self.assertIsNone(self.store.get(SHOPPING_LISTS, "x"))

    def test_ids_cannot_escape_collection(self):
        with self.assertRaises(NotFound):
            self.store.get(SHOPPING_LISTS, "../secret")
        with self.assertRaises(NotFound):
            self.store.save(SHOPPING_LISTS, "../secret", {"id": "../secret"})

    def test_slot_roundtrip(self):
        self.assertIsNone(self.store.read_slot(ACTIVE_SESSION_SLOT))
        self.store.write_slot(ACTIVE_SESSION_SLOT, {"id": "s1", "list_id": "l1"})
        self.assertEqual(self.store.read_slot(ACTIVE_SESSION_SLOT)["id"], "s1")
        self.assertTrue(self.store.clear_slot(ACTIVE_SESSION_SLOT))
        self.assertFalse(self.store.clear_slot(ACTIVE_SESSION_SLOT))

    def test_repository_require(self):
        repo = Repository(self.store, SHOPPING_LISTS, ShoppingList.from_dict)
        repo.save(ShoppingList(id="l1", name="Groceries"))
        self.assertEqual(repo.require("l1", "shopping list").name, "Groceries")
        with self.assertRaises(NotFound):
            repo.require("l2", "shopping list")

    def test_write_leaves_no_temp_files(self):
        self.store.save(SHOPPING_LISTS, "a", {"id": "a"})
        names = [p.name for p in (Path(self.tmp) / SHOPPING_LISTS).iterdir()]
        self.assertEqual(names, ["a.json"])

    def test_blob_names_are_confined(self):
        with self.assertRaises(StorageError):
            self.blobs.write("/etc/passwd", b"")
        with self.assertRaises(StorageError):
            self.blobs.read("../outside")


if __name__ == "__main__":
    unittest.main()
