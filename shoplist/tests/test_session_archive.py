import shutil
import tempfile
import unittest
from pathlib import Path

from shoplist.events.Event_Bus import BACKFILL_FAILED, SESSION_FINALIZED, EventBus
from shoplist.logic.core import ShoppingCore
from shoplist.logic.reporting.session_summary import session_summary_text
from shoplist.utilities.constants import RECEIPT
from shoplist.utilities.errors import NotFound, ValidationError


class TestSessionArchive(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.bus = EventBus()
        self.events = []
        self.bus.subscribe(SESSION_FINALIZED, lambda name, payload: self.events.append((name, payload)))
        self.bus.subscribe(BACKFILL_FAILED, lambda name, payload: self.events.append((name, payload)))
        self.core = ShoppingCore(Path(self.tmp) / "data", bus=self.bus, sweep_on_startup=False)
        self.core.initialize()
        self.a = self.core.catalog.create_master_item("A", "Brand", 2.0)
        self.b = self.core.catalog.create_master_item("B", "Brand", 3.0)
        self.trip = self.core.lists.create_list("Trip")
        self.core.lists.add_catalog_item_to_list(self.trip.id, self.a.id, 0)
        self.core.lists.add_catalog_item_to_list(self.trip.id, self.b.id, 0)
        self.a_key = f"{self.a.id}_0"

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _checked_a(self):
        self.core.tracker.open_session(self.trip.id)
        self.core.tracker.toggle_check(self.a_key)
        return self.core.tracker.get_active()

    def test_finalize_keeps_paid_and_calculated_totals(self):
        active = self._checked_a()
        result = self.core.archive.finalize(active, self.core.lists.get_list(self.trip.id), "1.50")
        session = result.session

        self.assertEqual(session.total, 1.5)
        self.assertEqual(session.calculated_total, 2.0)
        self.assertEqual(len(session.items), 2)
        item_b = [i for i in session.items if i.name == "B"][0]
        self.assertFalse(item_b.checked)
        self.assertEqual(item_b.price, 3.0)
        item_a = [i for i in session.items if i.name == "A"][0]
        self.assertTrue(item_a.checked)
        self.assertEqual(item_a.price, 2.0)

        self.assertEqual(result.backfill_failures, [])
        self.assertTrue(result.active_cleared)
        self.assertIsNone(self.core.tracker.get_active())
        self.assertEqual(self.core.archive.get_session(session.id).total, 1.5)

    def test_finalize_backfills_price_history(self):
        active = self._checked_a()
        receipt_src = Path(self.tmp) / "r.jpg"
        receipt_src.write_bytes(b"receipt")
        receipt = self.core.images.save(receipt_src, RECEIPT)

        session = self.core.archive.finalize(active, self.core.lists.get_list(self.trip.id), 2.0, receipt).session

        history = self.core.catalog.get_variant(self.a.id, 0).price_history
        self.assertEqual(history[-1].session_id, session.id)
        self.assertEqual(history[-1].list_id, self.trip.id)
        self.assertEqual(history[-1].list_name, "Trip")
        self.assertEqual(history[-1].receipt_image, receipt)
        self.assertIsNone(history[0].session_id)
        # unchecked items gain no history
        self.assertEqual(len(self.core.catalog.get_variant(self.b.id, 0).price_history), 1)
        self.assertEqual([e[0] for e in self.events], [SESSION_FINALIZED])

    def test_backfill_failure_is_reported_not_fatal(self):
        active = self._checked_a()
        self.core.catalog.delete_master_item(self.a.id)

        result = self.core.archive.finalize(active, None, 2.0)

        self.assertEqual([f.key for f in result.backfill_failures], [self.a_key])
        self.assertEqual(self.core.archive.get_session(result.session.id).list_name, "Trip")
        self.assertIsNone(self.core.tracker.get_active())
        self.assertIn(BACKFILL_FAILED, [e[0] for e in self.events])

    def test_invalid_paid_amount_writes_nothing(self):
        active = self._checked_a()
        with self.assertRaises(ValidationError):
            self.core.archive.finalize(active, None, -1)
        self.assertEqual(self.core.archive.list_sessions(), [])
        self.assertIsNotNone(self.core.tracker.get_active())

    def test_non_finite_paid_amount_writes_nothing(self):
        active = self._checked_a()
        for paid in (float("inf"), "inf", float("nan")):
            with self.assertRaises(ValidationError, msg=paid):
                self.core.archive.finalize(active, None, paid)
        self.assertEqual(self.core.archive.list_sessions(), [])
        self.assertIsNotNone(self.core.tracker.get_active())

    def test_items_added_during_trip_are_archived_unchecked(self):
        active = self._checked_a()
        c = self.core.catalog.create_master_item("C", "Brand", 4.0)
        self.core.lists.add_catalog_item_to_list(self.trip.id, c.id, 0)

        session = self.core.archive.finalize(active, self.core.lists.get_list(self.trip.id), 2.0).session

        self.assertEqual([i.name for i in session.items], ["A", "B", "C"])
        late = session.items[-1]
        self.assertFalse(late.checked)
        self.assertEqual(late.price, 4.0)
        self.assertEqual(session.calculated_total, 2.0)

    def test_delete_session_removes_receipt(self):
        self._checked_a()
        receipt_src = Path(self.tmp) / "r.jpg"
        receipt_src.write_bytes(b"receipt")
        receipt = self.core.images.save(receipt_src, RECEIPT)
        self.core.tracker.attach_receipt(receipt)
        session = self.core.tracker.complete_session("2").session

        self.core.archive.delete_session(session.id)

        self.assertFalse(self.core.images.path_for(receipt).exists())
        with self.assertRaises(NotFound):
            self.core.archive.get_session(session.id)

    def test_sessions_listed_newest_first(self):
        first = self.core.archive.finalize(self._checked_a(), None, 1.0).session
        second = self.core.archive.finalize(self._checked_a(), None, 2.0).session
        second.date = first.date + 1000
        self.core.archive.repo.save(second)
        self.assertEqual([s.id for s in self.core.archive.list_sessions()], [second.id, first.id])

    def test_summary_text(self):
        session = self.core.archive.finalize(self._checked_a(), None, 1.5).session
        text = session_summary_text(session)
        self.assertTrue(text.startswith("Shopping Session: Trip"))
        self.assertIn("Total: $1.50", text)
        self.assertIn("• A: $2.00", text)
        self.assertIn("• B: $3.00", text)


if __name__ == "__main__":
    unittest.main()
