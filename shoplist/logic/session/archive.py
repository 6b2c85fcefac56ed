"""Session archive: turns the active session into an immutable ShoppingSession.

``finalize`` runs as a small saga:

  1. build the ShoppingSession (every list item, checked or not)
  2. write it                      <- durability boundary, errors propagate
  3. back-fill price history       <- per item, best effort, failures reported
  4. clear the active-session slot

Nothing is rolled back: a failed back-fill leaves the archived session in place.
"""
import logging
import math
from typing import List, NamedTuple, Optional

from shoplist.domain.ActiveSession import ActiveSession
from shoplist.domain.ShoppingList import ShoppingList
from shoplist.domain.ShoppingSession import SessionItem, ShoppingSession
from shoplist.events.Event_Bus import EventBus
from shoplist.events.event_helpers import publish_backfill_failed, publish_session_finalized
from shoplist.infra.Collection_Store import CollectionStore, Repository
from shoplist.infra.Image_Store import ImageStore
from shoplist.logic.catalog.manager import CatalogManager
from shoplist.utilities.clock import new_id, now_ms
from shoplist.utilities.constants import ACTIVE_SESSION_SLOT, SESSIONS
from shoplist.utilities.errors import ShoplistError, StorageError, ValidationError

logger = logging.getLogger(__name__)


class BackfillFailure(NamedTuple):
    key: str
    reason: str


class FinalizeResult(NamedTuple):
    session: ShoppingSession
    backfill_failures: List[BackfillFailure]
    active_cleared: bool


class SessionArchive:
    def __init__(self, store: CollectionStore, catalog: CatalogManager, images: ImageStore,
                 bus: Optional[EventBus] = None):
        self.store = store
        self.repo = Repository(store, SESSIONS, ShoppingSession.from_dict)
        self.catalog = catalog
        self.images = images
        self.bus = bus

    def list_sessions(self) -> List[ShoppingSession]:
        return sorted(self.repo.all(), key=lambda s: s.date, reverse=True)

    def get_session(self, session_id: str) -> ShoppingSession:
        return self.repo.require(session_id, "shopping session")

    def delete_session(self, session_id: str) -> None:
        session = self.get_session(session_id)
        if session.receipt_image:
            self.images.delete(session.receipt_image)
        self.repo.delete(session.id)
        logger.info("Deleted session %s", session.id)

    @staticmethod
    def build_session(active: ActiveSession, session_id: str, list_name: str, actual_paid: float,
                      receipt_image: Optional[str], shopping_list: Optional[ShoppingList] = None) -> ShoppingSession:
        """Snapshot items first, then whatever was added to the live list during the trip.

        Those late additions were never checked, so they are archived unchecked
        at their list price.
        """
        items = []
        calculated = 0.0
        for item in active.items:
            checked = active.is_checked(item.key)
            # unchecked items keep the price that would have applied
            price = active.checked[item.key].price if checked else active.price_for(item)
            if checked:
                calculated += price
            items.append(SessionItem(master_item_id=item.master_item_id, variant_index=item.variant_index,
                                     name=item.name, brand=item.brand, price=price, checked=checked))
        if shopping_list is not None:
            known = {i.key for i in active.items}
            for item in shopping_list.items:
                if item.key in known:
                    continue
                known.add(item.key)
                items.append(SessionItem(master_item_id=item.master_item_id, variant_index=item.variant_index,
                                         name=item.name, brand=item.brand, price=item.last_price, checked=False))
        return ShoppingSession(id=session_id, list_id=active.list_id, list_name=list_name, date=now_ms(),
                               total=actual_paid, calculated_total=calculated, items=items,
                               receipt_image=receipt_image)

    def finalize(self, active: ActiveSession, shopping_list: Optional[ShoppingList], actual_paid: float,
                 receipt_image: Optional[str] = None) -> FinalizeResult:
        try:
            paid = float(actual_paid)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid amount paid: {actual_paid!r}")
        if not math.isfinite(paid) or paid < 0:
            raise ValidationError(f"Invalid amount paid: {actual_paid!r}")
        receipt = receipt_image or active.receipt_image
        list_name = shopping_list.name if shopping_list is not None else active.list_name

        session = self.build_session(active, new_id(), list_name, paid, receipt, shopping_list)
        self.repo.save(session)
        logger.info("Archived session %s for list %s: paid %.2f, calculated %.2f",
                    session.id, list_name, session.total, session.calculated_total)

        failures: List[BackfillFailure] = []
        for item in session.checked_items:
            key = f"{item.master_item_id}_{item.variant_index}"
            try:
                record = self.catalog.backfill_price_record(
                    item.master_item_id, item.variant_index, session.id,
                    list_id=active.list_id, list_name=list_name, receipt_image=receipt,
                    since=active.start_time,
                )
                reason = None if record is not None else "no matching price record"
            except ShoplistError as e:
                reason = str(e)
            if reason is not None:
                logger.warning("Back-fill failed for %s in session %s: %s", key, session.id, reason)
                failures.append(BackfillFailure(key, reason))
                publish_backfill_failed(session.id, key, reason, bus=self.bus)

        cleared = True
        try:
            self.store.clear_slot(ACTIVE_SESSION_SLOT)
        except StorageError as e:
            cleared = False
            logger.error("Session %s archived but the active session could not be cleared: %s", session.id, e)

        publish_session_finalized(session, bus=self.bus)
        return FinalizeResult(session, failures, cleared)
