"""Active session tracker: the one in-progress shopping trip.

Every mutation rewrites the whole ActiveSession into the single
``active_session.json`` slot; there is never more than one on disk.
"""
import logging
import math
from typing import NamedTuple, Optional

from shoplist.domain.ActiveSession import ActiveSession, CheckedEntry
from shoplist.domain.ShoppingList import ShoppingListItem
from shoplist.infra.Collection_Store import CollectionStore
from shoplist.infra.Image_Store import ImageStore
from shoplist.logic.catalog.manager import CatalogManager
from shoplist.logic.lists.manager import ListManager
from shoplist.logic.session.archive import FinalizeResult, SessionArchive
from shoplist.utilities.clock import new_id
from shoplist.utilities.constants import ACTIVE_SESSION_SLOT
from shoplist.utilities.errors import NotFound, SessionConflict

logger = logging.getLogger(__name__)


class SessionTotals(NamedTuple):
    estimated: float
    actual: float


def parse_price(raw) -> Optional[float]:
    '''Non-negative decimal from user text ("1,50" is accepted); None if unusable.'''
    if raw is None:
        return None
    text = str(raw).strip().replace(',', '.')
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value) or value < 0:
        return None
    return value


class SessionTracker:
    def __init__(self, store: CollectionStore, catalog: CatalogManager, lists: ListManager,
                 images: ImageStore, archive: SessionArchive):
        self.store = store
        self.catalog = catalog
        self.lists = lists
        self.images = images
        self.archive = archive

    def get_active(self) -> Optional[ActiveSession]:
        return self.store.read_slot(ACTIVE_SESSION_SLOT, ActiveSession.from_dict)

    def require_active(self) -> ActiveSession:
        session = self.get_active()
        if session is None:
            raise NotFound("active session", ACTIVE_SESSION_SLOT)
        return session

    def _persist(self, session: ActiveSession) -> None:
        self.store.write_slot(ACTIVE_SESSION_SLOT, session.to_dict())

    @staticmethod
    def _require_item(session: ActiveSession, key: str) -> ShoppingListItem:
        item = session.find_item(key)
        if item is None:
            raise NotFound("session item", key)
        return item

    def open_session(self, list_id: str, replace: bool = False) -> ActiveSession:
        """Resume the trip for ``list_id`` or start a new one.

        A trip for another list is never overwritten silently: it raises
        SessionConflict unless ``replace`` is set, in which case it is cancelled.
        """
        shopping_list = self.lists.get_list(list_id)
        current = self.get_active()
        if current is not None:
            if current.list_id == list_id:
                return current
            if not replace:
                raise SessionConflict(
                    f"A shopping trip for '{current.list_name}' is still in progress",
                    active_list_id=current.list_id,
                )
            logger.warning("Replacing active session for list %s with list %s", current.list_id, list_id)
            self.cancel_session()

        items = [ShoppingListItem.from_dict(i.to_dict()) for i in shopping_list.items]
        session = ActiveSession(id=new_id(), list_id=shopping_list.id, list_name=shopping_list.name, items=items)
        self._persist(session)
        logger.info("Started shopping trip for %s (%d items)", shopping_list.name, session.item_count)
        return session

    def can_edit(self, key: str) -> bool:
        session = self.require_active()
        self._require_item(session, key)
        return not session.is_checked(key)

    def toggle_check(self, key: str) -> bool:
        '''Flip the checked state of one item; returns the new state.'''
        session = self.require_active()
        item = self._require_item(session, key)
        if session.is_checked(key):
            del session.checked[key]
            self._persist(session)
            return False

        price = session.price_for(item)
        try:
            # list id stays unset until the archive knows the real session
            self.catalog.record_price(item.master_item_id, item.variant_index, price)
        except NotFound as e:
            logger.warning("Price for %s not recorded, catalog entry is gone: %s", key, e)
        session.checked[key] = CheckedEntry(price)
        self._persist(session)
        return True

    def edit_price(self, key: str, raw_text) -> float:
        """Set the price used for ``key`` from what the user typed.

        Unparseable or negative input falls back to the item's last price.
        """
        session = self.require_active()
        item = self._require_item(session, key)
        price = parse_price(raw_text)
        if price is None:
            price = item.last_price
        session.prices[key] = price
        entry = session.checked.get(key)
        if entry is not None:
            entry.price = price
        self._persist(session)
        return price

    def attach_receipt(self, reference: str) -> ActiveSession:
        session = self.require_active()
        previous = session.receipt_image
        session.receipt_image = reference
        self._persist(session)
        if previous and previous != reference:
            self.images.delete(previous)
        return session

    @staticmethod
    def totals_of(session: ActiveSession) -> SessionTotals:
        estimated = sum(session.price_for(item) for item in session.items)
        actual = sum(entry.price for entry in session.checked.values() if entry.checked)
        return SessionTotals(estimated, actual)

    def compute_totals(self) -> SessionTotals:
        return self.totals_of(self.require_active())

    def cancel_session(self) -> bool:
        session = self.get_active()
        if session is None:
            # an unreadable slot is discarded too
            self.store.clear_slot(ACTIVE_SESSION_SLOT)
            return False
        if session.receipt_image:
            self.images.delete(session.receipt_image)
        self.store.clear_slot(ACTIVE_SESSION_SLOT)
        logger.info("Cancelled shopping trip for %s", session.list_name)
        return True

    def complete_session(self, actual_paid_text="", receipt_image: Optional[str] = None) -> FinalizeResult:
        session = self.require_active()
        paid = parse_price(actual_paid_text)
        if paid is None:
            paid = self.totals_of(session).actual
        try:
            shopping_list = self.lists.get_list(session.list_id)
        except NotFound:
            shopping_list = None
        result = self.archive.finalize(session, shopping_list, paid, receipt_image or session.receipt_image)
        if receipt_image and session.receipt_image and receipt_image != session.receipt_image:
            self.images.delete(session.receipt_image)
        return result
