"""ActiveSession: the single in-progress shopping trip.

Holds a copy of the list items taken when the trip started, the user's inline
price edits and the checked-map keyed by ``masterItemId_variantIndex``.
Every key of the checked-map names an item of the snapshot.
"""
from typing import Dict, List, Optional

from shoplist.domain.ShoppingList import ShoppingListItem
from shoplist.utilities.clock import now_ms


class CheckedEntry:
    def __init__(self, price: float, checked_at: Optional[int] = None, checked: bool = True):
        self.checked = checked
        self.price = float(price)
        self.checked_at = checked_at if checked_at is not None else now_ms()

    @staticmethod
    def from_dict(data):
        if not isinstance(data, dict):
            raise ValueError(f"Invalid checked entry: {data!r}")
        return CheckedEntry(price=data.get('price', 0) or 0, checked_at=data.get('checked_at'),
                            checked=data.get('checked', True))

    def to_dict(self):
        return {"checked": self.checked, "price": self.price, "checked_at": self.checked_at}


class ActiveSession:
    def __init__(self, id: str, list_id: str, list_name: str = "", start_time: Optional[int] = None,
                 items: Optional[List[ShoppingListItem]] = None,
                 checked: Optional[Dict[str, CheckedEntry]] = None,
                 prices: Optional[Dict[str, float]] = None, receipt_image: Optional[str] = None):
        self.id = id
        self.list_id = list_id
        self.list_name = list_name
        self.start_time = start_time if start_time is not None else now_ms()
        self.items = items[:] if items else []
        keys = {i.key for i in self.items}
        self.checked = {k: v for k, v in (checked or {}).items() if k in keys}
        self.prices = {k: float(v) for k, v in (prices or {}).items() if k in keys}
        self.receipt_image = receipt_image

    def find_item(self, key: str) -> Optional[ShoppingListItem]:
        for item in self.items:
            if item.key == key:
                return item
        return None

    def is_checked(self, key: str) -> bool:
        entry = self.checked.get(key)
        return bool(entry and entry.checked)

    def price_for(self, item: ShoppingListItem) -> float:
        '''Edited price if the user typed one, else the catalog price copied onto the list.'''
        return self.prices.get(item.key, item.last_price)

    @property
    def checked_count(self) -> int:
        return sum(1 for e in self.checked.values() if e.checked)

    @property
    def item_count(self) -> int:
        return len(self.items)

    def __str__(self) -> str:
        return f"Active session {self.list_name}: {self.checked_count}/{self.item_count} checked"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        if not isinstance(data, dict) or not data.get('id') or not data.get('list_id'):
            raise ValueError(f"Invalid active session: {data!r}")
        items = data.get('items') or []
        checked = data.get('checked') or {}
        prices = data.get('prices') or {}
        if not isinstance(items, list) or not isinstance(checked, dict) or not isinstance(prices, dict):
            raise ValueError(f"Invalid active session layout: {data.get('id')!r}")
        return ActiveSession(
            id=str(data['id']),
            list_id=str(data['list_id']),
            list_name=data.get('list_name', ''),
            start_time=data.get('start_time'),
            items=[ShoppingListItem.from_dict(i) for i in items],
            checked={k: CheckedEntry.from_dict(v) for k, v in checked.items()},
            prices=prices,
            receipt_image=data.get('receipt_image'),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "list_id": self.list_id,
            "list_name": self.list_name,
            "start_time": self.start_time,
            "items": [i.to_dict() for i in self.items],
            "checked": {k: v.to_dict() for k, v in self.checked.items()},
            "prices": dict(self.prices),
            "receipt_image": self.receipt_image,
        }
