"""Archived shopping trip: immutable once written (only deletion is allowed)."""
from typing import List, Optional


class SessionItem:
    def __init__(self, master_item_id: str, variant_index: int = 0, name: str = "", brand: str = "",
                 price: float = 0.0, checked: bool = False):
        self.master_item_id = master_item_id
        self.variant_index = int(variant_index)
        self.name = name
        self.brand = brand
        self.price = float(price)
        self.checked = bool(checked)

    def __str__(self) -> str:
        mark = "x" if self.checked else " "
        return f"[{mark}] {self.name} ({self.brand}) - {self.price:.2f}"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        if not isinstance(data, dict) or not data.get('master_item_id'):
            raise ValueError(f"Invalid session item: {data!r}")
        return SessionItem(
            master_item_id=data['master_item_id'],
            variant_index=data.get('variant_index', 0),
            name=data.get('name', ''),
            brand=data.get('brand', ''),
            price=data.get('price', 0) or 0,
            checked=data.get('checked', False),
        )

    def to_dict(self):
        return {
            "master_item_id": self.master_item_id,
            "variant_index": self.variant_index,
            "name": self.name,
            "brand": self.brand,
            "price": self.price,
            "checked": self.checked,
        }


class ShoppingSession:
    def __init__(self, id: str, list_id: str, list_name: str, date: int, total: float,
                 calculated_total: float, items: Optional[List[SessionItem]] = None,
                 receipt_image: Optional[str] = None):
        self.id = id
        self.list_id = list_id
        self.list_name = list_name
        self.date = date
        self.total = float(total)
        self.calculated_total = float(calculated_total)
        self.items = tuple(items or ())
        self.receipt_image = receipt_image

    @property
    def checked_items(self) -> List[SessionItem]:
        return [i for i in self.items if i.checked]

    @property
    def skipped_items(self) -> List[SessionItem]:
        return [i for i in self.items if not i.checked]

    def __str__(self) -> str:
        return f"Session {self.list_name} @ {self.date}: {self.total:.2f} ({len(self.items)} items)"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        if not isinstance(data, dict) or not data.get('id'):
            raise ValueError(f"Invalid shopping session: {data!r}")
        return ShoppingSession(
            id=str(data['id']),
            list_id=data.get('list_id', ''),
            list_name=data.get('list_name', ''),
            date=data.get('date', 0),
            total=data.get('total', 0) or 0,
            calculated_total=data.get('calculated_total', 0) or 0,
            items=[SessionItem.from_dict(i) for i in data.get('items') or []],
            receipt_image=data.get('receipt_image'),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "list_id": self.list_id,
            "list_name": self.list_name,
            "date": self.date,
            "total": self.total,
            "calculated_total": self.calculated_total,
            "receipt_image": self.receipt_image,
            "items": [i.to_dict() for i in self.items],
        }
