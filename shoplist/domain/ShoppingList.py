"""ShoppingList aggregate: a named, user-ordered list of catalog snapshots."""
from typing import List, Optional

from shoplist.utilities.clock import now_ms


def item_key(master_item_id: str, variant_index: int) -> str:
    '''Identity of a catalog variant inside a list or a session.'''
    return f"{master_item_id}_{variant_index}"


class ShoppingListItem:
    """Frozen copy of a catalog variant taken when it was added to a list.

    Later catalog edits never reach an item that is already on a list.
    """

    def __init__(self, master_item_id: str, variant_index: int = 0, name: str = "", brand: str = "",
                 last_price: float = 0.0, average_price: float = 0.0, price_at_add: float = 0.0,
                 image: Optional[str] = None, category: Optional[str] = None, added_at: Optional[int] = None):
        self.master_item_id = master_item_id
        self.variant_index = int(variant_index)
        self.name = name
        self.brand = brand
        self.last_price = float(last_price)
        self.average_price = float(average_price)
        self.price_at_add = float(price_at_add)
        self.image = image
        self.category = category
        self.added_at = added_at if added_at is not None else now_ms()

    @property
    def key(self) -> str:
        return item_key(self.master_item_id, self.variant_index)

    def __str__(self) -> str:
        return f"{self.name} ({self.brand}) - {self.last_price:.2f}"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        if not isinstance(data, dict) or not data.get('master_item_id'):
            raise ValueError(f"Invalid list item: {data!r}")
        allowed = {"master_item_id", "variant_index", "name", "brand", "last_price", "average_price",
                   "price_at_add", "image", "category", "added_at"}
        filtered = {k: v for k, v in data.items() if k in allowed}
        return ShoppingListItem(**filtered)

    def to_dict(self):
        return {
            "master_item_id": self.master_item_id,
            "variant_index": self.variant_index,
            "name": self.name,
            "brand": self.brand,
            "last_price": self.last_price,
            "average_price": self.average_price,
            "price_at_add": self.price_at_add,
            "image": self.image,
            "category": self.category,
            "added_at": self.added_at,
        }


class ShoppingList:
    def __init__(self, id: str, name: str = "", items: Optional[List[ShoppingListItem]] = None,
                 created_at: Optional[int] = None, updated_at: Optional[int] = None):
        self.id = id
        self.name = name
        self.items = items[:] if items else []
        self.created_at = created_at if created_at is not None else now_ms()
        self.updated_at = updated_at if updated_at is not None else self.created_at

    def find_item(self, master_item_id: str, variant_index: int) -> Optional[ShoppingListItem]:
        key = item_key(master_item_id, variant_index)
        for item in self.items:
            if item.key == key:
                return item
        return None

    def contains(self, master_item_id: str, variant_index: int) -> bool:
        return self.find_item(master_item_id, variant_index) is not None

    def touch(self):
        self.updated_at = now_ms()

    def __str__(self) -> str:
        items_str = ",\n\t".join(str(item) for item in self.items)
        return f"Shopping List {self.name}:\n\t{items_str}"

    def __repr__(self) -> str:
        return self.__str__()

    @staticmethod
    def from_dict(data):
        if not isinstance(data, dict) or not data.get('id'):
            raise ValueError(f"Invalid shopping list: {data!r}")
        return ShoppingList(
            id=str(data['id']),
            name=data.get('name', ''),
            items=[ShoppingListItem.from_dict(i) for i in data.get('items') or []],
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "items": [item.to_dict() for item in self.items],
        }
