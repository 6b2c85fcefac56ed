"""Catalog entities: MasterItem owns an ordered list of BrandVariant, each with an append-only price history."""
from typing import List, Optional

from shoplist.utilities.clock import now_ms


class PriceRecord:
    def __init__(self, price: float = 0.0, date: Optional[int] = None, list_id: Optional[str] = None,
                 list_name: Optional[str] = None, session_id: Optional[str] = None,
                 receipt_image: Optional[str] = None):
        self.price = float(price)
        self.date = date if date is not None else now_ms()
        self.list_id = list_id
        self.list_name = list_name
        self.session_id = session_id
        self.receipt_image = receipt_image

    @property
    def is_backfilled(self) -> bool:
        return self.list_id is not None or self.session_id is not None

    def __str__(self) -> str:
        origin = f" ({self.list_name})" if self.list_name else ""
        return f"{self.price:.2f} @ {self.date}{origin}"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        '''Creates a PriceRecord from a dictionary. Ignores unknown keys.'''
        if not isinstance(data, dict) or 'price' not in data:
            raise ValueError(f"Invalid price record: {data!r}")
        return PriceRecord(
            price=data['price'],
            date=data.get('date'),
            list_id=data.get('list_id'),
            list_name=data.get('list_name'),
            session_id=data.get('session_id'),
            receipt_image=data.get('receipt_image'),
        )

    def to_dict(self):
        return {
            "price": self.price,
            "date": self.date,
            "list_id": self.list_id,
            "list_name": self.list_name,
            "session_id": self.session_id,
            "receipt_image": self.receipt_image,
        }


class BrandVariant:
    def __init__(self, brand: str = "", default_price: float = 0.0,
                 price_history: Optional[List[PriceRecord]] = None, image: Optional[str] = None,
                 created_at: Optional[int] = None, updated_at: Optional[int] = None):
        self.brand = brand
        self.default_price = float(default_price)
        self.price_history = price_history[:] if price_history else []
        self.image = image
        self.created_at = created_at if created_at is not None else now_ms()
        self.updated_at = updated_at if updated_at is not None else self.created_at
        if not self.price_history:
            # every variant starts with one observation at its sticker price
            self.price_history.append(PriceRecord(self.default_price, date=self.created_at))
        # derived from the history; a stored value is never trusted
        self.average_price = self._mean()

    def _mean(self) -> float:
        if not self.price_history:
            return 0.0
        return sum(r.price for r in self.price_history) / len(self.price_history)

    def append_price(self, record: PriceRecord) -> PriceRecord:
        '''Appends an observation and recomputes the running average.'''
        self.price_history.append(record)
        self.average_price = self._mean()
        self.updated_at = now_ms()
        return record

    def __str__(self) -> str:
        return f"{self.brand} - {self.default_price:.2f} (avg {self.average_price:.2f}, {len(self.price_history)} prices)"

    __repr__ = __str__

    @staticmethod
    def from_dict(data):
        if not isinstance(data, dict):
            raise ValueError(f"Invalid brand variant: {data!r}")
        history = [PriceRecord.from_dict(r) for r in (data.get('price_history') or [])]
        return BrandVariant(
            brand=data.get('brand', ''),
            default_price=data.get('default_price', 0) or 0,
            price_history=history,
            image=data.get('image'),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    def to_dict(self):
        return {
            "brand": self.brand,
            "default_price": self.default_price,
            "average_price": self.average_price,
            "price_history": [r.to_dict() for r in self.price_history],
            "image": self.image,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class MasterItem:
    def __init__(self, id: str, name: str = "", variants: Optional[List[BrandVariant]] = None,
                 default_variant_index: int = 0, category: Optional[str] = None,
                 created_at: Optional[int] = None, updated_at: Optional[int] = None):
        self.id = id
        self.name = name
        self.variants = variants[:] if variants else []
        self.default_variant_index = default_variant_index
        self.category = category
        self.created_at = created_at if created_at is not None else now_ms()
        self.updated_at = updated_at if updated_at is not None else self.created_at

    @property
    def default_variant(self) -> Optional[BrandVariant]:
        if not self.variants:
            return None
        idx = self.default_variant_index if 0 <= self.default_variant_index < len(self.variants) else 0
        return self.variants[idx]

    def touch(self):
        self.updated_at = now_ms()

    def __str__(self) -> str:
        brands = ", ".join(v.brand for v in self.variants)
        return f"{self.name} [{brands}]"

    __repr__ = __str__

    @staticmethod
    def is_legacy(data) -> bool:
        '''True for records written before brand variants existed (or without price history).'''
        if not isinstance(data, dict):
            return False
        if not isinstance(data.get('variants'), list):
            return True
        return any(isinstance(v, dict) and not v.get('price_history') for v in data['variants'])

    @staticmethod
    def from_dict(data):
        '''Creates a MasterItem from a dictionary, upgrading the flat legacy shape on the fly.'''
        if not isinstance(data, dict) or not data.get('id'):
            raise ValueError(f"Invalid master item: {data!r}")
        created_at = data.get('created_at')
        raw_variants = data.get('variants')
        if isinstance(raw_variants, list):
            variants = [BrandVariant.from_dict(v) for v in raw_variants]
        else:
            # flat record: brand/price/image lived on the item itself
            variants = [BrandVariant.from_dict({
                'brand': data.get('brand', ''),
                'default_price': data.get('default_price', 0),
                'price_history': data.get('price_history'),
                'image': data.get('image'),
                'created_at': created_at,
                'updated_at': data.get('updated_at'),
            })]
        return MasterItem(
            id=str(data['id']),
            name=data.get('name', ''),
            variants=variants,
            default_variant_index=int(data.get('default_variant_index', 0) or 0),
            category=data.get('category'),
            created_at=created_at,
            updated_at=data.get('updated_at'),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "variants": [v.to_dict() for v in self.variants],
            "default_variant_index": self.default_variant_index,
            "category": self.category,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
