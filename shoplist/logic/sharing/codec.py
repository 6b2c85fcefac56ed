"""Portable ``.shoplist`` files.

Wire format (camelCase keys, UTF-8 JSON)::

    {"version": 1, "exportedAt": <ms>,
     "list": {"name": "...", "items": [{"name", "brand", "masterItemId", "variantIndex"}]}}

Prices, price history and images never leave the device. An imported list is
a new list: fresh id, name suffixed " (imported)", every price zeroed.
"""
import json
import logging
import re

from pydantic import ValidationError as SchemaError

from shoplist.domain.ShoppingList import ShoppingList, ShoppingListItem
from shoplist.utilities.clock import new_id, now_ms
from shoplist.utilities.constants import (
    DEFAULT_EXPORT_NAME, IMPORTED_SUFFIX, SHOPLIST_EXTENSION, SHOPLIST_FORMAT_VERSION
)
from shoplist.utilities.errors import InvalidFormat, UnsupportedVersion
from shoplist.utilities.validators import ShoplistFile

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r'[^A-Za-z0-9 _-]')


def safe_filename(name: str) -> str:
    '''Base file name for an exported list (no extension).'''
    cleaned = _UNSAFE.sub('', name or '').strip().replace(' ', '_')
    return cleaned or DEFAULT_EXPORT_NAME


def export_filename(shopping_list: ShoppingList) -> str:
    return safe_filename(shopping_list.name) + SHOPLIST_EXTENSION


def export_list(shopping_list: ShoppingList) -> bytes:
    payload = {
        "version": SHOPLIST_FORMAT_VERSION,
        "exportedAt": now_ms(),
        "list": {
            "name": shopping_list.name,
            "items": [
                {
                    "name": item.name,
                    "brand": item.brand,
                    "masterItemId": item.master_item_id,
                    "variantIndex": item.variant_index,
                }
                for item in shopping_list.items
            ],
        },
    }
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


def import_list(data) -> ShoppingList:
    """Decode a ``.shoplist`` payload into a brand-new, unsaved ShoppingList.

    Raises InvalidFormat for anything that is not a well-formed file and
    UnsupportedVersion for files written by a newer format.
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise InvalidFormat(f"List file is not UTF-8 text: {e}") from e
    try:
        raw = json.loads(data)
    except (TypeError, json.JSONDecodeError) as e:
        raise InvalidFormat(f"List file is not valid JSON: {e}") from e
    if not isinstance(raw, dict):
        raise InvalidFormat("List file must contain a JSON object")

    try:
        parsed = ShoplistFile.model_validate(raw)
    except SchemaError as e:
        raise InvalidFormat(f"Invalid list file: {e.error_count()} problem(s), first: {e.errors()[0]['msg']}") from e
    if parsed.version > SHOPLIST_FORMAT_VERSION:
        raise UnsupportedVersion(parsed.version, SHOPLIST_FORMAT_VERSION)

    now = now_ms()
    items = []
    seen = set()
    for entry in parsed.list.items:
        item = ShoppingListItem(
            master_item_id=entry.master_item_id,
            variant_index=entry.variant_index,
            name=entry.name,
            brand=entry.brand,
            last_price=0.0,
            average_price=0.0,
            price_at_add=0.0,
            image=None,
            added_at=now,
        )
        if item.key in seen:
            continue
        seen.add(item.key)
        items.append(item)

    shopping_list = ShoppingList(id=new_id(), name=parsed.list.name.strip() + IMPORTED_SUFFIX, items=items,
                                 created_at=now)
    logger.info("Decoded list file %s with %d item(s)", shopping_list.name, len(items))
    return shopping_list
