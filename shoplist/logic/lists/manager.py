"""Shopping list manager.

List items are snapshots: adding a catalog variant copies its brand, prices,
image and category at that moment. Catalog edits afterwards never change an
item already on a list, and deleting a master item leaves list copies alone.
"""
import logging
from typing import List, Optional

from shoplist.domain.ShoppingList import ShoppingList, ShoppingListItem, item_key
from shoplist.infra.Collection_Store import CollectionStore, Repository
from shoplist.logic.catalog.manager import CatalogManager
from shoplist.utilities.clock import new_id
from shoplist.utilities.constants import SHOPPING_LISTS
from shoplist.utilities.errors import DuplicateItem, NotFound, ValidationError

logger = logging.getLogger(__name__)


class ListManager:
    def __init__(self, store: CollectionStore, catalog: CatalogManager):
        self.repo = Repository(store, SHOPPING_LISTS, ShoppingList.from_dict)
        self.catalog = catalog

    def list_lists(self) -> List[ShoppingList]:
        return sorted(self.repo.all(), key=lambda l: l.updated_at, reverse=True)

    def get_list(self, list_id: str) -> ShoppingList:
        return self.repo.require(list_id, "shopping list")

    def save_list(self, shopping_list: ShoppingList) -> ShoppingList:
        if not shopping_list.name or not shopping_list.name.strip():
            raise ValidationError("List name cannot be empty")
        self.repo.save(shopping_list)
        return shopping_list

    def create_list(self, name: str) -> ShoppingList:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Please enter a list name")
        shopping_list = ShoppingList(id=new_id(), name=name.strip())
        self.repo.save(shopping_list)
        logger.info("Created list %s (%s)", shopping_list.name, shopping_list.id)
        return shopping_list

    def rename_list(self, list_id: str, name: str) -> ShoppingList:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Please enter a list name")
        shopping_list = self.get_list(list_id)
        shopping_list.name = name.strip()
        shopping_list.touch()
        self.repo.save(shopping_list)
        return shopping_list

    def delete_list(self, list_id: str) -> None:
        # images are left to the orphan sweep: the catalog may share them
        self.get_list(list_id)
        self.repo.delete(list_id)
        logger.info("Deleted list %s", list_id)

    def add_catalog_item_to_list(self, list_id: str, master_item_id: str, variant_index: int = 0) -> ShoppingListItem:
        shopping_list = self.get_list(list_id)
        if shopping_list.contains(master_item_id, variant_index):
            raise DuplicateItem(f"Item {item_key(master_item_id, variant_index)} is already in this list")
        master = self.catalog.get_master_item(master_item_id)
        variant = self.catalog.variant_of(master, variant_index)
        snapshot = ShoppingListItem(
            master_item_id=master.id,
            variant_index=variant_index,
            name=master.name,
            brand=variant.brand,
            last_price=variant.default_price,
            average_price=variant.average_price,
            price_at_add=variant.default_price,
            image=variant.image,
            category=master.category,
        )
        shopping_list.items.append(snapshot)
        shopping_list.touch()
        self.repo.save(shopping_list)
        return snapshot

    def remove_item(self, list_id: str, master_item_id: str, variant_index: Optional[int] = None) -> int:
        '''Remove one variant, or every variant of the master item when no index is given.'''
        shopping_list = self.get_list(list_id)
        if variant_index is None:
            kept = [i for i in shopping_list.items if i.master_item_id != master_item_id]
        else:
            key = item_key(master_item_id, variant_index)
            kept = [i for i in shopping_list.items if i.key != key]
        removed = len(shopping_list.items) - len(kept)
        if not removed:
            raise NotFound("list item", master_item_id if variant_index is None else item_key(master_item_id, variant_index))
        shopping_list.items = kept
        shopping_list.touch()
        self.repo.save(shopping_list)
        return removed
