from typing import Optional

from fastapi import APIRouter, Depends, Query

from shoplist.api.dependencies import get_core
from shoplist.logic.catalog.categories import list_categories
from shoplist.logic.core import ShoppingCore
from shoplist.logic.reporting.price_stats import variant_price_stats
from shoplist.utilities.constants import PRODUCT
from shoplist.utilities.validators import MasterItemInput, MasterItemUpdateInput, VariantInput

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def _store_image(core: ShoppingCore, source: Optional[str]) -> Optional[str]:
    return core.images.save(source, PRODUCT) if source else None


@router.get("")
def list_master_items(core: ShoppingCore = Depends(get_core)):
    return [item.to_dict() for item in core.catalog.list_master_items()]


@router.post("", status_code=201)
def create_master_item(data: MasterItemInput, core: ShoppingCore = Depends(get_core)):
    image = _store_image(core, data.image_source)
    item = core.catalog.create_master_item(data.name, data.brand, data.price, image=image, category=data.category)
    return item.to_dict()


@router.get("/search")
def search_master_items(q: str = Query(default=""), core: ShoppingCore = Depends(get_core)):
    return [item.to_dict() for item in core.catalog.search_master_items(q)]


@router.get("/categories")
def categories():
    return list_categories()


@router.get("/{item_id}")
def get_master_item(item_id: str, core: ShoppingCore = Depends(get_core)):
    return core.catalog.get_master_item(item_id).to_dict()


@router.put("/{item_id}")
def update_master_item(item_id: str, data: MasterItemUpdateInput, core: ShoppingCore = Depends(get_core)):
    item = core.catalog.get_master_item(item_id)
    return core.catalog.update_master_item(item, data.name, category=data.category).to_dict()


@router.delete("/{item_id}")
def delete_master_item(item_id: str, core: ShoppingCore = Depends(get_core)):
    core.catalog.delete_master_item(item_id)
    return {"message": "Item deleted"}


@router.post("/{item_id}/variants", status_code=201)
def add_variant(item_id: str, data: VariantInput, core: ShoppingCore = Depends(get_core)):
    item = core.catalog.get_master_item(item_id)
    image = _store_image(core, data.image_source)
    index = core.catalog.add_variant(item, data.brand, data.price, image=image)
    return {"variant_index": index, "item": item.to_dict()}


@router.put("/{item_id}/variants/{variant_index}")
def update_variant(item_id: str, variant_index: int, data: VariantInput, core: ShoppingCore = Depends(get_core)):
    item = core.catalog.get_master_item(item_id)
    core.catalog.variant_of(item, variant_index)
    image = _store_image(core, data.image_source)
    variant = core.catalog.update_variant(item, variant_index, data.brand, data.price, image=image)
    return variant.to_dict()


@router.delete("/{item_id}/variants/{variant_index}")
def delete_variant(item_id: str, variant_index: int, core: ShoppingCore = Depends(get_core)):
    item = core.catalog.get_master_item(item_id)
    core.catalog.delete_variant(item, variant_index)
    return item.to_dict()


@router.get("/{item_id}/variants/{variant_index}/stats")
def variant_stats(item_id: str, variant_index: int, core: ShoppingCore = Depends(get_core)):
    stats = variant_price_stats(core.catalog.get_variant(item_id, variant_index))
    stats['last'] = stats['last'].to_dict() if stats['last'] is not None else None
    stats['history'] = [r.to_dict() for r in stats['history']]
    return stats
