from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from shoplist.api.dependencies import get_core
from shoplist.logic.core import ShoppingCore
from shoplist.logic.sharing.codec import export_filename
from shoplist.utilities.validators import ListCreateInput, ListItemInput

router = APIRouter(prefix="/api/lists", tags=["lists"])


@router.get("")
def list_lists(core: ShoppingCore = Depends(get_core)):
    return [l.to_dict() for l in core.lists.list_lists()]


@router.post("", status_code=201)
def create_list(data: ListCreateInput, core: ShoppingCore = Depends(get_core)):
    return core.lists.create_list(data.name).to_dict()


# declared before /{list_id} so "import" is never taken for an id
@router.post("/import", status_code=201)
async def import_list(request: Request, core: ShoppingCore = Depends(get_core)):
    body = await request.body()
    return core.import_list(body).to_dict()


@router.get("/{list_id}")
def get_list(list_id: str, core: ShoppingCore = Depends(get_core)):
    return core.lists.get_list(list_id).to_dict()


@router.put("/{list_id}")
def rename_list(list_id: str, data: ListCreateInput, core: ShoppingCore = Depends(get_core)):
    return core.lists.rename_list(list_id, data.name).to_dict()


@router.delete("/{list_id}")
def delete_list(list_id: str, core: ShoppingCore = Depends(get_core)):
    core.lists.delete_list(list_id)
    return {"message": "List deleted"}


@router.post("/{list_id}/items", status_code=201)
def add_item(list_id: str, data: ListItemInput, core: ShoppingCore = Depends(get_core)):
    item = core.lists.add_catalog_item_to_list(list_id, data.master_item_id, data.variant_index)
    return item.to_dict()


@router.delete("/{list_id}/items/{master_item_id}")
def remove_item(list_id: str, master_item_id: str, variant_index: Optional[int] = Query(default=None),
                core: ShoppingCore = Depends(get_core)):
    removed = core.lists.remove_item(list_id, master_item_id, variant_index)
    return {"removed": removed}


@router.get("/{list_id}/export")
def export_list(list_id: str, core: ShoppingCore = Depends(get_core)):
    shopping_list = core.lists.get_list(list_id)
    return Response(
        content=core.export_list(shopping_list.id),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(shopping_list)}"'},
    )
