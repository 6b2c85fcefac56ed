from fastapi import APIRouter, Depends

from shoplist.api.dependencies import get_core
from shoplist.logic.core import ShoppingCore
from shoplist.utilities.constants import RECEIPT
from shoplist.utilities.validators import CompleteSessionInput, ImageInput, OpenSessionInput, PriceEditInput

router = APIRouter(prefix="/api/session", tags=["session"])


def _view(core: ShoppingCore, session):
    totals = core.tracker.totals_of(session)
    data = session.to_dict()
    data.update({
        "checked_count": session.checked_count,
        "item_count": session.item_count,
        "estimated_total": totals.estimated,
        "actual_total": totals.actual,
    })
    return data


@router.get("")
def get_active_session(core: ShoppingCore = Depends(get_core)):
    session = core.tracker.get_active()
    return {"active": _view(core, session) if session is not None else None}


@router.post("/open")
def open_session(data: OpenSessionInput, core: ShoppingCore = Depends(get_core)):
    return _view(core, core.tracker.open_session(data.list_id, replace=data.replace))


@router.post("/items/{key}/toggle")
def toggle_item(key: str, core: ShoppingCore = Depends(get_core)):
    checked = core.tracker.toggle_check(key)
    return {"key": key, "checked": checked, "session": _view(core, core.tracker.get_active())}


@router.put("/items/{key}/price")
def edit_price(key: str, data: PriceEditInput, core: ShoppingCore = Depends(get_core)):
    price = core.tracker.edit_price(key, data.text)
    return {"key": key, "price": price, "session": _view(core, core.tracker.get_active())}


@router.post("/receipt")
def attach_receipt(data: ImageInput, core: ShoppingCore = Depends(get_core)):
    core.tracker.require_active()
    reference = core.images.save(data.source_path, RECEIPT)
    return _view(core, core.tracker.attach_receipt(reference))


@router.get("/totals")
def totals(core: ShoppingCore = Depends(get_core)):
    return core.tracker.compute_totals()._asdict()


@router.post("/complete")
def complete_session(data: CompleteSessionInput, core: ShoppingCore = Depends(get_core)):
    core.tracker.require_active()
    receipt = core.images.save(data.receipt_source, RECEIPT) if data.receipt_source else None
    result = core.tracker.complete_session(data.actual_paid, receipt_image=receipt)
    return {
        "session": result.session.to_dict(),
        "backfill_failures": [f._asdict() for f in result.backfill_failures],
        "active_cleared": result.active_cleared,
    }


@router.delete("")
def cancel_session(core: ShoppingCore = Depends(get_core)):
    return {"cancelled": core.tracker.cancel_session()}
