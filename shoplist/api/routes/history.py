from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from shoplist.api.dependencies import get_core
from shoplist.logic.core import ShoppingCore
from shoplist.logic.reporting.session_summary import session_summary_text

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("")
def list_sessions(core: ShoppingCore = Depends(get_core)):
    return [s.to_dict() for s in core.archive.list_sessions()]


@router.get("/{session_id}")
def get_session(session_id: str, core: ShoppingCore = Depends(get_core)):
    return core.archive.get_session(session_id).to_dict()


@router.get("/{session_id}/summary", response_class=PlainTextResponse)
def session_summary(session_id: str, core: ShoppingCore = Depends(get_core)):
    return session_summary_text(core.archive.get_session(session_id))


@router.delete("/{session_id}")
def delete_session(session_id: str, core: ShoppingCore = Depends(get_core)):
    core.archive.delete_session(session_id)
    return {"message": "Session deleted"}
