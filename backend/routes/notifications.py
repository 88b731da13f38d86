from typing import Optional

from fastapi import APIRouter, Depends, Query

from database import get_db
from utils import ledger
from utils.security import Principal, get_principal

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    user_id: Optional[str] = Query(None, alias="userId"),
    principal: Principal = Depends(get_principal),
):
    return await ledger.list_notifications(get_db(), principal, user_id)


@router.patch("/read-all")
async def mark_all_read(
    user_id: Optional[str] = Query(None, alias="userId"),
    principal: Principal = Depends(get_principal),
):
    count = await ledger.mark_all_read(get_db(), principal, user_id)
    return {"count": count}


@router.patch("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    principal: Principal = Depends(get_principal),
):
    return await ledger.mark_read(get_db(), principal, notification_id)
