from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from shopledger.api.security import current_actor
from shopledger.db import get_db
from shopledger.services.auth_service import Actor
from shopledger.services.dashboard_service import DashboardService

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", summary="Headline sales/purchase figures")
def stats(actor: Actor = Depends(current_actor), db: Session = Depends(get_db)):
    return {"success": True, "data": jsonable_encoder(DashboardService(db).stats())}


@router.get("/low-stock", summary="Products and variants at or below reorder point")
def low_stock(
    limit: int = Query(100, ge=1, le=1000),
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    return {"success": True, "data": DashboardService(db).low_stock(limit=limit)}
