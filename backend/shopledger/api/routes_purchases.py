from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from shopledger.api.errors import http_error
from shopledger.api.security import current_actor
from shopledger.db import get_db
from shopledger.schemas.ledger_schema import PurchaseOut
from shopledger.services.auth_service import Actor
from shopledger.services.inventory_service import (
    MAX_LINE_QUANTITY,
    MAX_ROW_ID,
    InventoryException,
)
from shopledger.services.purchase_service import PurchaseNotFound, PurchaseService

router = APIRouter(prefix="/api/purchases", tags=["purchases"])


class PurchaseItemIn(BaseModel):
    product_id: int = Field(..., gt=0, le=MAX_ROW_ID)
    variant_id: Optional[int] = Field(None, gt=0, le=MAX_ROW_ID)
    product_name: Optional[str] = None
    quantity: int = Field(..., gt=0, le=MAX_LINE_QUANTITY)
    buy_price: Decimal = Field(..., ge=0)


class CreatePurchaseIn(BaseModel):
    supplier_name: Optional[str] = None
    purchase_date: Optional[datetime] = None
    notes: Optional[str] = None
    items: List[PurchaseItemIn]
    total_amount: Optional[Decimal] = None


@router.post("", status_code=201, summary="Record purchase (increments stock)")
def create_purchase(
    payload: CreatePurchaseIn,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    svc = PurchaseService(db)
    try:
        purchase = svc.create_purchase(
            actor,
            items=[it.model_dump() for it in payload.items],
            supplier_name=payload.supplier_name,
            purchase_date=payload.purchase_date,
            notes=payload.notes,
            total_amount=payload.total_amount,
        )
    except InventoryException as e:
        raise http_error(e)
    return {"success": True, "data": PurchaseOut.model_validate(purchase).model_dump(mode="json")}


@router.get("", summary="List purchases, newest first")
def list_purchases(
    limit: int = 200,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    purchases = PurchaseService(db).list_purchases(limit=limit)
    return {
        "success": True,
        "data": [PurchaseOut.model_validate(p).model_dump(mode="json") for p in purchases],
    }


@router.get("/{purchase_id}", summary="Get one purchase with its lines")
def get_purchase(
    purchase_id: int,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    try:
        purchase = PurchaseService(db).get_purchase(purchase_id)
    except PurchaseNotFound as e:
        raise http_error(e)
    return {"success": True, "data": PurchaseOut.model_validate(purchase).model_dump(mode="json")}
