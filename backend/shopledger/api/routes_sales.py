from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopledger.api.errors import http_error
from shopledger.api.security import current_actor
from shopledger.db import get_db
from shopledger.schemas.ledger_schema import OrderOut
from shopledger.services.auth_service import Actor
from shopledger.services.inventory_service import (
    MAX_LINE_QUANTITY,
    MAX_ROW_ID,
    InventoryException,
)
from shopledger.services.order_service import OrderNotFound, OrderService
from shopledger.utils.log import get_logger

log = get_logger("orders")

router = APIRouter(prefix="/api/sales", tags=["sales"])


class SaleItemIn(BaseModel):
    product_id: int = Field(..., gt=0, le=MAX_ROW_ID)
    variant_id: Optional[int] = Field(None, gt=0, le=MAX_ROW_ID)
    product_name: Optional[str] = None
    quantity: int = Field(..., gt=0, le=MAX_LINE_QUANTITY)
    # defaults to the product/variant sell price
    unit_price: Optional[Decimal] = Field(None, ge=0)


class CreateSaleIn(BaseModel):
    customer_name: str
    company_name: Optional[str] = None
    order_date: Optional[datetime] = None
    items: List[SaleItemIn]
    total_amount: Optional[Decimal] = None
    status: str = "completed"
    payment_status: str = "paid"
    payment_method: str = "cash"


@router.post("", status_code=201, summary="Create sale (decrements stock)")
def create_sale(
    payload: CreateSaleIn,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    svc = OrderService(db)
    try:
        order = svc.create_sale(
            actor,
            customer_name=payload.customer_name,
            items=[it.model_dump() for it in payload.items],
            company_name=payload.company_name,
            order_date=payload.order_date,
            status=payload.status,
            payment_status=payload.payment_status,
            payment_method=payload.payment_method,
            total_amount=payload.total_amount,
        )
    except InventoryException as e:
        raise http_error(e)
    except IntegrityError as e:
        if "order_number" in str(e.orig):
            log.warning("order number collision; caller should retry")
            message = "Order number already taken, please retry"
        else:
            log.error("stock constraint rejected sale: %s", e.orig)
            message = "Stock changed while the sale was being recorded, please retry"
        raise HTTPException(status_code=409, detail={"message": message})
    return {"success": True, "data": OrderOut.model_validate(order).model_dump(mode="json")}


@router.get("", summary="List sales, newest first")
def list_sales(
    limit: int = 200,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    orders = OrderService(db).list_orders(limit=limit)
    return {
        "success": True,
        "data": [OrderOut.model_validate(o).model_dump(mode="json") for o in orders],
    }


@router.get("/{order_id}", summary="Get one sale with its lines")
def get_sale(
    order_id: int,
    actor: Actor = Depends(current_actor),
    db: Session = Depends(get_db),
):
    try:
        order = OrderService(db).get_order(order_id)
    except OrderNotFound as e:
        raise http_error(e)
    return {"success": True, "data": OrderOut.model_validate(order).model_dump(mode="json")}
