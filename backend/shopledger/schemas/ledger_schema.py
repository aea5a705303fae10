from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class OrderLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    variant_id: Optional[int] = None
    variant_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    order_number: str
    customer_name: str
    company_name: Optional[str] = None
    order_date: datetime
    total_amount: Decimal
    status: str
    payment_status: str
    payment_method: str
    created_by: Optional[int] = None
    lines: List[OrderLineOut]


class PurchaseLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    variant_id: Optional[int] = None
    variant_name: Optional[str] = None
    quantity: int
    buy_price: Decimal
    total_cost: Decimal


class PurchaseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    supplier_name: str
    purchase_date: datetime
    notes: Optional[str] = None
    total_amount: Decimal
    created_by: Optional[int] = None
    lines: List[PurchaseLineOut]


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    username: str
    email: str
    full_name: str
    role: str
    permissions: List[str] = []
    is_active: bool
    last_login: Optional[datetime] = None
