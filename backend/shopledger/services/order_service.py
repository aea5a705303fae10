import os
import tempfile
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from filelock import FileLock, Timeout
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from shopledger.config import settings
from shopledger.models.order import (
    ORDER_STATUSES,
    PAYMENT_METHODS,
    PAYMENT_STATUSES,
    Order,
    OrderLine,
)
from shopledger.services.auth_service import Actor
from shopledger.services.inventory_service import (
    InvalidLineItems,
    InventoryService,
    StockDirection,
    StockLockTimeout,
    normalize_lines,
)
from shopledger.utils.log import get_logger
from shopledger.utils.transactions import smart_transaction

log = get_logger("orders")

ORDER_PREFIX = "ORD"


class OrderNotFound(Exception):
    status_code = 404


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return Decimal(quantity) * unit_price


def sum_totals(totals) -> Decimal:
    return sum(totals, Decimal("0"))


def next_order_number(db: Session, now: Optional[datetime] = None) -> str:
    """
    ORD-<YYYYMMDD>-<NNNN> where NNNN is one more than the number of orders
    already numbered for that (server-local) day.

    Two creators computing the count at the same time get the same number; the
    unique index on orders.order_number rejects the second insert. Sales on one
    host are serialized by OrderService's day lock.
    """
    now = now or datetime.now()
    prefix = f"{ORDER_PREFIX}-{now.strftime('%Y%m%d')}-"
    count = (
        db.query(func.count(Order.id))
        .filter(Order.order_number.like(f"{prefix}%"))
        .scalar()
        or 0
    )
    return f"{prefix}{count + 1:04d}"


class OrderService:
    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)

    def _day_lock(self, now: datetime) -> FileLock:
        locks_dir = os.path.join(tempfile.gettempdir(), "shopledger_locks")
        os.makedirs(locks_dir, exist_ok=True)
        return FileLock(os.path.join(locks_dir, f"sales_{now.strftime('%Y%m%d')}.lock"))

    def create_sale(
        self,
        actor: Optional[Actor],
        customer_name: str,
        items: List[Dict],
        company_name: Optional[str] = None,
        order_date: Optional[datetime] = None,
        status: str = "completed",
        payment_status: str = "paid",
        payment_method: str = "cash",
        total_amount: Optional[Decimal] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Create a sale and decrement stock for each line.

        items: list of {product_id, variant_id?, quantity, unit_price?, product_name?}
        When unit_price is omitted the resolved product/variant sell price is used.
        The availability check, order insert and stock decrements share one
        transaction; nothing is persisted if any line fails.
        """
        if not customer_name or not customer_name.strip():
            raise InvalidLineItems("Customer name is required")
        if status not in ORDER_STATUSES:
            raise InvalidLineItems(f"Invalid order status: {status}")
        if payment_status not in PAYMENT_STATUSES:
            raise InvalidLineItems(f"Invalid payment status: {payment_status}")
        if payment_method not in PAYMENT_METHODS:
            raise InvalidLineItems(f"Invalid payment method: {payment_method}")
        lines = normalize_lines(items, price_field="unit_price")

        now = now or datetime.now()
        lock = self._day_lock(now)
        try:
            with lock.acquire(timeout=settings.SALES_LOCK_TIMEOUT_SECONDS):
                with smart_transaction(self.db):
                    resolved = self.inventory.check_availability(lines)

                    order = Order(
                        order_number=next_order_number(self.db, now),
                        customer_name=customer_name.strip(),
                        company_name=company_name,
                        status=status,
                        payment_status=payment_status,
                        payment_method=payment_method,
                        created_by=actor.user_id if actor else None,
                    )
                    if order_date is not None:
                        order.order_date = order_date

                    for r in resolved:
                        unit_price = r.line.price if r.line.price is not None else r.target.sell_price
                        order.lines.append(
                            OrderLine(
                                product_id=r.product.id,
                                product_name=r.product.name,
                                variant_id=r.variant.id if r.variant is not None else None,
                                variant_name=r.variant_name,
                                quantity=r.line.quantity,
                                unit_price=unit_price,
                                total_price=line_total(r.line.quantity, unit_price),
                            )
                        )
                    order.total_amount = sum_totals(ol.total_price for ol in order.lines)
                    if total_amount is not None and Decimal(total_amount) != order.total_amount:
                        log.warning(
                            "submitted total %s differs from computed %s; storing computed",
                            total_amount, order.total_amount,
                        )

                    self.db.add(order)
                    self.db.flush()
                    self.inventory.apply(resolved, StockDirection.DECREMENT)
        except Timeout:
            raise StockLockTimeout("Could not acquire sales lock; try again")

        self.db.refresh(order)
        log.info(
            "created order %s lines=%s total=%s",
            order.order_number, len(order.lines), order.total_amount,
        )
        return order

    def list_orders(self, limit: int = 200) -> List[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .order_by(Order.order_date.desc(), Order.id.desc())
            .limit(limit)
            .all()
        )

    def get_order(self, order_id: int) -> Order:
        order = (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .filter(Order.id == order_id)
            .first()
        )
        if not order:
            raise OrderNotFound("Order not found")
        return order
