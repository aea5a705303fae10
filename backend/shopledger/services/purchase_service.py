from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from shopledger.models.purchase import Purchase, PurchaseLine
from shopledger.services.auth_service import Actor
from shopledger.services.inventory_service import (
    InventoryService,
    StockDirection,
    normalize_lines,
)
from shopledger.services.order_service import line_total, sum_totals
from shopledger.utils.log import get_logger
from shopledger.utils.transactions import smart_transaction

log = get_logger("purchases")


class PurchaseNotFound(Exception):
    status_code = 404


class PurchaseService:
    def __init__(self, db: Session):
        self.db = db
        self.inventory = InventoryService(db)

    def create_purchase(
        self,
        actor: Optional[Actor],
        items: List[Dict],
        supplier_name: Optional[str] = None,
        purchase_date: Optional[datetime] = None,
        notes: Optional[str] = None,
        total_amount: Optional[Decimal] = None,
    ) -> Purchase:
        """
        Record a purchase and increment stock for each line.

        items: list of {product_id, variant_id?, quantity, buy_price, product_name?}
        Each line's buy_price becomes the target's new buy price.
        """
        lines = normalize_lines(items, price_field="buy_price", require_price=True)

        with smart_transaction(self.db):
            resolved = self.inventory.resolve_all(lines)

            purchase = Purchase(
                supplier_name=(supplier_name or "").strip() or "General Supplier",
                notes=notes,
                created_by=actor.user_id if actor else None,
            )
            if purchase_date is not None:
                purchase.purchase_date = purchase_date

            for r in resolved:
                purchase.lines.append(
                    PurchaseLine(
                        product_id=r.product.id,
                        product_name=r.product.name,
                        variant_id=r.variant.id if r.variant is not None else None,
                        variant_name=r.variant_name,
                        quantity=r.line.quantity,
                        buy_price=r.line.price,
                        total_cost=line_total(r.line.quantity, r.line.price),
                    )
                )
            purchase.total_amount = sum_totals(pl.total_cost for pl in purchase.lines)
            if total_amount is not None and Decimal(total_amount) != purchase.total_amount:
                log.warning(
                    "submitted total %s differs from computed %s; storing computed",
                    total_amount, purchase.total_amount,
                )

            self.db.add(purchase)
            self.db.flush()
            self.inventory.apply(resolved, StockDirection.INCREMENT)

        self.db.refresh(purchase)
        log.info(
            "created purchase id=%s supplier=%s total=%s",
            purchase.id, purchase.supplier_name, purchase.total_amount,
        )
        return purchase

    def list_purchases(self, limit: int = 200) -> List[Purchase]:
        return (
            self.db.query(Purchase)
            .options(selectinload(Purchase.lines))
            .order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
            .limit(limit)
            .all()
        )

    def get_purchase(self, purchase_id: int) -> Purchase:
        purchase = (
            self.db.query(Purchase)
            .options(selectinload(Purchase.lines))
            .filter(Purchase.id == purchase_id)
            .first()
        )
        if not purchase:
            raise PurchaseNotFound("Purchase not found")
        return purchase
