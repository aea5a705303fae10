from decimal import Decimal
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from shopledger.models.order import Order
from shopledger.models.product import Product, ProductVariant
from shopledger.models.purchase import Purchase
from shopledger.services.inventory_service import InventoryService


class DashboardService:
    def __init__(self, db: Session):
        self.db = db

    def stats(self) -> Dict:
        total_sales = self.db.query(func.coalesce(func.sum(Order.total_amount), 0)).scalar()
        active_orders = (
            self.db.query(func.count(Order.id)).filter(Order.status == "pending").scalar() or 0
        )

        # a product with variants counts once per variant, otherwise once
        variant_count = self.db.query(func.count(ProductVariant.id)).scalar() or 0
        variantless = (
            self.db.query(func.count(Product.id))
            .filter(~Product.variants.any())
            .scalar()
            or 0
        )

        customers = self.db.query(func.count(func.distinct(Order.customer_name))).scalar() or 0
        total_purchases = self.db.query(
            func.coalesce(func.sum(Purchase.total_amount), 0)
        ).scalar()

        return {
            "totalSales": Decimal(str(total_sales)),
            "activeOrders": active_orders,
            "totalProducts": variant_count + variantless,
            "totalCustomers": customers,
            "totalPurchases": Decimal(str(total_purchases)),
        }

    def low_stock(self, limit: int = 100) -> List[Dict]:
        return InventoryService(self.db).low_stock(limit=limit)
