from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from shopledger.db import Base
from shopledger.models.product import Money

ORDER_STATUSES = ("pending", "completed", "cancelled")
PAYMENT_STATUSES = ("paid", "due", "partial")
PAYMENT_METHODS = ("cash", "card", "bank_transfer", "mobile_banking", "other")


class Order(Base):
    __tablename__ = "orders"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    customer_name = Column(String(256), nullable=False)
    company_name = Column(String(256), nullable=True)
    order_date = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    total_amount = Column(Money, nullable=False)
    status = Column(String(32), nullable=False, default="completed")  # ORDER_STATUSES
    payment_status = Column(String(32), nullable=False, default="paid")  # PAYMENT_STATUSES
    payment_method = Column(String(32), nullable=False, default="cash")  # PAYMENT_METHODS
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    lines = relationship(
        "OrderLine",
        back_populates="order",
        order_by="OrderLine.id",
        cascade="all, delete-orphan",
    )


class OrderLine(Base):
    __tablename__ = "order_lines"
    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    product_name = Column(String(256), nullable=True)
    variant_id = Column(Integer, nullable=True)
    variant_name = Column(String(256), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Money, nullable=False)
    total_price = Column(Money, nullable=False)

    order = relationship("Order", back_populates="lines")
