from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from shopledger.db import Base
from shopledger.models.product import Money


class Purchase(Base):
    __tablename__ = "purchases"
    id = Column(Integer, primary_key=True, autoincrement=True)
    supplier_name = Column(String(256), nullable=False, default="General Supplier")
    purchase_date = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    notes = Column(Text, nullable=True)
    total_amount = Column(Money, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    lines = relationship(
        "PurchaseLine",
        back_populates="purchase",
        order_by="PurchaseLine.id",
        cascade="all, delete-orphan",
    )


class PurchaseLine(Base):
    __tablename__ = "purchase_lines"
    id = Column(Integer, primary_key=True, autoincrement=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id"), nullable=False, index=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # names are snapshotted so history survives catalog edits/deletes
    product_name = Column(String(256), nullable=True)
    variant_id = Column(Integer, nullable=True)
    variant_name = Column(String(256), nullable=True)
    quantity = Column(Integer, nullable=False)
    buy_price = Column(Money, nullable=False)
    total_cost = Column(Money, nullable=False)

    purchase = relationship("Purchase", back_populates="lines")
