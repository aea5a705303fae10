from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from shopledger.db import Base
from shopledger.models.category import Category  # noqa: F401

# Four fractional digits at rest; callers render two. SQLite has no decimal
# storage type, so pysqlite keeps these as REAL and SQLAlchemy quantizes back
# to the column scale on read. Exact decimal storage needs a backend with a
# native NUMERIC such as PostgreSQL.
Money = Numeric(14, 4, asdecimal=True)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonnegative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(256), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    subcategory = Column(String(128), nullable=True)
    description = Column(Text, nullable=True)
    manufacturer = Column(String(128), nullable=True)
    unit = Column(String(32), nullable=False, default="piece")
    buy_price = Column(Money, nullable=False, default=Decimal("0"))
    sell_price = Column(Money, nullable=False, default=Decimal("0"))
    # denormalized sum of variant stock when variants exist
    stock_quantity = Column(Integer, nullable=False, default=0)
    reorder_point = Column(Integer, nullable=False, default=10)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category")
    variants = relationship(
        "ProductVariant",
        back_populates="product",
        order_by="ProductVariant.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )
    images = relationship(
        "ProductImage",
        back_populates="product",
        order_by="ProductImage.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
    )

    @property
    def has_variants(self) -> bool:
        return len(self.variants) > 0

    def variant(self, variant_id):
        """Look up an owned variant by id; None if it doesn't belong to this product."""
        return next((v for v in self.variants if v.id == variant_id), None)

    def __repr__(self):
        return f"<Product sku={self.sku} name={self.name}>"


class ProductVariant(Base):
    __tablename__ = "product_variants"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_variants_stock_nonnegative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(256), nullable=False)  # e.g. "Red - 128GB"
    sku = Column(String(64), nullable=False)
    buy_price = Column(Money, nullable=False, default=Decimal("0"))
    sell_price = Column(Money, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    attributes = Column(JSON, nullable=True)  # {"Color": "Red", "Storage": "128GB"}
    image_index = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)
    image_id = Column(String(128), nullable=False)  # id in the image store
    url = Column(String(512), nullable=False)
    thumbnail_url = Column(String(512), nullable=True)
    is_primary = Column(Boolean, default=False, nullable=False)

    product = relationship("Product", back_populates="images")
