import math
import re
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from shopledger.models.category import Category
from shopledger.models.product import Product

NUMERIC_SKU = re.compile(r"^\d+$")
SKU_WIDTH = 7


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def _base_query(self):
        return self.db.query(Product).options(
            selectinload(Product.variants),
            selectinload(Product.images),
            selectinload(Product.category),
        )

    def get(self, product_id: int) -> Optional[Product]:
        return self._base_query().filter(Product.id == product_id).first()

    def get_by_sku(self, sku: str) -> Optional[Product]:
        return self._base_query().filter(Product.sku == sku).first()

    def list(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Product], Dict]:
        """
        Page through products, newest first. `category` may be an id or a name;
        an unknown name yields an empty page rather than an error.
        """
        query = self.db.query(Product)
        if search:
            like = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like)))

        if category:
            if str(category).isdigit():
                query = query.filter(Product.category_id == int(category))
            else:
                cat = self.db.query(Category).filter(Category.name == category).first()
                if not cat:
                    return [], {"page": page, "limit": limit, "total": 0, "pages": 0}
                query = query.filter(Product.category_id == cat.id)

        total = query.with_entities(func.count(Product.id)).scalar() or 0
        items = (
            query.options(
                selectinload(Product.variants),
                selectinload(Product.images),
                selectinload(Product.category),
            )
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit) if limit else 0,
        }
        return items, pagination

    def next_sku(self) -> str:
        """Highest purely numeric SKU + 1, zero-padded; '0000001' when none exist."""
        skus = [row[0] for row in self.db.query(Product.sku).all()]
        numeric = [int(s) for s in skus if s and NUMERIC_SKU.match(s)]
        nxt = max(numeric) + 1 if numeric else 1
        return str(nxt).zfill(SKU_WIDTH)

    def add(self, product: Product) -> Product:
        self.db.add(product)
        self.db.flush()
        return product

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.flush()
