from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from shopledger.adapters.mock_image_store import ImageStoreError, MockImageStore
from shopledger.config import settings
from shopledger.models.category import Category
from shopledger.models.product import Product, ProductImage, ProductVariant
from shopledger.repositories.category_repo import CategoryRepository
from shopledger.repositories.product_repo import ProductRepository
from shopledger.services.auth_service import Actor
from shopledger.utils.log import get_logger
from shopledger.utils.transactions import smart_transaction

log = get_logger("catalog")

PRODUCT_FIELDS = (
    "sku",
    "name",
    "subcategory",
    "description",
    "manufacturer",
    "unit",
    "buy_price",
    "sell_price",
    "reorder_point",
)
VARIANT_FIELDS = ("name", "sku", "buy_price", "sell_price", "attributes", "image_index")


class CatalogException(Exception):
    status_code = 400


class CatalogNotFound(CatalogException):
    status_code = 404


class CatalogConflict(CatalogException):
    status_code = 409


def _money(value, field: str) -> Decimal:
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise CatalogException(f"Invalid {field}: {value!r}")
    if not d.is_finite() or d < 0:
        raise CatalogException(f"{field} must not be negative")
    return d


def _stock(value) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise CatalogException("stock_quantity must be a non-negative integer")
    return value


def _replace_children(collection, items: List) -> None:
    """Make an owned ordering_list hold exactly `items`, in that order."""
    for child in list(collection):
        if child not in items:
            collection.remove(child)
    for child in items:
        if child not in collection:
            collection.append(child)
    collection.sort(key=items.index)
    collection.reorder()


def display_price(product: Product) -> Decimal:
    """Storefront price: first variant's sell price when variants exist."""
    if product.variants:
        return product.variants[0].sell_price
    return product.sell_price


def primary_image_url(product: Product) -> Optional[str]:
    if not product.images:
        return None
    primary = next((img for img in product.images if img.is_primary), product.images[0])
    return primary.url


class CatalogService:
    def __init__(self, db: Session, image_store: Optional[MockImageStore] = None):
        self.db = db
        self.products = ProductRepository(db)
        self.categories = CategoryRepository(db)
        self.image_store = image_store

    # --- products ---

    def get_product(self, product_id: int) -> Product:
        p = self.products.get(product_id)
        if not p:
            raise CatalogNotFound("Product not found")
        return p

    def list_products(self, search=None, category=None, page: int = 1, limit: int = 10):
        return self.products.list(search=search, category=category, page=page, limit=limit)

    def next_sku(self) -> str:
        return self.products.next_sku()

    def _resolve_category(self, ref) -> Category:
        cat = self.categories.resolve(ref)
        if not cat:
            raise CatalogException(f"Category '{ref}' not found")
        return cat

    def _apply_fields(self, product: Product, data: Dict) -> None:
        for field in PRODUCT_FIELDS:
            if field not in data or data[field] is None:
                continue
            value = data[field]
            if field in ("buy_price", "sell_price"):
                value = _money(value, field)
            elif field in ("sku", "name"):
                value = str(value).strip()
                if not value:
                    raise CatalogException(f"{field} must not be empty")
            setattr(product, field, value)

    def _build_variant(self, data: Dict) -> ProductVariant:
        if not data.get("name") or not data.get("sku"):
            raise CatalogException("Variant name and sku are required")
        if data.get("sell_price") is None:
            raise CatalogException("Variant sell_price is required")
        return ProductVariant(
            name=data["name"],
            sku=data["sku"],
            buy_price=_money(data.get("buy_price") or 0, "buy_price"),
            sell_price=_money(data["sell_price"], "sell_price"),
            stock_quantity=_stock(data.get("stock_quantity")),
            attributes=data.get("attributes") or {},
            image_index=data.get("image_index") or 0,
        )

    def _sync_variants(self, product: Product, variants: List[Dict]) -> None:
        """
        Reconcile submitted variants with the owned list: entries carrying an
        existing id are edited in place (stock untouched), entries without an id
        are added, owned variants missing from the submission are removed.
        """
        existing = {v.id: v for v in product.variants}
        kept = []
        for data in variants:
            vid = data.get("id")
            if vid is not None:
                v = existing.get(vid)
                if v is None:
                    raise CatalogNotFound(f"Variant not found for product: {product.name}")
                for field in VARIANT_FIELDS:
                    if data.get(field) is None:
                        continue
                    value = data[field]
                    if field in ("buy_price", "sell_price"):
                        value = _money(value, field)
                    setattr(v, field, value)
                kept.append(v)
            else:
                kept.append(self._build_variant(data))
        _replace_children(product.variants, kept)

    def _recompute_aggregate(self, product: Product) -> None:
        if product.variants:
            product.stock_quantity = sum(v.stock_quantity or 0 for v in product.variants)

    def _check_sku_free(self, sku: str, product_id: Optional[int] = None) -> None:
        other = self.products.get_by_sku(sku)
        if other and other.id != product_id:
            raise CatalogConflict(f"SKU already exists: {sku}")

    def create_product(self, actor: Optional[Actor], data: Dict) -> Product:
        if not data.get("sku") or not data.get("name"):
            raise CatalogException("sku and name are required")
        with smart_transaction(self.db):
            self._check_sku_free(str(data["sku"]).strip())
            product = Product(
                category=self._resolve_category(data.get("category")),
                stock_quantity=_stock(data.get("stock_quantity")),
                created_by=actor.user_id if actor else None,
            )
            self._apply_fields(product, data)
            for vdata in data.get("variants") or []:
                product.variants.append(self._build_variant(vdata))
            for idata in data.get("images") or []:
                product.images.append(ProductImage(**idata))
            self._recompute_aggregate(product)
            self.products.add(product)
        log.info("created product id=%s sku=%s", product.id, product.sku)
        return self.get_product(product.id)

    def update_product(self, product_id: int, data: Dict) -> Product:
        """
        Edit price/metadata. Stock only moves through purchases and sales, so
        stock_quantity on the product is not editable here. A new sell_price
        without a variants list is copied onto every variant.
        """
        with smart_transaction(self.db):
            product = self.get_product(product_id)
            if data.get("sku"):
                self._check_sku_free(str(data["sku"]).strip(), product.id)
            if data.get("category") is not None:
                product.category = self._resolve_category(data["category"])
            self._apply_fields(product, data)

            if data.get("variants") is not None:
                self._sync_variants(product, data["variants"])
            elif data.get("sell_price") is not None:
                for v in product.variants:
                    v.sell_price = product.sell_price

            if data.get("images") is not None:
                _replace_children(product.images, [ProductImage(**i) for i in data["images"]])
            self._recompute_aggregate(product)
            self.db.flush()
        return self.get_product(product_id)

    def delete_product(self, product_id: int) -> None:
        """
        Delete a product, then its images in the image store. Image-store
        failures are logged and skipped.
        """
        with smart_transaction(self.db):
            product = self.get_product(product_id)
            sku = product.sku
            image_ids = [img.image_id for img in product.images]
            self.products.delete(product)
        log.info("deleted product id=%s sku=%s", product_id, sku)

        if self.image_store is None:
            return
        for image_id in image_ids:
            try:
                self.image_store.delete(image_id)
            except ImageStoreError as e:
                log.error("Error deleting image %s from image store: %s", image_id, e)

    def attach_image(
        self, product_id: int, filename: str, content: bytes, folder: Optional[str] = None
    ) -> ProductImage:
        if self.image_store is None:
            raise CatalogException("Image store not configured")
        with smart_transaction(self.db):
            product = self.get_product(product_id)
            try:
                uploaded = self.image_store.upload(
                    content, filename, folder or settings.IMAGE_DEFAULT_FOLDER
                )
            except ImageStoreError as e:
                raise CatalogException(f"Image upload failed: {e}")
            image = ProductImage(
                image_id=uploaded["id"],
                url=uploaded["url"],
                thumbnail_url=uploaded.get("thumbnail_url"),
                is_primary=not product.images,
            )
            product.images.append(image)
            self.db.flush()
        self.db.refresh(image)
        return image

    # --- storefront ---

    def storefront(self, search=None, category=None, page: int = 1, limit: int = 24) -> Dict:
        items, pagination = self.products.list(
            search=search, category=category, page=page, limit=limit
        )
        return {
            "items": [
                {
                    "id": p.id,
                    "sku": p.sku,
                    "name": p.name,
                    "category": p.category.name if p.category else None,
                    "display_price": display_price(p),
                    "in_stock": (p.stock_quantity or 0) > 0,
                    "image": primary_image_url(p),
                    "variants": [
                        {
                            "id": v.id,
                            "name": v.name,
                            "sell_price": v.sell_price,
                            "in_stock": v.stock_quantity > 0,
                            "attributes": v.attributes or {},
                        }
                        for v in p.variants
                    ],
                }
                for p in items
            ],
            "pagination": pagination,
        }

    # --- categories ---

    def list_categories(self) -> List[Category]:
        return self.categories.list()

    def get_category(self, category_id: int) -> Category:
        cat = self.categories.get(category_id)
        if not cat:
            raise CatalogNotFound("Category not found")
        return cat

    def _set_parent(self, cat: Category, parent_ref) -> None:
        if parent_ref is None:
            cat.parent = None
            return
        parent = self._resolve_category(parent_ref)
        node = parent
        while node is not None:
            if cat.id is not None and node.id == cat.id:
                raise CatalogException("A category cannot be its own ancestor")
            node = node.parent
        cat.parent = parent

    def create_category(self, data: Dict) -> Category:
        name = (data.get("name") or "").strip()
        if not name:
            raise CatalogException("Please provide a category name")
        with smart_transaction(self.db):
            cat = Category(
                name=name,
                description=data.get("description"),
                is_active=data.get("is_active", True),
            )
            self._set_parent(cat, data.get("parent"))
            self.categories.add(cat)
        return self.get_category(cat.id)

    def update_category(self, category_id: int, data: Dict) -> Category:
        with smart_transaction(self.db):
            cat = self.get_category(category_id)
            if data.get("name") is not None:
                name = data["name"].strip()
                if not name:
                    raise CatalogException("Please provide a category name")
                cat.name = name
            if "description" in data:
                cat.description = data["description"]
            if data.get("is_active") is not None:
                cat.is_active = data["is_active"]
            if "parent" in data:
                self._set_parent(cat, data["parent"])
            self.db.flush()
        return self.get_category(category_id)

    def delete_category(self, category_id: int) -> None:
        with smart_transaction(self.db):
            cat = self.get_category(category_id)
            in_use = self.db.query(Product.id).filter(Product.category_id == cat.id).first()
            if in_use:
                raise CatalogConflict("Category still has products")
            self.categories.delete(cat)
