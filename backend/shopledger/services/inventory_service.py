import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from shopledger.models.product import Product, ProductVariant
from shopledger.utils.log import get_logger

log = get_logger("inventory")

# per-line ceiling; stock columns are 64-bit integers
MAX_LINE_QUANTITY = 1_000_000
MAX_ROW_ID = 2**63 - 1


class InventoryException(Exception):
    status_code = 400


class InvalidLineItems(InventoryException):
    pass


class ProductNotFound(InventoryException):
    status_code = 404


class VariantNotFound(InventoryException):
    status_code = 404


class VariantRequired(InventoryException):
    pass


class InsufficientStock(InventoryException):
    def __init__(self, message: str, available: int, requested: int):
        super().__init__(message)
        self.available = available
        self.requested = requested


class StockLockTimeout(InventoryException):
    status_code = 503


class StockDirection(enum.Enum):
    INCREMENT = 1  # purchase intake
    DECREMENT = -1  # sale


@dataclass
class StockLine:
    product_id: int
    quantity: int
    variant_id: Optional[int] = None
    # unit sell price for sales, buy price for purchases
    price: Optional[Decimal] = None
    product_name: Optional[str] = None


@dataclass
class ResolvedLine:
    line: StockLine
    product: Product
    variant: Optional[ProductVariant] = None

    @property
    def target(self):
        return self.variant if self.variant is not None else self.product

    @property
    def stock_quantity(self) -> int:
        return self.target.stock_quantity or 0

    @property
    def variant_name(self) -> Optional[str]:
        return self.variant.name if self.variant is not None else None

    @property
    def label(self) -> str:
        if self.variant is not None:
            return f"{self.product.name} ({self.variant.name})"
        return self.product.name


def _to_decimal(value, field: str) -> Decimal:
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidLineItems(f"Invalid {field}: {value!r}")
    if not d.is_finite() or d < 0:
        raise InvalidLineItems(f"Invalid {field}: {value!r}")
    return d


def _row_id(value, field: str, idx: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value <= MAX_ROW_ID:
        raise InvalidLineItems(f"Line {idx}: invalid {field}: {value!r}")
    return value


def normalize_lines(items: Iterable, price_field: str = "price", require_price: bool = False) -> List[StockLine]:
    """
    Turn submitted line items (dicts or StockLine) into StockLine values.
    Rejects an empty list, malformed ids, quantities outside
    1..MAX_LINE_QUANTITY and negative prices before any store access.
    """
    items = list(items or [])
    if not items:
        raise InvalidLineItems("No line items submitted")

    lines = []
    for idx, it in enumerate(items, start=1):
        if isinstance(it, StockLine):
            raw = {
                "product_id": it.product_id,
                "variant_id": it.variant_id,
                "quantity": it.quantity,
                price_field: it.price,
                "product_name": it.product_name,
            }
        else:
            raw = dict(it)

        product_id = raw.get("product_id")
        if product_id is None:
            raise InvalidLineItems(f"Line {idx}: product_id is required")
        product_id = _row_id(product_id, "product_id", idx)
        variant_id = raw.get("variant_id")
        if variant_id is not None:
            variant_id = _row_id(variant_id, "variant_id", idx)

        qty = raw.get("quantity")
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise InvalidLineItems(f"Line {idx}: quantity must be a positive integer")
        if qty > MAX_LINE_QUANTITY:
            raise InvalidLineItems(f"Line {idx}: quantity must not exceed {MAX_LINE_QUANTITY}")

        price = raw.get(price_field)
        if price is None:
            if require_price:
                raise InvalidLineItems(f"Line {idx}: {price_field} is required")
        else:
            price = _to_decimal(price, price_field)

        lines.append(
            StockLine(
                product_id=product_id,
                quantity=qty,
                variant_id=variant_id,
                price=price,
                product_name=raw.get("product_name"),
            )
        )
    return lines


class InventoryService:
    def __init__(self, db: Session):
        self.db = db

    def _load_product(self, product_id) -> Optional[Product]:
        return (
            self.db.query(Product)
            .options(selectinload(Product.variants))
            .filter(Product.id == product_id)
            .first()
        )

    def resolve_line(self, line: StockLine) -> ResolvedLine:
        """
        Resolve a line to its product and, when a variant id is given, to the
        variant owned by that product. A variant-bearing product must be
        addressed through one of its variants.
        """
        product = self._load_product(line.product_id)
        if not product:
            raise ProductNotFound(f"Product not found: {line.product_name or line.product_id}")

        if line.variant_id is not None:
            variant = product.variant(line.variant_id)
            if variant is None:
                raise VariantNotFound(f"Variant not found for product: {product.name}")
            return ResolvedLine(line=line, product=product, variant=variant)

        if product.has_variants:
            raise VariantRequired(f"A variant must be selected for product: {product.name}")
        return ResolvedLine(line=line, product=product)

    def resolve_all(self, lines: List[StockLine]) -> List[ResolvedLine]:
        return [self.resolve_line(line) for line in lines]

    def check_availability(self, lines: List[StockLine]) -> List[ResolvedLine]:
        """
        Validate every line against recorded stock before anything is mutated.
        Lines hitting the same product/variant are checked against their
        cumulative quantity. Stops at the first failing line.
        """
        resolved = []
        requested: Dict[Tuple[int, Optional[int]], int] = {}
        for line in lines:
            r = self.resolve_line(line)
            key = (r.product.id, r.variant.id if r.variant is not None else None)
            requested[key] = requested.get(key, 0) + line.quantity
            if requested[key] > r.stock_quantity:
                raise InsufficientStock(
                    f"Insufficient stock for {r.label}. "
                    f"Available: {r.stock_quantity}, Requested: {requested[key]}",
                    available=r.stock_quantity,
                    requested=requested[key],
                )
            resolved.append(r)
        return resolved

    def available_quantity(self, product_id, variant_id=None) -> int:
        """Current stock straight from the store, bypassing the session identity map."""
        if variant_id is not None:
            stmt = select(ProductVariant.stock_quantity).where(
                ProductVariant.id == variant_id, ProductVariant.product_id == product_id
            )
        else:
            stmt = select(Product.stock_quantity).where(Product.id == product_id)
        value = self.db.execute(stmt).scalar()
        if value is None:
            if variant_id is not None:
                raise VariantNotFound(f"Variant not found: {variant_id}")
            raise ProductNotFound(f"Product not found: {product_id}")
        return int(value)

    def apply(self, resolved: List[ResolvedLine], direction: StockDirection) -> None:
        """
        Apply the stock delta of each resolved line. Each update is a single
        arithmetic UPDATE executed by the database. Variant lines move the parent
        product's aggregate by the same delta. Increments overwrite the target's
        buy price with the line price (last purchase price wins).

        Runs inside the caller's transaction; any failure leaves the whole batch
        to be rolled back by the caller.
        """
        for r in resolved:
            if r.variant is not None:
                self._apply_variant(r, direction)
            else:
                self._apply_product(r, direction)

    def _apply_variant(self, r: ResolvedLine, direction: StockDirection) -> None:
        qty = r.line.quantity
        delta = direction.value * qty
        stmt = update(ProductVariant).where(
            ProductVariant.id == r.variant.id,
            ProductVariant.product_id == r.product.id,
        )
        values = {"stock_quantity": ProductVariant.stock_quantity + delta}
        if direction is StockDirection.INCREMENT and r.line.price is not None:
            values["buy_price"] = r.line.price
        if direction is StockDirection.DECREMENT:
            stmt = stmt.where(ProductVariant.stock_quantity >= qty)

        res = self.db.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            self._raise_missed_update(r, direction)

        self.db.execute(
            update(Product)
            .where(Product.id == r.product.id)
            .values(stock_quantity=Product.stock_quantity + delta)
            .execution_options(synchronize_session=False)
        )
        log.info(
            "%s product=%s variant=%s qty=%s",
            direction.name.lower(), r.product.id, r.variant.id, qty,
        )

    def _apply_product(self, r: ResolvedLine, direction: StockDirection) -> None:
        qty = r.line.quantity
        stmt = update(Product).where(Product.id == r.product.id)
        values = {"stock_quantity": Product.stock_quantity + direction.value * qty}
        if direction is StockDirection.INCREMENT and r.line.price is not None:
            values["buy_price"] = r.line.price
        if direction is StockDirection.DECREMENT:
            stmt = stmt.where(Product.stock_quantity >= qty)

        res = self.db.execute(
            stmt.values(**values).execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            self._raise_missed_update(r, direction)
        log.info("%s product=%s qty=%s", direction.name.lower(), r.product.id, qty)

    def _raise_missed_update(self, r: ResolvedLine, direction: StockDirection):
        variant_id = r.variant.id if r.variant is not None else None
        # raises NotFound itself if the row vanished since resolution
        available = self.available_quantity(r.product.id, variant_id)
        if direction is StockDirection.DECREMENT:
            log.warning(
                "stock guard rejected decrement product=%s variant=%s available=%s requested=%s",
                r.product.id, variant_id, available, r.line.quantity,
            )
            raise InsufficientStock(
                f"Insufficient stock for {r.label}. "
                f"Available: {available}, Requested: {r.line.quantity}",
                available=available,
                requested=r.line.quantity,
            )
        raise InventoryException(f"Stock update did not apply for {r.label}")

    def low_stock(self, limit: int = 100) -> List[Dict]:
        """
        Products (or individual variants) whose stock is at or below the
        product's reorder point.
        """
        out = []
        products = (
            self.db.query(Product)
            .options(selectinload(Product.variants))
            .order_by(Product.name)
            .all()
        )
        for p in products:
            targets = p.variants if p.has_variants else [None]
            for v in targets:
                qty = v.stock_quantity if v is not None else p.stock_quantity
                if qty <= p.reorder_point:
                    out.append(
                        {
                            "product_id": p.id,
                            "sku": v.sku if v is not None else p.sku,
                            "name": p.name,
                            "variant_id": v.id if v is not None else None,
                            "variant_name": v.name if v is not None else None,
                            "stock_quantity": qty,
                            "reorder_point": p.reorder_point,
                        }
                    )
                    if len(out) >= limit:
                        return out
        return out
