import os
import tempfile

# must be set before shopledger.config is imported
TEST_DB = os.path.join(tempfile.gettempdir(), f"shopledger_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SALES_LOCK_TIMEOUT_SECONDS"] = "5"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from shopledger.adapters.mock_image_store import MockImageStore, get_image_store
from shopledger.db import SessionLocal, engine, init_db
from shopledger.main import app
from shopledger.models.category import Category
from shopledger.models.product import Product, ProductImage, ProductVariant
from shopledger.services.auth_service import create_user, issue_token
from shopledger.services.inventory_service import InventoryService


class Seeder:
    """Writes fixtures through their own committed sessions and hands back ids."""

    def category(self, name="General", parent_id=None):
        db = SessionLocal()
        try:
            cat = Category(name=name, parent_id=parent_id)
            db.add(cat)
            db.commit()
            return cat.id
        finally:
            db.close()

    def product(
        self,
        sku,
        name,
        stock=0,
        buy_price="0",
        sell_price="0",
        category_id=None,
        variants=None,
        images=None,
        reorder_point=10,
    ):
        """
        variants: list of dicts {name, sku, stock, sell_price, buy_price?}.
        Returns {"id": product_id, "variants": [variant ids in order]}.
        """
        if category_id is None:
            category_id = self.category()
        db = SessionLocal()
        try:
            p = Product(
                sku=sku,
                name=name,
                category_id=category_id,
                buy_price=Decimal(buy_price),
                sell_price=Decimal(sell_price),
                reorder_point=reorder_point,
            )
            for v in variants or []:
                p.variants.append(
                    ProductVariant(
                        name=v["name"],
                        sku=v["sku"],
                        stock_quantity=v.get("stock", 0),
                        buy_price=Decimal(v.get("buy_price", "0")),
                        sell_price=Decimal(v["sell_price"]),
                        attributes=v.get("attributes") or {},
                    )
                )
            for img in images or []:
                p.images.append(ProductImage(**img))
            p.stock_quantity = sum(v.stock_quantity for v in p.variants) if p.variants else stock
            db.add(p)
            db.commit()
            return {"id": p.id, "variants": [v.id for v in p.variants]}
        finally:
            db.close()

    def user(self, email="clerk@shop.local", password="secret-pass", role="sales", username=None):
        db = SessionLocal()
        try:
            u = create_user(
                db,
                username=username or email.split("@")[0],
                email=email,
                password=password,
                full_name=email.split("@")[0].title(),
                role=role,
            )
            return u.id
        finally:
            db.close()

    def stock(self, product_id, variant_id=None):
        db = SessionLocal()
        try:
            return InventoryService(db).available_quantity(product_id, variant_id)
        finally:
            db.close()

    def get_product(self, product_id):
        db = SessionLocal()
        try:
            p = db.query(Product).filter(Product.id == product_id).first()
            if p is not None:
                # load collections before the session closes
                p.variants
                p.images
            return p
        finally:
            db.close()


@pytest.fixture(autouse=True)
def fresh_db():
    init_db(reset=True)
    yield
    engine.dispose()


@pytest.fixture
def seed():
    return Seeder()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def image_store():
    store = MockImageStore(base_url="https://img.test")
    app.dependency_overrides[get_image_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_image_store, None)


@pytest.fixture
def auth_headers(seed):
    """Factory: bearer headers for a freshly created user of the given role."""
    counter = {"n": 0}

    def make(role="sales"):
        counter["n"] += 1
        user_id = seed.user(email=f"{role}{counter['n']}@shop.local", role=role)
        return {"Authorization": f"Bearer {issue_token(user_id, role)}"}

    return make


def pytest_sessionfinish(session, exitstatus):
    engine.dispose()
    if os.path.exists(TEST_DB):
        os.remove(TEST_DB)
