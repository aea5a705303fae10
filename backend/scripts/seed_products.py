#!/usr/bin/env python3
"""
Seed an admin user, categories and products (optionally from a JSON file).

Usage:
    python scripts/seed_products.py
    python scripts/seed_products.py --file catalogue.json --admin-email admin@shop.local --admin-password secret

The JSON file is a list of products; each entry may carry a "category" name and a
"variants" list. Entries whose SKU already exists are skipped, so the script is
safe to run repeatedly.
"""
import argparse
import json
import os
import sys
from decimal import Decimal

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from shopledger.db import SessionLocal, init_db
from shopledger.models.category import Category
from shopledger.models.product import Product, ProductVariant
from shopledger.models.user import User
from shopledger.services.auth_service import create_user

DEFAULT_CATEGORIES = [
    {"name": "Electronics", "children": ["Phones", "Accessories"]},
    {"name": "Groceries", "children": ["Tea & Coffee"]},
]

DEFAULT_PRODUCTS = [
    {
        "sku": "0000001",
        "name": "Tea 100g",
        "category": "Tea & Coffee",
        "buy_price": "2.10",
        "sell_price": "3.00",
        "stock_quantity": 25,
    },
    {
        "sku": "0000002",
        "name": "Coffee 200g",
        "category": "Tea & Coffee",
        "buy_price": "4.50",
        "sell_price": "6.00",
        "stock_quantity": 12,
    },
    {
        "sku": "0000003",
        "name": "Phone X",
        "category": "Phones",
        "buy_price": "400",
        "sell_price": "550",
        "variants": [
            {"name": "Black - 128GB", "sku": "0000003-BLK-128", "buy_price": "400",
             "sell_price": "550", "stock_quantity": 4,
             "attributes": {"Color": "Black", "Storage": "128GB"}},
            {"name": "Red - 256GB", "sku": "0000003-RED-256", "buy_price": "460",
             "sell_price": "640", "stock_quantity": 2,
             "attributes": {"Color": "Red", "Storage": "256GB"}},
        ],
    },
]


def _ensure_category(db, name, parent=None):
    cat = db.query(Category).filter(Category.name == name).first()
    if not cat:
        cat = Category(name=name, parent=parent)
        db.add(cat)
        db.flush()
    return cat


def seed_categories(db):
    for entry in DEFAULT_CATEGORIES:
        parent = _ensure_category(db, entry["name"])
        for child in entry.get("children", []):
            _ensure_category(db, child, parent)


def seed_products(db, entries):
    created = 0
    for ent in entries:
        if db.query(Product).filter(Product.sku == ent["sku"]).first():
            continue
        cat = _ensure_category(db, ent.get("category") or "Uncategorized")
        variants = [
            ProductVariant(
                name=v["name"],
                sku=v["sku"],
                buy_price=Decimal(str(v.get("buy_price", 0))),
                sell_price=Decimal(str(v["sell_price"])),
                stock_quantity=int(v.get("stock_quantity", 0)),
                attributes=v.get("attributes") or {},
            )
            for v in ent.get("variants", [])
        ]
        p = Product(
            sku=ent["sku"],
            name=ent["name"],
            category=cat,
            description=ent.get("description"),
            buy_price=Decimal(str(ent.get("buy_price", 0))),
            sell_price=Decimal(str(ent.get("sell_price", 0))),
            stock_quantity=(
                sum(v.stock_quantity for v in variants)
                if variants
                else int(ent.get("stock_quantity", 0))
            ),
            variants=variants,
        )
        db.add(p)
        created += 1
    return created


def main():
    parser = argparse.ArgumentParser(description="Seed shopledger data")
    parser.add_argument("--file", help="JSON list of products", default=None)
    parser.add_argument("--admin-email", default="admin@shop.local")
    parser.add_argument("--admin-password", default="admin-change-me")
    parser.add_argument("--reset", action="store_true", help="drop and recreate tables first")
    args = parser.parse_args()

    init_db(reset=args.reset)

    entries = DEFAULT_PRODUCTS
    if args.file:
        with open(args.file, "r", encoding="utf-8") as fh:
            entries = json.load(fh)

    db = SessionLocal()
    try:
        if not db.query(User).filter(User.email == args.admin_email).first():
            create_user(
                db,
                username="admin",
                email=args.admin_email,
                password=args.admin_password,
                full_name="Administrator",
                role="admin",
            )
            print(f"Created admin user {args.admin_email}")
        seed_categories(db)
        created = seed_products(db, entries)
        db.commit()
        print(f"Seeded {created} products.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
