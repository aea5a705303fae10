from decimal import Decimal


def test_purchase_requires_authentication(client, seed):
    p = seed.product("C1", "Coffee", stock=0)
    r = client.post(
        "/api/purchases",
        json={"items": [{"product_id": p["id"], "quantity": 1, "buy_price": "1"}]},
    )
    assert r.status_code == 401
    assert seed.stock(p["id"]) == 0


def test_record_purchase(client, seed, auth_headers):
    p = seed.product("C1", "Coffee", stock=3, buy_price="40", sell_price="60")
    headers = auth_headers("warehouse")

    r = client.post(
        "/api/purchases",
        json={
            "supplier_name": "Bean Co",
            "notes": "weekly restock",
            "items": [{"product_id": p["id"], "quantity": 10, "buy_price": "50"}],
        },
        headers=headers,
    )
    assert r.status_code == 201
    purchase = r.json()["data"]
    assert purchase["supplier_name"] == "Bean Co"
    assert Decimal(purchase["total_amount"]) == Decimal("500")
    assert purchase["lines"][0]["product_name"] == "Coffee"
    assert Decimal(purchase["lines"][0]["total_cost"]) == Decimal("500")

    assert seed.stock(p["id"]) == 13
    assert seed.get_product(p["id"]).buy_price == Decimal("50")


def test_supplier_defaults_to_general(client, seed, auth_headers):
    p = seed.product("C2", "Cocoa", stock=0)
    r = client.post(
        "/api/purchases",
        json={"items": [{"product_id": p["id"], "quantity": 2, "buy_price": "3"}]},
        headers=auth_headers(),
    )
    assert r.status_code == 201
    assert r.json()["data"]["supplier_name"] == "General Supplier"


def test_buy_price_is_required(client, seed, auth_headers):
    p = seed.product("C3", "Chai", stock=0)
    r = client.post(
        "/api/purchases",
        json={"items": [{"product_id": p["id"], "quantity": 2}]},
        headers=auth_headers(),
    )
    assert r.status_code == 400
    assert seed.stock(p["id"]) == 0


def test_variant_purchase_requires_variant(client, seed, auth_headers):
    p = seed.product("S1", "Shirt", variants=[{"name": "M", "sku": "S1-M", "stock": 1, "sell_price": "9"}])
    headers = auth_headers()

    r = client.post(
        "/api/purchases",
        json={"items": [{"product_id": p["id"], "quantity": 2, "buy_price": "4"}]},
        headers=headers,
    )
    assert r.status_code == 400
    assert "variant" in r.json()["message"].lower()

    r = client.post(
        "/api/purchases",
        json={"items": [{"product_id": p["id"], "variant_id": p["variants"][0], "quantity": 2, "buy_price": "4"}]},
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()["data"]["lines"][0]["variant_name"] == "M"
    assert seed.stock(p["id"], p["variants"][0]) == 3
    assert seed.stock(p["id"]) == 3


def test_unknown_product_rolls_back_batch(client, seed, auth_headers):
    p = seed.product("C4", "Cumin", stock=1)
    r = client.post(
        "/api/purchases",
        json={
            "items": [
                {"product_id": p["id"], "quantity": 5, "buy_price": "1"},
                {"product_id": 9999, "quantity": 1, "buy_price": "1"},
            ]
        },
        headers=auth_headers(),
    )
    assert r.status_code == 404
    assert seed.stock(p["id"]) == 1

    listing = client.get("/api/purchases", headers=auth_headers())
    assert listing.json()["data"] == []


def test_get_purchase(client, seed, auth_headers):
    headers = auth_headers()
    p = seed.product("C5", "Clove", stock=0)
    created = client.post(
        "/api/purchases",
        json={"items": [{"product_id": p["id"], "quantity": 1, "buy_price": "7.25"}]},
        headers=headers,
    ).json()["data"]

    r = client.get(f"/api/purchases/{created['id']}", headers=headers)
    assert r.status_code == 200
    assert Decimal(r.json()["data"]["total_amount"]) == Decimal("7.25")
    assert client.get("/api/purchases/12345", headers=headers).status_code == 404


def test_oversize_quantity_is_rejected_before_store_access(client, seed, auth_headers):
    p = seed.product("C6", "Cardamom", stock=2)
    headers = auth_headers()

    res = client.post(
        "/api/purchases",
        json={"items": [{"product_id": p["id"], "quantity": 10**20, "buy_price": "1"}]},
        headers=headers,
    )
    assert res.status_code == 400
    assert res.json()["success"] is False

    res = client.post(
        "/api/purchases",
        json={"items": [{"product_id": 10**20, "quantity": 1, "buy_price": "1"}]},
        headers=headers,
    )
    assert res.status_code == 400
    assert seed.stock(p["id"]) == 2


def test_buy_price_keeps_four_fractional_digits(client, seed, auth_headers):
    p = seed.product("C7", "Saffron", stock=0)
    r = client.post(
        "/api/purchases",
        json={"items": [{"product_id": p["id"], "quantity": 2, "buy_price": "1234.5678"}]},
        headers=auth_headers(),
    )
    assert r.status_code == 201
    assert seed.get_product(p["id"]).buy_price == Decimal("1234.5678")
    assert Decimal(r.json()["data"]["total_amount"]) == Decimal("2469.1356")
