import base64
from decimal import Decimal


def test_list_products(client, seed):
    seed.product("TEST-001", "Test Coffee", stock=10, sell_price="4.99")
    res = client.get("/api/products")
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert isinstance(body["data"], list)
    skus = [it["sku"] for it in body["data"]]
    assert "TEST-001" in skus
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}


def test_search_category_and_paging(client, seed):
    drinks = seed.category("Drinks")
    snacks = seed.category("Snacks")
    seed.product("D1", "Green Tea", category_id=drinks)
    seed.product("D2", "Black Tea", category_id=drinks)
    seed.product("D3", "Cola", category_id=drinks)
    seed.product("S1", "Crisps", category_id=snacks)

    res = client.get("/api/products", params={"search": "tea"})
    assert sorted(p["sku"] for p in res.json()["data"]) == ["D1", "D2"]

    res = client.get("/api/products", params={"category": "Snacks"})
    assert [p["sku"] for p in res.json()["data"]] == ["S1"]

    res = client.get("/api/products", params={"category": str(drinks), "limit": 2, "page": 2})
    body = res.json()
    assert len(body["data"]) == 1
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["pages"] == 2

    res = client.get("/api/products", params={"category": "Nope"})
    assert res.json()["data"] == []


def test_next_sku(client, seed):
    assert client.get("/api/products/next-sku").json()["sku"] == "0000001"
    seed.product("0000041", "Numbered")
    seed.product("ABC-9", "Lettered")
    assert client.get("/api/products/next-sku").json()["sku"] == "0000042"


def test_get_product_and_404(client, seed):
    p = seed.product("G1", "Ginger", stock=3, sell_price="1.10")
    res = client.get(f"/api/products/{p['id']}")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["name"] == "Ginger"
    assert data["stock_quantity"] == 3
    assert Decimal(data["sell_price"]) == Decimal("1.10")

    res = client.get("/api/products/9999")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Product not found"}


def test_create_product_with_variants(client, seed, auth_headers):
    seed.category("Phones")
    payload = {
        "sku": "0000100",
        "name": "Phone X",
        "category": "Phones",
        "buy_price": "400",
        "sell_price": "550",
        "variants": [
            {"name": "Black", "sku": "0000100-B", "sell_price": "550", "stock_quantity": 2,
             "attributes": {"Color": "Black"}},
            {"name": "Red", "sku": "0000100-R", "sell_price": "600", "stock_quantity": 3},
        ],
    }
    res = client.post("/api/products", json=payload, headers=auth_headers("manager"))
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["category"]["name"] == "Phones"
    assert [v["name"] for v in data["variants"]] == ["Black", "Red"]
    assert data["variants"][0]["attributes"] == {"Color": "Black"}
    # aggregate equals the variant sum
    assert data["stock_quantity"] == 5
    assert data["unit"] == "piece"


def test_create_product_validation(client, seed, auth_headers):
    headers = auth_headers()
    seed.product("DUP", "Existing")

    assert client.post("/api/products", json={"sku": "X", "name": "X", "category": "General"}).status_code == 401

    res = client.post(
        "/api/products", json={"sku": "DUP", "name": "Again", "category": "General"}, headers=headers
    )
    assert res.status_code == 409

    res = client.post(
        "/api/products", json={"sku": "NEW", "name": "New", "category": "Missing"}, headers=headers
    )
    assert res.status_code == 400
    assert "Missing" in res.json()["message"]

    res = client.post(
        "/api/products",
        json={"sku": "NEG", "name": "Neg", "category": "General", "sell_price": "-1"},
        headers=headers,
    )
    assert res.status_code == 400


def test_update_product_prices_and_variants(client, seed, auth_headers):
    p = seed.product(
        "U1",
        "Umbrella",
        variants=[
            {"name": "Small", "sku": "U1-S", "stock": 2, "sell_price": "10"},
            {"name": "Large", "sku": "U1-L", "stock": 4, "sell_price": "15"},
        ],
    )
    small, large = p["variants"]
    headers = auth_headers()

    # a plain sell_price change is copied onto every variant
    res = client.put(f"/api/products/{p['id']}", json={"sell_price": "12"}, headers=headers)
    assert res.status_code == 200
    assert [Decimal(v["sell_price"]) for v in res.json()["data"]["variants"]] == [Decimal("12")] * 2

    # edit one variant, drop another, add a new one
    res = client.put(
        f"/api/products/{p['id']}",
        json={
            "variants": [
                {"id": small, "name": "Small+", "sell_price": "11"},
                {"name": "Huge", "sku": "U1-H", "sell_price": "20", "stock_quantity": 1},
            ]
        },
        headers=headers,
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert [v["name"] for v in data["variants"]] == ["Small+", "Huge"]
    assert data["variants"][0]["stock_quantity"] == 2
    assert data["stock_quantity"] == 3
    assert large not in [v["id"] for v in data["variants"]]


def test_update_ignores_stock_quantity(client, seed, auth_headers):
    p = seed.product("U2", "Umber", stock=7)
    res = client.put(
        f"/api/products/{p['id']}",
        json={"name": "Umber Paint", "stock_quantity": 999},
        headers=auth_headers(),
    )
    assert res.status_code == 200
    assert res.json()["data"]["name"] == "Umber Paint"
    assert seed.stock(p["id"]) == 7


def test_update_unknown_variant_is_404(client, seed, auth_headers):
    p = seed.product("U3", "Urn", variants=[{"name": "One", "sku": "U3-1", "stock": 1, "sell_price": "5"}])
    res = client.put(
        f"/api/products/{p['id']}",
        json={"variants": [{"id": 98765, "name": "Ghost"}]},
        headers=auth_headers(),
    )
    assert res.status_code == 404


def test_upload_image_then_delete_product(client, seed, auth_headers, image_store):
    p = seed.product("I1", "Iris", stock=1)
    headers = auth_headers("admin")
    content = base64.b64encode(b"\x89PNG fake bytes").decode()

    res = client.post(
        f"/api/products/{p['id']}/images",
        json={"file_name": "iris.png", "content_base64": content},
        headers=headers,
    )
    assert res.status_code == 201
    image = res.json()["data"]
    assert image["is_primary"] is True
    assert image["url"].startswith("https://img.test/products/")
    assert image["image_id"] in image_store.files

    res = client.post(
        f"/api/products/{p['id']}/images",
        json={"file_name": "iris2.png", "content_base64": content},
        headers=headers,
    )
    assert res.json()["data"]["is_primary"] is False
    assert len(image_store.files) == 2

    res = client.delete(f"/api/products/{p['id']}", headers=headers)
    assert res.status_code == 200
    assert image_store.files == {}
    assert client.get(f"/api/products/{p['id']}").status_code == 404


def test_invalid_image_upload(client, seed, auth_headers, image_store):
    p = seed.product("I2", "Ivy")
    headers = auth_headers()
    res = client.post(
        f"/api/products/{p['id']}/images",
        json={"file_name": "x.png", "content_base64": "***"},
        headers=headers,
    )
    assert res.status_code == 400

    res = client.post(
        "/api/products/4040/images",
        json={"file_name": "x.png", "content_base64": base64.b64encode(b"x").decode()},
        headers=headers,
    )
    assert res.status_code == 404


def test_delete_skips_missing_images(client, seed, auth_headers, image_store):
    p = seed.product(
        "I3",
        "Indigo",
        images=[{"image_id": "not-in-store", "url": "https://img.test/x.png", "is_primary": True}],
    )
    res = client.delete(f"/api/products/{p['id']}", headers=auth_headers("admin"))
    assert res.status_code == 200
    assert seed.get_product(p["id"]) is None


def test_delete_is_role_gated(client, seed, auth_headers, image_store):
    p = seed.product("R1", "Rose", stock=1)
    res = client.delete(f"/api/products/{p['id']}", headers=auth_headers("sales"))
    assert res.status_code == 403
    assert seed.get_product(p["id"]) is not None

    assert client.delete(f"/api/products/{p['id']}").status_code == 401
    assert client.delete("/api/products/5555", headers=auth_headers("manager")).status_code == 404
