def test_create_and_list_categories(client, auth_headers):
    headers = auth_headers()
    res = client.post("/api/categories", json={"name": "Electronics"}, headers=headers)
    assert res.status_code == 201
    parent = res.json()["data"]
    assert parent["parent"] is None

    res = client.post("/api/categories", json={"name": "Phones", "parent": "Electronics"}, headers=headers)
    assert res.status_code == 201
    child = res.json()["data"]
    assert child["parent"] == {"id": parent["id"], "name": "Electronics"}

    res = client.get("/api/categories")
    assert res.status_code == 200
    assert sorted(c["name"] for c in res.json()["data"]) == ["Electronics", "Phones"]

    assert client.get(f"/api/categories/{child['id']}").json()["data"]["name"] == "Phones"
    assert client.get("/api/categories/999").status_code == 404


def test_category_requires_name_and_auth(client, auth_headers):
    assert client.post("/api/categories", json={"name": "Toys"}).status_code == 401
    res = client.post("/api/categories", json={"name": "   "}, headers=auth_headers())
    assert res.status_code == 400
    assert res.json()["message"] == "Please provide a category name"


def test_update_category_rejects_cycles(client, seed, auth_headers):
    top = seed.category("Top")
    mid = seed.category("Mid", parent_id=top)
    headers = auth_headers()

    res = client.put(f"/api/categories/{top}", json={"parent": mid}, headers=headers)
    assert res.status_code == 400

    res = client.put(f"/api/categories/{mid}", json={"name": "Middle", "parent": None}, headers=headers)
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["name"] == "Middle"
    assert data["parent"] is None


def test_delete_category(client, seed, auth_headers):
    used = seed.category("Used")
    empty = seed.category("Empty")
    seed.product("P1", "Pen", category_id=used)

    assert client.delete(f"/api/categories/{empty}", headers=auth_headers("sales")).status_code == 403

    admin = auth_headers("admin")
    res = client.delete(f"/api/categories/{used}", headers=admin)
    assert res.status_code == 409

    res = client.delete(f"/api/categories/{empty}", headers=admin)
    assert res.status_code == 200
    assert client.get(f"/api/categories/{empty}").status_code == 404
