from __future__ import annotations

import uuid
from decimal import Decimal


def _auth_headers(client, email: str = "shopper@example.com", password: str = "secret123") -> dict[str, str]:
    r = client.post("/api/v1/auth/register", json={"email": email, "password": password})
    assert r.status_code == 200
    r = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200
    body = r.json()
    assert body["code"] == 0
    assert body["data"]["token_type"] == "bearer"
    return {"Authorization": f"Bearer {body['data']['access_token']}"}


def _create_product(client, headers, name: str, price: str, **extra) -> dict:
    r = client.post(
        "/api/v1/products",
        headers=headers,
        json={"name": name, "description": f"{name} description", "price": price, **extra},
    )
    assert r.status_code == 201, r.text
    return r.json()["data"]


def _amount(value) -> Decimal:
    return Decimal(str(value))


def test_register_login_and_me(client):
    headers = _auth_headers(client, email="Alice@Example.com")

    r = client.get("/api/v1/auth/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["data"]["email"] == "alice@example.com"


def test_register_duplicate_email(client):
    _auth_headers(client, email="dup@example.com")
    r = client.post("/api/v1/auth/register", json={"email": "DUP@example.com", "password": "another1"})
    assert r.status_code == 400
    assert r.json()["code"] == 400001


def test_login_wrong_password(client):
    _auth_headers(client, email="bob@example.com")
    r = client.post("/api/v1/auth/login", json={"email": "bob@example.com", "password": "wrong-pass"})
    assert r.status_code == 401
    assert r.json()["code"] == 401001


def test_protected_endpoints_require_token(client):
    r = client.get("/api/v1/cart")
    assert r.status_code in (401, 403)

    r = client.get("/api/v1/orders", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["code"] == 401000

    r = client.post("/api/v1/products", json={"name": "x", "description": "y", "price": "1.00"})
    assert r.status_code in (401, 403)


def test_product_crud_and_search(client):
    headers = _auth_headers(client)
    tee = _create_product(client, headers, "Classic Tee", "10.00", image="https://cdn.example.com/tee.jpg")
    _create_product(client, headers, "Denim Jacket", "45.50")
    _create_product(client, headers, "Graphic Tee", "12.00")

    r = client.get("/api/v1/products", params={"q": "tee", "limit": 1})
    assert r.status_code == 200
    page = r.json()["data"]
    assert page["total"] == 2
    assert page["pages"] == 2
    assert len(page["data"]) == 1

    r = client.get(f"/api/v1/products/{tee['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["image"] == "https://cdn.example.com/tee.jpg"

    r = client.put(f"/api/v1/products/{tee['id']}", headers=headers, json={"price": "11.50", "image": ""})
    assert r.status_code == 200
    assert _amount(r.json()["data"]["price"]) == Decimal("11.50")
    assert r.json()["data"]["image"] is None

    r = client.delete(f"/api/v1/products/{tee['id']}", headers=headers)
    assert r.status_code == 200
    r = client.get(f"/api/v1/products/{tee['id']}")
    assert r.status_code == 404
    assert r.json()["code"] == 404101


def test_product_validation(client):
    headers = _auth_headers(client)
    bad_bodies = [
        {"name": "   ", "description": "d", "price": "1.00"},
        {"name": "Tee", "description": "d", "price": "-1.00"},
        {"name": "Tee", "description": "d", "price": "1.00", "image": "ftp://cdn.example.com/a.jpg"},
        {"name": "Tee", "description": "d", "price": "1.00", "image": "not a url"},
    ]
    for body in bad_bodies:
        r = client.post("/api/v1/products", headers=headers, json=body)
        assert r.status_code == 422, body
        assert r.json()["code"] == 422000


def test_cart_add_update_remove(client):
    headers = _auth_headers(client)
    tee = _create_product(client, headers, "Tee", "10.00")

    r = client.post("/api/v1/cart", headers=headers, json={"product_id": tee["id"], "quantity": 1})
    assert r.status_code == 200
    r = client.post("/api/v1/cart", headers=headers, json={"product_id": tee["id"], "quantity": 2})
    item_id = r.json()["data"]["id"]
    assert r.json()["data"]["quantity"] == 3

    r = client.get("/api/v1/cart", headers=headers)
    cart = r.json()["data"]
    assert len(cart["items"]) == 1
    assert _amount(cart["total"]) == Decimal("30.00")

    r = client.put(f"/api/v1/cart/{item_id}", headers=headers, json={"quantity": 5})
    assert r.status_code == 200
    assert r.json()["data"]["quantity"] == 5

    for quantity in (0, 101):
        r = client.put(f"/api/v1/cart/{item_id}", headers=headers, json={"quantity": quantity})
        assert r.status_code == 422

    r = client.put(f"/api/v1/cart/{uuid.uuid4()}", headers=headers, json={"quantity": 1})
    assert r.status_code == 404
    assert r.json()["code"] == 404301

    r = client.post("/api/v1/cart", headers=headers, json={"product_id": str(uuid.uuid4()), "quantity": 1})
    assert r.status_code == 404
    assert r.json()["code"] == 404101

    r = client.delete(f"/api/v1/cart/{item_id}", headers=headers)
    assert r.status_code == 200
    r = client.delete(f"/api/v1/cart/{item_id}", headers=headers)
    assert r.status_code == 200

    r = client.get("/api/v1/cart", headers=headers)
    assert r.json()["data"]["items"] == []


def test_cart_is_per_user(client):
    alice = _auth_headers(client, email="alice@example.com")
    bob = _auth_headers(client, email="bob@example.com")
    tee = _create_product(client, alice, "Tee", "10.00")

    r = client.post("/api/v1/cart", headers=alice, json={"product_id": tee["id"], "quantity": 1})
    item_id = r.json()["data"]["id"]

    r = client.get("/api/v1/cart", headers=bob)
    assert r.json()["data"]["items"] == []
    r = client.put(f"/api/v1/cart/{item_id}", headers=bob, json={"quantity": 2})
    assert r.status_code == 404


def test_checkout_snapshots_prices_and_empties_cart(client):
    headers = _auth_headers(client)
    tee = _create_product(client, headers, "Tee", "10.00")
    cap = _create_product(client, headers, "Cap", "5.00")
    client.post("/api/v1/cart", headers=headers, json={"product_id": tee["id"], "quantity": 2})
    client.post("/api/v1/cart", headers=headers, json={"product_id": cap["id"], "quantity": 1})

    r = client.post("/api/v1/orders", headers=headers, json={})
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    order = data["order"]
    assert data["payment"] is None
    assert order["status"] == "pending"
    assert order["payment_method"] is None
    assert _amount(order["total_amount"]) == Decimal("25.00")
    assert len(order["items"]) == 2

    r = client.get("/api/v1/cart", headers=headers)
    assert r.json()["data"]["items"] == []

    client.put(f"/api/v1/products/{tee['id']}", headers=headers, json={"price": "99.00"})
    r = client.get(f"/api/v1/orders/{data['id']}", headers=headers)
    assert r.status_code == 200
    detail = r.json()["data"]
    prices = {i["product_id"]: _amount(i["unit_price"]) for i in detail["items"]}
    assert prices == {tee["id"]: Decimal("10.00"), cap["id"]: Decimal("5.00")}
    assert _amount(detail["total_amount"]) == Decimal("25.00")
    tee_line = next(i for i in detail["items"] if i["product_id"] == tee["id"])
    assert tee_line["product"]["name"] == "Tee"


def test_checkout_empty_cart(client):
    headers = _auth_headers(client)
    r = client.post("/api/v1/orders", headers=headers, json={"payment_method": "stripe"})
    assert r.status_code == 400
    assert r.json()["code"] == 400101

    r = client.get("/api/v1/orders", headers=headers)
    assert r.json()["data"]["count"] == 0


def test_checkout_product_unavailable(client):
    headers = _auth_headers(client)
    tee = _create_product(client, headers, "Tee", "10.00")
    client.post("/api/v1/cart", headers=headers, json={"product_id": tee["id"], "quantity": 1})
    client.delete(f"/api/v1/products/{tee['id']}", headers=headers)

    r = client.get("/api/v1/cart", headers=headers)
    assert r.json()["data"]["items"][0]["product"] is None
    assert _amount(r.json()["data"]["total"]) == Decimal("0")

    r = client.post("/api/v1/orders", headers=headers, json={})
    assert r.status_code == 400
    assert r.json()["code"] == 400102
    assert tee["id"] in r.json()["message"]

    r = client.get("/api/v1/orders", headers=headers)
    assert r.json()["data"]["count"] == 0


def test_simulated_payment_and_conflict(client):
    headers = _auth_headers(client)
    tee = _create_product(client, headers, "Tee", "10.00")
    client.post("/api/v1/cart", headers=headers, json={"product_id": tee["id"], "quantity": 1})
    order_id = client.post("/api/v1/orders", headers=headers, json={}).json()["data"]["id"]

    r = client.post(f"/api/v1/orders/{order_id}/pay", headers=headers, json={"provider": "manual"})
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "paid"

    r = client.post(f"/api/v1/orders/{order_id}/pay", headers=headers)
    assert r.status_code == 409
    assert r.json()["code"] == 409001

    r = client.post(f"/api/v1/orders/{uuid.uuid4()}/pay", headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == 404201


def test_orders_list_detail_and_delete(client):
    alice = _auth_headers(client, email="alice@example.com")
    bob = _auth_headers(client, email="bob@example.com")
    tee = _create_product(client, alice, "Tee", "10.00")

    order_ids = []
    for _ in range(2):
        client.post("/api/v1/cart", headers=alice, json={"product_id": tee["id"], "quantity": 1})
        order_ids.append(client.post("/api/v1/orders", headers=alice, json={}).json()["data"]["id"])

    r = client.get("/api/v1/orders", params={"page": 1, "page_size": 1}, headers=alice)
    assert r.status_code == 200
    assert r.json()["data"]["count"] == 2
    assert len(r.json()["data"]["data"]) == 1

    r = client.get(f"/api/v1/orders/{order_ids[0]}", headers=bob)
    assert r.status_code == 404
    assert r.json()["code"] == 404201

    r = client.delete(f"/api/v1/orders/{order_ids[0]}", headers=alice)
    assert r.status_code == 200
    r = client.get(f"/api/v1/orders/{order_ids[0]}", headers=alice)
    assert r.status_code == 404
    r = client.get("/api/v1/orders", headers=alice)
    assert r.json()["data"]["count"] == 1


def test_health_check_and_correlation_id(client):
    r = client.get("/api/v1/utils/health-check/")
    assert r.status_code == 200
    assert r.json() is True
    assert r.headers["X-Correlation-Id"]

    r = client.get("/api/v1/utils/health-check/", headers={"X-Correlation-Id": "req-123"})
    assert r.headers["X-Correlation-Id"] == "req-123"
