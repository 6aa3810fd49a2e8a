"""Cart: one cart per user, duplicate-safe lines, paid-only totals."""

from modules.cart.models import Cart
from modules.cart.service import cart_service


def test_get_or_create_returns_same_cart(db, buyer):
    user, _ = buyer
    first = cart_service.get_or_create_cart(db, user.id)
    second = cart_service.get_or_create_cart(db, user.id)
    db.commit()

    assert first.id == second.id
    assert db.query(Cart).filter(Cart.user_id == user.id).count() == 1


def test_empty_cart_via_api(client, buyer):
    _, headers = buyer
    res = client.get("/api/cart", headers=headers)
    assert res.status_code == 200
    assert res.json() == {"items": [], "item_count": 0, "total": 0.0}


def test_cart_requires_login(client):
    assert client.get("/api/cart").status_code == 401


def test_add_and_summary_excludes_free_items(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    paid = make_product(s.id, title="Paid", price="12.50")
    free = make_product(s.id, title="Free", price="0", is_free=True)

    client.post("/api/cart/items", json={"product_id": paid.id, "quantity": 2}, headers=headers)
    res = client.post("/api/cart/items", json={"product_id": free.id}, headers=headers)

    assert res.status_code == 201
    data = res.json()
    assert data["item_count"] == 3
    assert data["total"] == 25.0
    assert [it["product"]["title"] for it in data["items"]] == ["Paid", "Free"]


def test_duplicate_add_is_409(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    p = make_product(s.id)

    client.post("/api/cart/items", json={"product_id": p.id}, headers=headers)
    res = client.post("/api/cart/items", json={"product_id": p.id}, headers=headers)

    assert res.status_code == 409
    assert res.json() == {"error": "Already in cart"}
    assert client.get("/api/cart", headers=headers).json()["item_count"] == 1


def test_add_unknown_or_hidden_product_is_404(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    hidden = make_product(s.id, moderation_status="pending")

    assert client.post("/api/cart/items", json={"product_id": 9999}, headers=headers).status_code == 404
    assert client.post("/api/cart/items", json={"product_id": hidden.id}, headers=headers).status_code == 404


def test_update_quantity(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    p = make_product(s.id, price="3.00")
    client.post("/api/cart/items", json={"product_id": p.id}, headers=headers)

    res = client.patch(f"/api/cart/items/{p.id}", json={"quantity": 4}, headers=headers)
    assert res.status_code == 200
    assert res.json()["total"] == 12.0

    bad = client.patch(f"/api/cart/items/{p.id}", json={"quantity": 0}, headers=headers)
    assert bad.status_code == 400
    assert bad.json() == {"error": "Quantity must be at least 1"}


def test_remove_and_clear(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    a = make_product(s.id, title="A")
    b = make_product(s.id, title="B")
    for p in (a, b):
        client.post("/api/cart/items", json={"product_id": p.id}, headers=headers)

    res = client.delete(f"/api/cart/items/{a.id}", headers=headers)
    assert [it["product_id"] for it in res.json()["items"]] == [b.id]
    assert client.delete(f"/api/cart/items/{a.id}", headers=headers).status_code == 404

    client.delete("/api/cart", headers=headers)
    assert client.get("/api/cart", headers=headers).json()["items"] == []


def test_remove_products_only_touches_given_ids(db, buyer, seller, make_product):
    user, _ = buyer
    s, _ = seller
    a = make_product(s.id, title="A")
    b = make_product(s.id, title="B")
    cart_service.add_item(db, user.id, a.id)
    cart_service.add_item(db, user.id, b.id)

    removed = cart_service.remove_products(db, user.id, [a.id, a.id])

    assert removed == 1
    assert not cart_service.is_in_cart(db, user.id, a.id)
    assert cart_service.is_in_cart(db, user.id, b.id)
