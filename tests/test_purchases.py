"""Purchases, signed downloads, and seller sales views."""

import os

from config.settings import STORAGE_DIR
from modules.catalog.models import Product
from modules.order.service import order_service


def write_product_file(path="1/pack.zip", content=b"PK-data"):
    full = os.path.join(STORAGE_DIR, "product-files", path)
    os.makedirs(os.path.dirname(full), exist_ok=True)
    with open(full, "wb") as f:
        f.write(content)
    return path


def purchase(db, user, product, payment_id="pay_1", qty=1):
    order = order_service.create_from_payment(db, user.id, payment_id, [
        {"id": product.id, "title": product.title, "price": float(product.price), "qty": qty},
    ])
    db.commit()
    return order


# ==========================================
# Purchases
# ==========================================

def test_purchases_list_and_latest(client, db, buyer, seller, make_product):
    user, headers = buyer
    s, _ = seller
    first = make_product(s.id, title="First")
    second = make_product(s.id, title="Second")
    purchase(db, user, first, "pay_1")
    purchase(db, user, second, "pay_2")

    orders = client.get("/api/profile/purchases", headers=headers).json()["orders"]
    assert [o["items"][0]["product"]["title"] for o in orders] == ["Second", "First"]

    latest = client.get("/api/profile/purchases/latest", headers=headers).json()["order"]
    assert latest["payment_id"] == "pay_2"
    assert latest["status"] == "completed"


def test_latest_is_null_without_orders(client, buyer):
    _, headers = buyer
    assert client.get("/api/profile/purchases/latest", headers=headers).json() == {"order": None}


def test_create_from_payment_is_idempotent(db, buyer, seller, make_product):
    user, _ = buyer
    s, _ = seller
    p = make_product(s.id)

    assert purchase(db, user, p, "pay_same") is not None
    assert purchase(db, user, p, "pay_same") is None


# ==========================================
# Downloads
# ==========================================

def test_paid_product_requires_purchase(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    p = make_product(s.id, file_url=write_product_file())

    res = client.post(f"/api/products/{p.id}/download", headers=headers)
    assert res.status_code == 403
    assert res.json() == {"error": "You have not purchased this product"}


def test_free_product_downloads_and_counts(client, db, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    p = make_product(s.id, price="0", is_free=True, file_url=write_product_file())

    res = client.post(f"/api/products/{p.id}/download", headers=headers)

    assert res.status_code == 200
    data = res.json()
    assert data["title"] == p.title
    assert f"/files/product-files/{p.file_url}?token=" in data["url"]
    db.expire_all()
    assert db.get(Product, p.id).download_count == 1


def test_purchased_item_download_serves_file(client, db, buyer, seller, make_product):
    user, headers = buyer
    s, _ = seller
    p = make_product(s.id, file_url=write_product_file(content=b"the goods"))
    order = purchase(db, user, p)

    res = client.post(f"/api/profile/purchases/{order.items[0].id}/download", headers=headers)
    assert res.status_code == 200

    file_res = client.get(res.json()["url"])
    assert file_res.status_code == 200
    assert file_res.content == b"the goods"


def test_someone_elses_order_item_is_404(client, db, buyer, make_user, seller, make_product):
    user, _ = buyer
    _, other_headers = make_user("other@example.com")
    s, _ = seller
    p = make_product(s.id, file_url=write_product_file())
    order = purchase(db, user, p)

    res = client.post(f"/api/profile/purchases/{order.items[0].id}/download", headers=other_headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Purchase not found"}


def test_product_without_file_is_unavailable(client, db, buyer, seller, make_product):
    user, headers = buyer
    s, _ = seller
    p = make_product(s.id)
    purchase(db, user, p)

    res = client.post(f"/api/products/{p.id}/download", headers=headers)
    assert res.status_code == 404
    assert res.json() == {"error": "Download unavailable"}


def test_private_file_requires_valid_token(client):
    path = write_product_file("9/secret.zip")

    assert client.get(f"/files/product-files/{path}").status_code == 403
    assert client.get(f"/files/product-files/{path}", params={"token": "forged"}).status_code == 403


# ==========================================
# Seller sales
# ==========================================

def test_seller_orders_and_earnings(client, db, buyer, seller, make_user, make_product):
    user, _ = buyer
    s, seller_headers = seller
    other_seller, _ = make_user("other-seller@example.com", seller=True)
    mine = make_product(s.id, title="Mine", price="10.00")
    theirs = make_product(other_seller.id, title="Theirs", price="99.00")
    order_service.create_from_payment(db, user.id, "pay_mix", [
        {"id": mine.id, "title": "Mine", "price": 10.0, "qty": 2},
        {"id": theirs.id, "title": "Theirs", "price": 99.0, "qty": 1},
    ])
    db.commit()

    orders = client.get("/api/seller/orders", headers=seller_headers).json()["orders"]
    assert [(o["product_title"], o["quantity"], o["buyer"]) for o in orders] == [("Mine", 2, "Buyer")]

    earnings = client.get("/api/seller/earnings", headers=seller_headers).json()
    assert earnings["total_revenue"] == 20.0
    assert earnings["sales_count"] == 2
    assert sum(d["revenue"] for d in earnings["daily"]) == 20.0


def test_expired_signed_url_is_403(client):
    from common.storage import create_signed_url

    path = write_product_file("9/old.zip")
    fresh = create_signed_url("product-files", path)
    expired = create_signed_url("product-files", path, expires_in=-1)

    assert client.get(fresh).status_code == 200
    assert client.get(expired).status_code == 403


def test_token_is_bound_to_one_object(client):
    from common.security import create_storage_token

    write_product_file("9/a.zip")
    write_product_file("9/b.zip")
    token = create_storage_token("product-files", "9/a.zip")

    assert client.get("/files/product-files/9/a.zip", params={"token": token}).status_code == 200
    assert client.get("/files/product-files/9/b.zip", params={"token": token}).status_code == 403
    other_bucket = create_storage_token("avatars", "9/a.zip")
    assert client.get("/files/product-files/9/a.zip", params={"token": other_bucket}).status_code == 403
