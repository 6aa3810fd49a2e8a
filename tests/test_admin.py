"""Admin console: overview, analytics, sellers, roles, orders, webhook housekeeping."""

from datetime import timedelta

from common.helpers import now_utc
from modules.order.models import Order, OrderItem
from modules.order.service import order_service
from modules.payment.models import WebhookEvent
from modules.payment.service import payment_service


def test_admin_routes_require_admin(client, buyer):
    _, headers = buyer
    assert client.get("/api/admin/overview").status_code == 401
    assert client.get("/api/admin/overview", headers=headers).status_code == 403


def test_overview_counts(client, admin, seller, make_user, make_product):
    _, headers = admin
    s, _ = seller
    make_product(s.id)
    make_product(s.id, moderation_status="pending")
    _, applicant_headers = make_user("applicant@example.com")
    client.post("/api/profile/seller-request", headers=applicant_headers)

    stats = client.get("/api/admin/overview", headers=headers).json()

    assert stats == {
        "total_users": 3,
        "total_sellers": 1,
        "total_products": 2,
        "pending_seller_requests": 1,
        "pending_products": 1,
    }


def test_seller_approval_flow(client, admin, make_user):
    _, admin_headers = admin
    _, user_headers = make_user("hopeful@example.com")
    profile_id = client.post("/api/profile/seller-request", headers=user_headers).json()["profile"]["id"]

    requests = client.get("/api/admin/seller-requests", headers=admin_headers).json()["profiles"]
    assert [p["id"] for p in requests] == [profile_id]

    approved = client.post(f"/api/admin/profiles/{profile_id}/approve-seller", headers=admin_headers).json()
    assert approved["profile"]["is_seller"] is True
    assert approved["profile"]["seller_request_pending"] is False
    assert client.get("/api/seller/products", headers=user_headers).status_code == 200

    client.post(f"/api/admin/profiles/{profile_id}/revoke-seller", headers=admin_headers)
    assert client.get("/api/seller/products", headers=user_headers).status_code == 403


def test_reject_seller_request(client, admin, make_user):
    _, admin_headers = admin
    _, user_headers = make_user("maybe@example.com")
    profile_id = client.post("/api/profile/seller-request", headers=user_headers).json()["profile"]["id"]

    rejected = client.post(f"/api/admin/profiles/{profile_id}/reject-seller", headers=admin_headers).json()
    assert rejected["profile"]["is_seller"] is False
    assert client.get("/api/admin/seller-requests", headers=admin_headers).json()["profiles"] == []


def test_grant_and_revoke_roles(client, admin, buyer):
    _, admin_headers = admin
    user, _ = buyer

    granted = client.post(f"/api/admin/users/{user.id}/roles", json={"role": "moderator"}, headers=admin_headers)
    assert granted.json()["roles"] == ["moderator", "user"]

    revoked = client.delete(f"/api/admin/users/{user.id}/roles/moderator", headers=admin_headers)
    assert revoked.json()["roles"] == ["user"]

    unknown = client.post(f"/api/admin/users/{user.id}/roles", json={"role": "owner"}, headers=admin_headers)
    assert unknown.status_code == 400


def test_users_listing(client, admin, buyer):
    _, headers = admin
    emails = {u["email"] for u in client.get("/api/admin/users", headers=headers).json()["users"]}
    assert emails == {"admin@example.com", "buyer@example.com"}


def test_orders_list_filter_and_delete(client, db, admin, buyer, seller, make_product):
    _, admin_headers = admin
    user, _ = buyer
    s, _ = seller
    p = make_product(s.id)
    order = order_service.create_from_payment(db, user.id, "pay_x", [
        {"id": p.id, "title": p.title, "price": 10.0, "qty": 1},
    ])
    db.commit()
    order_id = order.id

    listed = client.get("/api/admin/orders", headers=admin_headers).json()["orders"]
    assert [(o["id"], o["customer_email"]) for o in listed] == [(order_id, "buyer@example.com")]
    assert client.get("/api/admin/orders", params={"status": "refunded"}, headers=admin_headers).json()["orders"] == []

    assert client.delete(f"/api/admin/orders/{order_id}", headers=admin_headers).json() == {"success": True}
    db.expire_all()
    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0
    assert client.delete(f"/api/admin/orders/{order_id}", headers=admin_headers).status_code == 404


def test_analytics_revenue_and_top_products(client, db, admin, buyer, seller, make_product):
    _, headers = admin
    user, _ = buyer
    s, _ = seller
    popular = make_product(s.id, title="Popular", download_count=9)
    make_product(s.id, title="Quiet")
    order_service.create_from_payment(db, user.id, "pay_a", [
        {"id": popular.id, "title": "Popular", "price": 10.0, "qty": 1},
    ], total_minor=1000)
    order_service.create_from_payment(db, user.id, "pay_b", [
        {"id": popular.id, "title": "Popular", "price": 5.5, "qty": 1},
    ], total_minor=550)
    db.commit()

    data = client.get("/api/admin/analytics", params={"days": 7}, headers=headers).json()

    assert data["total_revenue"] == 15.5
    assert data["completed_orders"] == 2
    assert sum(d["count"] for d in data["daily"]) == 2
    assert data["top_products"][0]["title"] == "Popular"


def test_admin_can_delete_any_product(client, admin, seller, make_product):
    _, headers = admin
    s, _ = seller
    p = make_product(s.id)

    assert client.delete(f"/api/admin/products/{p.id}", headers=headers).json() == {"success": True}
    assert client.get(f"/api/products/{p.id}").status_code == 404


def test_prune_webhook_events(db):
    db.add(WebhookEvent(webhook_id="old", event_type="payment.succeeded", received_at=now_utc() - timedelta(days=45)))
    db.add(WebhookEvent(webhook_id="new", event_type="payment.succeeded"))
    db.commit()

    assert payment_service.prune_webhook_events(db, retention_days=30) == 1
    assert [e.webhook_id for e in db.query(WebhookEvent).all()] == ["new"]
