"""Webhook receiver: Standard Webhooks signatures and event dispatch.

Invariants:
    - Deliveries signed with the whsec_ key verify; v1 candidates only
    - A tampered body never matches; invalid signatures are rejected with 401
    - payment.succeeded creates exactly one order per payment, even on redelivery
    - Once verified and parsed, the vendor always gets 200
"""

import base64
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from standardwebhooks.webhooks import Webhook

from common.exceptions import ValidationError, WebhookAuthError
from config.settings import DODO_WEBHOOK_KEY
from modules.cart.models import CartItem
from modules.cart.service import cart_service
from modules.order.models import Order, OrderItem
from modules.payment.models import WebhookEvent
from modules.payment.webhook import verify_delivery

SECRET = DODO_WEBHOOK_KEY
OTHER_SECRET = "whsec_" + base64.b64encode(b"somebody-elses-key").decode()
URL = "/api/webhooks/dodo"


def signed_headers(body: bytes, webhook_id="msg_1", sent_at=None, secret=SECRET):
    sent_at = sent_at or datetime.now(timezone.utc)
    signature = Webhook(secret).sign(webhook_id, sent_at, body.decode())
    return {
        "webhook-id": webhook_id,
        "webhook-timestamp": str(int(sent_at.timestamp())),
        "webhook-signature": signature,
        "content-type": "application/json",
    }


def succeeded_event(user_id, items, payment_id="pay_abc", total_amount=4000):
    return {
        "type": "payment.succeeded",
        "data": {
            "payment_id": payment_id,
            "total_amount": total_amount,
            "metadata": {
                "user_id": str(user_id),
                "cart_items": json.dumps(items),
            },
        },
    }


def post_event(client, event, webhook_id="msg_1"):
    body = json.dumps(event).encode()
    return client.post(URL, content=body, headers=signed_headers(body, webhook_id))


# ==========================================
# Signature verification
# ==========================================

def test_whsec_signed_delivery_verifies():
    body = b'{"type":"payment.succeeded"}'
    assert verify_delivery(SECRET, signed_headers(body), body) == {"type": "payment.succeeded"}


def test_tampered_body_does_not_match():
    body = b'{"type":"payment.succeeded","data":{"total_amount":4000}}'
    headers = signed_headers(body)
    with pytest.raises(WebhookAuthError):
        verify_delivery(SECRET, headers, body.replace(b"4000", b"1"))


def test_only_v1_candidates_accepted():
    body = b"{}"
    headers = signed_headers(body)
    headers["webhook-signature"] = headers["webhook-signature"].replace("v1,", "v2,")
    with pytest.raises(WebhookAuthError):
        verify_delivery(SECRET, headers, body)


def test_any_of_several_candidates_may_match():
    body = b"{}"
    headers = signed_headers(body)
    headers["webhook-signature"] = "v1,bm90LXRoZS1zaWc= " + headers["webhook-signature"]
    assert verify_delivery(SECRET, headers, body) == {}


def test_malformed_signature_header_rejected():
    body = b"{}"
    headers = signed_headers(body)
    headers["webhook-signature"] = "garbage"
    with pytest.raises(WebhookAuthError):
        verify_delivery(SECRET, headers, body)


def test_stale_timestamp_rejected():
    body = b"{}"
    headers = signed_headers(body, sent_at=datetime.now(timezone.utc) - timedelta(minutes=10))
    with pytest.raises(WebhookAuthError):
        verify_delivery(SECRET, headers, body)


def test_signed_but_malformed_json_is_validation_error():
    body = b"{not json"
    with pytest.raises(ValidationError):
        verify_delivery(SECRET, signed_headers(body), body)


# ==========================================
# Endpoint: rejected input
# ==========================================

def test_missing_headers_returns_400(client):
    res = client.post(URL, content=b"{}")
    assert res.status_code == 400
    assert res.json() == {"error": "Missing webhook headers"}


def test_invalid_signature_returns_401_and_creates_nothing(client, buyer, db):
    user, _ = buyer
    body = json.dumps(succeeded_event(user.id, [{"id": 1, "title": "X", "price": 10, "qty": 1}])).encode()
    headers = signed_headers(body, secret=OTHER_SECRET)

    res = client.post(URL, content=body, headers=headers)

    assert res.status_code == 401
    assert res.json() == {"error": "Invalid webhook signature"}
    assert db.query(Order).count() == 0
    assert db.query(WebhookEvent).count() == 0


def test_malformed_json_returns_400(client):
    body = b"{not json"
    res = client.post(URL, content=body, headers=signed_headers(body))
    assert res.status_code == 400
    assert res.json() == {"error": "Invalid JSON payload"}


def test_missing_secret_returns_500(client):
    body = b"{}"
    with patch("modules.payment.service.DODO_WEBHOOK_KEY", ""):
        res = client.post(URL, content=body, headers=signed_headers(body))
    assert res.status_code == 500


# ==========================================
# Endpoint: dispatch
# ==========================================

def test_payment_succeeded_creates_order_and_clears_purchased_cart_items(
    client, buyer, seller, make_product, db,
):
    user, _ = buyer
    s, _ = seller
    ten = make_product(s.id, title="Ten", price="10.00")
    fifteen = make_product(s.id, title="Fifteen", price="15.00")
    other = make_product(s.id, title="Still Wanted", price="5.00")
    for p in (ten, fifteen, other):
        cart_service.add_item(db, user.id, p.id)
    db.commit()

    event = succeeded_event(user.id, [
        {"id": ten.id, "title": "Ten", "price": 10.0, "qty": 1},
        {"id": fifteen.id, "title": "Fifteen", "price": 15.0, "qty": 2},
    ])
    res = post_event(client, event)

    assert res.status_code == 200
    assert res.json() == {"received": True}

    db.expire_all()
    order = db.query(Order).one()
    assert order.user_id == user.id
    assert order.payment_id == "pay_abc"
    assert order.status == "completed"
    assert float(order.total_amount) == 40.0
    items = sorted((oi.product_id, float(oi.price), oi.quantity) for oi in order.items)
    assert items == sorted([(ten.id, 10.0, 1), (fifteen.id, 15.0, 2)])

    remaining = [ci.product_id for ci in db.query(CartItem).all()]
    assert remaining == [other.id]


def test_redelivery_creates_single_order(client, buyer, seller, make_product, db):
    user, _ = buyer
    s, _ = seller
    p = make_product(s.id)
    event = succeeded_event(user.id, [{"id": p.id, "title": p.title, "price": 10.0, "qty": 1}], total_amount=1000)

    first = post_event(client, event, webhook_id="msg_1")
    second = post_event(client, event, webhook_id="msg_1")

    assert first.json() == {"received": True}
    assert second.json() == {"received": True, "duplicate": True}
    assert db.query(Order).count() == 1
    assert db.query(OrderItem).count() == 1


def test_same_payment_under_new_webhook_id_is_idempotent(client, buyer, seller, make_product, db):
    user, _ = buyer
    s, _ = seller
    p = make_product(s.id)
    event = succeeded_event(user.id, [{"id": p.id, "title": p.title, "price": 10.0, "qty": 1}], total_amount=1000)

    post_event(client, event, webhook_id="msg_1")
    res = post_event(client, event, webhook_id="msg_2")

    assert res.status_code == 200
    assert db.query(Order).count() == 1


def test_processing_failure_still_returns_200(client, buyer, db):
    user, _ = buyer
    event = {
        "type": "payment.succeeded",
        "data": {"payment_id": "pay_bad", "metadata": {"user_id": str(user.id), "cart_items": "not-json"}},
    }

    res = post_event(client, event)

    assert res.status_code == 200
    assert res.json() == {"received": True}
    assert db.query(Order).count() == 0


def test_refund_marks_order_refunded(client, buyer, seller, make_product, db):
    user, _ = buyer
    s, _ = seller
    p = make_product(s.id)
    post_event(client, succeeded_event(user.id, [{"id": p.id, "title": p.title, "price": 10.0, "qty": 1}]), "msg_1")

    res = post_event(client, {"type": "refund.succeeded", "data": {"payment_id": "pay_abc"}}, "msg_2")

    assert res.status_code == 200
    db.expire_all()
    assert db.query(Order).one().status == "refunded"


def test_payment_failed_without_order_is_acknowledged(client, db):
    res = post_event(client, {"type": "payment.failed", "data": {"payment_id": "pay_nope"}})
    assert res.status_code == 200
    assert db.query(Order).count() == 0


def test_unhandled_event_type_is_acknowledged(client):
    res = post_event(client, {"type": "subscription.renewed", "data": {}})
    assert res.status_code == 200
    assert res.json() == {"received": True}


def test_service_leaves_commit_to_the_caller(db, buyer, seller, make_product):
    from modules.payment.service import payment_service

    user, _ = buyer
    s, _ = seller
    p = make_product(s.id)
    body = json.dumps(succeeded_event(user.id, [{"id": p.id, "title": p.title, "price": 10.0, "qty": 1}])).encode()

    result = payment_service.handle_webhook(db, signed_headers(body), body)
    assert result == {"success": True, "duplicate": False}
    assert db.query(Order).count() == 1

    db.rollback()
    assert db.query(Order).count() == 0
    assert db.query(WebhookEvent).count() == 0
