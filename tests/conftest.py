"""Shared fixtures: in-memory SQLite app, users with bearer tokens, products.

Invariants:
    - Environment is configured before any project module is imported
      (config.settings reads it at import time)
    - Every test gets freshly created tables, dropped afterwards
    - Seeding helpers commit, so request sessions see the rows
"""

import base64
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DODO_PAYMENTS_API_KEY"] = "test_dodo_api_key"
os.environ["DODO_WEBHOOK_KEY"] = "whsec_" + base64.b64encode(b"digitalhub-test-webhook-key").decode()
os.environ["DODO_API_BASE"] = "https://test.dodopayments.com"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["BASE_URL"] = "http://testserver"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="digitalhub-test-")

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from config.database import Base, SessionLocal, engine  # noqa: E402
from main import app  # noqa: E402
from common.security import hash_password  # noqa: E402
from modules.auth.service import auth_service  # noqa: E402
from modules.catalog.models import Product  # noqa: E402
from modules.user.models import User, Profile, UserRole, AppRole  # noqa: E402


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Factory: make_user(email, admin=False, seller=False, display_name=None) -> (user, headers)."""
    counter = {"n": 0}

    def _make(email=None, admin=False, seller=False, display_name=None):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        user = User(email=email, password_hash=hash_password("secret123"))
        user.profile = Profile(display_name=display_name, is_seller=seller)
        user.roles.append(UserRole(role=AppRole.USER.value))
        if admin:
            user.roles.append(UserRole(role=AppRole.ADMIN.value))
        db.add(user)
        db.commit()
        db.refresh(user)
        headers = {"Authorization": f"Bearer {auth_service.issue_token(user)}"}
        return user, headers

    return _make


@pytest.fixture
def buyer(make_user):
    return make_user("buyer@example.com", display_name="Buyer")


@pytest.fixture
def seller(make_user):
    return make_user("seller@example.com", seller=True, display_name="Pixel Studio")


@pytest.fixture
def admin(make_user):
    return make_user("admin@example.com", admin=True, display_name="Admin")


@pytest.fixture
def make_product(db):
    """Factory: visible (published + approved) product unless overridden."""

    def _make(seller_id, title="Icon Pack", price="10.00", **fields):
        values = {
            "category": "Graphics",
            "is_free": False,
            "is_published": True,
            "moderation_status": "approved",
        }
        values.update(fields)
        product = Product(seller_id=seller_id, title=title, price=Decimal(str(price)), **values)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make
