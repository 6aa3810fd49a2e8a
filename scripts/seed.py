"""
DigitalHub - Development Seeder
=================================
Seeds an admin account, a demo seller, and a small catalog for local runs.

Usage:
    python scripts/seed.py          # Seed (idempotent)
    python scripts/seed.py --reset  # Drop all data and reseed

Credentials are read from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD when set.
"""

import sys
import os
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.database import SessionLocal, Base, engine
from common.security import hash_password
from modules.user.models import User, Profile, UserRole, AppRole
from modules.catalog.models import Product, ModerationStatus
from scripts.init_db import init_db

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@digitalhub.local")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
SELLER_EMAIL = "studio@digitalhub.local"

DEMO_PRODUCTS = [
    {"title": "Minimal Icon Pack", "category": "Graphics", "price": "12.00", "original_price": "19.00"},
    {"title": "Lo-fi Loops Vol. 1", "category": "Audio", "price": "0", "is_free": True},
    {"title": "Notion Planner Template", "category": "Templates", "price": "7.50"},
    {"title": "Procreate Brush Set", "category": "Graphics", "price": "15.00"},
]


def _ensure_user(db, email, password, display_name, roles=(AppRole.USER.value,), seller=False):
    user = db.query(User).filter(User.email == email).first()
    if user:
        print(f"  = exists: {email}")
        return user

    user = User(email=email, password_hash=hash_password(password))
    user.profile = Profile(display_name=display_name, is_seller=seller)
    for role in roles:
        user.roles.append(UserRole(role=role))
    db.add(user)
    db.flush()
    print(f"  + {email} ({', '.join(roles)})")
    return user


def seed():
    db = SessionLocal()
    try:
        print("=" * 50)
        print("  DigitalHub - Development Seeder")
        print("=" * 50)

        # ==========================================
        # 1. Accounts
        # ==========================================
        print("\n[1/2] Accounts")
        _ensure_user(
            db, ADMIN_EMAIL, ADMIN_PASSWORD, "Admin",
            roles=(AppRole.USER.value, AppRole.ADMIN.value),
        )
        seller = _ensure_user(db, SELLER_EMAIL, ADMIN_PASSWORD, "Demo Studio", seller=True)

        # ==========================================
        # 2. Catalog
        # ==========================================
        print("\n[2/2] Catalog")
        for data in DEMO_PRODUCTS:
            if db.query(Product.id).filter(Product.seller_id == seller.id, Product.title == data["title"]).first():
                print(f"  = exists: {data['title']}")
                continue
            db.add(Product(
                seller_id=seller.id,
                title=data["title"],
                category=data["category"],
                price=Decimal(data["price"]),
                original_price=Decimal(data["original_price"]) if data.get("original_price") else None,
                is_free=data.get("is_free", False),
                is_published=True,
                moderation_status=ModerationStatus.APPROVED.value,
            ))
            print(f"  + {data['title']}")

        db.commit()
        print("\nSeed complete.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    if "--reset" in sys.argv:
        confirm = input("This will DROP all tables. Type 'yes': ")
        if confirm.strip().lower() != "yes":
            print("Aborted.")
            sys.exit(0)
        Base.metadata.drop_all(bind=engine)
    init_db()
    seed()
