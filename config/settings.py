"""
DigitalHub - Centralized Configuration
=======================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
import sys
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME")

# A full URL (e.g. sqlite for local runs and tests) wins over the DB_* parts
DATABASE_URL = os.getenv("DATABASE_URL", "")

if not DATABASE_URL:
    if not all([DB_USER, DB_PASSWORD, DB_HOST, DB_NAME]):
        print("[ERROR] Critical: Database config missing in .env (DATABASE_URL or DB_USER, DB_PASSWORD, DB_HOST, DB_NAME)")
        sys.exit(1)
    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# ==========================================
# 🔐 Security
# ==========================================
SECRET_KEY = os.getenv("SECRET_KEY")
STORAGE_SIGNING_KEY = os.getenv("STORAGE_SIGNING_KEY", SECRET_KEY or "")

if not SECRET_KEY:
    print("[ERROR] Critical: Security key missing in .env (SECRET_KEY)")
    sys.exit(1)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days

PASSWORD_HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS") or "260000")
PASSWORD_MIN_LENGTH = 6


# ==========================================
# 💳 Payment Provider (Dodo Payments)
# ==========================================
DODO_PAYMENTS_API_KEY = os.getenv("DODO_PAYMENTS_API_KEY", "")
DODO_WEBHOOK_KEY = os.getenv("DODO_WEBHOOK_KEY", "")
DODO_LIVE_MODE = os.getenv("DODO_LIVE_MODE", "false").lower() == "true"
DODO_API_BASE = os.getenv(
    "DODO_API_BASE",
    "https://live.dodopayments.com" if DODO_LIVE_MODE else "https://test.dodopayments.com",
)
PAYMENT_API_TIMEOUT = float(os.getenv("PAYMENT_API_TIMEOUT") or "30")
CURRENCY_MINOR_UNITS = 100  # cents per dollar

WEBHOOK_EVENT_RETENTION_DAYS = int(os.getenv("WEBHOOK_EVENT_RETENTION_DAYS") or "30")


# ==========================================
# 📁 File Storage
# ==========================================
STORAGE_DIR = os.getenv("STORAGE_DIR", "storage")
PUBLIC_BUCKETS = {"product-thumbnails", "avatars"}
PRIVATE_BUCKETS = {"product-files"}
SIGNED_URL_EXPIRE_SECONDS = 60
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB (images)
MAX_PRODUCT_FILE_SIZE = int(os.getenv("MAX_PRODUCT_FILE_SIZE") or str(200 * 1024 * 1024))
DEFAULT_IMAGE_MAX_SIZE = (800, 800)
AVATAR_MAX_SIZE = (256, 256)


# ==========================================
# 🛍️ Marketplace
# ==========================================
PRODUCTS_PER_PAGE = 12
PROFILE_BIO_MAX_LENGTH = 500
# Moderation status given to newly created seller products
DEFAULT_MODERATION_STATUS = os.getenv("DEFAULT_MODERATION_STATUS", "approved")


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"

# Base URL for signed links and vendor return URLs
BASE_URL = os.getenv("BASE_URL", "http://127.0.0.1:8000")

# Comma-separated origins allowed to call the API from a browser
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
