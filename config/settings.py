"""
Storefront – Django Settings (Infrastructure Only)
====================================================
Django serves as the framework container for the storefront core.
Engines own the business rules; Django provides persistence,
transactions and HTTP routing.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get(
    "STOREFRONT_SECRET_KEY", "storefront-dev-key-replace-before-deployment"
)

DEBUG = os.environ.get("STOREFRONT_DEBUG", "1") == "1"

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    # ── Storefront modules ────────────────────────────────
    "adapters.django_store",
]

# ── Middleware ────────────────────────────────────────────────
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

# ── URL ───────────────────────────────────────────────────────
ROOT_URLCONF = "config.urls"
APPEND_SLASH = False

# ── Database ──────────────────────────────────────────────────
# SQLite for development. Production DB configured separately.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("STOREFRONT_DB_PATH", BASE_DIR / "db.sqlite3"),
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Checkout ──────────────────────────────────────────────────
# Amounts in minor units. Read by core.config.load_checkout_config().
STOREFRONT_CHECKOUT = {
    "CURRENCY": "BDT",
    "SHIPPING_FLAT_FEE": 5000,
    "TAX_RATE": "0.05",
    "MANUAL_REFERENCE_MIN_LENGTH": 5,
    "RECONCILE_STOCK_ON_ITEM_EDIT": True,
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "storefront": {
            "handlers": ["console"],
            "level": os.environ.get("STOREFRONT_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
