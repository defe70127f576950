"""Django settings for the PawHaven marketplace project."""

from __future__ import annotations

import json
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me-in-production")
DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [host for host in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if host]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "marketplace",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": PROJECT_ROOT / "db.sqlite3",
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "marketplace-cache",
    }
}

SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "marketplace": {
            "handlers": ["console"],
            "level": os.getenv("MARKETPLACE_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}

EMAIL_BACKEND = os.getenv(
    "DJANGO_EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend"
)
ORDER_NOTIFICATION_FROM_EMAIL = os.getenv(
    "ORDER_NOTIFICATION_FROM_EMAIL", "adoptions@pawhaven.example"
)
ORDER_NOTIFICATION_ADMIN_EMAILS = [
    email for email in os.getenv("ORDER_NOTIFICATION_ADMIN_EMAILS", "").split(",") if email
]

# Pricing
BASE_CURRENCY = os.getenv("BASE_CURRENCY", "USD")
DISPLAY_EXCHANGE_RATE = float(os.getenv("DISPLAY_EXCHANGE_RATE", "1"))
RESERVATION_DEPOSIT_FRACTION = float(os.getenv("RESERVATION_DEPOSIT_FRACTION", "0.30"))
FLIGHT_NANNY_BASE_PRICE = float(os.getenv("FLIGHT_NANNY_BASE_PRICE", "500"))
GROUND_TRANSPORT_SETTINGS_CACHE_TTL_SECONDS = int(
    os.getenv("GROUND_TRANSPORT_SETTINGS_CACHE_TTL_SECONDS", "300")
)

# Payment processors
PAYMENTS_TIMEOUT_SECONDS = float(os.getenv("PAYMENTS_TIMEOUT_SECONDS", "15"))
PAYMENTS_RETRY_COUNT = int(os.getenv("PAYMENTS_RETRY_COUNT", "2"))
PAYMENTS_RETURN_BASE_URL = os.getenv("PAYMENTS_RETURN_BASE_URL", "http://localhost:8000")

STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_BASE_URL = os.getenv("STRIPE_BASE_URL", "https://api.stripe.com")

PAYPAL_CLIENT_ID = os.getenv("PAYPAL_CLIENT_ID", "")
PAYPAL_SECRET = os.getenv("PAYPAL_SECRET", "")
PAYPAL_MODE = os.getenv("PAYPAL_MODE", "sandbox")
PAYPAL_BRAND_NAME = os.getenv("PAYPAL_BRAND_NAME", "PawHaven")

CHECKOUTCOM_SECRET_KEY = os.getenv("CHECKOUTCOM_SECRET_KEY", "")
CHECKOUTCOM_PUBLIC_KEY = os.getenv("CHECKOUTCOM_PUBLIC_KEY", "")
CHECKOUTCOM_MODE = os.getenv("CHECKOUTCOM_MODE", "sandbox")

# Manual rails: JSON list of {"id", "region", "subtitle", "currency", "details": [{"label", "value"}]}
BANK_TRANSFER_ACCOUNTS = json.loads(os.getenv("BANK_TRANSFER_ACCOUNTS", "[]"))
USDT_WALLET = {
    "network": os.getenv("USDT_NETWORK", "TRC20 (Tron)"),
    "wallet_address": os.getenv("USDT_WALLET_ADDRESS", ""),
}
