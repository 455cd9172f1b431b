"""
Django settings for the example web app.

No database: the OAuth state and token live in a signed session cookie.
"""

import os
from pathlib import Path

from monzo_bridge.config import (
    DEFAULT_API_URL,
    DEFAULT_AUTH_URL,
    DEFAULT_REDIRECT_URL,
    DEFAULT_TOKEN_URL,
)

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent

# Security settings
SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-secret-key-change-in-production")
DEBUG = os.environ.get("DJANGO_DEBUG", "True").lower() == "true"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,*").split(",")

# Application definition
INSTALLED_APPS = [
    "monzo_bridge.web",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
]

ROOT_URLCONF = "monzo_bridge.web.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
            ],
        },
    },
]

DATABASES = {}

# Session settings - the whole session is a signed cookie
SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"
SESSION_COOKIE_AGE = 86400  # 1 day in seconds
SESSION_COOKIE_SAMESITE = "Lax"  # Must survive the top-level redirect back from Monzo
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "false").lower() in (
    "true",
    "1",
    "yes",
)  # Set True in production with HTTPS

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
        },
        "monzo_bridge": {
            "handlers": ["console"],
            "level": "INFO",
        },
    },
}

# Monzo settings
# These are set at runtime from config (see app.run_server)
MONZO_API_URL = os.environ.get("MONZO_API_URL", DEFAULT_API_URL)
MONZO_TIMEOUT = float(os.environ["MONZO_TIMEOUT"]) if os.environ.get("MONZO_TIMEOUT") else None
MONZO_CLIENT_ID = os.environ.get("MONZO_CLIENT_ID", "")
MONZO_CLIENT_SECRET = os.environ.get("MONZO_CLIENT_SECRET", "")
MONZO_REDIRECT_URL = os.environ.get("MONZO_REDIRECT_URL", DEFAULT_REDIRECT_URL)
MONZO_AUTH_URL = os.environ.get("MONZO_AUTH_URL", DEFAULT_AUTH_URL)
MONZO_TOKEN_URL = os.environ.get("MONZO_TOKEN_URL", DEFAULT_TOKEN_URL)
