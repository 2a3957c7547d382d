from pathlib import Path
import os
from datetime import timedelta
from dotenv import load_dotenv

# ───────────── BASE / ENV ─────────────
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


def _to_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in ("1", "true", "t", "yes", "y", "on")


def env_str(key, default=""):
    return os.getenv(key, default)


def env_bool(key, default=False):
    return _to_bool(os.getenv(key), default)


def env_int(key, default=0):
    v = os.getenv(key)
    try:
        return int(v) if v is not None else default
    except ValueError:
        return default


def env_list(key, default=""):
    return [item.strip() for item in env_str(key, default).split(",") if item.strip()]


# ───────────── Base Config ─────────────
SECRET_KEY = env_str("SECRET_KEY", "django-insecure-change-me")
DEBUG = env_bool("DEBUG", False)
ALLOWED_HOSTS = env_list("ALLOWED_HOSTS", "127.0.0.1,localhost,testserver")

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ───────────── Installed Apps ─────────────
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "django_q",
    "common",
    "payment",
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

ROOT_URLCONF = "backend.urls"
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]
WSGI_APPLICATION = "backend.wsgi.application"

# ───────────── Database ─────────────
DATABASES = {
    "default": {
        "ENGINE": env_str("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": env_str("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": env_str("DB_USER", ""),
        "PASSWORD": env_str("DB_PASSWORD", ""),
        "HOST": env_str("DB_HOST", ""),
        "PORT": env_str("DB_PORT", ""),
    }
}

# ───────────── Auth / JWT ─────────────
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "common.authentication.CustomJWTAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=env_int("JWT_ACCESS_MINUTES", 60)),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=env_int("JWT_REFRESH_DAYS", 7)),
    "AUTH_HEADER_TYPES": ("Bearer",),
}

# ───────────── i18n ─────────────
LANGUAGE_CODE = "vi"
TIME_ZONE = "Asia/Ho_Chi_Minh"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# ───────────── VNPay ─────────────
VNPAY_TMN_CODE = env_str("VNPAY_TMN_CODE", "").strip()
VNPAY_HASH_SECRET = env_str("VNPAY_HASH_SECRET", "").strip()
VNPAY_URL = env_str("VNPAY_URL", "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html")
VNPAY_RETURN_URL = env_str("VNPAY_RETURN_URL", "http://localhost:8000/api/payment/vnpay/return/")
VNPAY_API_URL = env_str("VNPAY_API_URL", "https://sandbox.vnpayment.vn/merchant_webapi/api/transaction")
VNPAY_FRONTEND_RESULT_URL = env_str("VNPAY_FRONTEND_RESULT_URL", "")
# Host (kèm port) của frontend được phép redirect về sau thanh toán
VNPAY_ALLOWED_REDIRECT_HOSTS = env_list("VNPAY_ALLOWED_REDIRECT_HOSTS", "localhost:3000")
VNPAY_EXPIRE_MINUTES = env_int("VNPAY_EXPIRE_MINUTES", 15)
VNPAY_RECONCILE_AFTER_MINUTES = env_int("VNPAY_RECONCILE_AFTER_MINUTES", 15)
VNPAY_API_TIMEOUT = env_int("VNPAY_API_TIMEOUT", 30)

# ───────────── Django-Q ─────────────
Q_CLUSTER = {
    "name": "storefront",
    "workers": env_int("Q_WORKERS", 2),
    "timeout": 120,
    "retry": 180,
    "orm": "default",
}

# ───────────── Logging ─────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{levelname}] {asctime} {name} :: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO"},
        "payment": {"handlers": ["console"], "level": env_str("PAYMENT_LOG_LEVEL", "INFO"), "propagate": False},
        "common": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}
