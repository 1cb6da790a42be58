"""
Django settings for the UAV license registry.

Everything deployment-specific is read from the environment so the same
settings module serves local development, the web host and the cron job.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# =====================================================
# CORE
# =====================================================
SECRET_KEY = os.environ.get(
    "DJANGO_SECRET_KEY",
    "django-insecure-uav-registry-development-key",
)

DEBUG = env_flag("DJANGO_DEBUG", default=False)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")
    if host.strip()
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "accounts",
    "pilots",
    "notifications",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "middleware.auth_required.LoginRequiredMiddleware",
]

ROOT_URLCONF = "uav_registry.urls"

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

WSGI_APPLICATION = "uav_registry.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =====================================================
# AUTH / SESSION
# =====================================================
LOGIN_URL = "/auth/login/"
LOGIN_REDIRECT_URL = "/"

# Admin sessions last two hours
SESSION_COOKIE_AGE = 2 * 60 * 60

# =====================================================
# LOCALE (single-locale product)
# =====================================================
LANGUAGE_CODE = "he"
TIME_ZONE = os.environ.get("TIME_ZONE", "Asia/Jerusalem")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# =====================================================
# EMAIL (used by the "django" reminder backend)
# =====================================================
EMAIL_BACKEND = os.environ.get(
    "EMAIL_BACKEND", "django.core.mail.backends.smtp.EmailBackend"
)
EMAIL_HOST = os.environ.get("EMAIL_HOST", "smtp.gmail.com")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "587"))
EMAIL_USE_TLS = env_flag("EMAIL_USE_TLS", default=True)
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_TIMEOUT = int(os.environ.get("EMAIL_TIMEOUT", "10"))
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", EMAIL_HOST_USER)

# =====================================================
# REMINDERS
# =====================================================
# In-process APScheduler. Leave disabled when an external cron runs
# `manage.py send_expiry_reminders`.
ENABLE_SCHEDULER = env_flag("ENABLE_SCHEDULER", default=False)
REMINDER_CRON_HOUR = int(os.environ.get("REMINDER_CRON_HOUR", "8"))
REMINDER_CRON_MINUTE = int(os.environ.get("REMINDER_CRON_MINUTE", "0"))

UAV_REMINDERS = {
    "lead_days": int(os.environ.get("REMINDER_LEAD_DAYS", "45")),
    "send_delay_seconds": float(os.environ.get("REMINDER_SEND_DELAY", "1.0")),
    "request_timeout": float(os.environ.get("REMINDER_REQUEST_TIMEOUT", "10")),
    "retention_days": int(os.environ.get("REMINDER_RETENTION_DAYS", "365")),
    "backend": os.environ.get("REMINDER_BACKEND", "emailjs"),
    "emailjs_service_id": os.environ.get("EMAILJS_SERVICE_ID", ""),
    "emailjs_template_id": os.environ.get("EMAILJS_TEMPLATE_ID", ""),
    "emailjs_public_key": os.environ.get("EMAILJS_PUBLIC_KEY", ""),
    "emailjs_private_key": os.environ.get("EMAILJS_PRIVATE_KEY", ""),
    "from_email": DEFAULT_FROM_EMAIL,
}

# =====================================================
# LOGGING
# =====================================================
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
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "apscheduler": {
            "level": "WARNING",
        },
    },
}
