"""
WSGI config for the KahawaPay backend.

It exposes the WSGI callable as a module-level variable named ``application``.
Optional boot-time steps (migrate, superuser, collectstatic) run when the
matching AUTO_* environment variable is set, for hosts without a release phase.
"""

import os
from pathlib import Path

import django
from django.core.wsgi import get_wsgi_application


def _flag(name):
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes")


def _collectstatic_if_requested():
    if not _flag("AUTO_COLLECTSTATIC"):
        return

    from django.conf import settings
    from django.core.management import call_command
    from django.core.management.base import CommandError

    sentinel = Path(settings.STATIC_ROOT) / ".static_ready"
    if sentinel.exists():
        return

    try:
        call_command("collectstatic", interactive=False, verbosity=0)
    except CommandError as exc:
        print(f"[collectstatic] skipped ({exc})")
    else:
        sentinel.write_text("ok", encoding="utf-8")
        print("[collectstatic] static assets collected at startup")


def _migrate_if_requested():
    if not _flag("AUTO_MIGRATE"):
        return

    from django.core.management import call_command

    call_command("migrate", interactive=False, run_syncdb=True, verbosity=1)
    print("[migrate] database up to date at startup")


def _seed_rates_if_requested():
    if not _flag("AUTO_SEED_RATES"):
        return

    from django.core.management import call_command

    call_command("seed_rates")


def _create_superuser_if_requested():
    """
    Requires AUTO_CREATE_SUPERUSER=true + DJANGO_SUPERUSER_EMAIL/PASSWORD.
    """
    if not _flag("AUTO_CREATE_SUPERUSER"):
        return

    email = os.getenv("DJANGO_SUPERUSER_EMAIL", "").strip()
    password = os.getenv("DJANGO_SUPERUSER_PASSWORD", "").strip()
    username = os.getenv("DJANGO_SUPERUSER_USERNAME", "").strip() or (email.split("@")[0] if email else "")

    if not email or not password:
        print("[superuser] missing DJANGO_SUPERUSER_EMAIL/PASSWORD")
        return

    from django.contrib.auth import get_user_model

    User = get_user_model()
    if User.objects.filter(email=email).exists():
        print("[superuser] account already exists, skipping creation")
        return

    User.objects.create_superuser(email=email, password=password, username=username or email)
    print(f"[superuser] created admin user {email}")


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
django.setup()
_migrate_if_requested()
_create_superuser_if_requested()
_seed_rates_if_requested()
_collectstatic_if_requested()

application = get_wsgi_application()
