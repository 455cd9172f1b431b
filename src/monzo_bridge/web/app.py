"""
Django application initialization.
"""

import os
from pathlib import Path

SETTINGS_MODULE = "monzo_bridge.web.settings"


def _export_config(config_path: str | Path) -> None:
    """Copy config values into the environment read by settings.py.

    Variables already set win, matching load_config's override order.
    """
    from ..config import load_config

    config = load_config(Path(config_path))

    values = {
        "MONZO_API_URL": config.monzo.api_url,
        "MONZO_CLIENT_ID": config.oauth.client_id,
        "MONZO_CLIENT_SECRET": config.oauth.client_secret,
        "MONZO_REDIRECT_URL": config.oauth.redirect_url,
        "MONZO_AUTH_URL": config.oauth.auth_url,
        "MONZO_TOKEN_URL": config.oauth.token_url,
        "DJANGO_SECRET_KEY": config.web.secret_key,
    }
    if config.monzo.timeout is not None:
        values["MONZO_TIMEOUT"] = str(config.monzo.timeout)

    for key, value in values.items():
        os.environ.setdefault(key, value)


def get_wsgi_application(config_path: str | Path | None = None):
    """
    Get the Django WSGI application configured with our settings.

    Args:
        config_path: Path to config.yaml (optional)
    """
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", SETTINGS_MODULE)

    if config_path:
        _export_config(config_path)

    from django.core.wsgi import get_wsgi_application as django_wsgi

    return django_wsgi()


def run_server(
    host: str = "127.0.0.1",
    port: int = 8080,
    config_path: str | Path | None = None,
):
    """
    Run the Django development server.

    Args:
        host: Host to bind to
        port: Port to listen on (the registered redirect URL must point here)
        config_path: Path to config.yaml
    """
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", SETTINGS_MODULE)

    if config_path:
        _export_config(config_path)

    # Initialize Django
    import django

    django.setup()

    from django.conf import settings
    from django.core.management import execute_from_command_line

    print(f"\n🌐 Starting example web app at http://{host}:{port}/")
    print(f"🔁 Redirect URL: {settings.MONZO_REDIRECT_URL}")
    print("\nPress Ctrl+C to stop.\n")

    execute_from_command_line(
        [
            "manage.py",
            "runserver",
            f"{host}:{port}",
            "--noreload",  # Disable auto-reload for simpler operation
        ]
    )
