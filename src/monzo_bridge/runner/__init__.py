"""
CLI runner module.

Provides commands:
- init: Write a default config file
- login: Browser login, token saved locally
- whoami / list-accounts / balance / list-pots / list-transactions / list-webhooks
- web: Example web app
"""

from .main import create_cli, main

__all__ = [
    "create_cli",
    "main",
]
