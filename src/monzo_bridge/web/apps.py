"""
Django application configuration.
"""

from django.apps import AppConfig


class WebConfig(AppConfig):
    """Django app configuration for the example web app."""

    name = "monzo_bridge.web"
    verbose_name = "Monzo Bridge Example Web App"
