"""
URL configuration for the example web app.
"""

from django.urls import path

from . import views

# Note: No app_name since this is the ROOT_URLCONF

urlpatterns = [
    path("", views.home, name="home"),
    # OAuth2
    path("auth/login", views.auth_login, name="login"),
    path("auth/callback", views.auth_callback, name="callback"),
    path("logout", views.logout, name="logout"),
    # Pages that call the API
    path("dashboard", views.dashboard, name="dashboard"),
    # Inbound Monzo webhooks
    path("webhook", views.webhook, name="webhook"),
]
