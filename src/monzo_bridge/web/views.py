"""
Views for the example web app.

Login is the standard authorization-code flow: /auth/login stores a fresh
state in the session and redirects to Monzo, /auth/callback checks it and
exchanges the code. The token then lives in the (signed) session cookie.

Monzo additionally requires the user to approve every new login in the
Monzo app. Until they do, API calls fail, so the dashboard explains that
instead of treating it as an error.
"""

import logging

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import redirect, render
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from ..auth import AuthorizationError, AuthorizationFlow, build_session
from ..config import OAuthConfig
from ..monzo_client import MonzoClient, MonzoError
from ..webhooks import WebhookValidationError, parse_transaction_created

logger = logging.getLogger(__name__)

# Session keys
STATE_KEY = "monzo_oauth_state"
TOKEN_KEY = "monzo_token"


def _oauth_config() -> OAuthConfig:
    return OAuthConfig(
        client_id=settings.MONZO_CLIENT_ID,
        client_secret=settings.MONZO_CLIENT_SECRET,
        redirect_url=settings.MONZO_REDIRECT_URL,
        auth_url=settings.MONZO_AUTH_URL,
        token_url=settings.MONZO_TOKEN_URL,
    )


def _get_monzo_client(request: HttpRequest) -> MonzoClient | None:
    """Client for the logged-in user, or None if there is no token."""
    token = request.session.get(TOKEN_KEY)
    if not token:
        return None

    def save_token(new_token: dict) -> None:
        request.session[TOKEN_KEY] = dict(new_token)

    session = build_session(_oauth_config(), token, token_updater=save_token)
    return MonzoClient(session, base_url=settings.MONZO_API_URL, timeout=settings.MONZO_TIMEOUT)


def home(request: HttpRequest) -> HttpResponse:
    """Landing page: login link, or dashboard link when logged in."""
    context = {"logged_in": bool(request.session.get(TOKEN_KEY))}
    return render(request, "monzo_web/home.html", context)


def auth_login(request: HttpRequest) -> HttpResponse:
    """Start the OAuth flow by redirecting the user to Monzo."""
    flow = AuthorizationFlow(_oauth_config())
    request.session[STATE_KEY] = flow.state
    return redirect(flow.authorization_url())


def auth_callback(request: HttpRequest) -> HttpResponse:
    """Monzo redirects here; exchange the code and continue to the dashboard."""
    # One state per login attempt; a replayed callback finds none
    flow = AuthorizationFlow(_oauth_config(), state=request.session.pop(STATE_KEY, None))

    try:
        token = flow.complete(request.GET.get("state"), request.GET.get("code"))
    except AuthorizationError as e:
        logger.warning(f"OAuth callback failed: {e}")
        return HttpResponse(f"{e}.", status=e.status_code, content_type="text/plain")

    request.session[TOKEN_KEY] = token
    logger.info("Token exchanged and saved to session")

    # A refresh of /dashboard must not replay the one-time code
    return redirect("dashboard")


def dashboard(request: HttpRequest) -> HttpResponse:
    """List the user's accounts."""
    client = _get_monzo_client(request)
    if client is None:
        logger.info("No token in session, redirecting to home")
        return redirect("home")

    try:
        accounts = client.list_accounts()
    except MonzoError as e:
        # Expected until the login is approved in the Monzo app
        logger.warning(f"Failed to list accounts (needs approval?): {e}")
        return render(request, "monzo_web/approve.html", {"error": str(e)})

    return render(request, "monzo_web/dashboard.html", {"accounts": accounts})


def logout(request: HttpRequest) -> HttpResponse:
    """Forget the token."""
    request.session.flush()
    return redirect("home")


@csrf_exempt
@require_http_methods(["POST"])
def webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive a Monzo webhook.

    Always answers 200: Monzo retries anything else, and a payload that
    fails validation will not pass on a retry either.
    """
    try:
        transaction = parse_transaction_created(request)
    except WebhookValidationError as e:
        logger.warning(f"Rejected webhook: {e}")
        return JsonResponse({"status": "rejected", "error": str(e)})

    logger.info(
        f"transaction.created: {transaction.id} {transaction.amount} {transaction.currency} "
        f"({transaction.description})"
    )
    return JsonResponse({"status": "ok", "transaction_id": transaction.id})
