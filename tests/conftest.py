"""Test fixtures and utilities."""

import copy

import pytest
import requests

from monzo_bridge.config import OAuthConfig
from monzo_bridge.monzo_client import MonzoClient

BASE_URL = "https://api.monzo.com"
TOKEN_URL = "https://api.monzo.com/oauth2/token"

# Webhook body as documented by Monzo
SAMPLE_WEBHOOK = {
    "type": "transaction.created",
    "data": {
        "account_id": "acc_00008gju41AHyfLUzBUk8A",
        "amount": -350,
        "created": "2015-09-04T14:28:40Z",
        "currency": "GBP",
        "description": "Ozone Coffee Roasters",
        "id": "tx_00008zjky19HyFLAzlUk7t",
        "category": "eating_out",
        "is_load": False,
        "settled": "2015-09-05T14:28:40Z",
        "merchant": {
            "id": "merch_00008zIcpbAKe8shBxXUtl",
            "group_id": "grp_00008zIcpbBOaAr7TTP3sv",
            "name": "The De Beauvoir Deli Co.",
            "category": "eating_out",
            "address": {},
            "created": "2015-08-22T12:20:18Z",
            "logo": "",
            "emoji": "",
        },
    },
}

SAMPLE_TRANSACTION = {
    "id": "tx_001",
    "account_id": "acc_001",
    "amount": -1250,
    "currency": "GBP",
    "description": "TESCO STORES",
    "created": "2025-01-02T09:30:00.123Z",
    "settled": "",
    "category": "groceries",
    "notes": "",
    "is_load": False,
    "metadata": {"receipt": "yes"},
    "merchant": "merch_001",
}

SAMPLE_TOKEN_RESPONSE = {
    "access_token": "access-token-123",
    "client_id": "oauth2client_test",
    "expires_in": 21600,
    "refresh_token": "refresh-token-456",
    "token_type": "Bearer",
    "user_id": "user_001",
}


@pytest.fixture
def monzo_client() -> MonzoClient:
    """Client on a bare session; responses intercepts the transport."""
    return MonzoClient(requests.Session(), base_url=BASE_URL)


@pytest.fixture
def oauth_config() -> OAuthConfig:
    """OAuth client registration pointing at the real Monzo endpoints."""
    return OAuthConfig(
        client_id="oauth2client_test",
        client_secret="secret-xyz",
        redirect_url="http://localhost:8080/auth/callback",
        auth_url="https://auth.monzo.com/",
        token_url=TOKEN_URL,
    )


@pytest.fixture
def sample_webhook() -> dict:
    """Fresh copy of the documented transaction.created webhook."""
    return copy.deepcopy(SAMPLE_WEBHOOK)


@pytest.fixture
def sample_transaction() -> dict:
    """Fresh copy of a listed transaction with a bare merchant id."""
    return copy.deepcopy(SAMPLE_TRANSACTION)


@pytest.fixture
def token_response() -> dict:
    """Token endpoint response for a successful code exchange."""
    return dict(SAMPLE_TOKEN_RESPONSE)
