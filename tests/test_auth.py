"""
Tests for the OAuth2 flow, token storage and the loopback callback.

The token endpoint is mocked with responses; requests-oauthlib does the
actual protocol work.
"""

import os
import socket
import stat
import threading
import time
import urllib.error
import urllib.request
from urllib.parse import parse_qs, urlencode, urlsplit

import pytest
import responses

from monzo_bridge.auth import (
    AuthorizationError,
    AuthorizationFlow,
    MissingCodeError,
    StateMismatchError,
    TokenExchangeError,
    TokenStore,
    build_session,
    run_local_callback,
)
from monzo_bridge.auth.callback import _callback_app
from monzo_bridge.monzo_client import MonzoClient

TOKEN_URL = "https://api.monzo.com/oauth2/token"
API_URL = "https://api.monzo.com"


def _free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class TestAuthorizationFlow:
    """Test per-attempt state and code exchange."""

    def test_authorization_url(self, oauth_config):
        """The URL carries client, redirect, response type and this flow's state."""
        flow = AuthorizationFlow(oauth_config)

        parts = urlsplit(flow.authorization_url())
        query = parse_qs(parts.query)

        assert parts.netloc == "auth.monzo.com"
        assert query["client_id"] == ["oauth2client_test"]
        assert query["redirect_uri"] == ["http://localhost:8080/auth/callback"]
        assert query["response_type"] == ["code"]
        assert query["state"] == [flow.state]

    def test_each_flow_has_its_own_state(self, oauth_config):
        """State is random per attempt."""
        first = AuthorizationFlow(oauth_config)
        second = AuthorizationFlow(oauth_config)

        assert first.state != second.state
        assert len(first.state) == 32

    def test_state_can_be_restored(self, oauth_config):
        """A web app can rebuild the flow from the state it stored."""
        flow = AuthorizationFlow(oauth_config, state="abc123")

        assert flow.state == "abc123"

    def test_state_mismatch(self, oauth_config):
        """A foreign state is rejected and fails the flow."""
        flow = AuthorizationFlow(oauth_config)

        with pytest.raises(StateMismatchError) as exc_info:
            flow.complete("not-the-state", "code-123")

        assert exc_info.value.status_code == 403
        assert flow.done
        with pytest.raises(StateMismatchError):
            flow.wait(timeout=0)

    def test_missing_state(self, oauth_config):
        """No state at all is a mismatch too."""
        flow = AuthorizationFlow(oauth_config)

        with pytest.raises(StateMismatchError):
            flow.complete(None, "code-123")

    def test_missing_code(self, oauth_config):
        """A callback without a code is a bad request."""
        flow = AuthorizationFlow(oauth_config)

        with pytest.raises(MissingCodeError) as exc_info:
            flow.complete(flow.state, "")

        assert exc_info.value.status_code == 400

    @responses.activate
    def test_successful_exchange(self, oauth_config, token_response):
        """The code is exchanged with the client credentials."""
        responses.add(responses.POST, TOKEN_URL, json=token_response, status=200)
        flow = AuthorizationFlow(oauth_config)

        token = flow.complete(flow.state, "code-123")

        assert token["access_token"] == "access-token-123"
        assert token["refresh_token"] == "refresh-token-456"
        assert flow.wait(timeout=0) == token

        body = parse_qs(responses.calls[0].request.body)
        assert body["grant_type"] == ["authorization_code"]
        assert body["code"] == ["code-123"]
        assert body["client_id"] == ["oauth2client_test"]
        assert body["client_secret"] == ["secret-xyz"]

    @responses.activate
    def test_failed_exchange(self, oauth_config):
        """A refused code surfaces as TokenExchangeError."""
        responses.add(
            responses.POST,
            TOKEN_URL,
            json={"error": "invalid_grant", "error_description": "Code already used"},
            status=400,
        )
        flow = AuthorizationFlow(oauth_config)

        with pytest.raises(TokenExchangeError) as exc_info:
            flow.complete(flow.state, "code-123")

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value, AuthorizationError)

    @responses.activate
    def test_resolves_only_once(self, oauth_config, token_response):
        """Later outcomes do not replace the first one."""
        responses.add(responses.POST, TOKEN_URL, json=token_response, status=200)
        flow = AuthorizationFlow(oauth_config)

        token = flow.complete(flow.state, "code-123")
        flow.fail(AuthorizationError("too late"))

        assert flow.wait(timeout=0) == token

    @responses.activate
    def test_late_callback_keeps_code(self, oauth_config, token_response):
        """A callback after the flow resolved is refused without an exchange."""
        responses.add(responses.POST, TOKEN_URL, json=token_response, status=200)
        flow = AuthorizationFlow(oauth_config)
        flow.complete(flow.state, "code-123")

        with pytest.raises(StateMismatchError, match="already completed"):
            flow.complete(flow.state, "code-456")

        assert len(responses.calls) == 1
        assert flow.wait(timeout=0)["access_token"] == "access-token-123"

    def test_fail(self, oauth_config):
        """fail() resolves the flow with the given error."""
        flow = AuthorizationFlow(oauth_config)
        flow.fail(AuthorizationError("user gave up"))

        with pytest.raises(AuthorizationError, match="user gave up"):
            flow.wait(timeout=0)


class TestBuildSession:
    """Test the authenticated transport."""

    @responses.activate
    def test_attaches_bearer_token(self, oauth_config):
        """Every request carries the access token."""
        responses.add(
            responses.GET, f"{API_URL}/ping/whoami", json={"authenticated": True}, status=200
        )
        session = build_session(oauth_config, {"access_token": "abc", "token_type": "Bearer"})

        MonzoClient(session, base_url=API_URL).whoami()

        assert responses.calls[0].request.headers["Authorization"] == "Bearer abc"

    @responses.activate
    def test_refreshes_expired_token(self, oauth_config):
        """An expired token is refreshed before the call and handed to the updater."""
        responses.add(
            responses.POST,
            TOKEN_URL,
            json={
                "access_token": "new-access",
                "refresh_token": "new-refresh",
                "token_type": "Bearer",
                "expires_in": 21600,
            },
            status=200,
        )
        responses.add(
            responses.GET, f"{API_URL}/ping/whoami", json={"authenticated": True}, status=200
        )
        updated = []
        expired = {
            "access_token": "old-access",
            "refresh_token": "old-refresh",
            "token_type": "Bearer",
            "expires_at": time.time() - 60,
        }
        session = build_session(oauth_config, expired, token_updater=updated.append)

        MonzoClient(session, base_url=API_URL).whoami()

        assert [t["access_token"] for t in updated] == ["new-access"]
        assert parse_qs(responses.calls[0].request.body)["refresh_token"] == ["old-refresh"]
        assert responses.calls[1].request.headers["Authorization"] == "Bearer new-access"


class TestTokenStore:
    """Test the CLI token file."""

    def test_save_and_load(self, tmp_path):
        """A saved token loads back unchanged."""
        store = TokenStore(tmp_path / "monzo-bridge" / "token.json")
        token = {"access_token": "abc", "refresh_token": "def", "expires_at": 1700000000.0}

        store.save(token)

        assert store.load() == token

    def test_permissions(self, tmp_path):
        """The token file is private to the user."""
        store = TokenStore(tmp_path / "monzo-bridge" / "token.json")
        store.save({"access_token": "abc"})

        assert stat.S_IMODE(os.stat(store.path).st_mode) == 0o600
        assert stat.S_IMODE(os.stat(store.path.parent).st_mode) == 0o700

    def test_missing_file(self, tmp_path):
        """No file means no token."""
        assert TokenStore(tmp_path / "token.json").load() is None

    def test_corrupt_file(self, tmp_path):
        """An unreadable file is treated as no token."""
        path = tmp_path / "token.json"
        path.write_text("{broken")

        assert TokenStore(path).load() is None

    def test_file_without_access_token(self, tmp_path):
        """A token without access_token is unusable."""
        path = tmp_path / "token.json"
        path.write_text('{"refresh_token": "def"}')

        assert TokenStore(path).load() is None

    def test_clear(self, tmp_path):
        """clear() removes the file and reports whether it existed."""
        store = TokenStore(tmp_path / "token.json")
        store.save({"access_token": "abc"})

        assert store.clear() is True
        assert store.clear() is False
        assert store.load() is None


class TestLocalCallback:
    """Test the loopback redirect catcher."""

    def _call_app(self, flow, path, query):
        statuses = []

        def start_response(status, headers):
            statuses.append(status)

        app = _callback_app(flow, "/auth/callback")
        body = b"".join(app({"PATH_INFO": path, "QUERY_STRING": urlencode(query)}, start_response))
        return statuses[0], body

    def test_rejects_foreign_state(self, oauth_config):
        """The callback answers 403 for a state mismatch."""
        flow = AuthorizationFlow(oauth_config)

        status, body = self._call_app(flow, "/auth/callback", {"state": "evil", "code": "x"})

        assert status == "403 Forbidden"
        assert b"Invalid state token" in body
        assert flow.done

    def test_unknown_path(self, oauth_config):
        """Other paths are 404 and leave the flow pending."""
        flow = AuthorizationFlow(oauth_config)

        status, _ = self._call_app(flow, "/favicon.ico", {})

        assert status == "404 Not Found"
        assert not flow.done

    @responses.activate
    def test_accepts_valid_callback(self, oauth_config, token_response):
        """A valid callback completes the flow."""
        responses.add(responses.POST, TOKEN_URL, json=token_response, status=200)
        flow = AuthorizationFlow(oauth_config)

        status, _ = self._call_app(
            flow, "/auth/callback", {"state": flow.state, "code": "code-123"}
        )

        assert status == "200 OK"
        assert flow.wait(timeout=0)["access_token"] == "access-token-123"

    def test_timeout(self, oauth_config):
        """Nothing arriving in time fails the flow."""
        flow = AuthorizationFlow(oauth_config)

        with pytest.raises(AuthorizationError, match="No authorization callback"):
            run_local_callback(flow, host="127.0.0.1", port=_free_port(), timeout=0.2)

        assert flow.done

    def test_interrupted_wait(self, oauth_config, monkeypatch):
        """Ctrl-C while waiting propagates and shuts the server down."""
        flow = AuthorizationFlow(oauth_config)

        def interrupted(timeout=None):
            raise KeyboardInterrupt

        monkeypatch.setattr(flow, "wait", interrupted)

        with pytest.raises(KeyboardInterrupt):
            run_local_callback(flow, host="127.0.0.1", port=_free_port(), timeout=5)

        assert flow.done
        with pytest.raises(AuthorizationError, match="Login cancelled"):
            AuthorizationFlow.wait(flow, timeout=0)

    @responses.activate
    def test_end_to_end(self, oauth_config, token_response):
        """The server catches the browser redirect and returns the token."""
        responses.add(responses.POST, TOKEN_URL, json=token_response, status=200)
        flow = AuthorizationFlow(oauth_config)
        port = _free_port()
        result = {}

        def login():
            result["token"] = run_local_callback(flow, host="127.0.0.1", port=port, timeout=10)

        thread = threading.Thread(target=login)
        thread.start()

        url = f"http://127.0.0.1:{port}/auth/callback?" + urlencode(
            {"state": flow.state, "code": "code-123"}
        )
        # urllib is not intercepted by responses; retry until the server is bound
        for _ in range(50):
            try:
                with urllib.request.urlopen(url, timeout=5) as response:
                    assert response.status == 200
                break
            except urllib.error.URLError:
                time.sleep(0.1)

        thread.join(timeout=10)
        assert result["token"]["access_token"] == "access-token-123"
