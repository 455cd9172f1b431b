"""
OAuth2 authorization-code flow and authenticated transport.

The protocol itself is requests-oauthlib's job. This module only wires it to
Monzo's endpoints and scopes each authorization attempt to its own
AuthorizationFlow: one state value and one single-resolution future per
attempt, so concurrent logins cannot see each other's state.
"""

import logging
import secrets
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Future
from typing import Any

import requests
from oauthlib.oauth2 import OAuth2Error
from requests_oauthlib import OAuth2Session

from ..config import OAuthConfig

logger = logging.getLogger(__name__)

Token = dict[str, Any]


class AuthorizationError(Exception):
    """Authorization attempt failed."""

    # HTTP status a redirect handler should answer with
    status_code = 400


class StateMismatchError(AuthorizationError):
    """Callback state does not belong to this flow (possible CSRF)."""

    status_code = 403


class MissingCodeError(AuthorizationError):
    """Callback carried no authorization code."""

    status_code = 400


class TokenExchangeError(AuthorizationError):
    """Exchanging the code for a token failed."""

    status_code = 500


def _log_refresh(token: Token) -> None:
    logger.info("Access token refreshed (not persisted)")


def build_session(
    oauth_config: OAuthConfig,
    token: Mapping[str, Any],
    token_updater: Callable[[Token], None] | None = None,
) -> OAuth2Session:
    """
    Create the authenticated transport for MonzoClient.

    The session attaches the bearer token to every request and, once the
    token has expired, refreshes it with the refresh token before sending.

    Args:
        oauth_config: Client registration
        token: Token as returned by the exchange (access_token, refresh_token, expires_at...)
        token_updater: Called with the new token after every refresh, to persist it
    """
    return OAuth2Session(
        client_id=oauth_config.client_id,
        token=dict(token),
        auto_refresh_url=oauth_config.token_url,
        auto_refresh_kwargs={
            "client_id": oauth_config.client_id,
            "client_secret": oauth_config.client_secret,
        },
        token_updater=token_updater or _log_refresh,
    )


class AuthorizationFlow:
    """
    One browser authorization attempt.

    Usage:
        flow = AuthorizationFlow(config.oauth)
        send the user to flow.authorization_url()
        the redirect handler calls flow.complete(state, code)
        token = flow.wait()

    A web app that cannot keep the object between requests stores
    flow.state in the user's session and rebuilds the flow with it.
    """

    def __init__(self, oauth_config: OAuthConfig, state: str | None = None):
        self.config = oauth_config
        self.state = state or secrets.token_hex(16)
        self._future: Future = Future()
        self._lock = threading.Lock()

    def _session(self) -> OAuth2Session:
        return OAuth2Session(
            client_id=self.config.client_id,
            redirect_uri=self.config.redirect_url,
            state=self.state,
        )

    @property
    def done(self) -> bool:
        return self._future.done()

    def authorization_url(self) -> str:
        """URL the user opens to approve the client."""
        url, _ = self._session().authorization_url(self.config.auth_url)
        return url

    def _resolve(self, token: Token | None = None, error: BaseException | None = None) -> bool:
        with self._lock:
            if self._future.done():
                return False
            if error is not None:
                self._future.set_exception(error)
            else:
                self._future.set_result(token)
            return True

    def complete(self, state: str | None, code: str | None) -> Token:
        """
        Handle the redirect back from Monzo.

        Args:
            state: "state" query parameter of the redirect
            code: "code" query parameter of the redirect

        Returns:
            The exchanged token

        Raises:
            StateMismatchError: state is not this flow's, or the flow already resolved
            MissingCodeError: no code returned
            TokenExchangeError: the token endpoint refused the code
        """
        if self.done:
            # The one-time code must not be spent on a flow nobody waits for
            raise StateMismatchError("Authorization flow already completed")

        try:
            token = self._exchange(state, code)
        except AuthorizationError as e:
            self.fail(e)
            raise

        if not self._resolve(token=token):
            logger.warning("Authorization flow already resolved; ignoring second callback")
        return token

    def _exchange(self, state: str | None, code: str | None) -> Token:
        if not state or not secrets.compare_digest(state, self.state):
            raise StateMismatchError("Invalid state token")
        if not code:
            raise MissingCodeError("No code returned")

        try:
            token = self._session().fetch_token(
                self.config.token_url,
                code=code,
                client_secret=self.config.client_secret,
                include_client_id=True,
            )
        except (OAuth2Error, requests.RequestException, ValueError) as e:
            raise TokenExchangeError(f"Failed to exchange token: {e}") from e

        logger.info("Authorization code exchanged for a token")
        return dict(token)

    def fail(self, error: BaseException) -> None:
        """Resolve the flow with an error (e.g. the user gave up)."""
        self._resolve(error=error)

    def wait(self, timeout: float | None = None) -> Token:
        """
        Block until the flow resolves.

        Raises:
            AuthorizationError: The flow failed
            concurrent.futures.TimeoutError: Nothing happened within timeout
        """
        return self._future.result(timeout)
