"""
OAuth2 for the Monzo API.

Token exchange and refresh are delegated to requests-oauthlib; this package
adds per-attempt state (AuthorizationFlow), a token file for the CLI and a
loopback redirect catcher.
"""

from .callback import run_local_callback
from .oauth import (
    AuthorizationError,
    AuthorizationFlow,
    MissingCodeError,
    StateMismatchError,
    TokenExchangeError,
    build_session,
)
from .token_store import TokenStore

__all__ = [
    "AuthorizationError",
    "AuthorizationFlow",
    "MissingCodeError",
    "StateMismatchError",
    "TokenExchangeError",
    "TokenStore",
    "build_session",
    "run_local_callback",
]
