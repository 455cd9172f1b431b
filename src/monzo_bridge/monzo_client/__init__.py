"""
Monzo API Client.

Provides:
- A single request dispatcher (form / JSON / empty bodies, JSON decoding)
- One method per API operation: accounts, balance, pots, transactions,
  feed, attachments, receipts, webhooks
- A small error taxonomy: transport, API (status + raw body), decode

Authentication is the session's job; see monzo_bridge.auth.
"""

from .client import (
    BASE_URL,
    MonzoAPIError,
    MonzoClient,
    MonzoConnectionError,
    MonzoDecodeError,
    MonzoError,
)

__all__ = [
    "BASE_URL",
    "MonzoClient",
    "MonzoError",
    "MonzoAPIError",
    "MonzoConnectionError",
    "MonzoDecodeError",
]
