"""
Inbound webhook handling.

Provides:
- Strict validation of "transaction.created" event bodies
- A fixed 1 MiB body cap applied before decoding
"""

from .parser import (
    MAX_BODY_BYTES,
    TRANSACTION_CREATED,
    WebhookValidationError,
    parse_transaction_created,
)

__all__ = [
    "MAX_BODY_BYTES",
    "TRANSACTION_CREATED",
    "WebhookValidationError",
    "parse_transaction_created",
]
