"""
Inbound webhook validation.

Monzo delivers events as {"type": ..., "data": ...}. Only
"transaction.created" is supported, and decoding is strict: an unknown key in
the envelope or in the transaction is a failure rather than being ignored, as
is an empty timestamp. Payload shapes nobody has reviewed are therefore never
accepted silently. The flip side is that a field newly added by Monzo will be
rejected until the Transaction record learns about it.

Callers should still answer 200 when validation fails; Monzo redelivers
anything else.
"""

import json
import logging
from typing import IO, Any

from ..monzo_client import MonzoError
from ..schemas import SchemaError, Transaction, WebhookEvent

logger = logging.getLogger(__name__)

# 1 MiB
MAX_BODY_BYTES = 1_048_576

TRANSACTION_CREATED = "transaction.created"


class WebhookValidationError(MonzoError):
    """Inbound webhook body was oversized, malformed, or of the wrong type."""

    pass


def _read_body(body: bytes | str | IO[bytes]) -> bytes:
    """Read at most MAX_BODY_BYTES + 1 bytes so oversize bodies are caught."""
    if isinstance(body, str):
        raw = body.encode("utf-8")
    elif isinstance(body, (bytes, bytearray)):
        raw = bytes(body)
    else:
        raw = body.read(MAX_BODY_BYTES + 1)

    if len(raw) > MAX_BODY_BYTES:
        raise WebhookValidationError(
            f"webhook body exceeds {MAX_BODY_BYTES} bytes"
        )
    return raw


def parse_transaction_created(body: bytes | str | IO[bytes]) -> Transaction:
    """
    Validate a "transaction.created" webhook and return its transaction.

    Args:
        body: Raw request body, or a binary stream positioned at its start

    Returns:
        The embedded Transaction

    Raises:
        WebhookValidationError: Body too large, not JSON, unknown fields,
            bad field types, empty timestamps, or a different event type
    """
    raw = _read_body(body)

    try:
        payload: Any = json.loads(raw)
    except ValueError as e:
        raise WebhookValidationError(f"failed to decode webhook JSON: {e}") from e

    try:
        event = WebhookEvent.from_api_response(payload)
    except SchemaError as e:
        raise WebhookValidationError(f"failed to decode webhook JSON: {e}") from e

    if event.type != TRANSACTION_CREATED:
        raise WebhookValidationError(
            f"invalid webhook type: expected '{TRANSACTION_CREATED}', got '{event.type}'"
        )

    logger.debug(f"Validated {TRANSACTION_CREATED} webhook for transaction {event.data.id}")
    return event.data
