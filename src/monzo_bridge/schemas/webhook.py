"""
Webhook registration record and the inbound event envelope.
"""

from pydantic import ConfigDict, Field, StrictStr

from .decoding import WireModel
from .transaction import StrictTransaction


class Webhook(WireModel):
    """A registered webhook for one account."""

    id: StrictStr = ""
    account_id: StrictStr = ""
    url: StrictStr = ""


class WebhookEvent(WireModel):
    """Body Monzo POSTs to a webhook URL: {"type": ..., "data": ...}."""

    model_config = ConfigDict(extra="forbid")

    type: StrictStr = ""
    data: StrictTransaction = Field(default_factory=StrictTransaction)
