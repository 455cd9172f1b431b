"""
Transaction records and the merchant sum type.

The wire "merchant" field is either a bare merchant id or, when the caller
asked for expansion, the full merchant object. It is resolved once, when the
transaction is decoded:

- JSON string → merchant id
- JSON object with a non-empty "id" → Merchant
- anything else → neither (both accessors return None)
"""

from dataclasses import dataclass
from typing import Any, Union

from pydantic import (
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    field_validator,
)

from .decoding import SchemaError, StrictTimestamp, Timestamp, WireModel


class Address(WireModel):
    """Physical address of a merchant."""

    address: StrictStr = ""
    city: StrictStr = ""
    country: StrictStr = ""
    latitude: StrictFloat = 0.0
    longitude: StrictFloat = 0.0
    postcode: StrictStr = ""
    region: StrictStr = ""

    @classmethod
    def from_api_response(cls, data: Any) -> "Address":
        if data is None:
            return cls()
        return super().from_api_response(data)


class Merchant(WireModel):
    """Expanded merchant record."""

    id: StrictStr = ""
    name: StrictStr = ""
    group_id: StrictStr = ""
    category: StrictStr = ""
    logo: StrictStr = ""
    emoji: StrictStr = ""
    created: Timestamp = None
    address: Address = Field(default_factory=Address)


MerchantRef = Union[str, Merchant, None]


def resolve_merchant(raw: Any) -> MerchantRef:
    """Resolve the raw merchant field into an id, a Merchant, or None."""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        try:
            merchant = Merchant.from_api_response(raw)
        except SchemaError:
            return None
        # An empty object decodes "successfully" into a blank record
        return merchant if merchant.id else None
    return None


class Transaction(WireModel):
    """A single account transaction. Amounts are signed minor units."""

    id: StrictStr = ""
    account_id: StrictStr = ""
    # Negative for debits
    amount: StrictInt = 0
    currency: StrictStr = ""
    description: StrictStr = ""
    created: Timestamp = None
    settled: Timestamp = None
    category: StrictStr = ""
    notes: StrictStr = ""
    is_load: StrictBool = False
    metadata: dict[str, StrictStr] = Field(default_factory=dict)
    merchant: Union[StrictStr, Merchant, None] = None
    decline_reason: StrictStr = ""

    @field_validator("merchant", mode="before")
    @classmethod
    def resolve_merchant_field(cls, value: Any) -> MerchantRef:
        return resolve_merchant(value)

    def merchant_id(self) -> str | None:
        """Merchant id when the field arrived as a bare string."""
        return self.merchant if isinstance(self.merchant, str) else None

    def expanded_merchant(self) -> Merchant | None:
        """Merchant record when the field arrived expanded."""
        return self.merchant if isinstance(self.merchant, Merchant) else None

    @classmethod
    def from_api_response(cls, data: Any, strict: bool = False) -> "Transaction":
        """
        Create from a Monzo API transaction object.

        Args:
            data: Decoded JSON object
            strict: Reject fields this record does not declare, and empty
                timestamps

        Raises:
            SchemaError: If a field has the wrong type (or is unknown in strict mode)
        """
        if strict:
            return StrictTransaction.from_api_response(data)
        return super().from_api_response(data)


class StrictTransaction(Transaction):
    """Transaction as carried by webhooks: unknown keys are an error."""

    model_config = ConfigDict(extra="forbid")

    created: StrictTimestamp = None
    settled: StrictTimestamp = None


@dataclass
class PaginationOptions:
    """Passthrough pagination for transaction listing.

    since is an RFC 3339 timestamp or a transaction id; before is an
    RFC 3339 timestamp. limit is capped at 100 by the API.
    """

    limit: int = 0
    since: str = ""
    before: str = ""

    def to_params(self) -> dict[str, str]:
        """Query parameters, omitting unset values."""
        params: dict[str, str] = {}
        if self.limit > 0:
            params["limit"] = str(self.limit)
        if self.since:
            params["since"] = self.since
        if self.before:
            params["before"] = self.before
        return params
