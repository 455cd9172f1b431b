"""
Transaction receipt records.

Receipts are the one resource sent to the API as a JSON body, so unlike the
other records they also serialize back to wire format (to_dict).

Serialization rules:
- Required fields are always emitted (items even when empty)
- Optional fields are omitted when empty/zero
- Amounts are integer minor units; quantity may be fractional
"""

from typing import Any, Optional

from pydantic import Field, StrictBool, StrictFloat, StrictInt, StrictStr

from .decoding import WireModel


def _add_optional(result: dict[str, Any], optional_fields: list[tuple[str, Any]]) -> None:
    for field_name, value in optional_fields:
        if value:
            result[field_name] = value


class ReceiptItem(WireModel):
    """Line item on a receipt; sub_items nest (e.g. toppings, modifiers)."""

    description: StrictStr = ""
    # quantity * unit price
    amount: StrictInt = 0
    currency: StrictStr = ""
    quantity: StrictFloat = 0.0
    unit: StrictStr = ""
    tax: StrictInt = 0
    sub_items: list["ReceiptItem"] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "description": self.description,
            "amount": self.amount,
            "currency": self.currency,
        }
        _add_optional(
            result,
            [
                ("quantity", self.quantity),
                ("unit", self.unit),
                ("tax", self.tax),
                ("sub_items", [item.to_dict() for item in self.sub_items]),
            ],
        )
        return result


class ReceiptTax(WireModel):
    """Tax line on a receipt (e.g. VAT)."""

    description: StrictStr = ""
    amount: StrictInt = 0
    currency: StrictStr = ""
    tax_number: StrictStr = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "description": self.description,
            "amount": self.amount,
            "currency": self.currency,
        }
        _add_optional(result, [("tax_number", self.tax_number)])
        return result


class ReceiptPayment(WireModel):
    """Payment made against a receipt."""

    # card, cash or gift_card
    type: StrictStr = ""
    amount: StrictInt = 0
    currency: StrictStr = ""
    last_four: StrictStr = ""
    gift_card_type: StrictStr = ""
    bin: StrictStr = ""
    auth_code: StrictStr = ""
    aid: StrictStr = ""
    mid: StrictStr = ""
    tid: StrictStr = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.type,
            "amount": self.amount,
            "currency": self.currency,
        }
        _add_optional(
            result,
            [
                ("last_four", self.last_four),
                ("gift_card_type", self.gift_card_type),
                ("bin", self.bin),
                ("auth_code", self.auth_code),
                ("aid", self.aid),
                ("mid", self.mid),
                ("tid", self.tid),
            ],
        )
        return result


class ReceiptMerchant(WireModel):
    """Merchant snapshot printed on a receipt."""

    name: StrictStr = ""
    online: StrictBool = False
    phone: StrictStr = ""
    email: StrictStr = ""
    store_name: StrictStr = ""
    store_address: StrictStr = ""
    store_postcode: StrictStr = ""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        _add_optional(
            result,
            [
                ("name", self.name),
                ("online", self.online),
                ("phone", self.phone),
                ("email", self.email),
                ("store_name", self.store_name),
                ("store_address", self.store_address),
                ("store_postcode", self.store_postcode),
            ],
        )
        return result


class Receipt(WireModel):
    """
    Receipt attached to a transaction.

    external_id is the caller's own identifier and makes create/update
    idempotent; id is assigned by Monzo and omitted on create.
    """

    transaction_id: StrictStr = ""
    external_id: StrictStr = ""
    total: StrictInt = 0
    currency: StrictStr = ""
    items: list[ReceiptItem] = Field(default_factory=list)
    taxes: list[ReceiptTax] = Field(default_factory=list)
    payments: list[ReceiptPayment] = Field(default_factory=list)
    merchant: Optional[ReceiptMerchant] = None
    id: StrictStr = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to Monzo API JSON format."""
        result: dict[str, Any] = {}
        if self.id:
            result["id"] = self.id
        result.update(
            {
                "transaction_id": self.transaction_id,
                "external_id": self.external_id,
                "total": self.total,
                "currency": self.currency,
                "items": [item.to_dict() for item in self.items],
            }
        )
        _add_optional(
            result,
            [
                ("taxes", [tax.to_dict() for tax in self.taxes]),
                ("payments", [payment.to_dict() for payment in self.payments]),
            ],
        )
        if self.merchant is not None:
            result["merchant"] = self.merchant.to_dict()
        return result

