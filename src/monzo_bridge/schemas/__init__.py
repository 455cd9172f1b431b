"""
Wire records for the Monzo API.

Every record is a pydantic model decoded from one response body. Records
are never cached or mutated by the client; monetary fields are integer
minor units.
"""

from .account import Account, Balance, Pot, WhoAmI
from .attachment import Attachment, AttachmentUpload
from .decoding import SchemaError, WireModel
from .receipt import Receipt, ReceiptItem, ReceiptMerchant, ReceiptPayment, ReceiptTax
from .transaction import (
    Address,
    Merchant,
    MerchantRef,
    PaginationOptions,
    StrictTransaction,
    Transaction,
    resolve_merchant,
)
from .webhook import Webhook, WebhookEvent

__all__ = [
    # Decoding
    "SchemaError",
    "WireModel",
    # Accounts
    "WhoAmI",
    "Account",
    "Balance",
    "Pot",
    # Transactions
    "Address",
    "Merchant",
    "MerchantRef",
    "PaginationOptions",
    "StrictTransaction",
    "Transaction",
    "resolve_merchant",
    # Attachments and receipts
    "Attachment",
    "AttachmentUpload",
    "Receipt",
    "ReceiptItem",
    "ReceiptMerchant",
    "ReceiptPayment",
    "ReceiptTax",
    # Webhooks
    "Webhook",
    "WebhookEvent",
]
