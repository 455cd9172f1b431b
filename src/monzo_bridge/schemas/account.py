"""
Account-level records: identity check, accounts, balances and pots.
"""

from pydantic import StrictBool, StrictInt, StrictStr

from .decoding import Timestamp, WireModel


class WhoAmI(WireModel):
    """Response of the identity check endpoint."""

    authenticated: StrictBool = False
    client_id: StrictStr = ""
    user_id: StrictStr = ""


class Account(WireModel):
    """Monzo account representation."""

    id: StrictStr = ""
    description: StrictStr = ""
    created: Timestamp = None
    # uk_retail, uk_retail_joint, ...
    type: StrictStr = ""


class Balance(WireModel):
    """Balance of one account. All amounts are minor units (pennies)."""

    balance: StrictInt = 0
    # Including money held in pots
    total_balance: StrictInt = 0
    currency: StrictStr = ""
    spend_today: StrictInt = 0


class Pot(WireModel):
    """Monzo pot (savings sub-account)."""

    id: StrictStr = ""
    name: StrictStr = ""
    style: StrictStr = ""
    balance: StrictInt = 0
    currency: StrictStr = ""
    created: Timestamp = None
    updated: Timestamp = None
    deleted: StrictBool = False
