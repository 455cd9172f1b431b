"""
Monzo API binding → OAuth2 authorization → example CLI and web front-ends

A typed client for the Monzo REST API (accounts, balance, pots, transactions,
feed, attachments, receipts, webhooks), a strict inbound webhook validator,
and the OAuth2 glue needed to drive it from a terminal or a browser.
"""

__version__ = "0.1.0"
