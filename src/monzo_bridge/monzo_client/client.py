"""
Monzo API client implementation.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar
from urllib.parse import quote

import requests

from ..schemas import (
    Account,
    Attachment,
    AttachmentUpload,
    Balance,
    PaginationOptions,
    Pot,
    Receipt,
    SchemaError,
    Transaction,
    Webhook,
    WhoAmI,
    WireModel,
)
from ..schemas.decoding import expect_object

logger = logging.getLogger(__name__)

# Production base URL for the Monzo API
BASE_URL = "https://api.monzo.com"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"

T = TypeVar("T")
M = TypeVar("M", bound=WireModel)


class MonzoError(Exception):
    """Base exception for Monzo client errors."""

    pass


class MonzoAPIError(MonzoError):
    """API returned a non-2xx response.

    The body is kept verbatim; the upstream error schema is not stable enough
    to parse into typed fields.
    """

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"monzo: API error (status {status_code}): {body}")


class MonzoConnectionError(MonzoError):
    """Failed to reach the Monzo API."""

    pass


class MonzoDecodeError(MonzoError):
    """A success response did not match the expected shape."""

    pass


def _empty_object(data: Any) -> None:
    """Decoder for endpoints that answer with {}."""
    expect_object(data, "response")


def _envelope(key: str, decoder: Callable[[Any], T]) -> Callable[[Any], T]:
    """Decoder that unwraps a single named field."""

    def decode(data: Any) -> T:
        return decoder(expect_object(data, "response").get(key))

    return decode


def _list_envelope(key: str, model: type[M]) -> Callable[[Any], list[M]]:
    """Decoder that unwraps a named array of records."""

    def decode(data: Any) -> list[M]:
        return model.from_api_list(expect_object(data, "response").get(key))

    return decode


def _path_segment(name: str, value: str) -> str:
    """Escape an id for use as one path segment; empty ids are refused."""
    if not value:
        raise ValueError(f"{name} must not be empty")
    return quote(value, safe="")


class MonzoClient:
    """
    Client for the Monzo API.

    The session must already be authorized: typically an OAuth2Session from
    requests-oauthlib, which attaches the bearer token and refreshes it when
    it expires. The client itself never sees tokens.

    Features:
    - Accounts, balance, pots (deposit/withdraw)
    - Transactions (get, list, annotate)
    - Feed items, attachments, receipts, webhooks

    No retries, caching or pagination walking: one call, one round trip.
    """

    def __init__(
        self,
        session: requests.Session,
        base_url: str = BASE_URL,
        timeout: float | None = None,
    ):
        """
        Initialize Monzo client.

        Args:
            session: Authorized HTTP session (attaches/refreshes the token)
            base_url: API base URL, overridden only to point at a mock server
            timeout: Per-request timeout in seconds; None leaves it to the session
        """
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def set_base_url(self, base_url: str) -> None:
        """Point the client at another server (tests).

        Not safe to call while other threads have requests in flight.
        """
        self.base_url = base_url.rstrip("/")

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Mapping[str, str] | None = None,
        form: Mapping[str, str] | None = None,
        json_data: Any = None,
        decoder: Callable[[Any], T] | None = None,
    ) -> T | None:
        """
        Make an API request and decode the response.

        Body encoding is a closed choice: form data, a JSON document, or
        nothing. Content-Type is only sent when there is a body.

        Args:
            method: HTTP method
            endpoint: Path beginning with "/"
            params: Query parameters
            form: Form fields (application/x-www-form-urlencoded)
            json_data: JSON-serializable body (application/json)
            decoder: Turns the decoded JSON into the return value; when None
                the response body is not read

        Raises:
            MonzoAPIError: Non-2xx status
            MonzoConnectionError: Could not connect / timed out
            MonzoDecodeError: Success body did not match the expected shape
            MonzoError: Any other transport failure
        """
        if form is not None and json_data is not None:
            raise ValueError("form and json_data are mutually exclusive")

        url = f"{self.base_url}{endpoint}"
        headers = {"Accept": JSON_CONTENT_TYPE}
        if form is not None:
            headers["Content-Type"] = FORM_CONTENT_TYPE
        elif json_data is not None:
            headers["Content-Type"] = JSON_CONTENT_TYPE

        logger.debug(f"API Request: {method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                data=form,
                json=json_data,
                headers=headers,
                timeout=self.timeout,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            raise MonzoConnectionError(f"Failed to reach Monzo at {self.base_url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise MonzoError(f"Failed to execute request: {e}") from e

        logger.debug(f"Response status: {response.status_code}")

        if not 200 <= response.status_code < 300:
            raise MonzoAPIError(status_code=response.status_code, body=response.text)

        if decoder is None:
            return None

        try:
            return decoder(response.json())
        except (ValueError, SchemaError) as e:
            # requests' JSONDecodeError and SchemaError are both ValueErrors
            raise MonzoDecodeError(f"Failed to decode response body: {e}") from e

    def test_connection(self) -> bool:
        """Check that the session's token is accepted."""
        try:
            return self.whoami().authenticated
        except MonzoError:
            return False

    # --- Authentication ---

    def whoami(self) -> WhoAmI:
        """Describe the current access token (a cheap authentication check)."""
        return self._request("GET", "/ping/whoami", decoder=WhoAmI.from_api_response)

    def logout(self) -> None:
        """Invalidate the current access token."""
        self._request("POST", "/oauth2/logout")

    # --- Accounts ---

    def list_accounts(self, account_type: str = "") -> list[Account]:
        """
        List accounts owned by the user.

        Args:
            account_type: Optional filter ("uk_retail", "uk_retail_joint");
                empty lists every account
        """
        params = {"account_type": account_type} if account_type else None
        return self._request(
            "GET",
            "/accounts",
            params=params,
            decoder=_list_envelope("accounts", Account),
        )

    def get_balance(self, account_id: str) -> Balance:
        """Get the balance of one account."""
        return self._request(
            "GET",
            "/balance",
            params={"account_id": account_id},
            decoder=Balance.from_api_response,
        )

    # --- Pots ---

    def list_pots(self, current_account_id: str) -> list[Pot]:
        """List pots belonging to an account."""
        return self._request(
            "GET",
            "/pots",
            params={"current_account_id": current_account_id},
            decoder=_list_envelope("pots", Pot),
        )

    def deposit_to_pot(
        self,
        pot_id: str,
        source_account_id: str,
        dedupe_id: str,
        amount: int,
    ) -> Pot:
        """
        Move money from an account into a pot.

        Args:
            pot_id: Destination pot
            source_account_id: Account the money comes from
            dedupe_id: Caller-chosen unique token; repeats are ignored by Monzo
            amount: Minor units (pennies)

        Returns:
            The pot after the deposit
        """
        segment = _path_segment("pot_id", pot_id)
        return self._request(
            "PUT",
            f"/pots/{segment}/deposit",
            form={
                "source_account_id": source_account_id,
                "amount": str(amount),
                "dedupe_id": dedupe_id,
            },
            decoder=Pot.from_api_response,
        )

    def withdraw_from_pot(
        self,
        pot_id: str,
        destination_account_id: str,
        dedupe_id: str,
        amount: int,
    ) -> Pot:
        """
        Move money from a pot into an account.

        Args:
            pot_id: Source pot
            destination_account_id: Account receiving the money
            dedupe_id: Caller-chosen unique token; repeats are ignored by Monzo
            amount: Minor units (pennies)

        Returns:
            The pot after the withdrawal
        """
        segment = _path_segment("pot_id", pot_id)
        return self._request(
            "PUT",
            f"/pots/{segment}/withdraw",
            form={
                "destination_account_id": destination_account_id,
                "amount": str(amount),
                "dedupe_id": dedupe_id,
            },
            decoder=Pot.from_api_response,
        )

    # --- Transactions ---

    def get_transaction(self, transaction_id: str, expand_merchant: bool = False) -> Transaction:
        """
        Get one transaction.

        Args:
            transaction_id: Transaction to fetch
            expand_merchant: Ask for the full merchant object instead of its id
        """
        segment = _path_segment("transaction_id", transaction_id)
        params = {"expand[]": "merchant"} if expand_merchant else None
        return self._request(
            "GET",
            f"/transactions/{segment}",
            params=params,
            decoder=_envelope("transaction", Transaction.from_api_response),
        )

    def list_transactions(
        self,
        account_id: str,
        options: PaginationOptions | None = None,
    ) -> list[Transaction]:
        """
        List transactions of an account.

        Only one page is fetched; walk further pages by passing the last
        transaction id as options.since.
        """
        params = {"account_id": account_id}
        if options is not None:
            params.update(options.to_params())

        return self._request(
            "GET",
            "/transactions",
            params=params,
            decoder=_list_envelope("transactions", Transaction),
        )

    def annotate_transaction(self, transaction_id: str, metadata: Mapping[str, str]) -> Transaction:
        """
        Add or update metadata on a transaction.

        An empty value deletes the key.
        """
        segment = _path_segment("transaction_id", transaction_id)
        form = {f"metadata[{key}]": value for key, value in metadata.items()}
        return self._request(
            "PATCH",
            f"/transactions/{segment}",
            form=form,
            decoder=_envelope("transaction", Transaction.from_api_response),
        )

    # --- Feed ---

    def create_feed_item(
        self,
        account_id: str,
        item_type: str,
        item_url: str = "",
        params: Mapping[str, str] | None = None,
    ) -> None:
        """
        Create an item in the user's feed.

        Args:
            account_id: Account whose feed receives the item
            item_type: Item type; the API currently only knows "basic"
            item_url: Optional URL opened when the item is tapped
            params: Item parameters ("title", "image_url", "body", ...)
        """
        form = {"account_id": account_id, "type": item_type}
        if item_url:
            form["url"] = item_url
        for key, value in (params or {}).items():
            form[f"params[{key}]"] = value

        self._request("POST", "/feed", form=form, decoder=_empty_object)

    # --- Attachments ---

    def upload_attachment(self, file_name: str, file_type: str, content_length: int) -> AttachmentUpload:
        """
        Request an upload slot for an attachment.

        The file itself is then sent to the returned upload_url, and its
        file_url registered with register_attachment().
        """
        return self._request(
            "POST",
            "/attachment/upload",
            form={
                "file_name": file_name,
                "file_type": file_type,
                "content_length": str(content_length),
            },
            decoder=AttachmentUpload.from_api_response,
        )

    def register_attachment(self, external_id: str, file_url: str, file_type: str) -> Attachment:
        """
        Attach an uploaded (or externally hosted) file to a transaction.

        Args:
            external_id: Transaction id
            file_url: URL of the file
            file_type: MIME type (e.g. "image/png")
        """
        return self._request(
            "POST",
            "/attachment/register",
            form={
                "external_id": external_id,
                "file_url": file_url,
                "file_type": file_type,
            },
            decoder=_envelope("attachment", Attachment.from_api_response),
        )

    def deregister_attachment(self, attachment_id: str) -> None:
        """Remove an attachment from its transaction."""
        self._request(
            "POST",
            "/attachment/deregister",
            form={"id": attachment_id},
            decoder=_empty_object,
        )

    # --- Receipts ---

    def create_receipt(self, receipt: Receipt) -> Receipt:
        """Create or update a receipt; external_id makes the call idempotent."""
        return self._request(
            "PUT",
            "/transaction-receipts",
            json_data=receipt.to_dict(),
            decoder=Receipt.from_api_response,
        )

    def get_receipt(self, external_id: str) -> Receipt:
        """Get a receipt by the caller's external_id."""
        return self._request(
            "GET",
            "/transaction-receipts",
            params={"external_id": external_id},
            decoder=_envelope("receipt", Receipt.from_api_response),
        )

    def delete_receipt(self, external_id: str) -> None:
        """Delete a receipt by the caller's external_id."""
        self._request(
            "DELETE",
            "/transaction-receipts",
            params={"external_id": external_id},
            decoder=_empty_object,
        )

    # --- Webhooks ---

    def register_webhook(self, account_id: str, url: str) -> Webhook:
        """Register a webhook receiving events for an account."""
        return self._request(
            "POST",
            "/webhooks",
            form={"account_id": account_id, "url": url},
            decoder=_envelope("webhook", Webhook.from_api_response),
        )

    def list_webhooks(self, account_id: str) -> list[Webhook]:
        """List webhooks registered for an account."""
        return self._request(
            "GET",
            "/webhooks",
            params={"account_id": account_id},
            decoder=_list_envelope("webhooks", Webhook),
        )

    def delete_webhook(self, webhook_id: str) -> None:
        """Delete a registered webhook."""
        segment = _path_segment("webhook_id", webhook_id)
        self._request("DELETE", f"/webhooks/{segment}", decoder=_empty_object)
