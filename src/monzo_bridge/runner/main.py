"""
CLI main entry point.
"""

import argparse
import logging
import sys
from pathlib import Path

from ..auth import (
    AuthorizationError,
    AuthorizationFlow,
    TokenStore,
    build_session,
    run_local_callback,
)
from ..config import Config, create_default_config, load_config
from ..monzo_client import MonzoClient, MonzoError
from ..schemas import PaginationOptions

logger = logging.getLogger(__name__)

# Seconds to wait for the browser to come back to the callback server
LOGIN_TIMEOUT = 300


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="monzo-bridge",
        description="Command-line access to your Monzo accounts",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # init command
    subparsers.add_parser("init", help="Write a default config file")

    # login command
    subparsers.add_parser("login", help="Log in with Monzo and save the token")

    # whoami command
    subparsers.add_parser("whoami", help="Show the authenticated user and client")

    # list-accounts command
    accounts_parser = subparsers.add_parser("list-accounts", help="List your accounts")
    accounts_parser.add_argument(
        "--type",
        type=str,
        default="",
        help="Only accounts of this type (e.g. uk_retail, uk_retail_joint)",
    )

    # balance command
    balance_parser = subparsers.add_parser("balance", help="Show an account's balance")
    balance_parser.add_argument("--account-id", required=True, help="Account ID")

    # list-pots command
    pots_parser = subparsers.add_parser("list-pots", help="List an account's pots")
    pots_parser.add_argument("--account-id", required=True, help="Current account ID")

    # list-transactions command
    tx_parser = subparsers.add_parser("list-transactions", help="List an account's transactions")
    tx_parser.add_argument("--account-id", required=True, help="Account ID")
    tx_parser.add_argument(
        "--limit",
        type=int,
        default=0,
        help="Maximum transactions to return (API maximum: 100)",
    )
    tx_parser.add_argument(
        "--since",
        type=str,
        default="",
        help="RFC 3339 timestamp or transaction ID to start after",
    )
    tx_parser.add_argument(
        "--before",
        type=str,
        default="",
        help="RFC 3339 timestamp to stop before",
    )

    # list-webhooks command
    webhooks_parser = subparsers.add_parser("list-webhooks", help="List an account's webhooks")
    webhooks_parser.add_argument("--account-id", required=True, help="Account ID")

    # web command
    web_parser = subparsers.add_parser("web", help="Run the example web app")
    web_parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the web server (default: from config, 127.0.0.1)",
    )
    web_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the web server (default: from config, 8080)",
    )

    return parser


def format_amount(amount: int, currency: str) -> str:
    """Format minor units, e.g. -350 GBP -> "-3.50 GBP"."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{abs(amount) // 100}.{abs(amount) % 100:02d} {currency}"


def login(config: Config, store: TokenStore) -> dict:
    """Run the browser flow and save the resulting token."""
    flow = AuthorizationFlow(config.oauth)

    print("🔐 Open this URL in your browser to log in with Monzo:\n")
    print(f"  {flow.authorization_url()}\n")

    token = run_local_callback(flow, timeout=LOGIN_TIMEOUT)
    store.save(token)

    print(f"✓ Token saved to {store.path}")
    print("📱 Approve this login in your Monzo app before making API calls.")
    return token


def build_client(config: Config) -> MonzoClient:
    """Client authorized with the saved token, logging in first if there is none."""
    store = TokenStore(config.token_path)
    token = store.load()
    if token is None:
        logger.info("No saved token, starting login")
        token = login(config, store)

    session = build_session(config.oauth, token, token_updater=store.save)
    return MonzoClient(session, base_url=config.monzo.api_url, timeout=config.monzo.timeout)


def cmd_init(config_path: Path) -> int:
    """Write a default config file."""
    if config_path.exists():
        print(f"❌ Config file already exists: {config_path}")
        return 1

    create_default_config(config_path)
    print(f"✓ Created {config_path}")
    print("  Fill in oauth.client_id and oauth.client_secret from https://developers.monzo.com/")
    return 0


def cmd_login(config: Config) -> int:
    """Force a fresh login."""
    login(config, TokenStore(config.token_path))
    return 0


def cmd_whoami(config: Config) -> int:
    """Show the authenticated identity."""
    client = build_client(config)
    who = client.whoami()

    print(f"Authenticated: {'yes' if who.authenticated else 'no'}")
    print(f"User ID:       {who.user_id}")
    print(f"Client ID:     {who.client_id}")
    return 0


def cmd_list_accounts(config: Config, account_type: str = "") -> int:
    """List accounts."""
    client = build_client(config)
    accounts = client.list_accounts(account_type)

    if not accounts:
        print("No accounts found")
        return 0

    for account in accounts:
        kind = f" ({account.type})" if account.type else ""
        print(f"  🏦 [{account.id}] {account.description}{kind}")

    print(f"\n✓ Found {len(accounts)} account(s)")
    return 0


def cmd_balance(config: Config, account_id: str) -> int:
    """Show an account's balance."""
    client = build_client(config)
    balance = client.get_balance(account_id)

    print(f"Balance:       {format_amount(balance.balance, balance.currency)}")
    print(f"Total balance: {format_amount(balance.total_balance, balance.currency)}")
    print(f"Spent today:   {format_amount(balance.spend_today, balance.currency)}")
    return 0


def cmd_list_pots(config: Config, account_id: str) -> int:
    """List pots."""
    client = build_client(config)
    pots = [pot for pot in client.list_pots(account_id) if not pot.deleted]

    if not pots:
        print("No pots found")
        return 0

    for pot in pots:
        print(f"  🍯 [{pot.id}] {pot.name}: {format_amount(pot.balance, pot.currency)}")

    print(f"\n✓ Found {len(pots)} pot(s)")
    return 0


def cmd_list_transactions(
    config: Config, account_id: str, limit: int = 0, since: str = "", before: str = ""
) -> int:
    """List transactions (one page)."""
    client = build_client(config)
    options = PaginationOptions(limit=limit, since=since, before=before)
    transactions = client.list_transactions(account_id, options)

    if not transactions:
        print("No transactions found")
        return 0

    for tx in transactions:
        created = tx.created.strftime("%Y-%m-%d %H:%M") if tx.created else "-"
        amount = format_amount(tx.amount, tx.currency)
        print(f"  {created}  {amount:>14}  {tx.description}  [{tx.id}]")

    print(f"\n✓ Listed {len(transactions)} transaction(s)")
    return 0


def cmd_list_webhooks(config: Config, account_id: str) -> int:
    """List registered webhooks."""
    client = build_client(config)
    webhooks = client.list_webhooks(account_id)

    if not webhooks:
        print("No webhooks registered")
        return 0

    for webhook in webhooks:
        print(f"  🔔 [{webhook.id}] {webhook.url}")
    return 0


def cmd_web(config: Config, config_path: Path, host: str | None, port: int | None) -> int:
    """Start the example web app."""
    from ..web.app import run_server

    try:
        run_server(
            host=host or config.web.host,
            port=port or config.web.port,
            config_path=config_path,
        )
    except KeyboardInterrupt:
        print("\n✓ Web server stopped")

    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init":
        return cmd_init(parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    errors = config.validate()
    if errors:
        print("❌ Invalid configuration:")
        for error in errors:
            print(f"  - {error}")
        return 1

    # Route to command
    try:
        if parsed.command == "login":
            return cmd_login(config)
        elif parsed.command == "whoami":
            return cmd_whoami(config)
        elif parsed.command == "list-accounts":
            return cmd_list_accounts(config, parsed.type)
        elif parsed.command == "balance":
            return cmd_balance(config, parsed.account_id)
        elif parsed.command == "list-pots":
            return cmd_list_pots(config, parsed.account_id)
        elif parsed.command == "list-transactions":
            return cmd_list_transactions(
                config,
                parsed.account_id,
                limit=parsed.limit,
                since=parsed.since,
                before=parsed.before,
            )
        elif parsed.command == "list-webhooks":
            return cmd_list_webhooks(config, parsed.account_id)
        elif parsed.command == "web":
            return cmd_web(config, parsed.config, parsed.host, parsed.port)
        else:
            parser.print_help()
            return 1
    except AuthorizationError as e:
        print(f"❌ Login failed: {e}")
        return 1
    except MonzoError as e:
        logger.debug("Monzo API call failed", exc_info=True)
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
