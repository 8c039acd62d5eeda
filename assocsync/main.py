#!/usr/bin/env python3
"""CLI entry point for the association store."""

import argparse
import asyncio
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core.auth import StoreAuth
from .core.client import StoreAPIError, StoreClient
from .core.logs import setup_logging
from .core.remote import RemoteStore
from .core.store import AssociationStore, StoreSnapshot
from .models.config import DEFAULT_CONFIG_FILENAME, StoreConfig
from .models.entities import CommunityMessage

console = Console()


def _load_config(args: argparse.Namespace) -> StoreConfig:
    config = StoreConfig.load(Path(args.config))
    setup_logging(args.log_level or config.log_level)
    return config


def _build_store(config: StoreConfig) -> AssociationStore:
    """Wire client, adapter and store from env credentials."""
    client = StoreClient(StoreAuth(), timeout=config.request_timeout)
    remote = RemoteStore(client, settings_row_id=config.settings_row_id)
    return AssociationStore(remote, config)


def _money(amount: float, currency: str) -> str:
    return f"{amount:,.0f} {currency}".replace(",", " ")


def format_message(message: CommunityMessage) -> str:
    """Render a message as rich markup; user text is escaped."""
    return f"[dim]{escape(message.timestamp)}[/dim] [bold]{escape(message.user_name)}[/bold]: {escape(message.content)}"


def cmd_verify_auth(args: argparse.Namespace) -> int:
    """Verify API credentials and connectivity."""
    config = _load_config(args)
    console.print("Verifying store credentials...", style="blue")

    try:
        client = StoreClient(StoreAuth(), timeout=config.request_timeout)
        if client.verify_connection():
            console.print(f"[green]Connected to {client.auth.url}")
            return 0
    except StoreAPIError as e:
        console.print(f"[red]Connection failed: {e}")
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")

    return 1


async def _load(config: StoreConfig) -> StoreSnapshot:
    store = _build_store(config)
    return await store.load()


def cmd_status(args: argparse.Namespace) -> int:
    """Show headline figures and budget consumption."""
    config = _load_config(args)
    try:
        snapshot = asyncio.run(_load(config))
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    currency = snapshot.settings.currency
    stats = snapshot.stats

    console.print(f"\n[bold]{escape(snapshot.settings.association_name)}[/bold]")
    console.print(f"[bold]Balance:[/bold] {_money(stats.balance, currency)}")
    console.print(f"[bold]Income:[/bold] {_money(stats.total_income, currency)}")
    console.print(f"[bold]Expenses:[/bold] {_money(stats.total_expense, currency)}")
    console.print(f"[bold]Pending:[/bold] {stats.pending_count}")
    console.print(f"[bold]Members:[/bold] {len(snapshot.members)}")

    table = Table(title="\nBudgets")
    table.add_column("Category")
    table.add_column("Year")
    table.add_column("Allocated", justify="right")
    table.add_column("Spent", justify="right")
    table.add_column("Saved")

    for b in snapshot.budgets:
        over = b.allocated_amount and b.spent_amount > b.allocated_amount
        spent = _money(b.spent_amount, currency)
        table.add_row(
            escape(b.category),
            str(b.year),
            _money(b.allocated_amount, currency),
            f"[red]{spent}" if over else spent,
            "[green]Yes" if b.is_persisted else "[yellow]No",
        )

    console.print(table)
    return 0


def cmd_members(args: argparse.Namespace) -> int:
    """List members."""
    config = _load_config(args)
    try:
        snapshot = asyncio.run(_load(config))
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    if not snapshot.members:
        console.print("[yellow]No members.")
        return 0

    table = Table(title="Members")
    table.add_column("Unique ID")
    table.add_column("Name")
    table.add_column("Sector")
    table.add_column("Level")
    table.add_column("Balance", justify="right")

    for m in snapshot.members:
        table.add_row(
            escape(m.unique_id),
            escape(f"{m.first_name} {m.last_name}"),
            escape(m.sector),
            escape(m.level),
            _money(m.balance, snapshot.settings.currency),
        )

    console.print(table)
    return 0


def cmd_transactions(args: argparse.Namespace) -> int:
    """List transactions, newest first."""
    config = _load_config(args)
    try:
        snapshot = asyncio.run(_load(config))
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    transactions = snapshot.transactions
    if args.status:
        transactions = tuple(t for t in transactions if t.status.value == args.status)

    if not transactions:
        console.print("[yellow]No transactions.")
        return 0

    styles = {"APPROVED": "green", "PENDING": "yellow", "REJECTED": "red"}
    table = Table(title="Transactions")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Category")
    table.add_column("Amount", justify="right")
    table.add_column("Status")
    table.add_column("Receipt")

    for t in transactions:
        table.add_row(
            escape(t.date),
            t.type.value,
            escape(t.category),
            _money(t.amount, snapshot.settings.currency),
            f"[{styles[t.status.value]}]{t.status.value}",
            escape(t.receipt_number or "-"),
        )

    console.print(table)
    return 0


def cmd_login(args: argparse.Namespace) -> int:
    """Check credentials and show the resulting principal."""
    config = _load_config(args)
    try:
        store = _build_store(config)
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    if not asyncio.run(store.login(args.email, args.password)):
        console.print("[red]Invalid email or password.")
        return 1

    user = store.snapshot().user
    console.print(f"[green]Logged in as {escape(user.name)} ({user.role.value})")
    if user.member_id:
        console.print(f"Linked member: {escape(user.member_id)}")
    return 0


async def _watch(store: AssociationStore) -> None:
    seen = len(store.snapshot().messages)

    def on_change(snapshot: StoreSnapshot) -> None:
        nonlocal seen
        for message in snapshot.messages[seen:]:
            console.print(format_message(message))
        seen = len(snapshot.messages)

    async with store:
        for message in store.snapshot().messages[-10:]:
            console.print(format_message(message))
        seen = len(store.snapshot().messages)
        store.subscribe(on_change)
        await asyncio.Event().wait()


def cmd_watch(args: argparse.Namespace) -> int:
    """Print community messages as they arrive."""
    config = _load_config(args)
    config.realtime.enabled = True
    try:
        store = _build_store(config)
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}")
        return 1

    console.print("Watching messages (Ctrl-C to stop)...", style="blue")
    try:
        asyncio.run(_watch(store))
    except KeyboardInterrupt:
        pass
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="assocsync",
        description="Inspect and follow an association's remote store",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILENAME, help="Path to YAML config")
    parser.add_argument("--log-level", help="Override configured log level")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("verify-auth", help="Verify API credentials")
    subparsers.add_parser("status", help="Show balance and budget consumption")
    subparsers.add_parser("members", help="List members")

    transactions_parser = subparsers.add_parser("transactions", help="List transactions")
    transactions_parser.add_argument(
        "--status",
        choices=["PENDING", "APPROVED", "REJECTED"],
        help="Only show transactions with this status",
    )

    login_parser = subparsers.add_parser("login", help="Check a user's credentials")
    login_parser.add_argument("email", help="User email")
    login_parser.add_argument("password", help="User password")

    subparsers.add_parser("watch", help="Follow community messages live")

    args = parser.parse_args()

    if args.command == "verify-auth":
        return cmd_verify_auth(args)
    elif args.command == "status":
        return cmd_status(args)
    elif args.command == "members":
        return cmd_members(args)
    elif args.command == "transactions":
        return cmd_transactions(args)
    elif args.command == "login":
        return cmd_login(args)
    elif args.command == "watch":
        return cmd_watch(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
