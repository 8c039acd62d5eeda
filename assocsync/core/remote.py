"""Async adapter between the local store and the remote collections.

Every method performs exactly one round trip through ``StoreClient`` on a
worker thread and translates rows with the field mappers. Errors propagate as
``StoreAPIError``; deciding what to do with them is the caller's job.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from ..models import mappers
from ..models.entities import (
    AppSettings,
    Budget,
    CommunityMessage,
    Member,
    Transaction,
    TransactionStatus,
    User,
)
from .client import StoreAPIError, StoreClient

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RemoteStore:
    """Remote store adapter used by ``AssociationStore``."""

    MEMBERS = "members"
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    MESSAGES = "messages"
    SETTINGS = "settings"
    USERS = "users"

    def __init__(self, client: StoreClient | None = None, settings_row_id: int = 1) -> None:
        """Initialize the adapter.

        Args:
            client: StoreClient (created from env if not provided)
            settings_row_id: Primary key of the singleton settings row
        """
        self._client = client
        self.settings_row_id = settings_row_id

    @property
    def client(self) -> StoreClient:
        """Get or create StoreClient (lazy initialization)."""
        if self._client is None:
            self._client = StoreClient()
        return self._client

    async def _call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(fn, *args, **kwargs)

    async def _insert_one(self, table: str, row: mappers.Row) -> mappers.Row:
        rows = await self._call(self.client.insert, table, [row])
        if not rows:
            raise StoreAPIError(f"Insert into {table} returned no rows")
        return rows[0]

    def _map_rows(self, table: str, rows: list[mappers.Row], mapper: Callable[[mappers.Row], T]) -> list[T]:
        """Map each row, skipping the ones that cannot be read."""
        items = []
        for row in rows:
            try:
                items.append(mapper(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping unreadable %s row %r: %s", table, row, e)
        return items

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def fetch_members(self) -> list[Member]:
        rows = await self._call(self.client.select, self.MEMBERS)
        return self._map_rows(self.MEMBERS, rows, mappers.map_member)

    async def fetch_transactions(self) -> list[Transaction]:
        """Fetch all transactions, newest first."""
        rows = await self._call(self.client.select, self.TRANSACTIONS, order="date", ascending=False)
        return self._map_rows(self.TRANSACTIONS, rows, mappers.map_transaction)

    async def fetch_budgets(self) -> list[Budget]:
        rows = await self._call(self.client.select, self.BUDGETS)
        return self._map_rows(self.BUDGETS, rows, mappers.map_budget)

    async def fetch_messages(self) -> list[CommunityMessage]:
        """Fetch all messages, oldest first."""
        rows = await self._call(self.client.select, self.MESSAGES, order="created_at", ascending=True)
        return self._map_rows(self.MESSAGES, rows, mappers.map_message)

    async def fetch_settings(self) -> AppSettings | None:
        """Fetch the singleton settings row, or None if the table is empty."""
        rows = await self._call(self.client.select, self.SETTINGS, limit=1)
        if not rows:
            return None
        return mappers.map_settings(rows[0])

    async def find_user(self, email: str, secret: str) -> User | None:
        """Look up the credential record matching email and secret exactly.

        Returns None unless exactly one record matches.
        """
        rows = await self._call(
            self.client.select,
            self.USERS,
            match={"email": email, "password": secret},
            limit=2,
        )
        if len(rows) != 1:
            return None

        row = rows[0]
        if row.get("email") != email or row.get("password") != secret:
            return None
        return mappers.map_user(row)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def insert_transaction(self, tx: Transaction) -> Transaction:
        row = await self._insert_one(self.TRANSACTIONS, mappers.unmap_transaction(tx))
        return mappers.map_transaction(row)

    async def update_transaction_status(self, tx_id: str, status: TransactionStatus) -> None:
        await self._call(self.client.update, self.TRANSACTIONS, {"status": status.value}, {"id": tx_id})

    async def delete_transaction(self, tx_id: str) -> None:
        await self._call(self.client.delete, self.TRANSACTIONS, {"id": tx_id})

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def insert_member(self, member: Member) -> Member:
        row = await self._insert_one(self.MEMBERS, mappers.unmap_member(member))
        return mappers.map_member(row)

    async def delete_member(self, member_id: str) -> None:
        await self._call(self.client.delete, self.MEMBERS, {"id": member_id})

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def insert_budget(self, budget: Budget) -> Budget:
        """Persist a placeholder budget and return it with its remote id."""
        row = await self._insert_one(self.BUDGETS, mappers.unmap_budget(budget))
        return mappers.map_budget(row)

    async def update_budget_allocation(self, remote_id: str, amount: float) -> None:
        await self._call(self.client.update, self.BUDGETS, {"allocated_amount": amount}, {"id": remote_id})

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    async def update_settings(self, settings: AppSettings) -> None:
        await self._call(
            self.client.update,
            self.SETTINGS,
            mappers.unmap_settings(settings),
            {"id": self.settings_row_id},
        )

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    async def insert_message(self, message: CommunityMessage) -> CommunityMessage:
        row = await self._insert_one(self.MESSAGES, mappers.unmap_message(message))
        return mappers.map_message(row)

    async def delete_message(self, message_id: str) -> None:
        await self._call(self.client.delete, self.MESSAGES, {"id": message_id})
