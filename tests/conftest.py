"""Shared fixtures: an in-memory stand-in for the remote store adapter."""

import asyncio
import itertools
from dataclasses import replace

import pytest

from assocsync.core.client import StoreAPIError
from assocsync.core.store import AssociationStore
from assocsync.models.config import StoreConfig
from assocsync.models.entities import (
    AppSettings,
    Budget,
    CommunityMessage,
    Member,
    Persisted,
    Transaction,
    TransactionStatus,
    User,
)


class FakeRemote:
    """Implements the RemoteStore surface over plain lists.

    Add an operation name to ``fail`` to make that call raise StoreAPIError,
    or map it in ``hold`` to an ``asyncio.Event`` the call waits on.
    Every call yields to the event loop once, like a real round trip.
    """

    def __init__(self) -> None:
        self.members: list[Member] = []
        self.transactions: list[Transaction] = []
        self.budgets: list[Budget] = []
        self.messages: list[CommunityMessage] = []
        self.settings: AppSettings | None = None
        self.users: list[tuple[str, str, User]] = []
        self.fail: set[str] = set()
        self.hold: dict[str, asyncio.Event] = {}
        self.calls: list[str] = []
        self._ids = itertools.count(100)

    async def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        await asyncio.sleep(0)
        if operation in self.hold:
            await self.hold[operation].wait()
        if operation in self.fail:
            raise StoreAPIError(f"{operation} unavailable", 503)

    def _next_id(self) -> str:
        return str(next(self._ids))

    async def fetch_members(self) -> list[Member]:
        await self._enter("fetch_members")
        return list(self.members)

    async def fetch_transactions(self) -> list[Transaction]:
        await self._enter("fetch_transactions")
        return list(self.transactions)

    async def fetch_budgets(self) -> list[Budget]:
        await self._enter("fetch_budgets")
        return list(self.budgets)

    async def fetch_messages(self) -> list[CommunityMessage]:
        await self._enter("fetch_messages")
        return list(self.messages)

    async def fetch_settings(self) -> AppSettings | None:
        await self._enter("fetch_settings")
        return self.settings

    async def find_user(self, email: str, secret: str) -> User | None:
        await self._enter("find_user")
        for stored_email, stored_secret, user in self.users:
            if stored_email == email and stored_secret == secret:
                return user
        return None

    async def insert_transaction(self, tx: Transaction) -> Transaction:
        await self._enter("insert_transaction")
        saved = replace(tx, id=self._next_id())
        self.transactions.insert(0, saved)
        return saved

    async def update_transaction_status(self, tx_id: str, status: TransactionStatus) -> None:
        await self._enter("update_transaction_status")
        self.transactions = [replace(t, status=status) if t.id == tx_id else t for t in self.transactions]

    async def delete_transaction(self, tx_id: str) -> None:
        await self._enter("delete_transaction")
        self.transactions = [t for t in self.transactions if t.id != tx_id]

    async def insert_member(self, member: Member) -> Member:
        await self._enter("insert_member")
        saved = replace(member, id=self._next_id())
        self.members.append(saved)
        return saved

    async def delete_member(self, member_id: str) -> None:
        await self._enter("delete_member")
        self.members = [m for m in self.members if m.id != member_id]

    async def insert_budget(self, budget: Budget) -> Budget:
        await self._enter("insert_budget")
        saved = replace(budget, id=Persisted(self._next_id()), spent_amount=0.0)
        self.budgets.append(saved)
        return saved

    async def update_budget_allocation(self, remote_id: str, amount: float) -> None:
        await self._enter("update_budget_allocation")
        self.budgets = [
            replace(b, allocated_amount=amount) if b.id == Persisted(remote_id) else b for b in self.budgets
        ]

    async def update_settings(self, settings: AppSettings) -> None:
        await self._enter("update_settings")
        self.settings = settings

    async def insert_message(self, message: CommunityMessage) -> CommunityMessage:
        await self._enter("insert_message")
        saved = replace(message, id=self._next_id(), timestamp="2026-10-16T09:30:00+00:00")
        self.messages.append(saved)
        return saved

    async def delete_message(self, message_id: str) -> None:
        await self._enter("delete_message")
        self.messages = [m for m in self.messages if m.id != message_id]


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def config() -> StoreConfig:
    config = StoreConfig()
    config.realtime.enabled = False
    return config


@pytest.fixture
def store(remote: FakeRemote, config: StoreConfig) -> AssociationStore:
    return AssociationStore(remote, config)
