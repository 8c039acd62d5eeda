"""In-memory mirror of the remote store, the single data source for the UI.

All state lives in one immutable ``StoreSnapshot``. Entry points build a new
snapshot and swap it in with ``_commit``, so readers only ever observe a
fully-applied change. Every commit that touches transactions or budgets
recomputes budget consumption before the swap.

The store runs on one event loop. Entry points may suspend while the remote
round trip is in flight and other events (including change stream callbacks)
can land in the meantime, so the post-await step always rebuilds from the
*current* snapshot.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Protocol

from ..models.config import StoreConfig
from ..models.entities import (
    AppSettings,
    Budget,
    CommunityMessage,
    EntityId,
    Member,
    MemberDraft,
    MemberInfo,
    Pending,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
    User,
    UserRole,
)
from .aggregator import Stats, compute_stats, recompute_budgets
from .client import StoreAPIError
from .credentials import CredentialGate
from .identifiers import (
    generate_receipt_number,
    generate_signature,
    generate_unique_id,
    parse_entity_id,
    placeholder_budgets,
)
from .realtime import MessageSubscriber
from .remote import RemoteStore

logger = logging.getLogger(__name__)

Listener = Callable[["StoreSnapshot"], Any]


class Subscription(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...


@dataclass(frozen=True)
class StoreSnapshot:
    """Everything the UI reads, as of one commit."""

    settings: AppSettings
    user: User | None = None
    members: tuple[Member, ...] = ()
    transactions: tuple[Transaction, ...] = ()
    budgets: tuple[Budget, ...] = ()
    messages: tuple[CommunityMessage, ...] = ()
    is_loading: bool = False

    @property
    def stats(self) -> Stats:
        """Headline figures, recomputed on every access."""
        return compute_stats(self.transactions)


def _current_year() -> int:
    return datetime.now().year


class AssociationStore:
    """Local cache with optimistic writes and remote reconciliation."""

    def __init__(
        self,
        remote: RemoteStore,
        config: StoreConfig | None = None,
        subscriber_factory: Callable[["AssociationStore"], Subscription] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            remote: Remote store adapter
            config: Store configuration (defaults if not provided)
            subscriber_factory: Builds the message subscription for this store;
                defaults to a websocket ``MessageSubscriber`` when realtime is
                enabled
        """
        self.remote = remote
        self.config = config or StoreConfig()
        self.gate = CredentialGate(remote)
        self._subscriber_factory = subscriber_factory
        self._subscriber: Subscription | None = None
        self._listeners: list[Listener] = []
        self._snapshot = StoreSnapshot(settings=self.config.defaults.to_settings(), is_loading=True)

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    @property
    def stats(self) -> Stats:
        return self._snapshot.stats

    @property
    def is_loading(self) -> bool:
        return self._snapshot.is_loading

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with each new snapshot; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, **changes: Any) -> StoreSnapshot:
        """Swap in a new snapshot built from the current one.

        Budget consumption is recomputed whenever transactions or budgets
        change. A snapshot equal to the current one is discarded without
        notifying listeners. A failing listener is logged and skipped.
        """
        current = self._snapshot
        candidate = replace(current, **changes)

        if "transactions" in changes or "budgets" in changes:
            budgets = recompute_budgets(candidate.transactions, candidate.budgets)
            if budgets != candidate.budgets:
                candidate = replace(candidate, budgets=budgets)

        if candidate == current:
            return current

        self._snapshot = candidate
        for listener in list(self._listeners):
            try:
                listener(candidate)
            except Exception:
                logger.exception("Store listener %r failed", listener)
        return candidate

    def _report_failure(self, operation: str, error: Exception) -> None:
        logger.error("%s failed: %s", operation, error)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _default_subscriber(self) -> Subscription:
        return MessageSubscriber(self.remote.client.auth, self, self.config.realtime)

    async def start(self) -> StoreSnapshot:
        """Load every collection and open the message subscription."""
        snapshot = await self.load()

        if self._subscriber is None:
            if self._subscriber_factory is not None:
                self._subscriber = self._subscriber_factory(self)
            elif self.config.realtime.enabled:
                self._subscriber = self._default_subscriber()
        if self._subscriber is not None:
            await self._subscriber.start()

        return snapshot

    async def close(self) -> None:
        """Tear down the message subscription."""
        subscriber, self._subscriber = self._subscriber, None
        if subscriber is not None:
            await subscriber.stop()

    async def __aenter__(self) -> "AssociationStore":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def load(self) -> StoreSnapshot:
        """Rebuild the cache from the remote store.

        The five collections are fetched concurrently. A collection whose
        fetch fails is reported and left as it was; the rest still land, in a
        single commit. With no remote budgets, one placeholder budget per
        expense category is created. Messages streamed in while the fetch is
        in flight are kept after the fetched ones.
        """
        self._commit(is_loading=True)
        known_before = {m.id for m in self._snapshot.messages}

        names = ("members", "transactions", "budgets", "messages", "settings")
        results = await asyncio.gather(
            self.remote.fetch_members(),
            self.remote.fetch_transactions(),
            self.remote.fetch_budgets(),
            self.remote.fetch_messages(),
            self.remote.fetch_settings(),
            return_exceptions=True,
        )

        changes: dict[str, Any] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self._report_failure(f"load {name}", result)
                continue
            if name == "settings":
                if result is not None:
                    changes["settings"] = result
            else:
                changes[name] = tuple(result)

        if "messages" in changes:
            fetched_ids = {m.id for m in changes["messages"]}
            streamed = tuple(
                m for m in self._snapshot.messages if m.id not in known_before and m.id not in fetched_ids
            )
            changes["messages"] += streamed

        if not changes.get("budgets"):
            changes["budgets"] = placeholder_budgets(_current_year())

        return self._commit(is_loading=False, **changes)

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def login(self, email: str, secret: str) -> bool:
        """Open a session for matching credentials; False otherwise."""
        user = await self.gate.check(email, secret)
        if user is None:
            return False
        self._commit(user=user)
        return True

    def logout(self) -> StoreSnapshot:
        return self._commit(user=None)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def _find_transaction(self, tx_id: str) -> Transaction | None:
        return next((t for t in self._snapshot.transactions if t.id == tx_id), None)

    async def add_transaction(self, draft: TransactionDraft) -> StoreSnapshot:
        """Record a transaction.

        Treasurer entries are approved on creation; everyone else's wait for
        review. Income gets a receipt number, expenses never do.
        """
        user = self._snapshot.user
        if user is not None and user.role == UserRole.TRESORIER:
            status = TransactionStatus.APPROVED
        else:
            status = TransactionStatus.PENDING

        candidate = Transaction(
            id="",
            type=draft.type,
            category=draft.category,
            amount=draft.amount,
            date=draft.date,
            description=draft.description,
            performed_by=draft.performed_by,
            matricule=draft.matricule,
            function=draft.function,
            responsible=draft.responsible,
            status=status,
            signature=generate_signature(),
            receipt_number=generate_receipt_number() if draft.type == TransactionType.INCOME else None,
            proof_url=draft.proof_url,
        )

        try:
            saved = await self.remote.insert_transaction(candidate)
        except StoreAPIError as e:
            self._report_failure("add_transaction", e)
            return self._snapshot

        return self._commit(transactions=(saved,) + self._snapshot.transactions)

    async def _review(self, tx_id: str, status: TransactionStatus) -> StoreSnapshot:
        tx = self._find_transaction(tx_id)
        if tx is None:
            logger.warning("Cannot mark unknown transaction %s as %s", tx_id, status.value)
            return self._snapshot
        if tx.status != TransactionStatus.PENDING:
            logger.debug("Transaction %s already %s, ignoring %s", tx_id, tx.status.value, status.value)
            return self._snapshot

        try:
            await self.remote.update_transaction_status(tx_id, status)
        except StoreAPIError as e:
            self._report_failure(f"mark {tx_id} {status.value}", e)
            return self._snapshot

        transactions = tuple(
            replace(t, status=status) if t.id == tx_id and t.status == TransactionStatus.PENDING else t
            for t in self._snapshot.transactions
        )
        return self._commit(transactions=transactions)

    async def approve_transaction(self, tx_id: str) -> StoreSnapshot:
        return await self._review(tx_id, TransactionStatus.APPROVED)

    async def reject_transaction(self, tx_id: str) -> StoreSnapshot:
        return await self._review(tx_id, TransactionStatus.REJECTED)

    async def delete_transaction(self, tx_id: str) -> StoreSnapshot:
        try:
            await self.remote.delete_transaction(tx_id)
        except StoreAPIError as e:
            self._report_failure("delete_transaction", e)
            return self._snapshot

        return self._commit(transactions=tuple(t for t in self._snapshot.transactions if t.id != tx_id))

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    async def add_member(self, draft: MemberDraft) -> StoreSnapshot:
        candidate = Member(
            id="",
            unique_id=generate_unique_id(draft.gender),
            first_name=draft.first_name,
            last_name=draft.last_name,
            dob=draft.dob,
            sector=draft.sector,
            level=draft.level,
            gender=draft.gender,
            dossier_number=draft.dossier_number,
            ine=draft.ine,
            balance=draft.balance,
        )

        try:
            saved = await self.remote.insert_member(candidate)
        except StoreAPIError as e:
            self._report_failure("add_member", e)
            return self._snapshot

        return self._commit(members=self._snapshot.members + (saved,))

    async def delete_member(self, member_id: str) -> StoreSnapshot:
        try:
            await self.remote.delete_member(member_id)
        except StoreAPIError as e:
            self._report_failure("delete_member", e)
            return self._snapshot

        return self._commit(members=tuple(m for m in self._snapshot.members if m.id != member_id))

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def update_budget(self, budget_id: str | EntityId, amount: float, category: str) -> StoreSnapshot:
        """Set a budget's allocated amount.

        A ``Pending`` budget is inserted remotely and its cache entry replaced
        by the persisted one. A ``Persisted`` budget is updated in place
        optimistically; a failed update is logged and not rolled back.
        """
        ref = parse_entity_id(budget_id) if isinstance(budget_id, str) else budget_id

        if isinstance(ref, Pending):
            existing = next((b for b in self._snapshot.budgets if b.id == ref), None)
            candidate = Budget(
                id=ref,
                category=category,
                allocated_amount=amount,
                year=existing.year if existing else _current_year(),
            )
            try:
                saved = await self.remote.insert_budget(candidate)
            except StoreAPIError as e:
                self._report_failure("insert budget", e)
                return self._snapshot

            if existing is None:
                budgets = self._snapshot.budgets + (saved,)
            else:
                budgets = tuple(saved if b.id == ref else b for b in self._snapshot.budgets)
            return self._commit(budgets=budgets)

        budgets = tuple(
            replace(b, allocated_amount=amount) if b.id == ref else b for b in self._snapshot.budgets
        )
        self._commit(budgets=budgets)
        try:
            await self.remote.update_budget_allocation(ref.remote_id, amount)
        except StoreAPIError as e:
            self._report_failure("update budget", e)
        return self._snapshot

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    async def update_settings(self, settings: AppSettings) -> StoreSnapshot:
        """Replace the settings optimistically; not rolled back on failure."""
        self._commit(settings=settings)
        try:
            await self.remote.update_settings(settings)
        except StoreAPIError as e:
            self._report_failure("update_settings", e)
        return self._snapshot

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def _author_info(self, user: User) -> MemberInfo | None:
        if not user.member_id:
            return None
        member = next((m for m in self._snapshot.members if m.id == user.member_id), None)
        if member is None:
            return None
        return MemberInfo(sector=member.sector, level=member.level)

    async def add_message(self, content: str) -> StoreSnapshot:
        """Post a message as the session user (no-op without a session).

        The stored row is appended directly; the change stream will usually
        deliver the same row again, and both copies are kept.
        """
        user = self._snapshot.user
        if user is None:
            return self._snapshot

        candidate = CommunityMessage(
            id="",
            user_id=user.email,
            user_name=user.name,
            user_role=user.role,
            content=content,
            timestamp="",
            member_info=self._author_info(user),
        )

        try:
            saved = await self.remote.insert_message(candidate)
        except StoreAPIError as e:
            self._report_failure("add_message", e)
            return self._snapshot

        return self.apply_message_insert(saved)

    async def delete_message(self, message_id: str) -> StoreSnapshot:
        """Delete remotely; the cache entry goes when the DELETE event arrives."""
        try:
            await self.remote.delete_message(message_id)
        except StoreAPIError as e:
            self._report_failure("delete_message", e)
        return self._snapshot

    def apply_message_insert(self, message: CommunityMessage) -> StoreSnapshot:
        return self._commit(messages=self._snapshot.messages + (message,))

    def apply_message_delete(self, message_id: str) -> StoreSnapshot:
        return self._commit(messages=tuple(m for m in self._snapshot.messages if m.id != message_id))
