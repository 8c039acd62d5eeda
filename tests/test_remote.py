"""Tests for the async remote store adapter."""

from unittest.mock import MagicMock

import pytest

from assocsync.core.client import StoreAPIError
from assocsync.core.remote import RemoteStore
from assocsync.models.entities import (
    AppSettings,
    Budget,
    CommunityMessage,
    Pending,
    Persisted,
    TransactionStatus,
    UserRole,
)

USER_ROW = {
    "email": "membre@asso.sn",
    "password": "pass1234",
    "name": "Awa Diop",
    "role": "MEMBRE",
    "member_id": "12",
}


@pytest.fixture
def client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def remote(client) -> RemoteStore:
    return RemoteStore(client, settings_row_id=1)


class TestReads:
    """Tests for collection reads."""

    @pytest.mark.asyncio
    async def test_transactions_newest_first(self, remote, client) -> None:
        client.select.return_value = []

        await remote.fetch_transactions()

        client.select.assert_called_once_with("transactions", order="date", ascending=False)

    @pytest.mark.asyncio
    async def test_messages_oldest_first(self, remote, client) -> None:
        client.select.return_value = [{
            "id": 1,
            "user_id": "membre@asso.sn",
            "user_name": "Awa Diop",
            "user_role": "MEMBRE",
            "content": "Bonjour",
            "created_at": "2026-10-16T07:00:00+00:00",
        }]

        messages = await remote.fetch_messages()

        client.select.assert_called_once_with("messages", order="created_at", ascending=True)
        assert messages[0].id == "1"
        assert messages[0].member_info is None

    @pytest.mark.asyncio
    async def test_budgets_are_persisted(self, remote, client) -> None:
        client.select.return_value = [{"id": 5, "category": "Social", "allocated_amount": 1000, "year": 2026}]

        budgets = await remote.fetch_budgets()

        assert budgets[0].id == Persisted("5")

    @pytest.mark.asyncio
    async def test_unreadable_row_is_skipped(self, remote, client) -> None:
        good = {
            "id": 7,
            "unique_id": "A12345678901",
            "first_name": "Moussa",
            "last_name": "Ndiaye",
            "dob": "2001-05-14",
            "sector": "Sciences",
            "level": "L3",
            "gender": "M",
            "dossier_number": "D-1",
            "ine": "N1",
            "balance": "100",
        }
        client.select.return_value = [
            good,
            dict(good, id=8, gender=None),
            dict(good, id=9, balance="beaucoup"),
            dict(good, id=10, first_name="Fatou", gender="F"),
        ]

        members = await remote.fetch_members()

        assert [m.id for m in members] == ["7", "10"]

    @pytest.mark.asyncio
    async def test_unreadable_message_row_is_skipped(self, remote, client) -> None:
        client.select.return_value = [
            {"content": "no id", "user_role": "MEMBRE"},
            {
                "id": 2,
                "user_id": "membre@asso.sn",
                "user_name": "Awa Diop",
                "user_role": "MEMBRE",
                "content": "Bonjour",
                "created_at": "2026-10-16T07:00:00+00:00",
            },
        ]

        messages = await remote.fetch_messages()

        assert [m.id for m in messages] == ["2"]

    @pytest.mark.asyncio
    async def test_settings_missing(self, remote, client) -> None:
        client.select.return_value = []

        assert await remote.fetch_settings() is None

    @pytest.mark.asyncio
    async def test_settings_first_row(self, remote, client) -> None:
        client.select.return_value = [{"id": 1, "association_name": "Amicale", "currency": "EUR", "logo_url": None}]

        settings = await remote.fetch_settings()

        assert settings == AppSettings(association_name="Amicale", currency="EUR", logo_url="")
        client.select.assert_called_once_with("settings", limit=1)

    @pytest.mark.asyncio
    async def test_errors_propagate(self, remote, client) -> None:
        client.select.side_effect = StoreAPIError("API error 500: boom", 500)

        with pytest.raises(StoreAPIError):
            await remote.fetch_members()


class TestFindUser:
    """Tests for credential lookups."""

    @pytest.mark.asyncio
    async def test_single_match(self, remote, client) -> None:
        client.select.return_value = [USER_ROW]

        user = await remote.find_user("membre@asso.sn", "pass1234")

        assert user.role == UserRole.MEMBRE
        assert user.member_id == "12"
        client.select.assert_called_once_with(
            "users",
            match={"email": "membre@asso.sn", "password": "pass1234"},
            limit=2,
        )

    @pytest.mark.asyncio
    async def test_no_match(self, remote, client) -> None:
        client.select.return_value = []

        assert await remote.find_user("membre@asso.sn", "nope") is None

    @pytest.mark.asyncio
    async def test_ambiguous_match(self, remote, client) -> None:
        client.select.return_value = [USER_ROW, dict(USER_ROW, name="Doublon")]

        assert await remote.find_user("membre@asso.sn", "pass1234") is None

    @pytest.mark.asyncio
    async def test_inexact_row_rejected(self, remote, client) -> None:
        client.select.return_value = [dict(USER_ROW, email="MEMBRE@asso.sn")]

        assert await remote.find_user("membre@asso.sn", "pass1234") is None


class TestWrites:
    """Tests for mutations."""

    @pytest.mark.asyncio
    async def test_insert_budget_drops_placeholder_id(self, remote, client) -> None:
        client.insert.return_value = [{"id": 40, "category": "Transport", "allocated_amount": 750, "year": 2026}]
        budget = Budget(id=Pending("b-0"), category="Transport", allocated_amount=750, year=2026)

        saved = await remote.insert_budget(budget)

        client.insert.assert_called_once_with(
            "budgets",
            [{"category": "Transport", "allocated_amount": 750, "year": 2026}],
        )
        assert saved.id == Persisted("40")

    @pytest.mark.asyncio
    async def test_insert_with_no_rows_returned(self, remote, client) -> None:
        client.insert.return_value = []
        message = CommunityMessage(
            id="",
            user_id="membre@asso.sn",
            user_name="Awa Diop",
            user_role=UserRole.MEMBRE,
            content="Salut",
            timestamp="",
        )

        with pytest.raises(StoreAPIError, match="returned no rows"):
            await remote.insert_message(message)

    @pytest.mark.asyncio
    async def test_update_status(self, remote, client) -> None:
        await remote.update_transaction_status("17", TransactionStatus.APPROVED)

        client.update.assert_called_once_with("transactions", {"status": "APPROVED"}, {"id": "17"})

    @pytest.mark.asyncio
    async def test_update_budget_allocation(self, remote, client) -> None:
        await remote.update_budget_allocation("40", 900.0)

        client.update.assert_called_once_with("budgets", {"allocated_amount": 900.0}, {"id": "40"})

    @pytest.mark.asyncio
    async def test_update_settings_targets_singleton_row(self, client) -> None:
        remote = RemoteStore(client, settings_row_id=3)

        await remote.update_settings(AppSettings(association_name="Amicale", currency="FCFA"))

        args = client.update.call_args.args
        assert args[0] == "settings"
        assert args[1]["association_name"] == "Amicale"
        assert args[2] == {"id": 3}

    @pytest.mark.asyncio
    async def test_deletes(self, remote, client) -> None:
        await remote.delete_member("7")
        await remote.delete_message("8")
        await remote.delete_transaction("9")

        calls = [c.args for c in client.delete.call_args_list]
        assert calls == [("members", {"id": "7"}), ("messages", {"id": "8"}), ("transactions", {"id": "9"})]
