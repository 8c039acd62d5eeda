"""Translation between remote rows (snake_case) and entity models.

Remote rows are flat dictionaries as returned by the REST endpoint. Every
``map_*`` function drops columns it does not recognise and every ``unmap_*``
function produces only columns the remote schema knows about, so
``map_x(unmap_x(entity)) == entity`` for any entity.
"""

import json
import logging
from typing import Any

from .entities import (
    AppSettings,
    Budget,
    CommunityMessage,
    Gender,
    Member,
    MemberInfo,
    Persisted,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)

Row = dict[str, Any]


def parse_amount(value: Any) -> float:
    """Coerce a monetary column (number or numeric string) to float.

    NULL and blank strings read as 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    return float(value)


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def parse_member_info(raw: Any) -> MemberInfo | None:
    """Decode the ``member_info_json`` column.

    Accepts a JSON string or an already-decoded object. Anything that does not
    decode to an object with ``sector`` and ``level`` yields None.
    """
    if raw is None or raw == "":
        return None

    data = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed member_info_json: %r", raw[:80])
            return None

    if not isinstance(data, dict) or "sector" not in data or "level" not in data:
        logger.warning("Ignoring member_info_json without sector/level: %r", data)
        return None

    return MemberInfo(sector=str(data["sector"]), level=str(data["level"]))


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


def map_member(row: Row) -> Member:
    return Member(
        id=str(row["id"]),
        unique_id=row.get("unique_id") or "",
        first_name=row.get("first_name") or "",
        last_name=row.get("last_name") or "",
        dob=row.get("dob") or "",
        sector=row.get("sector") or "",
        level=row.get("level") or "",
        gender=Gender(row.get("gender")),
        dossier_number=row.get("dossier_number") or "",
        ine=row.get("ine") or "",
        balance=parse_amount(row.get("balance")),
    )


def unmap_member(member: Member) -> Row:
    row: Row = {
        "unique_id": member.unique_id,
        "first_name": member.first_name,
        "last_name": member.last_name,
        "dob": member.dob,
        "sector": member.sector,
        "level": member.level,
        "gender": member.gender.value,
        "dossier_number": member.dossier_number,
        "ine": member.ine,
        "balance": member.balance,
    }
    if member.id:
        row["id"] = member.id
    return row


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def map_transaction(row: Row) -> Transaction:
    return Transaction(
        id=str(row["id"]),
        type=TransactionType(row["type"]),
        category=row.get("category") or "",
        amount=parse_amount(row.get("amount")),
        date=row.get("date") or "",
        description=row.get("description") or "",
        performed_by=row.get("performed_by") or "",
        matricule=row.get("matricule") or "",
        function=row.get("function") or "",
        responsible=row.get("responsible") or "",
        status=TransactionStatus(row.get("status") or TransactionStatus.PENDING.value),
        signature=row.get("signature") or "",
        receipt_number=_optional_str(row.get("receipt_number")),
        proof_url=_optional_str(row.get("proof_url")),
    )


def unmap_transaction(tx: Transaction) -> Row:
    row: Row = {
        "type": tx.type.value,
        "category": tx.category,
        "amount": tx.amount,
        "date": tx.date,
        "description": tx.description,
        "performed_by": tx.performed_by,
        "matricule": tx.matricule,
        "function": tx.function,
        "responsible": tx.responsible,
        "status": tx.status.value,
        "signature": tx.signature,
        "receipt_number": tx.receipt_number,
        "proof_url": tx.proof_url,
    }
    if tx.id:
        row["id"] = tx.id
    return row


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


def map_budget(row: Row) -> Budget:
    """Map a budget row; spent amount always starts at 0 until recomputed."""
    return Budget(
        id=Persisted(str(row["id"])),
        category=row.get("category") or "",
        allocated_amount=parse_amount(row.get("allocated_amount")),
        year=int(row["year"]),
    )


def unmap_budget(budget: Budget) -> Row:
    # spent_amount is derived and has no column
    row: Row = {
        "category": budget.category,
        "allocated_amount": budget.allocated_amount,
        "year": budget.year,
    }
    if isinstance(budget.id, Persisted):
        row["id"] = budget.id.remote_id
    return row


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def map_message(row: Row) -> CommunityMessage:
    return CommunityMessage(
        id=str(row["id"]),
        user_id=row.get("user_id") or "",
        user_name=row.get("user_name") or "",
        user_role=UserRole(row["user_role"]),
        content=row.get("content") or "",
        timestamp=row.get("created_at") or "",
        member_info=parse_member_info(row.get("member_info_json")),
    )


def unmap_message(message: CommunityMessage) -> Row:
    info = message.member_info
    row: Row = {
        "user_id": message.user_id,
        "user_name": message.user_name,
        "user_role": message.user_role.value,
        "content": message.content,
        "member_info_json": (
            json.dumps({"sector": info.sector, "level": info.level}) if info else None
        ),
    }
    if message.id:
        row["id"] = message.id
    if message.timestamp:
        row["created_at"] = message.timestamp
    return row


# ---------------------------------------------------------------------------
# Settings and users
# ---------------------------------------------------------------------------


def map_settings(row: Row) -> AppSettings:
    return AppSettings(
        association_name=row.get("association_name") or "",
        currency=row.get("currency") or "",
        logo_url=row.get("logo_url") or "",
    )


def unmap_settings(settings: AppSettings) -> Row:
    return {
        "association_name": settings.association_name,
        "currency": settings.currency,
        "logo_url": settings.logo_url,
    }


def map_user(row: Row) -> User:
    """Map a credential record to a session principal (secret column dropped)."""
    return User(
        email=row["email"],
        name=row.get("name") or "",
        role=UserRole(row["role"]),
        member_id=_optional_str(row.get("member_id")),
    )
