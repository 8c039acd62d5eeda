"""Derived values computed from the transaction set."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from ..models.entities import Budget, Transaction, TransactionStatus, TransactionType


@dataclass(frozen=True)
class Stats:
    """Headline figures shown on the dashboard."""

    balance: float
    total_income: float
    total_expense: float
    pending_count: int


def spent_by_category(transactions: Iterable[Transaction]) -> dict[str, float]:
    """Sum approved expense amounts per category."""
    spent: dict[str, float] = {}
    for tx in transactions:
        if tx.type == TransactionType.EXPENSE and tx.status == TransactionStatus.APPROVED:
            spent[tx.category] = spent.get(tx.category, 0.0) + tx.amount
    return spent


def recompute_budgets(
    transactions: Iterable[Transaction],
    budgets: Sequence[Budget],
) -> tuple[Budget, ...]:
    """Return budgets with ``spent_amount`` recomputed from the transactions.

    Pure and idempotent; every other budget field passes through unchanged.
    Categories are matched by exact string equality.
    """
    spent = spent_by_category(transactions)
    return tuple(replace(b, spent_amount=spent.get(b.category, 0.0)) for b in budgets)


def compute_stats(transactions: Iterable[Transaction]) -> Stats:
    total_income = 0.0
    total_expense = 0.0
    pending_count = 0

    for tx in transactions:
        if tx.status == TransactionStatus.PENDING:
            pending_count += 1
        elif tx.status == TransactionStatus.APPROVED:
            if tx.type == TransactionType.INCOME:
                total_income += tx.amount
            else:
                total_expense += tx.amount

    return Stats(
        balance=total_income - total_expense,
        total_income=total_income,
        total_expense=total_expense,
        pending_count=pending_count,
    )
