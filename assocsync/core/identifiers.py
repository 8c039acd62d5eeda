"""Identifier generation and placeholder/persisted dispatch."""

import random
import time

from ..models.entities import (
    Budget,
    EntityId,
    ExpenseCategory,
    Gender,
    Pending,
    Persisted,
)

PLACEHOLDER_PREFIX = "b-"


def generate_unique_id(gender: Gender, rng: random.Random | None = None) -> str:
    """Generate a member unique id: ``A`` (male) or ``B`` (female) + 11 digits.

    Uniqueness is probabilistic; nothing checks for collisions.
    """
    rng = rng or random
    prefix = "A" if gender == Gender.MALE else "B"
    return f"{prefix}{rng.randint(10_000_000_000, 99_999_999_999)}"


def _millis() -> int:
    return int(time.time() * 1000)


def generate_receipt_number() -> str:
    return f"REC-{_millis()}"


def generate_signature() -> str:
    return f"SIG-{_millis()}"


def parse_entity_id(value: str) -> EntityId:
    """Tag an identifier that arrives as a bare string.

    Strings carrying the placeholder prefix are never sent to the remote store
    as ids.
    """
    if value.startswith(PLACEHOLDER_PREFIX):
        return Pending(value)
    return Persisted(value)


def placeholder_budgets(year: int) -> tuple[Budget, ...]:
    """One zero-allocation budget per expense category, not yet persisted."""
    return tuple(
        Budget(
            id=Pending(f"{PLACEHOLDER_PREFIX}{index}"),
            category=category.value,
            allocated_amount=0.0,
            year=year,
        )
        for index, category in enumerate(ExpenseCategory)
    )
