"""Data models for the association store."""

from .config import DefaultsConfig, RealtimeConfig, StoreConfig
from .entities import (
    AppSettings,
    Budget,
    CommunityMessage,
    EntityId,
    ExpenseCategory,
    Gender,
    Member,
    MemberDraft,
    MemberInfo,
    Pending,
    Persisted,
    Transaction,
    TransactionDraft,
    TransactionStatus,
    TransactionType,
    User,
    UserRole,
)

__all__ = [
    "AppSettings",
    "Budget",
    "CommunityMessage",
    "DefaultsConfig",
    "EntityId",
    "ExpenseCategory",
    "Gender",
    "Member",
    "MemberDraft",
    "MemberInfo",
    "Pending",
    "Persisted",
    "RealtimeConfig",
    "StoreConfig",
    "Transaction",
    "TransactionDraft",
    "TransactionStatus",
    "TransactionType",
    "User",
    "UserRole",
]
