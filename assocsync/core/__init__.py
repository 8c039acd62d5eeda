"""Core sync functionality."""

from .aggregator import Stats, compute_stats, recompute_budgets
from .auth import StoreAuth
from .client import StoreAPIError, StoreClient
from .credentials import CredentialGate
from .realtime import MessageSubscriber
from .remote import RemoteStore
from .store import AssociationStore, StoreSnapshot

__all__ = [
    "AssociationStore",
    "CredentialGate",
    "MessageSubscriber",
    "RemoteStore",
    "Stats",
    "StoreAPIError",
    "StoreAuth",
    "StoreClient",
    "StoreSnapshot",
    "compute_stats",
    "recompute_budgets",
]
