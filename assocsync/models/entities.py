"""Entity models mirrored from the remote store."""

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    """Roles a session principal can hold."""

    TRESORIER = "TRESORIER"
    PRESIDENT = "PRESIDENT"
    MEMBRE = "MEMBRE"


class Gender(str, Enum):
    MALE = "M"
    FEMALE = "F"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class TransactionStatus(str, Enum):
    """Review status of a transaction.

    Only PENDING -> APPROVED and PENDING -> REJECTED are valid transitions.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ExpenseCategory(str, Enum):
    """Fixed set of expense categories; one budget line per category."""

    TRANSPORT = "Transport"
    RESTAURATION = "Restauration"
    FOURNITURES = "Fournitures"
    COMMUNICATION = "Communication"
    EVENEMENTS = "Événements"
    SOCIAL = "Social"
    LOGEMENT = "Logement"
    AUTRE = "Autre"


@dataclass(frozen=True)
class Pending:
    """Identifier of an entity that does not exist remotely yet."""

    local_id: str

    @property
    def value(self) -> str:
        return self.local_id


@dataclass(frozen=True)
class Persisted:
    """Identifier assigned by the remote store."""

    remote_id: str

    @property
    def value(self) -> str:
        return self.remote_id


EntityId = Pending | Persisted


@dataclass(frozen=True)
class Member:
    id: str
    unique_id: str  # gender letter + 11 digits, immutable
    first_name: str
    last_name: str
    dob: str
    sector: str
    level: str
    gender: Gender
    dossier_number: str
    ine: str  # national student identifier
    balance: float


@dataclass(frozen=True)
class MemberDraft:
    """Fields a caller supplies to register a member."""

    first_name: str
    last_name: str
    dob: str
    sector: str
    level: str
    gender: Gender
    dossier_number: str
    ine: str
    balance: float = 0.0


@dataclass(frozen=True)
class Transaction:
    id: str
    type: TransactionType
    category: str
    amount: float
    date: str
    description: str
    performed_by: str
    matricule: str  # performer's member unique id
    function: str
    responsible: str
    status: TransactionStatus
    signature: str
    receipt_number: str | None = None  # INCOME only
    proof_url: str | None = None


@dataclass(frozen=True)
class TransactionDraft:
    """Fields a caller supplies to record a transaction.

    Status, signature and receipt number are assigned by the store.
    """

    type: TransactionType
    category: str
    amount: float
    date: str
    description: str
    performed_by: str
    matricule: str
    function: str
    responsible: str
    proof_url: str | None = None


@dataclass(frozen=True)
class Budget:
    id: EntityId
    category: str
    allocated_amount: float
    year: int
    spent_amount: float = 0.0  # derived from approved expenses, never persisted

    @property
    def is_persisted(self) -> bool:
        return isinstance(self.id, Persisted)


@dataclass(frozen=True)
class MemberInfo:
    """Author's sector/level captured when a message is posted."""

    sector: str
    level: str


@dataclass(frozen=True)
class CommunityMessage:
    id: str
    user_id: str
    user_name: str
    user_role: UserRole
    content: str
    timestamp: str
    member_info: MemberInfo | None = None


@dataclass(frozen=True)
class AppSettings:
    association_name: str
    currency: str
    logo_url: str = ""


@dataclass(frozen=True)
class User:
    """Session principal; lives in memory only."""

    email: str
    name: str
    role: UserRole
    member_id: str | None = None
