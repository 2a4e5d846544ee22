import random
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

from ulid import ULID


class TransactionStatus(Enum):
    PENDING = "PENDING"
    VALID = "VALID"
    INVALID = "INVALID"


class BiometricType(Enum):
    FINGERPRINT = "FINGERPRINT"
    FACE = "FACE"
    IRIS = "IRIS"


class BiometricError(Enum):
    USER_CANCEL = "USER_CANCEL"
    LOCKOUT = "LOCKOUT"
    NOT_RECOGNIZED = "NOT_RECOGNIZED"
    SYSTEM_ERROR = "SYSTEM_ERROR"


@dataclass
class Account:
    balance: Decimal

    def __post_init__(self) -> None:
        if self.balance < 0:
            raise ValueError("Balance cannot be negative")


@dataclass(frozen=True)
class BiometricResult:
    success: bool
    error: BiometricError | None = None


@dataclass(frozen=True)
class Contact:
    id: str
    name: str


@dataclass(frozen=True)
class Recipient:
    id: str
    name: str
    account_number: str

    @classmethod
    def from_name(cls, name: str) -> "Recipient":
        """Build a recipient for a name typed by the user; it is not looked up anywhere."""
        return cls(
            id=uuid4().hex[:9],
            name=name,
            account_number=f"ACC{random.randint(100000, 999999)}",
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "accountNumber": self.account_number}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Recipient":
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            account_number=str(data["accountNumber"]),
        )


@dataclass(frozen=True)
class Transaction:
    id: str
    recipient: Recipient
    amount: Decimal
    status: TransactionStatus
    note: str | None = None
    date: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError("Transaction amount must be positive")

    @classmethod
    def create(
        cls,
        recipient: Recipient,
        amount: Decimal,
        note: str | None = None,
    ) -> "Transaction":
        return cls(
            id=str(ULID()),
            recipient=recipient,
            amount=amount,
            status=TransactionStatus.PENDING,
            note=note,
        )

    def with_status(self, status: TransactionStatus) -> "Transaction":
        return replace(self, status=status)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "recipient": self.recipient.to_dict(),
            "amount": str(self.amount),
            "date": self.date.isoformat(),
            "status": self.status.value,
        }
        if self.note is not None:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transaction":
        return cls(
            id=str(data["id"]),
            recipient=Recipient.from_dict(data["recipient"]),
            amount=Decimal(str(data["amount"])),
            status=TransactionStatus(data["status"]),
            note=data.get("note"),
            date=datetime.fromisoformat(data["date"]),
        )
