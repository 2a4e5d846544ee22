from decimal import Decimal


class DomainError(Exception):
    """Base exception for domain errors."""


class InvalidTransferInputError(DomainError):
    """Raised when the recipient or amount entered by the user is unusable."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InsufficientFundsError(DomainError):
    """Raised when the balance does not cover the transfer amount."""

    def __init__(self, required: Decimal, available: Decimal) -> None:
        self.required = required
        self.available = available
        super().__init__(f"Insufficient funds: required {required}, available {available}")


class AuthenticationDeniedError(DomainError):
    """Raised when the user did not authorize the transfer."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Authentication denied: {reason}")


class SettlementError(DomainError):
    """Raised when the settlement processor rejects or cannot record a transaction."""

    NETWORK = "network"
    PERSISTENCE = "persistence"

    def __init__(self, transaction_id: str, kind: str, detail: str | None = None) -> None:
        self.transaction_id = transaction_id
        self.kind = kind
        self.detail = detail
        message = f"Settlement of {transaction_id} failed ({kind})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class TransferInProgressError(DomainError):
    """Raised when a transfer is submitted while another one is still in flight."""

    def __init__(self) -> None:
        super().__init__("Another transfer is already in progress")
