"""Application layer - transfer authorization and settlement use cases."""

from transfer_client.application.authentication import (
    AuthenticationEscalator,
    AuthMethod,
    AuthState,
    AuthVerdict,
    BiometricAuthenticator,
    FallbackChoice,
    UserPrompt,
)
from transfer_client.application.services import (
    TransferController,
    TransferErrorCode,
    TransferResult,
    TransferStatus,
    notification_for,
)


__all__ = [
    "AuthMethod",
    "AuthState",
    "AuthVerdict",
    "AuthenticationEscalator",
    "BiometricAuthenticator",
    "FallbackChoice",
    "TransferController",
    "TransferErrorCode",
    "TransferResult",
    "TransferStatus",
    "UserPrompt",
    "notification_for",
]
