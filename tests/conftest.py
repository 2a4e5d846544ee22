"""Shared pytest fixtures for transfer client tests."""

from dataclasses import replace
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from transfer_client.application.authentication import AuthenticationEscalator, FallbackChoice
from transfer_client.application.services import TransferController
from transfer_client.domain.models import (
    BiometricResult,
    BiometricType,
    Recipient,
    Transaction,
    TransactionStatus,
)
from transfer_client.infrastructure.repositories.balances import BalanceStore
from transfer_client.infrastructure.repositories.ledger import TransactionLedger
from transfer_client.infrastructure.settlement import TransactionProcessor
from transfer_client.infrastructure.storage import InMemoryKeyValueStore


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    """Create empty in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture
def ledger(memory_store: InMemoryKeyValueStore) -> TransactionLedger:
    """Create ledger with the default key and capacity."""
    return TransactionLedger(memory_store, key="transactions", capacity=10)


@pytest.fixture
def balance_store() -> BalanceStore:
    """Create balance store seeded with 100000."""
    return BalanceStore(Decimal("100000"))


@pytest.fixture
def mock_biometrics() -> MagicMock:
    """Create biometric authenticator that is available and always succeeds."""
    biometrics = MagicMock()
    biometrics.has_hardware = MagicMock(return_value=True)
    biometrics.is_enrolled = MagicMock(return_value=True)
    biometrics.supported_types = MagicMock(return_value={BiometricType.FINGERPRINT})
    biometrics.authenticate = AsyncMock(return_value=BiometricResult(success=True))
    return biometrics


@pytest.fixture
def mock_prompt() -> AsyncMock:
    """Create user prompt that cancels unless told otherwise."""
    prompt = AsyncMock()
    prompt.choose_fallback = AsyncMock(return_value=FallbackChoice.CANCEL)
    prompt.request_pin = AsyncMock(return_value=None)
    return prompt


@pytest.fixture
def escalator(mock_biometrics: MagicMock, mock_prompt: AsyncMock) -> AuthenticationEscalator:
    """Create escalator over the mocked biometrics and prompt."""
    return AuthenticationEscalator(
        biometrics=mock_biometrics,
        prompt=mock_prompt,
        pin_min_length=4,
        prompt_message="Authorize transfer",
    )


@pytest.fixture
def succeeding_processor(ledger: TransactionLedger) -> TransactionProcessor:
    """Create processor that always settles, without delay."""
    return TransactionProcessor(ledger, failure_rate=0.0, delay_seconds=0)


@pytest.fixture
def failing_processor(ledger: TransactionLedger) -> TransactionProcessor:
    """Create processor that always fails with a network error."""
    return TransactionProcessor(ledger, failure_rate=1.0, delay_seconds=0)


@pytest.fixture
def controller(
    balance_store: BalanceStore,
    escalator: AuthenticationEscalator,
    succeeding_processor: TransactionProcessor,
) -> TransferController:
    """Create controller whose transfers settle deterministically."""
    return TransferController(
        balances=balance_store,
        authenticator=escalator,
        processor=succeeding_processor,
    )


def create_transaction(
    name: str = "Alice",
    amount: str = "500",
    status: TransactionStatus = TransactionStatus.VALID,
    note: str | None = None,
    tx_id: str | None = None,
) -> Transaction:
    """Helper to create Transaction with custom values."""
    tx = Transaction.create(
        recipient=Recipient(id="rcpt00001", name=name, account_number="ACC123456"),
        amount=Decimal(amount),
        note=note,
    ).with_status(status)
    if tx_id is not None:
        return replace(tx, id=tx_id)
    return tx
