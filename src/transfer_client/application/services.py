import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

import structlog

from transfer_client.application.authentication import AuthenticationEscalator, AuthVerdict
from transfer_client.domain.exceptions import (
    AuthenticationDeniedError,
    DomainError,
    InsufficientFundsError,
    InvalidTransferInputError,
    SettlementError,
    TransferInProgressError,
)
from transfer_client.domain.models import Recipient, Transaction
from transfer_client.infrastructure.metrics import TRANSFER_REQUESTS_TOTAL
from transfer_client.infrastructure.repositories.balances import BalanceStore
from transfer_client.infrastructure.settlement import TransactionProcessor


logger = structlog.get_logger()


class TransferStatus(Enum):
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TransferErrorCode(Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    AUTH_DENIED = "AUTH_DENIED"
    SETTLEMENT_FAILED = "SETTLEMENT_FAILED"
    ALREADY_IN_PROGRESS = "ALREADY_IN_PROGRESS"


SUCCESS_MESSAGE = "Transfer completed successfully"
AUTHENTICATION_UNAVAILABLE = "authentication unavailable"

NOTIFICATION_MESSAGES: dict[TransferErrorCode, str] = {
    TransferErrorCode.INVALID_INPUT: "Please check the recipient and amount",
    TransferErrorCode.INSUFFICIENT_FUNDS: "Insufficient funds",
    TransferErrorCode.AUTH_DENIED: "Authentication failed",
    TransferErrorCode.SETTLEMENT_FAILED: "Transfer failed. Please try again.",
    TransferErrorCode.ALREADY_IN_PROGRESS: "A transfer is already being processed",
}


@dataclass
class TransferResult:
    status: TransferStatus
    transaction: Transaction | None = None
    error_code: TransferErrorCode | None = None
    error_message: str | None = None
    processed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def ok(self) -> bool:
        return self.status is TransferStatus.COMPLETED


def notification_for(result: TransferResult) -> str:
    """User-facing message for a transfer outcome."""
    if result.ok:
        return SUCCESS_MESSAGE
    if result.error_code is TransferErrorCode.INVALID_INPUT and result.error_message:
        return result.error_message
    if result.error_code is TransferErrorCode.AUTH_DENIED and result.error_message:
        return f"{NOTIFICATION_MESSAGES[TransferErrorCode.AUTH_DENIED]} ({result.error_message})"
    if result.error_code is None:
        raise ValueError("Failed transfer result carries no error code")
    return NOTIFICATION_MESSAGES[result.error_code]


def parse_amount(amount_input: str | Decimal | int) -> Decimal:
    if isinstance(amount_input, Decimal | int):
        amount = Decimal(amount_input)
    else:
        text = amount_input.strip()
        if not text:
            raise InvalidTransferInputError("amount", "Please enter a valid amount")
        try:
            amount = Decimal(text)
        except InvalidOperation as e:
            raise InvalidTransferInputError("amount", "Please enter a valid amount") from e

    if not amount.is_finite() or amount <= 0:
        raise InvalidTransferInputError("amount", "Please enter a valid amount")
    return amount


class TransferController:
    """
    Runs one transfer end to end: validate, authorize, settle, debit.

    Only one transfer may be in flight at a time; a second submission is
    rejected straight away so the funds check stays valid until commit.
    """

    def __init__(
        self,
        balances: BalanceStore,
        authenticator: AuthenticationEscalator,
        processor: TransactionProcessor,
    ) -> None:
        self._balances = balances
        self._authenticator = authenticator
        self._processor = processor
        self._in_flight = False
        self._commit: asyncio.Future[Transaction] | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def wait_idle(self) -> None:
        """Wait for a settlement whose caller was cancelled to finish."""
        commit = self._commit
        if commit is not None and not commit.done():
            await asyncio.wait([commit])

    async def submit_transfer(
        self,
        recipient_name: str,
        amount_input: str | Decimal | int,
        note: str | None = None,
    ) -> TransferResult:
        if self._in_flight:
            error = TransferInProgressError()
            logger.warning("transfer_rejected", reason=TransferErrorCode.ALREADY_IN_PROGRESS.value)
            return self._failed(TransferErrorCode.ALREADY_IN_PROGRESS, error)

        self._in_flight = True
        commit: asyncio.Future[Transaction] | None = None
        try:
            name, amount = self._validate(recipient_name, amount_input)
            log = logger.bind(recipient=name, amount=str(amount))

            available = self._balances.get_balance()
            if amount > available:
                raise InsufficientFundsError(required=amount, available=available)
            log.info("transfer_validated", step="1/4", balance=str(available))

            verdict = await self._authorize(log)
            if not verdict.granted:
                raise AuthenticationDeniedError(verdict.reason or "denied")
            log.info("transfer_authorized", step="2/4", method=verdict.method.value if verdict.method else None)

            transaction = Transaction.create(
                recipient=Recipient.from_name(name),
                amount=amount,
                note=(note or "").strip() or None,
            )
            log = log.bind(transaction_id=transaction.id)

            # Past this point the transfer cannot be aborted.
            commit = asyncio.ensure_future(self._settle_and_debit(transaction, log))
            self._commit = commit
            settled = await asyncio.shield(commit)

        except InvalidTransferInputError as e:
            return self._failed(TransferErrorCode.INVALID_INPUT, e, message=e.reason)
        except InsufficientFundsError as e:
            return self._failed(TransferErrorCode.INSUFFICIENT_FUNDS, e)
        except AuthenticationDeniedError as e:
            return self._failed(TransferErrorCode.AUTH_DENIED, e, message=e.reason)
        except SettlementError as e:
            return self._failed(TransferErrorCode.SETTLEMENT_FAILED, e)
        finally:
            if commit is not None and not commit.done():
                commit.add_done_callback(self._release_after_commit)
            else:
                self._in_flight = False
                self._commit = None

        TRANSFER_REQUESTS_TOTAL.labels(status=TransferStatus.COMPLETED.value, error_code="").inc()
        return TransferResult(status=TransferStatus.COMPLETED, transaction=settled)

    def _validate(self, recipient_name: str, amount_input: str | Decimal | int) -> tuple[str, Decimal]:
        name = (recipient_name or "").strip()
        if not name:
            raise InvalidTransferInputError("recipient", "Please enter recipient name")
        return name, parse_amount(amount_input)

    async def _authorize(self, log: structlog.stdlib.BoundLogger) -> AuthVerdict:
        try:
            return await self._authenticator.authorize()
        except Exception as e:
            log.error("transfer_authorization_error", error=str(e), exc_info=True)
            raise AuthenticationDeniedError(AUTHENTICATION_UNAVAILABLE) from e

    async def _settle_and_debit(
        self,
        transaction: Transaction,
        log: structlog.stdlib.BoundLogger,
    ) -> Transaction:
        settled = await self._processor.settle(transaction)
        log.info("transfer_settled", step="3/4", status=settled.status.value)

        self._balances.debit(settled.amount)
        log.info("transfer_completed", step="4/4", balance=str(self._balances.get_balance()))
        return settled

    def _release_after_commit(self, commit: "asyncio.Future[Transaction]") -> None:
        self._in_flight = False
        self._commit = None
        if commit.cancelled():
            return
        error = commit.exception()
        if error is not None:
            logger.warning("transfer_commit_failed_after_cancel", error=str(error))
        else:
            logger.info("transfer_committed_after_cancel", transaction_id=commit.result().id)

    def _failed(
        self,
        code: TransferErrorCode,
        error: DomainError,
        message: str | None = None,
    ) -> TransferResult:
        logger.info("transfer_failed", error_code=code.value, error=str(error))
        TRANSFER_REQUESTS_TOTAL.labels(status=TransferStatus.FAILED.value, error_code=code.value).inc()
        return TransferResult(
            status=TransferStatus.FAILED,
            error_code=code,
            error_message=message or str(error),
        )
