import asyncio
import functools
import os
import sys
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import TextIO

import structlog

from transfer_client.application.authentication import FallbackChoice
from transfer_client.application.services import TransferController, notification_for
from transfer_client.config import settings
from transfer_client.domain.models import Transaction
from transfer_client.infrastructure.contacts import ContactSource
from transfer_client.infrastructure.repositories.balances import BalanceStore
from transfer_client.infrastructure.repositories.ledger import TransactionLedger


logger = structlog.get_logger()

InputFn = Callable[[str], Awaitable[str]]
OutputFn = Callable[[str], None]

FALLBACK_KEYS = {
    "p": FallbackChoice.USE_PIN,
    "o": FallbackChoice.OVERRIDE,
    "c": FallbackChoice.CANCEL,
}


class StdinReader:
    """
    Line input from stdin driven by the event loop.

    Terminals and pipes are watched with ``loop.add_reader`` so a pending
    read is an ordinary awaitable: cancelling it leaves no thread blocked on
    the terminal. Regular files cannot be watched; they never block, so they
    are read in a worker thread. Raises ``EOFError`` once input is exhausted.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = sys.stdin if stdin is None else stdin
        self._stdout = sys.stdout if stdout is None else stdout
        self._lines: asyncio.StreamReader | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._watching = False
        self._threaded = False

    def _watch(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._lines = asyncio.StreamReader()
        try:
            self._loop.add_reader(self._stdin.fileno(), self._on_readable)
        except (OSError, ValueError):
            self._threaded = True
            self._lines = None
            return
        self._watching = True

    def _on_readable(self) -> None:
        if self._lines is None:
            return
        data = os.read(self._stdin.fileno(), 4096)
        if data:
            self._lines.feed_data(data)
            return
        self._lines.feed_eof()
        self.close()

    async def __call__(self, question: str) -> str:
        self._stdout.write(question)
        self._stdout.flush()

        if self._lines is None and not self._threaded:
            self._watch()

        if self._lines is not None:
            line = (await self._lines.readline()).decode(self._stdin.encoding or "utf-8")
        else:
            line = await asyncio.to_thread(self._stdin.readline)

        if not line:
            raise EOFError
        return line.rstrip("\r\n")

    def close(self) -> None:
        if self._watching and self._loop is not None and not self._loop.is_closed():
            self._loop.remove_reader(self._stdin.fileno())
        self._watching = False


@functools.cache
def stdin_reader() -> StdinReader:
    """The process-wide reader for sys.stdin; a file descriptor has one watcher."""
    return StdinReader()


class ConsolePrompt:
    """Asks the user for authentication decisions on the terminal."""

    def __init__(
        self,
        input_fn: InputFn | None = None,
        output_fn: OutputFn = print,
        pin_min_length: int | None = None,
    ) -> None:
        self._input = stdin_reader() if input_fn is None else input_fn
        self._output = output_fn
        self._pin_min_length = settings.pin_min_length if pin_min_length is None else pin_min_length

    async def _ask(self, question: str) -> str:
        return (await self._input(question)).strip()

    async def choose_fallback(self, reason: str) -> FallbackChoice:
        self._output(f"Biometric check not completed: {reason}")
        while True:
            answer = (await self._ask("[p]in, [o]verride and proceed anyway, [c]ancel? ")).lower()
            choice = FALLBACK_KEYS.get(answer[:1])
            if choice is not None:
                return choice
            self._output("Please answer p, o or c.")

    async def request_pin(self, retry: bool) -> str | None:
        if retry:
            self._output(f"PIN must be at least {self._pin_min_length} digits.")
        answer = await self._ask("PIN (empty to cancel): ")
        return answer or None


def format_amount(amount: Decimal) -> str:
    return f"RM{amount:,.2f}"


def format_transaction(tx: Transaction) -> str:
    line = f"{tx.date:%d %b %Y %H:%M}  {tx.recipient.name:<20} {format_amount(tx.amount):>14}  {tx.id}"
    if tx.note:
        line = f"{line}\n    {tx.note}"
    return line


class ConsoleApp:
    """Interactive send-money loop."""

    def __init__(
        self,
        controller: TransferController,
        balances: BalanceStore,
        ledger: TransactionLedger,
        contacts: ContactSource | None = None,
        input_fn: InputFn | None = None,
        output_fn: OutputFn = print,
    ) -> None:
        self._controller = controller
        self._balances = balances
        self._ledger = ledger
        self._contacts = contacts
        self._input = stdin_reader() if input_fn is None else input_fn
        self._output = output_fn
        self._unsubscribe = balances.subscribe(self._on_balance_changed)

    def _on_balance_changed(self, balance: Decimal) -> None:
        self._output(f"Available balance: {format_amount(balance)}")

    async def _ask(self, question: str) -> str:
        return (await self._input(question)).strip()

    async def show_home(self) -> None:
        self._output(f"Available balance: {format_amount(self._balances.get_balance())}")

        if self._contacts is not None:
            contacts = await self._contacts.list_contacts()
            if contacts:
                self._output("Contacts: " + ", ".join(c.name for c in contacts))

        await self.show_history(limit=3)

    async def show_history(self, limit: int | None = None) -> None:
        if limit is None:
            transactions = await self._ledger.load_all()
        else:
            transactions = await self._ledger.recent(limit)

        if not transactions:
            self._output("No transactions found")
            return
        self._output("Recent transactions:")
        for tx in transactions:
            self._output("  " + format_transaction(tx))

    async def transfer_once(self) -> bool:
        """Run one send-money dialogue. Returns False when the user wants to quit."""
        recipient = await self._ask("Recipient name (h for history, q to quit): ")
        if recipient.lower() == "q":
            return False
        if recipient.lower() == "h":
            await self.show_history()
            return True

        amount = await self._ask("Amount: ")
        note = await self._ask("Note (optional): ")

        result = await self._controller.submit_transfer(recipient, amount, note)
        self._output(notification_for(result))
        if result.ok and result.transaction is not None:
            tx = result.transaction
            self._output(
                f"Sent {format_amount(tx.amount)} to {tx.recipient.name} "
                f"({tx.recipient.account_number}), transaction {tx.id}"
            )
        return True

    async def run(self) -> None:
        await self.show_home()
        try:
            while await self.transfer_once():
                pass
        except EOFError:
            logger.info("console_input_closed")
        finally:
            self._unsubscribe()
