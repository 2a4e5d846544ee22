import asyncio
import contextlib
import signal

import structlog

from transfer_client.api.console import ConsoleApp, ConsolePrompt, stdin_reader
from transfer_client.api.metrics_server import MetricsServer
from transfer_client.application.authentication import AuthenticationEscalator
from transfer_client.application.services import TransferController
from transfer_client.config import settings
from transfer_client.infrastructure.biometrics import SimulatedBiometricAuthenticator
from transfer_client.infrastructure.contacts import StaticContactSource
from transfer_client.infrastructure.repositories.balances import BalanceStore
from transfer_client.infrastructure.repositories.ledger import TransactionLedger
from transfer_client.infrastructure.settlement import TransactionProcessor
from transfer_client.infrastructure.storage import (
    InMemoryKeyValueStore,
    KeyValueStore,
    RedisKeyValueStore,
)
from transfer_client.logging import configure_logging


logger = structlog.get_logger()


async def main() -> None:
    configure_logging(
        level=settings.log_level,
        log_format=settings.log_format,
    )

    logger.info(
        "starting_transfer_client",
        storage_backend=settings.storage_backend,
        initial_balance=str(settings.initial_balance),
        failure_rate=settings.settlement_failure_rate,
        metrics_enabled=settings.metrics_enabled,
    )

    redis_store: RedisKeyValueStore | None = None
    metrics_server: MetricsServer | None = None
    controller: TransferController | None = None
    console_input = stdin_reader()

    try:
        store: KeyValueStore
        if settings.storage_backend == "redis":
            redis_store = RedisKeyValueStore(settings.redis_url)
            await redis_store.connect()
            store = redis_store
        else:
            store = InMemoryKeyValueStore()

        if settings.metrics_enabled:
            metrics_server = MetricsServer(
                host=settings.metrics_host,
                port=settings.metrics_port,
                storage_health=redis_store.health_check if redis_store else None,
            )
            await metrics_server.start()

        balances = BalanceStore(settings.initial_balance)
        ledger = TransactionLedger(store)
        controller = TransferController(
            balances=balances,
            authenticator=AuthenticationEscalator(
                biometrics=SimulatedBiometricAuthenticator(),
                prompt=ConsolePrompt(input_fn=console_input),
            ),
            processor=TransactionProcessor(ledger),
        )
        app = ConsoleApp(
            controller=controller,
            balances=balances,
            ledger=ledger,
            contacts=StaticContactSource(),
            input_fn=console_input,
        )

        session = asyncio.create_task(app.run())

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, session.cancel)

        with contextlib.suppress(asyncio.CancelledError):
            await session
    finally:
        logger.info("shutting_down")
        console_input.close()
        if controller:
            await controller.wait_idle()
        if metrics_server:
            await metrics_server.stop()
        if redis_store:
            await redis_store.close()
        logger.info("shutdown_complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
