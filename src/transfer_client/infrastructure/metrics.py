import time
from collections.abc import Awaitable, Callable
from functools import wraps

from prometheus_client import Counter, Gauge, Histogram


TRANSFER_REQUESTS_TOTAL = Counter(
    "transfer_requests_total",
    "Total number of transfer submissions",
    ["status", "error_code"],
)

AUTH_ATTEMPTS_TOTAL = Counter(
    "auth_attempts_total",
    "Total number of transfer authorization attempts",
    ["method", "verdict"],
)

SETTLEMENT_ATTEMPTS_TOTAL = Counter(
    "settlement_attempts_total",
    "Total number of settlement attempts",
    ["outcome"],
)

SETTLEMENT_DURATION_SECONDS = Histogram(
    "settlement_duration_seconds",
    "Settlement round-trip duration",
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 1.5, 2.5, 5.0],
)

ACCOUNT_BALANCE = Gauge(
    "account_balance",
    "Current account balance",
)

LEDGER_ENTRIES = Gauge(
    "ledger_entries",
    "Number of transactions held in the local history",
)


def track_settlement_duration[**P, R](
    func: Callable[P, Awaitable[R]],
) -> Callable[P, Awaitable[R]]:
    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            duration = time.perf_counter() - start
            SETTLEMENT_DURATION_SECONDS.observe(duration)

    return wrapper
