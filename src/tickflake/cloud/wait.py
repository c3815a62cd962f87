"""
Blocking wait for the next available id.

Retries next_id with a bounded attempt budget. When a generator reports
that its millisecond is full, the calling thread blocks until the estimated
start of the next millisecond, then tries again.

Blocking is tiered by how long is left:
- more than 500 µs: time.sleep for the remainder
- more than 1 µs: yield the GIL with time.sleep(0)
- otherwise: spin
"""

import time

from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception, stop_after_attempt

from tickflake.cloud.protocols import IdGenerator, NextAvailId
from tickflake.flake.models import Flake
from tickflake.kernel.errors import AttemptsExhausted
from tickflake.kernel.logging import get_logger
from tickflake.kernel.metrics import blocking_wait_seconds, wait_attempts_exhausted_total
from tickflake.kernel.time import NANOS_PER_SECOND

logger = get_logger(__name__)

SLEEP_THRESHOLD_NS = 500_000
YIELD_THRESHOLD_NS = 1_000

DEFAULT_ATTEMPTS = 2


def block_duration(seconds: float) -> None:
    """
    Block the current thread for the given duration

    Not cancellable. Sleeps, yields or spins depending on how much of the
    duration is left.

    Args:
        seconds: How long to block
    """
    start = time.perf_counter_ns()
    deadline = start + int(seconds * NANOS_PER_SECOND)

    while True:
        remaining = deadline - time.perf_counter_ns()
        if remaining <= 0:
            break

        if remaining > SLEEP_THRESHOLD_NS:
            time.sleep(remaining / NANOS_PER_SECOND)
        elif remaining > YIELD_THRESHOLD_NS:
            time.sleep(0)

    blocking_wait_seconds.observe((time.perf_counter_ns() - start) / NANOS_PER_SECOND)


def _has_wait_estimate(exc: BaseException) -> bool:
    return isinstance(exc, NextAvailId) and exc.next_avail_id() is not None


def _wait_next_avail_id(retry_state: RetryCallState) -> float:
    """tenacity wait strategy - seconds until the generator expects a free id"""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    wait_ns = exc.next_avail_id() if isinstance(exc, NextAvailId) else None
    return (wait_ns or 0) / NANOS_PER_SECOND


def _log_retry(retry_state: RetryCallState) -> None:
    logger.debug(
        "Sequence exhausted, waiting for next millisecond",
        attempt=retry_state.attempt_number,
        wait_ns=round(retry_state.upcoming_sleep * NANOS_PER_SECOND)
        if retry_state.upcoming_sleep
        else 0,
    )


def blocking_next_id(generator: IdGenerator, attempts: int = DEFAULT_ATTEMPTS) -> Flake:
    """
    Get the next id, blocking while the current millisecond is full

    Works with both Generator and SharedGenerator (or anything with a
    next_id method whose errors implement next_avail_id).

    Args:
        generator: Generator to draw ids from
        attempts: Maximum number of next_id calls

    Returns:
        The generated flake

    Raises:
        AttemptsExhausted: If every attempt hit a full millisecond; chained
            from the last generator error
        TickflakeError: Any error without a wait estimate, unchanged

    Example:
        for _ in range(MyFlake.MAX_SEQUENCE * 2):
            flake = blocking_next_id(cloud, 2)
    """
    if attempts <= 0:
        wait_attempts_exhausted_total.inc()
        raise AttemptsExhausted(attempts)

    retrying = Retrying(
        retry=retry_if_exception(_has_wait_estimate),
        stop=stop_after_attempt(attempts),
        wait=_wait_next_avail_id,
        sleep=block_duration,
        before_sleep=_log_retry,
        reraise=False,
    )

    try:
        return retrying(generator.next_id)
    except RetryError as exc:
        wait_attempts_exhausted_total.inc()
        logger.warning("No id available within attempt budget", attempts=attempts)
        raise AttemptsExhausted(attempts) from exc.last_attempt.exception()
