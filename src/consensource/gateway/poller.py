"""
Status Poller - waits for a submitted batch to reach a terminal state.

States:
    PENDING    any non-terminal status; pause, then poll the same handle again
    COMMITTED  terminal success; the status record is returned
    INVALID    terminal failure; LedgerRejectionError with the ledger's message

Polls are strictly sequential. Without max_attempts or timeout_seconds the
poller runs until a terminal state is seen.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

import structlog

from consensource.errors import (
    LedgerRejectionError,
    PollCancelledError,
    PollTimeoutError,
    ResponseParseError,
)
from consensource.gateway.interface import GatewayInterface, PollState, StatusRecord

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 3.0


class StatusPoller:
    """
    Polls a submission handle until the batch commits or is rejected.

    Usage:
        ```python
        poller = StatusPoller(gateway)
        record = await poller.wait_for_commit(link)
        ```
    """

    def __init__(
        self,
        gateway: GatewayInterface,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        wait_server_side: bool = True,
        max_attempts: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the poller.

        Args:
            gateway: Gateway used for status queries
            interval_seconds: Pause after each pending status
            wait_server_side: Ask the gateway to hold each query until a change
            max_attempts: Give up after this many polls (unbounded if None)
            timeout_seconds: Give up once this much time has passed (unbounded if None)
            sleep: Coroutine used for the pause between polls
            clock: Monotonic clock used for timeout_seconds
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.gateway = gateway
        self.interval_seconds = interval_seconds
        self.wait_server_side = wait_server_side
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep
        self._clock = clock

    async def wait_for_commit(
        self,
        link: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StatusRecord:
        """
        Poll until the batch behind link reaches a terminal state.

        Args:
            link: Submission handle returned by the gateway
            cancel_event: Set to abandon polling

        Returns:
            The COMMITTED status record

        Raises:
            LedgerRejectionError: If the batch is INVALID
            PollTimeoutError: If a configured bound is reached while pending
            PollCancelledError: If cancel_event is set
            ResponseParseError: If a response carries no usable status
        """
        deadline = None
        if self.timeout_seconds is not None:
            deadline = self._clock() + self.timeout_seconds

        attempts = 0

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise PollCancelledError(f"Status polling cancelled after {attempts} poll(s)")

            response = await self.gateway.fetch_status(link, wait=self.wait_server_side)
            attempts += 1

            if not response.data:
                raise ResponseParseError("Expected a batch status, but was not found")
            record = response.data[0]

            if record.state == PollState.COMMITTED:
                logger.info("batch_committed", batch_id=record.id[:16] + "...", polls=attempts)
                return record

            if record.state == PollState.INVALID:
                self._reject(record)

            logger.debug(
                "batch_status_pending",
                batch_id=record.id[:16] + "...",
                status=record.status,
                polls=attempts,
            )

            if self.max_attempts is not None and attempts >= self.max_attempts:
                raise PollTimeoutError(
                    f"Batch {record.id} still {record.status} after {attempts} poll(s)",
                    attempts=attempts,
                )
            self._check_deadline(deadline, record, attempts)

            await self._pause(cancel_event, attempts)

            # No poll may start once the deadline has passed
            self._check_deadline(deadline, record, attempts)

    def _check_deadline(
        self,
        deadline: Optional[float],
        record: StatusRecord,
        attempts: int,
    ) -> None:
        if deadline is not None and self._clock() >= deadline:
            raise PollTimeoutError(
                f"Batch {record.id} still {record.status} after {self.timeout_seconds}s",
                attempts=attempts,
            )

    def _reject(self, record: StatusRecord) -> None:
        if not record.invalid_transactions:
            raise ResponseParseError("Expected a transaction status, but was not found")

        detail = record.invalid_transactions[0]
        logger.warning(
            "batch_invalid",
            batch_id=record.id[:16] + "...",
            transaction_id=detail.id[:16] + "...",
            message=detail.message,
        )
        raise LedgerRejectionError(
            detail.message,
            batch_id=record.id,
            transaction_id=detail.id,
        )

    async def _pause(self, cancel_event: Optional[asyncio.Event], attempts: int) -> None:
        if cancel_event is None:
            await self._sleep(self.interval_seconds)
            return

        # Whichever finishes first ends the pause: the interval or the cancel event
        sleeper = asyncio.ensure_future(self._sleep(self.interval_seconds))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()

        if cancel_event.is_set():
            raise PollCancelledError(f"Status polling cancelled after {attempts} poll(s)")
        sleeper.result()
