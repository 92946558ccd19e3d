"""Completion polling for asynchronous Vitodata operations.

WriteData, RefreshData and WriteTimesheetData only queue work on the
gateway and hand back a refresh ID. Completion is learnt by polling
RequestWriteStatus or RequestRefreshStatus until it reports status 4.

The poll waits ``initial_wait`` before the first check, then divides the
wait by four after each check, never going below ``min_wait``. It gives up
once ``timeout`` seconds have elapsed since it started.

State machine:

    pending -> polling -> done | failed | timed_out
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from .constants import QUIET_STATUSES, STATUS_DONE
from .exceptions import VitotrolTimeoutError

_LOGGER = logging.getLogger(__name__)

StatusCheck = Callable[[str], Awaitable[int]]


class PollState(StrEnum):
    """States of an :class:`AsyncStatusPoller`."""

    PENDING = "pending"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollTiming:
    """Poll timing parameters, in seconds."""

    initial_wait: float
    min_wait: float
    timeout: float


WRITE_DATA_TIMING = PollTiming(initial_wait=4.0, min_wait=1.0, timeout=60.0)
# Yes, 8 seconds before the first check: refreshes are slow on the gateway
REFRESH_DATA_TIMING = PollTiming(initial_wait=8.0, min_wait=1.0, timeout=60.0)
WRITE_TIMESHEET_DATA_TIMING = PollTiming(initial_wait=8.0, min_wait=1.0, timeout=60.0)


class AsyncStatusPoller:
    """Poll the status of one refresh ID until completion.

    A poller runs once. Its outcome is the outcome of :meth:`run` (or of
    the task returned by :meth:`start`): ``None`` when the operation is
    done, :class:`VitotrolTimeoutError` when the timeout is reached, or the
    exception raised by the status check itself.

    Example:
        ```python
        refresh_id = await device.write_data(HEAT_NORMAL_TEMP, "21")
        poller = AsyncStatusPoller(
            refresh_id, client.request_write_status, WRITE_DATA_TIMING
        )
        await poller.start()
        ```
    """

    def __init__(
        self,
        refresh_id: str,
        request_status: StatusCheck,
        timing: PollTiming,
        *,
        debug: bool = False,
    ) -> None:
        """Initialize the poller.

        Args:
            refresh_id: Refresh ID returned by the queued operation
            request_status: Coroutine function returning the current status
            timing: Wait and timeout parameters
            debug: Log every intermediate status at INFO level
        """
        self.refresh_id = refresh_id
        self.timing = timing
        self.debug = debug
        self.state = PollState.PENDING
        self.polls = 0
        self.last_status: int | None = None
        self._request_status = request_status

    def start(self) -> asyncio.Task[None]:
        """Run the poll loop in a background task and return it."""
        return asyncio.create_task(self.run(), name=f"vitotrol-poll-{self.refresh_id}")

    async def run(self) -> None:
        """Poll until done.

        Raises:
            RuntimeError: If the poller was already started
            VitotrolTimeoutError: If the timeout is reached before status 4
        """
        if self.state is not PollState.PENDING:
            raise RuntimeError(f"poller for {self.refresh_id} already started")
        self.state = PollState.POLLING

        loop = asyncio.get_running_loop()
        start = loop.time()
        wait = self.timing.initial_wait

        while True:
            await asyncio.sleep(wait)

            try:
                status = await self._request_status(self.refresh_id)
            except Exception:
                self.state = PollState.FAILED
                raise
            self.polls += 1
            self.last_status = status

            if status == STATUS_DONE:
                break

            elapsed = loop.time() - start
            if elapsed >= self.timing.timeout:
                self.state = PollState.TIMED_OUT
                raise VitotrolTimeoutError(self.refresh_id, elapsed)

            wait = max(wait / 4, self.timing.min_wait)

            level = logging.DEBUG
            if status not in QUIET_STATUSES or self.debug:
                level = logging.INFO
            _LOGGER.log(
                level,
                "%s: status %d, next check in %.1f seconds",
                self.refresh_id,
                status,
                wait,
            )

        self.state = PollState.DONE
        _LOGGER.debug(
            "%s done in %.1f seconds after %d checks",
            self.refresh_id,
            loop.time() - start,
            self.polls,
        )
