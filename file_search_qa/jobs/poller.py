# file_search_qa/jobs/poller.py

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from file_search_qa.errors import PollCancelled, PollTimeout, RemoteFailure, ServiceError
from file_search_qa.jobs.operation import Operation, OperationStatus


logger = logging.getLogger(__name__)


RefreshFn = Callable[[Operation], Awaitable[Operation]]


class AsyncJobPoller:
    """
    Drives a remote long-running operation to a terminal state.

    One poll session per call to wait(). Sessions share nothing but the
    injected refresh callable, so any number may run concurrently.

    Outcomes (exactly one):
    • the DONE operation is returned
    • RemoteFailure, as soon as the remote reports FAILED
    • PollTimeout, after max_attempts refreshes that stayed PENDING
    • PollCancelled, when cancel_event is set between attempts

    A ServiceError raised by refresh itself (transport, auth) is logged,
    counted as an "error" outcome and propagated unchanged.

    Cancellation is a library-level hook: the HTTP routes never pass a
    cancel_event, so PollCancelled only reaches callers that supply one.
    """

    def __init__(
        self,
        max_attempts: int,
        interval: float,
        kind: str = "job",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        metrics=None,
    ):

        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        if interval < 0:
            raise ValueError("interval must not be negative")

        self.max_attempts = max_attempts
        self.interval = interval
        self.kind = kind
        self._sleep = sleep
        self._metrics = metrics

    async def wait(
        self,
        operation: Operation,
        refresh: RefreshFn,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Operation:

        if operation.is_terminal:
            return self._finish(operation, attempts=0)

        start = time.time()
        attempts = 0
        current = operation

        while True:

            self._check_cancelled(current, cancel_event, attempts)

            await self._sleep(self.interval)

            self._check_cancelled(current, cancel_event, attempts)

            try:
                current = await refresh(current)
            except ServiceError as e:
                attempts += 1
                self._record("error", attempts)
                logger.warning(
                    "poll_refresh_failed",
                    extra={
                        "kind": self.kind,
                        "operation": current.name,
                        "attempt": attempts,
                        "error": e.message,
                        "error_code": e.code,
                    },
                )
                raise

            attempts += 1

            logger.info(
                "poll_attempt",
                extra={
                    "kind": self.kind,
                    "operation": current.name,
                    "attempt": attempts,
                    "status": current.status.value,
                },
            )

            if current.is_terminal:
                result = self._finish(current, attempts)
                logger.info(
                    "poll_completed",
                    extra={
                        "kind": self.kind,
                        "operation": current.name,
                        "attempts": attempts,
                        "elapsed_seconds": round(time.time() - start, 3),
                    },
                )
                return result

            if attempts >= self.max_attempts:
                self._record("timeout", attempts)
                logger.warning(
                    "poll_timeout",
                    extra={
                        "kind": self.kind,
                        "operation": current.name,
                        "attempts": attempts,
                    },
                )
                raise PollTimeout(current.name, attempts)

    # ============================================================
    # INTERNAL
    # ============================================================

    def _finish(self, operation: Operation, attempts: int) -> Operation:

        if operation.status is OperationStatus.FAILED:

            self._record("failed", attempts)

            logger.warning(
                "poll_remote_failure",
                extra={
                    "kind": self.kind,
                    "operation": operation.name,
                    "attempts": attempts,
                    "error": operation.error.message,
                    "error_code": operation.error.code,
                },
            )

            raise RemoteFailure(
                operation.error.message,
                code=operation.error.code,
                detail={"operation": operation.name},
            )

        self._record("done", attempts)

        return operation

    def _check_cancelled(self, operation, cancel_event, attempts):

        if cancel_event is not None and cancel_event.is_set():
            self._record("cancelled", attempts)
            logger.info(
                "poll_cancelled",
                extra={"kind": self.kind, "operation": operation.name},
            )
            raise PollCancelled(operation)

    def _record(self, outcome: str, attempts: int):

        if self._metrics is not None:
            self._metrics.record_poll(self.kind, outcome, attempts)
