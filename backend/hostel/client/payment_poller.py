"""
Payment status poller

Polls a payment until it reaches a terminal status. The poller owns one
asyncio task; ``stop()`` cancels it and waits for it, after which no
callback runs. Ticks run one after another, each scheduled once the
previous response has been handled.

Every request carries a sequence number. A response older than the last
applied one is dropped, so an out-of-band ``check_now()`` and a regular
tick can never move the status backwards.
"""
from typing import Any, Awaitable, Callable, Dict, Optional, Union
import asyncio
import inspect
import itertools
import logging

from hostel.client.api import ApiError, ClientSettings, HostelClient

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({"success", "failed", "cancelled"})

Callback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


class PaymentStatusPoller:

    def __init__(
        self,
        client: HostelClient,
        payment_id: str,
        *,
        interval: Optional[float] = None,
        backoff: float = 1.0,
        max_interval: float = 30.0,
        on_update: Optional[Callback] = None,
        on_success: Optional[Callback] = None,
        on_failure: Optional[Callback] = None,
    ):
        if backoff < 1.0:
            raise ValueError("backoff must be >= 1.0")
        self._client = client
        self.payment_id = payment_id
        self.interval = interval if interval is not None else ClientSettings().HOSTEL_POLL_INTERVAL_SECONDS
        self.backoff = backoff
        self.max_interval = max_interval
        self._on_update = on_update
        self._on_success = on_success
        self._on_failure = on_failure

        self._seq = itertools.count(1)
        self._applied_seq = 0
        self._task: Optional[asyncio.Task] = None
        self._stopped = False
        self._finished = False

        self.status: Optional[str] = None
        self.failure_reason: Optional[str] = None
        self.requests = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self) -> None:
        """Start polling; a no-op while already running or after stop"""
        if self.running or self._stopped or self._finished:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the poll task and wait for it to exit"""
        self._stopped = True
        task, self._task = self._task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait(self) -> None:
        """Wait until polling ends (terminal status or stop)"""
        if self._task is not None:
            await asyncio.shield(self._task)

    async def __aenter__(self) -> "PaymentStatusPoller":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def check_now(self) -> Optional[str]:
        """Out-of-band status check, e.g. a manual "check status" action"""
        await self._poll_once()
        return self.status

    async def _run(self) -> None:
        delay = self.interval
        while not self._stopped and not self._finished:
            await asyncio.sleep(delay)
            await self._poll_once()
            delay = min(delay * self.backoff, self.max_interval)

    async def _poll_once(self) -> None:
        seq = next(self._seq)
        self.requests += 1
        try:
            data = await self._client.payment_status(self.payment_id)
        except ApiError as e:
            logger.warning("Status check %s for payment %s failed: %s", seq, self.payment_id, e.message)
            return
        await self._apply(seq, data)

    async def _apply(self, seq: int, data: Dict[str, Any]) -> None:
        if self._stopped or self._finished:
            return
        if seq <= self._applied_seq:
            logger.debug("Dropped stale status response %s (applied %s)", seq, self._applied_seq)
            return

        self._applied_seq = seq
        self.status = data.get("status")
        self.failure_reason = data.get("failure_reason")
        await self._fire(self._on_update, data)

        if self.status in TERMINAL_STATUSES:
            self._finished = True
            callback = self._on_success if self.status == "success" else self._on_failure
            await self._fire(callback, data)

    async def _fire(self, callback: Optional[Callback], data: Dict[str, Any]) -> None:
        if callback is None:
            return
        result = callback(data)
        if inspect.isawaitable(result):
            await result
