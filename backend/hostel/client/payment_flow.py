"""
Electricity bill payment flow

idle -> processing -> pending -> success | failed | cancelled

A failed or cancelled payment can be retried with ``initiate()``.
"""
from typing import Any, Callable, Dict, Optional
import enum
import logging

from hostel.client.api import ApiError, HostelClient
from hostel.client.payment_poller import PaymentStatusPoller

logger = logging.getLogger(__name__)


class PaymentState(str, enum.Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


RETRYABLE_STATES = {PaymentState.IDLE, PaymentState.FAILED, PaymentState.CANCELLED}


class ElectricityPaymentFlow:

    def __init__(
        self,
        client: HostelClient,
        bill: Dict[str, Any],
        *,
        interval: Optional[float] = None,
        backoff: float = 1.0,
        on_change: Optional[Callable[["ElectricityPaymentFlow"], None]] = None,
    ):
        self._client = client
        self._interval = interval
        self._backoff = backoff
        self._on_change = on_change
        self._poller: Optional[PaymentStatusPoller] = None

        self.bill = dict(bill)
        self.state = PaymentState.IDLE
        self.payment_id: Optional[str] = bill.get("payment_id")
        self.order: Optional[Dict[str, Any]] = None
        self.failure_reason: Optional[str] = None
        self.error: Optional[str] = None
        self.success_count = 0

        if bill.get("payment_status") == "paid":
            self.state = PaymentState.SUCCESS
        elif bill.get("payment_status") == "pending" and self.payment_id:
            self.state = PaymentState.PENDING

    def _set_state(self, state: PaymentState) -> None:
        self.state = state
        if self._on_change:
            self._on_change(self)

    def _start_poller(self) -> None:
        self._poller = PaymentStatusPoller(
            self._client,
            self.payment_id,
            interval=self._interval,
            backoff=self._backoff,
            on_success=self._handle_success,
            on_failure=self._handle_failure,
        )
        self._poller.start()

    async def _stop_poller(self) -> None:
        if self._poller is not None:
            await self._poller.stop()
            self._poller = None

    async def resume(self) -> None:
        """Resume polling for a bill that already has a pending payment"""
        if self.state == PaymentState.PENDING and self._poller is None:
            self._start_poller()

    async def initiate(self) -> bool:
        """Create (or reuse) the payment session and start polling"""
        if self.state not in RETRYABLE_STATES:
            return False

        self._set_state(PaymentState.PROCESSING)
        self.error = None
        self.failure_reason = None
        try:
            data = await self._client.initiate_payment(self.bill["bill_id"], self.bill["room_id"])
        except ApiError as e:
            logger.warning("Could not initiate payment for bill %s: %s", self.bill.get("bill_id"), e.message)
            self.error = e.message or "Failed to initiate payment"
            self._set_state(PaymentState.IDLE)
            return False

        self.payment_id = data["payment_id"]
        self.order = data
        self._set_state(PaymentState.PENDING)
        self._start_poller()
        return True

    async def _handle_success(self, data: Dict[str, Any]) -> None:
        self.order = None
        self.success_count += 1
        self._set_state(PaymentState.SUCCESS)
        await self.refetch_bill()

    async def _handle_failure(self, data: Dict[str, Any]) -> None:
        self.failure_reason = data.get("failure_reason")
        status = data.get("status")
        self._set_state(PaymentState.CANCELLED if status == "cancelled" else PaymentState.FAILED)

    async def wait(self) -> None:
        """Wait until the pending payment settles or polling stops"""
        if self._poller is not None:
            await self._poller.wait()

    async def check_now(self) -> None:
        """Manual status check, used after returning from checkout"""
        if self._poller is not None:
            await self._poller.check_now()

    async def cancel(self) -> bool:
        """Abandon the pending payment, then refresh the bill"""
        if self.state != PaymentState.PENDING or not self.payment_id:
            return False

        await self._stop_poller()
        try:
            data = await self._client.cancel_payment(self.payment_id)
        except ApiError as e:
            logger.warning("Could not cancel payment %s: %s", self.payment_id, e.message)
            self.error = e.message
            if await self.refetch_bill():
                self._sync_with_bill()
            else:
                self._start_poller()
            return False

        self.order = None
        self.failure_reason = data.get("failure_reason")
        self._set_state(PaymentState.CANCELLED)
        await self.refetch_bill()
        return True

    def _sync_with_bill(self) -> None:
        """Re-derive the state from the server's view of the bill"""
        bill_status = self.bill.get("payment_status")
        if bill_status == "paid":
            self.order = None
            self.success_count += 1
            self._set_state(PaymentState.SUCCESS)
        elif bill_status == "pending":
            self.payment_id = self.bill.get("payment_id") or self.payment_id
            self._start_poller()
        else:
            self.order = None
            self._set_state(PaymentState.IDLE)

    async def refetch_bill(self) -> bool:
        try:
            bills = await self._client.my_bills()
        except ApiError as e:
            logger.warning("Could not refresh bill %s: %s", self.bill.get("bill_id"), e.message)
            return False
        for bill in bills or []:
            if bill.get("bill_id") == self.bill.get("bill_id"):
                self.bill = bill
                return True
        return False

    async def close(self) -> None:
        await self._stop_poller()
