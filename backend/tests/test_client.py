"""
Client layer against a mocked API: session, payment polling and QR scans
"""
import asyncio

import httpx
import pytest

from hostel.client import (
    AuthSession,
    ElectricityPaymentFlow,
    HostelClient,
    LeaveQRScan,
    PaymentState,
    PaymentStatusPoller,
    ScanState,
    parse_scan_url,
)
from hostel.services.navigation_service import RouteAction

BILL = {
    "bill_id": "share-1",
    "room_id": "room-1",
    "month": "2024-06",
    "student_share": "150.00",
    "payment_status": "unpaid",
    "payment_id": None,
}


class FakeApi:
    """Scripted responses keyed by (method, path)"""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, *responses):
        self.routes.setdefault((method, path), []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        key = (request.method, request.url.path)
        self.requests.append(key)
        queue = self.routes.get(key)
        if not queue:
            return httpx.Response(404, json={"detail": "Not Found"})
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        status_code, body = response
        return httpx.Response(status_code, json=body)

    def count(self, method, path):
        return self.requests.count((method, path))


@pytest.fixture
def api():
    return FakeApi()


def make_client(api):
    return HostelClient(base_url="http://hostel.test", transport=httpx.MockTransport(api.handler))


def status(value, reason=None):
    return 200, {"payment_id": "pay-1", "order_id": "ELEC_1", "status": value, "amount": "150.00", "failure_reason": reason}


class TestPoller:

    def test_stops_after_first_terminal_status(self, api):
        api.add("GET", "/api/payments/status/pay-1", status("pending"), status("pending"), status("success"), status("success"))
        successes = []

        async def run():
            client = make_client(api)
            poller = PaymentStatusPoller(client, "pay-1", interval=0, on_success=successes.append)
            poller.start()
            await poller.wait()
            await asyncio.sleep(0.01)
            await client.aclose()
            return poller

        poller = asyncio.run(run())

        assert poller.status == "success"
        assert len(successes) == 1
        assert api.count("GET", "/api/payments/status/pay-1") == 3
        assert not poller.running

    def test_failure_reports_reason(self, api):
        api.add("GET", "/api/payments/status/pay-1", status("failed", "Card declined"))
        failures = []

        async def run():
            async with make_client(api) as client:
                poller = PaymentStatusPoller(client, "pay-1", interval=0, on_failure=failures.append)
                poller.start()
                await poller.wait()

        asyncio.run(run())

        assert failures[0]["failure_reason"] == "Card declined"

    def test_stop_prevents_callbacks(self, api):
        api.add("GET", "/api/payments/status/pay-1", status("success"))
        successes = []

        async def run():
            async with make_client(api) as client:
                poller = PaymentStatusPoller(client, "pay-1", interval=10, on_success=successes.append)
                poller.start()
                await poller.stop()
                return poller

        poller = asyncio.run(run())

        assert successes == []
        assert poller.requests == 0

    def test_stale_response_is_dropped(self, api):
        updates = []

        async def run():
            async with make_client(api) as client:
                poller = PaymentStatusPoller(client, "pay-1", on_update=updates.append)
                await poller._apply(2, {"status": "pending"})
                await poller._apply(1, {"status": "failed"})
                return poller

        poller = asyncio.run(run())

        assert poller.status == "pending"
        assert len(updates) == 1

    def test_slow_tick_cannot_undo_a_newer_check(self):
        successes = []
        updates = []

        async def run():
            tick_in_flight = asyncio.Event()
            release_tick = asyncio.Event()
            calls = 0

            async def handler(request):
                nonlocal calls
                calls += 1
                if calls == 1:
                    tick_in_flight.set()
                    await release_tick.wait()
                    return httpx.Response(200, json=status("pending")[1])
                return httpx.Response(200, json=status("success")[1])

            client = HostelClient(base_url="http://hostel.test", transport=httpx.MockTransport(handler))
            async with client:
                poller = PaymentStatusPoller(
                    client, "pay-1", interval=0,
                    on_update=lambda data: updates.append(data["status"]),
                    on_success=successes.append,
                )
                poller.start()
                await tick_in_flight.wait()
                assert await poller.check_now() == "success"
                release_tick.set()
                await poller.wait()
                return poller

        poller = asyncio.run(run())

        assert poller.status == "success"
        assert updates == ["success"]
        assert len(successes) == 1

    def test_backoff_must_not_shrink(self, api):
        with pytest.raises(ValueError):
            PaymentStatusPoller(make_client(api), "pay-1", backoff=0.5)


class TestPaymentFlow:

    def initiated(self, api):
        api.add("POST", "/api/payments/initiate", (200, {
            "payment_id": "pay-1",
            "order_id": "ELEC_1",
            "amount": "150.00",
            "payment_session_id": "session_1",
            "payment_url": None,
            "reused": False,
        }))

    def test_success_refetches_bill(self, api):
        self.initiated(api)
        api.add("GET", "/api/payments/status/pay-1", status("pending"), status("success"))
        api.add("GET", "/api/rooms/student/electricity-bills", (200, [dict(BILL, payment_status="paid", payment_id="pay-1")]))

        async def run():
            async with make_client(api) as client:
                flow = ElectricityPaymentFlow(client, BILL, interval=0)
                assert await flow.initiate()
                assert flow.state == PaymentState.PENDING
                await flow.wait()
                return flow

        flow = asyncio.run(run())

        assert flow.state == PaymentState.SUCCESS
        assert flow.success_count == 1
        assert flow.order is None
        assert flow.bill["payment_status"] == "paid"

    def test_initiate_is_ignored_while_pending(self, api):
        self.initiated(api)
        api.add("GET", "/api/payments/status/pay-1", status("pending"))

        async def run():
            async with make_client(api) as client:
                flow = ElectricityPaymentFlow(client, BILL, interval=10)
                await flow.initiate()
                second = await flow.initiate()
                await flow.close()
                return second

        assert asyncio.run(run()) is False
        assert api.count("POST", "/api/payments/initiate") == 1

    def test_initiate_error_returns_to_idle(self, api):
        api.add("POST", "/api/payments/initiate", (400, {"detail": "Bill already paid"}))

        async def run():
            async with make_client(api) as client:
                flow = ElectricityPaymentFlow(client, BILL)
                await flow.initiate()
                return flow

        flow = asyncio.run(run())

        assert flow.state == PaymentState.IDLE
        assert flow.error == "Bill already paid"

    def test_failed_payment_can_be_retried(self, api):
        self.initiated(api)
        api.add("GET", "/api/payments/status/pay-1", status("failed", "Card declined"))

        async def run():
            async with make_client(api) as client:
                flow = ElectricityPaymentFlow(client, BILL, interval=0)
                await flow.initiate()
                await flow.wait()
                assert flow.state == PaymentState.FAILED
                assert flow.failure_reason == "Card declined"
                retried = await flow.initiate()
                await flow.close()
                return retried

        assert asyncio.run(run()) is True
        assert api.count("POST", "/api/payments/initiate") == 2

    def test_cancel_stops_polling_and_refetches(self, api):
        self.initiated(api)
        api.add("GET", "/api/payments/status/pay-1", status("pending"))
        api.add("DELETE", "/api/payments/cancel/pay-1", (200, {
            "payment_id": "pay-1", "order_id": "ELEC_1", "status": "cancelled",
            "amount": "150.00", "failure_reason": "Payment cancelled by user",
        }))
        api.add("GET", "/api/rooms/student/electricity-bills", (200, [BILL]))

        async def run():
            async with make_client(api) as client:
                flow = ElectricityPaymentFlow(client, BILL, interval=10)
                await flow.initiate()
                assert await flow.cancel()
                return flow

        flow = asyncio.run(run())

        assert flow.state == PaymentState.CANCELLED
        assert flow.failure_reason == "Payment cancelled by user"
        assert api.count("GET", "/api/payments/status/pay-1") == 0
        assert api.count("GET", "/api/rooms/student/electricity-bills") == 1

    def test_refused_cancel_follows_the_bill(self, api):
        self.initiated(api)
        api.add("GET", "/api/payments/status/pay-1", status("pending"))
        api.add("DELETE", "/api/payments/cancel/pay-1", (409, {"detail": "Payment already success"}))
        api.add("GET", "/api/rooms/student/electricity-bills", (200, [dict(BILL, payment_status="paid", payment_id="pay-1")]))

        async def run():
            async with make_client(api) as client:
                flow = ElectricityPaymentFlow(client, BILL, interval=10)
                await flow.initiate()
                cancelled = await flow.cancel()
                return cancelled, flow

        cancelled, flow = asyncio.run(run())

        assert cancelled is False
        assert flow.state == PaymentState.SUCCESS
        assert flow.error == "Payment already success"
        assert flow.bill["payment_status"] == "paid"

    def test_refused_cancel_keeps_polling_a_pending_bill(self, api):
        self.initiated(api)
        api.add("GET", "/api/payments/status/pay-1", status("success"))
        api.add("DELETE", "/api/payments/cancel/pay-1", (502, {"detail": "Payment gateway unavailable"}))
        api.add("GET", "/api/rooms/student/electricity-bills", (200, [dict(BILL, payment_status="pending", payment_id="pay-1")]))

        async def run():
            async with make_client(api) as client:
                flow = ElectricityPaymentFlow(client, BILL, interval=10)
                await flow.initiate()
                await flow.cancel()
                assert flow.state == PaymentState.PENDING
                await flow.check_now()
                await flow.close()
                return flow

        flow = asyncio.run(run())

        assert flow.state == PaymentState.SUCCESS
        assert flow.success_count == 1


class TestLeaveScan:

    LEAVE = {"id": "leave-1", "status": "Approved", "visits": []}

    def test_parse_scan_url(self):
        incoming = parse_scan_url("https://hostel.example/leave/incoming-qr/leave-1")
        assert incoming.incoming and incoming.leave_id == "leave-1"
        assert not parse_scan_url("/leave/qr/leave-1").incoming
        assert parse_scan_url("/outpass/qr/1") is None

    def test_successful_scan(self, api):
        api.add("POST", "/api/leave/qr/leave-1", (200, {
            "message": "Outgoing visit recorded",
            "visit_type": "outgoing",
            "scanned_at": "2024-06-01T10:00:00",
            "leave": self.LEAVE,
        }))

        async def run():
            async with make_client(api) as client:
                scan = LeaveQRScan.from_url(client, "/leave/qr/leave-1", location="Main gate")
                await scan.run()
                await scan.run()
                return scan

        scan = asyncio.run(run())

        assert scan.state == ScanState.SUCCESS
        assert scan.leave == self.LEAVE
        assert api.count("POST", "/api/leave/qr/leave-1") == 1

    def test_duplicate_scan_refetches_leave(self, api):
        api.add("POST", "/api/leave/incoming-qr/leave-1", (403, {
            "message": "QR already scanned",
            "scanned_at": "2024-06-01T10:00:00",
            "leave_id": "leave-1",
        }))
        api.add("GET", "/api/leave/leave-1", (200, self.LEAVE))

        async def run():
            async with make_client(api) as client:
                scan = LeaveQRScan.from_url(client, "/leave/incoming-qr/leave-1")
                await scan.run()
                return scan

        scan = asyncio.run(run())

        assert scan.state == ScanState.DUPLICATE
        assert scan.message == "QR already scanned"
        assert scan.scanned_at == "2024-06-01T10:00:00"
        assert scan.leave == self.LEAVE

    @pytest.mark.parametrize("outcome, message", [
        ((404, {"detail": "Leave not found"}), "Leave request not found."),
        (httpx.ReadTimeout("slow"), "The request timed out. Please scan again."),
        (httpx.ConnectError("down"), "Network error. Check your connection and scan again."),
        ((400, {"detail": "Leave is not approved"}), "Leave is not approved"),
    ])
    def test_errors_have_distinct_messages(self, api, outcome, message):
        api.add("POST", "/api/leave/qr/leave-1", outcome)

        async def run():
            async with make_client(api) as client:
                scan = LeaveQRScan.from_url(client, "/leave/qr/leave-1")
                await scan.run()
                return scan

        scan = asyncio.run(run())

        assert scan.state == ScanState.ERROR
        assert scan.message == message


class TestAuthSession:

    USER = {
        "id": "a-1",
        "name": "Menu Admin",
        "role": "sub_admin",
        "permissions": ["menu_management"],
        "permission_access_levels": {"menu_management": "full"},
        "requires_password_change": False,
    }

    def test_login_notifies_and_guards_routes(self, api):
        api.add("POST", "/api/v1/auth/admin/login", (200, {
            "access_token": "token-1", "refresh_token": "refresh-1", "user": self.USER,
        }))
        changes = []

        async def run():
            async with make_client(api) as client:
                session = AuthSession(client)
                session.subscribe(lambda s: changes.append(s.loading))
                assert await session.login_admin("menu", "password123")
                return session

        session = asyncio.run(run())

        assert changes == [True, False]
        assert session.is_authenticated
        assert session.decide("/admin/dashboard/menu").section.allowed
        assert not session.decide("/admin/dashboard/rooms").section.allowed
        assert session.decide("/student").action == RouteAction.REDIRECT

    def test_failed_login_keeps_error(self, api):
        api.add("POST", "/api/v1/auth/student/login", (401, {"detail": "Incorrect roll number or password"}))

        async def run():
            async with make_client(api) as client:
                session = AuthSession(client)
                ok = await session.login_student("21CS001", "nope")
                return ok, session

        ok, session = asyncio.run(run())

        assert not ok
        assert session.error == "Incorrect roll number or password"
        assert session.decide("/student").target == "/login"

    def test_logout_clears_session(self, api):
        api.add("GET", "/api/v1/auth/me", (200, dict(self.USER, role="student", requires_password_change=True)))

        async def run():
            async with make_client(api) as client:
                session = AuthSession(client)
                await session.restore("token-1")
                forced = session.decide("/student/bills")
                session.logout()
                return forced, session

        forced, session = asyncio.run(run())

        assert forced.target == "/student/reset-password"
        assert not session.is_authenticated
