"""
Hostel API client layer
"""
from hostel.client.api import ApiError, ClientSettings, HostelClient, NetworkError, RequestTimeout
from hostel.client.leave_qr import LeaveQRScan, ScanState, parse_scan_url
from hostel.client.payment_flow import ElectricityPaymentFlow, PaymentState
from hostel.client.payment_poller import PaymentStatusPoller
from hostel.client.session import AuthSession, SessionUser

__all__ = [
    "ApiError",
    "AuthSession",
    "ClientSettings",
    "ElectricityPaymentFlow",
    "HostelClient",
    "LeaveQRScan",
    "NetworkError",
    "PaymentState",
    "PaymentStatusPoller",
    "RequestTimeout",
    "ScanState",
    "SessionUser",
    "parse_scan_url",
]
