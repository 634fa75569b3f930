"""
Hostel API client

Thin async wrapper around the REST API. Every non-2xx response is raised
as ApiError so callers can turn it into state.
"""
from typing import Any, Dict, List, Optional
import logging

import httpx
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class ClientSettings(BaseSettings):
    """Client-side settings, read from the environment"""

    HOSTEL_API_URL: str = "http://localhost:8000"
    HOSTEL_QR_BASE_URL: str = "http://localhost:5173"
    HOSTEL_REQUEST_TIMEOUT_SECONDS: float = 15.0
    HOSTEL_POLL_INTERVAL_SECONDS: float = 3.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


class ApiError(Exception):
    """An API call failed; ``status_code`` is None when no response arrived"""

    def __init__(self, status_code: Optional[int], message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class NetworkError(ApiError):
    def __init__(self, message: str = "Network error"):
        super().__init__(None, message)


class RequestTimeout(ApiError):
    def __init__(self, message: str = "Request timed out"):
        super().__init__(None, message)


def _error_message(payload: Any, fallback: str) -> str:
    if isinstance(payload, dict):
        detail = payload.get("message") or payload.get("detail") or payload.get("error")
        if isinstance(detail, str):
            return detail
        if isinstance(detail, list) and detail:
            return "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail)
    return fallback


class HostelClient:
    """Async client for the hostel API"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        settings = ClientSettings()
        self.base_url = (base_url or settings.HOSTEL_API_URL).rstrip("/")
        self.token = token
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            transport=transport,
            timeout=timeout if timeout is not None else settings.HOSTEL_REQUEST_TIMEOUT_SECONDS,
        )

    async def __aenter__(self) -> "HostelClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    async def request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("%s %s timed out: %s", method, path, e)
            raise RequestTimeout() from e
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(str(e) or "Network error") from e

        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            message = _error_message(payload, response.reason_phrase or "Request failed")
            raise ApiError(response.status_code, message, payload if isinstance(payload, dict) else {})

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Auth
    async def admin_login(self, username: str, password: str) -> Dict[str, Any]:
        return await self.request("POST", "/api/v1/auth/admin/login", json={"username": username, "password": password})

    async def student_login(self, roll_number: str, password: str) -> Dict[str, Any]:
        return await self.request("POST", "/api/v1/auth/student/login", json={"roll_number": roll_number, "password": password})

    async def me(self) -> Dict[str, Any]:
        return await self.request("GET", "/api/v1/auth/me")

    async def reset_password(self, current_password: str, new_password: str) -> Dict[str, Any]:
        return await self.request(
            "POST",
            "/api/v1/auth/reset-password",
            json={"current_password": current_password, "new_password": new_password},
        )

    async def resolve_route(self, path: str) -> Dict[str, Any]:
        return await self.request("GET", "/api/v1/navigation/resolve", params={"path": path})

    # Payments
    async def my_bills(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/api/rooms/student/electricity-bills")

    async def initiate_payment(self, bill_id: str, room_id: str) -> Dict[str, Any]:
        return await self.request("POST", "/api/payments/initiate", json={"bill_id": bill_id, "room_id": room_id})

    async def payment_status(self, payment_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/api/payments/status/{payment_id}")

    async def verify_payment(self, payment_id: str) -> Dict[str, Any]:
        return await self.request("POST", f"/api/payments/verify/{payment_id}")

    async def cancel_payment(self, payment_id: str) -> Dict[str, Any]:
        return await self.request("DELETE", f"/api/payments/cancel/{payment_id}")

    # Leave gate scans
    async def scan_leave(
        self,
        leave_id: str,
        incoming: bool = False,
        location: Optional[str] = None,
        scanned_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        gate = "incoming-qr" if incoming else "qr"
        return await self.request(
            "POST",
            f"/api/leave/{gate}/{leave_id}",
            json={"location": location, "scanned_by": scanned_by},
        )

    async def get_leave(self, leave_id: str) -> Dict[str, Any]:
        return await self.request("GET", f"/api/leave/{leave_id}")
