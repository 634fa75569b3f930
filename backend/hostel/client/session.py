"""
Client auth session

Holds the current account, token, loading flag and forced password change
flag. ``login_*``, ``logout``, ``update_user`` and ``restore`` are the only
way to change it; listeners are told after every change.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional
import logging

from hostel.client.api import ApiError, HostelClient
from hostel.services import navigation_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """Client view of the logged in account"""
    id: str
    role: str
    name: str = ""
    permissions: List[str] = field(default_factory=list)
    permission_access_levels: Dict[str, str] = field(default_factory=dict)
    requires_password_change: bool = False
    roll_number: Optional[str] = None
    room_number: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "SessionUser":
        return cls(
            id=str(data["id"]),
            role=data["role"],
            name=data.get("name") or "",
            permissions=list(data.get("permissions") or []),
            permission_access_levels=dict(data.get("permission_access_levels") or {}),
            requires_password_change=bool(data.get("requires_password_change")),
            roll_number=data.get("roll_number"),
            room_number=data.get("room_number"),
        )


class AuthSession:
    """The single owner of client auth state"""

    def __init__(self, client: HostelClient):
        self._client = client
        self._user: Optional[SessionUser] = None
        self._token: Optional[str] = None
        self._refresh_token: Optional[str] = None
        self._loading = False
        self._listeners: List[Callable[["AuthSession"], None]] = []
        self.error: Optional[str] = None

    @property
    def user(self) -> Optional[SessionUser]:
        return self._user

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def requires_password_change(self) -> bool:
        return bool(self._user and self._user.requires_password_change)

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None and self._user is not None

    def subscribe(self, listener: Callable[["AuthSession"], None]) -> Callable[[], None]:
        """Register a change listener; returns the unsubscribe function"""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def _set_loading(self, loading: bool) -> None:
        self._loading = loading
        self._notify()

    def _apply_login(self, data: Dict[str, Any]) -> None:
        self._token = data["access_token"]
        self._refresh_token = data.get("refresh_token")
        self._user = SessionUser.from_payload(data["user"])
        self._client.set_token(self._token)
        self.error = None

    async def _login(self, call, *args) -> bool:
        self._set_loading(True)
        try:
            self._apply_login(await call(*args))
            return True
        except ApiError as e:
            logger.info("Login failed: %s", e.message)
            self.error = e.message
            return False
        finally:
            self._set_loading(False)

    async def login_admin(self, username: str, password: str) -> bool:
        return await self._login(self._client.admin_login, username, password)

    async def login_student(self, roll_number: str, password: str) -> bool:
        return await self._login(self._client.student_login, roll_number, password)

    async def restore(self, token: str) -> bool:
        """Resume a stored session; an invalid token logs out"""
        self._client.set_token(token)
        self._set_loading(True)
        try:
            self._user = SessionUser.from_payload(await self._client.me())
            self._token = token
            return True
        except ApiError as e:
            logger.info("Stored session rejected: %s", e.message)
            self._clear()
            return False
        finally:
            self._set_loading(False)

    def update_user(self, **changes) -> None:
        """Merge profile changes into the current user"""
        if self._user is None:
            return
        self._user = replace(self._user, **changes)
        self._notify()

    async def reset_password(self, current_password: str, new_password: str) -> bool:
        try:
            data = await self._client.reset_password(current_password, new_password)
        except ApiError as e:
            self.error = e.message
            self._notify()
            return False
        self.error = None
        self.update_user(requires_password_change=bool(data.get("requires_password_change")))
        return True

    def _clear(self) -> None:
        self._user = None
        self._token = None
        self._refresh_token = None
        self._client.set_token(None)

    def logout(self) -> None:
        self._clear()
        self._notify()

    def decide(self, path: str) -> navigation_service.RouteDecision:
        """Route guard decision for a path under the current session"""
        return navigation_service.resolve_path(
            path,
            token=self._token,
            user=self._user,
            loading=self._loading,
            requires_password_change=self.requires_password_change,
        )
