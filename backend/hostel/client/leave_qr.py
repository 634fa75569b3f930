"""
Leave QR gate scan

Opening a leave QR link records exactly one scan for it. The link path
decides the gate: ``/leave/qr/:id`` is outgoing, ``/leave/incoming-qr/:id``
is incoming.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional
import enum
import logging
from urllib.parse import urlparse

from hostel.client.api import ApiError, HostelClient, NetworkError, RequestTimeout
from hostel.utils.pattern import match_path

logger = logging.getLogger(__name__)

OUTGOING_PATTERN = "/leave/qr/:id"
INCOMING_PATTERN = "/leave/incoming-qr/:id"


class ScanState(str, enum.Enum):
    LOADING = "loading"
    SUCCESS = "success"
    DUPLICATE = "duplicate"
    ERROR = "error"


@dataclass(frozen=True)
class ScanTarget:
    leave_id: str
    incoming: bool

    @property
    def visit_type(self) -> str:
        return "incoming" if self.incoming else "outgoing"


def parse_scan_url(url: str) -> Optional[ScanTarget]:
    """Gate and leave id from a scanned QR link, or None if it is not one"""
    path = urlparse(url).path or url
    params = match_path(INCOMING_PATTERN, path)
    if params is not None:
        return ScanTarget(params["id"], incoming=True)
    params = match_path(OUTGOING_PATTERN, path)
    if params is not None:
        return ScanTarget(params["id"], incoming=False)
    return None


class LeaveQRScan:
    """One scan of one QR link; ``run()`` posts the scan at most once"""

    def __init__(
        self,
        client: HostelClient,
        target: ScanTarget,
        location: Optional[str] = None,
        scanned_by: Optional[str] = None,
    ):
        self._client = client
        self.target = target
        self.location = location
        self.scanned_by = scanned_by

        self.state = ScanState.LOADING
        self.message: Optional[str] = None
        self.scanned_at: Optional[str] = None
        self.leave: Optional[Dict[str, Any]] = None
        self._done = False

    @classmethod
    def from_url(cls, client: HostelClient, url: str, **kwargs) -> "LeaveQRScan":
        target = parse_scan_url(url)
        if target is None:
            raise ValueError(f"Not a leave QR link: {url}")
        return cls(client, target, **kwargs)

    async def run(self) -> ScanState:
        if self._done:
            return self.state
        self._done = True

        try:
            data = await self._client.scan_leave(
                self.target.leave_id,
                incoming=self.target.incoming,
                location=self.location,
                scanned_by=self.scanned_by,
            )
        except RequestTimeout:
            self._fail("The request timed out. Please scan again.")
        except NetworkError:
            self._fail("Network error. Check your connection and scan again.")
        except ApiError as e:
            await self._handle_error(e)
        else:
            self.state = ScanState.SUCCESS
            self.message = data.get("message")
            self.scanned_at = data.get("scanned_at")
            self.leave = data.get("leave")
            logger.info("Recorded %s scan for leave %s", self.target.visit_type, self.target.leave_id)
        return self.state

    async def _handle_error(self, e: ApiError) -> None:
        if e.status_code == 403:
            self.state = ScanState.DUPLICATE
            self.message = e.payload.get("message") or e.message
            self.scanned_at = e.payload.get("scanned_at")
            try:
                self.leave = await self._client.get_leave(self.target.leave_id)
            except ApiError as fetch_error:
                logger.warning("Could not load leave %s: %s", self.target.leave_id, fetch_error.message)
            return

        if e.status_code == 404:
            self._fail("Leave request not found.")
        else:
            self._fail(e.message or "Failed to record scan.")

    def _fail(self, message: str) -> None:
        self.state = ScanState.ERROR
        self.message = message
