"""
=============================================================================
ACCESS LOG
=============================================================================

One line per download, written to the "filedelivery.access" logger after
the response has finished.

A download log needs more than the usual status and size: a 206 with half
its bytes missing looks fine by status alone. So each entry records how
the file was delivered and whether the transfer completed.

    TEXT:
    127.0.0.1 - - [17/Oct/2026:10:15:02 +0000] "GET /media/a.mp4"
        206 1048576 stream complete "bytes=0-1048575" 42.17ms

    JSON:
    {"request_id": "3f2a9c1e", "method": "GET", "path": "/media/a.mp4",
     "status_code": 206, "bytes_sent": 1048576, "mode": "stream",
     "complete": true, "range": "bytes=0-1048575", ...}

=============================================================================
"""

from dataclasses import dataclass
import json
import logging
import time
from typing import Optional

from .delivery.responder import DeliveryResult
from .http.request import HTTPRequest


logger = logging.getLogger("filedelivery.access")


@dataclass
class AccessLog:
    """
    Structured access log entry for one download.

    bytes_sent counts body bytes handed to the writer, which for an
    aborted stream is what the client may have received at most.
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    range_header: str
    status_code: int
    bytes_sent: int
    mode: str
    complete: bool
    duration_ms: float
    timestamp: str

    @classmethod
    def from_result(
        cls,
        request_id: str,
        request: HTTPRequest,
        result: DeliveryResult,
        duration_ms: float,
    ) -> "AccessLog":
        return cls(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0] if request.client_address else "-",
            user_agent=request.user_agent or "-",
            range_header=request.range_header or "",
            status_code=int(result.status),
            bytes_sent=result.bytes_sent,
            mode=result.mode,
            complete=result.complete,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "range": self.range_header,
            "status_code": self.status_code,
            "bytes_sent": self.bytes_sent,
            "mode": self.mode,
            "complete": self.complete,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Common log format, extended with mode, completeness and range."""
        state = "complete" if self.complete else "aborted"
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.bytes_sent} {self.mode} {state} '
            f'"{self.range_header or "-"}" {self.duration_ms:.2f}ms'
        )

    def emit(self, log_format: str = "text", level: int = logging.INFO) -> None:
        if log_format == "json":
            logger.log(level, json.dumps(self.to_dict()))
        else:
            logger.log(level, self.to_text())


def log_download(
    request_id: str,
    request: HTTPRequest,
    result: DeliveryResult,
    duration_ms: float,
    log_format: str = "text",
) -> Optional[AccessLog]:
    """Build and emit the access entry. Aborted transfers log at WARNING."""
    entry = AccessLog.from_result(request_id, request, result, duration_ms)
    entry.emit(log_format, logging.INFO if result.complete else logging.WARNING)
    return entry
