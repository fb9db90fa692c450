from __future__ import annotations

from reqprof.probe.client import execute, monotonic_ms
from reqprof.probe.errors import (
    ConnectError,
    MalformedResponseError,
    ProbeError,
    ProbeTimeoutError,
    ReceiveError,
    ResolutionError,
    SendError,
)
from reqprof.probe.wire import RESPONSE_BUFFER_SIZE, build_request, extract_status_code

__all__ = [
    "RESPONSE_BUFFER_SIZE",
    "ConnectError",
    "MalformedResponseError",
    "ProbeError",
    "ProbeTimeoutError",
    "ReceiveError",
    "ResolutionError",
    "SendError",
    "build_request",
    "execute",
    "extract_status_code",
    "monotonic_ms",
]
