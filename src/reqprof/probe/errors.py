from __future__ import annotations

from reqprof.metrics import ErrorType


class ProbeError(Exception):
    kind: ErrorType


class ResolutionError(ProbeError):
    kind = ErrorType.RESOLUTION


class ConnectError(ProbeError):
    kind = ErrorType.CONNECT


class SendError(ProbeError):
    kind = ErrorType.SEND


class ReceiveError(ProbeError):
    kind = ErrorType.RECEIVE


class MalformedResponseError(ProbeError):
    kind = ErrorType.MALFORMED


class ProbeTimeoutError(ProbeError):
    kind = ErrorType.TIMEOUT

    def __init__(self, phase: str, timeout_sec: float) -> None:
        super().__init__(f"Timed out after {timeout_sec:g}s during {phase}")
        self.phase = phase
        self.timeout_sec = timeout_sec
