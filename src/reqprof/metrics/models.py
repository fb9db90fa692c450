from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorType(str, Enum):
    RESOLUTION = "resolution"
    CONNECT = "connect"
    SEND = "send"
    RECEIVE = "receive"
    TIMEOUT = "timeout"
    MALFORMED = "malformed"


class StatusClass(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class RequestResult:
    elapsed_ms: int
    byte_count: int
    status_code: str | None
    raw_response: bytes


@dataclass(frozen=True, slots=True)
class ProfileReport:
    count: int
    min_ms: int
    max_ms: int
    avg_ms: float
    median_ms: float
    p95_ms: float
    p99_ms: float
    total_ms: int
    success_rate: float
    success_count: int
    failure_count: int
    unknown_count: int
    min_bytes: int
    max_bytes: int
    sorted_latencies: tuple[int, ...]
    error_codes: tuple[str, ...]

    @property
    def success_pct(self) -> float:
        return self.success_rate * 100.0
