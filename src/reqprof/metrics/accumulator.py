from __future__ import annotations

from bisect import insort
from collections import deque
from typing import cast

import numpy as np

from reqprof.metrics.models import ProfileReport, RequestResult, StatusClass

SUCCESS_CODE = "200"


def classify_status(status_code: str | None) -> StatusClass:
    if status_code is None:
        return StatusClass.UNKNOWN
    if status_code == SUCCESS_CODE:
        return StatusClass.SUCCESS
    return StatusClass.FAILURE


def median(sorted_values: list[int]) -> float:
    """Median of an ascending sequence.

    Even lengths average the elements at ``n/2 - 1`` and ``n/2``.
    """
    n = len(sorted_values)
    if n == 0:
        msg = "Median of an empty sequence"
        raise ValueError(msg)
    mid = n // 2
    if n % 2 == 0:
        return (sorted_values[mid - 1] + sorted_values[mid]) / 2
    return float(sorted_values[mid])


class StatsAccumulator:
    """Online statistics for one profiling run."""

    def __init__(self) -> None:
        self._latencies: list[int] = []
        self._error_codes: deque[str] = deque()
        self._count = 0
        self._success = 0
        self._failure = 0
        self._unknown = 0
        self._min_ms = 0
        self._max_ms = 0
        self._total_ms = 0
        self._min_bytes = 0
        self._max_bytes = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def latencies(self) -> tuple[int, ...]:
        return tuple(self._latencies)

    @property
    def error_codes(self) -> tuple[str, ...]:
        return tuple(self._error_codes)

    def record(self, result: RequestResult) -> StatusClass:
        status = classify_status(result.status_code)
        if status is StatusClass.SUCCESS:
            self.record_success(result.elapsed_ms, result.byte_count)
        elif status is StatusClass.FAILURE:
            self.record_failure(result.elapsed_ms, result.byte_count, cast(str, result.status_code))
        else:
            self.record_unknown(result.elapsed_ms, result.byte_count)
        return status

    def record_success(self, elapsed_ms: int, byte_count: int) -> None:
        self._observe(elapsed_ms, byte_count)
        self._success += 1

    def record_failure(self, elapsed_ms: int, byte_count: int, status_code: str) -> None:
        self._observe(elapsed_ms, byte_count)
        self._failure += 1
        self._error_codes.appendleft(status_code)

    def record_unknown(self, elapsed_ms: int, byte_count: int) -> None:
        self._observe(elapsed_ms, byte_count)
        self._unknown += 1

    def _observe(self, elapsed_ms: int, byte_count: int) -> None:
        if elapsed_ms < 0 or byte_count < 0:
            msg = f"Negative sample: elapsed_ms={elapsed_ms} byte_count={byte_count}"
            raise ValueError(msg)
        insort(self._latencies, elapsed_ms)
        if self._count == 0:
            self._min_ms = self._max_ms = self._total_ms = elapsed_ms
            self._min_bytes = self._max_bytes = byte_count
        else:
            if elapsed_ms < self._min_ms:
                self._min_ms = elapsed_ms
            if elapsed_ms > self._max_ms:
                self._max_ms = elapsed_ms
            if byte_count < self._min_bytes:
                self._min_bytes = byte_count
            if byte_count > self._max_bytes:
                self._max_bytes = byte_count
            self._total_ms += elapsed_ms
        self._count += 1

    def report(self) -> ProfileReport:
        if self._count == 0:
            msg = "No requests recorded"
            raise ValueError(msg)
        p95, p99 = np.percentile(self._latencies, [95, 99])
        return ProfileReport(
            count=self._count,
            min_ms=self._min_ms,
            max_ms=self._max_ms,
            avg_ms=self._total_ms / self._count,
            median_ms=median(self._latencies),
            p95_ms=float(p95),
            p99_ms=float(p99),
            total_ms=self._total_ms,
            success_rate=self._success / self._count,
            success_count=self._success,
            failure_count=self._failure,
            unknown_count=self._unknown,
            min_bytes=self._min_bytes,
            max_bytes=self._max_bytes,
            sorted_latencies=tuple(self._latencies),
            error_codes=tuple(self._error_codes),
        )
