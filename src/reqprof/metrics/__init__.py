from __future__ import annotations

from reqprof.metrics.accumulator import StatsAccumulator, classify_status, median
from reqprof.metrics.models import ErrorType, ProfileReport, RequestResult, StatusClass

__all__ = [
    "ErrorType",
    "ProfileReport",
    "RequestResult",
    "StatsAccumulator",
    "StatusClass",
    "classify_status",
    "median",
]
