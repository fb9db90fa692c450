from __future__ import annotations

from reqprof.config.models import (
    DEFAULT_PORT,
    RequestSpec,
    RunConfig,
    TimeoutConfig,
    parse_target,
)

__all__ = [
    "DEFAULT_PORT",
    "RequestSpec",
    "RunConfig",
    "TimeoutConfig",
    "parse_target",
]
