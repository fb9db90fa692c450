from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

DEFAULT_PORT = "80"


@dataclass(frozen=True, slots=True)
class RequestSpec:
    host: str
    path: str = "/"
    port: str = DEFAULT_PORT

    def __post_init__(self) -> None:
        if not self.host:
            msg = "Host must not be empty"
            raise ValueError(msg)
        if any(ch.isspace() or not ch.isprintable() for ch in self.host):
            msg = f"Host contains whitespace or control characters: {self.host!r}"
            raise ValueError(msg)
        try:
            self.host.encode("idna")
        except UnicodeError as exc:
            msg = f"Host is not a valid hostname: {self.host!r}"
            raise ValueError(msg) from exc
        if not self.path.startswith("/"):
            msg = f"Path must start with '/': {self.path!r}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class TimeoutConfig:
    connect_sec: float = 5.0
    send_sec: float = 5.0
    receive_sec: float = 10.0

    def __post_init__(self) -> None:
        for name in ("connect_sec", "send_sec", "receive_sec"):
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive"
                raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class RunConfig:
    spec: RequestSpec
    count: int = 1
    profile: bool = False
    timeouts: TimeoutConfig = field(default_factory=TimeoutConfig)
    run_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    notes: str = ""

    def __post_init__(self) -> None:
        if self.count < 1:
            msg = f"Request count must be a positive integer, got {self.count}"
            raise ValueError(msg)

    def to_metadata(self) -> Mapping[str, Any]:
        return {
            "run_id": self.run_id or "",
            "created_at": self.created_at.isoformat(),
            "count": self.count,
            "profile": self.profile,
            "notes": self.notes,
            "target": {
                "host": self.spec.host,
                "path": self.spec.path,
                "port": self.spec.port,
            },
            "timeouts": {
                "connect_sec": self.timeouts.connect_sec,
                "send_sec": self.timeouts.send_sec,
                "receive_sec": self.timeouts.receive_sec,
            },
        }


def parse_target(url: str, port: str = DEFAULT_PORT) -> RequestSpec:
    """Split ``host/some/path`` into a :class:`RequestSpec`.

    Everything before the first slash is the host, the rest (slash included)
    is the path. A leading ``http://`` is accepted and dropped.
    """
    target = url.strip()
    scheme, sep, rest = target.partition("://")
    if sep:
        if scheme.lower() != "http":
            msg = f"Unsupported scheme: {scheme}"
            raise ValueError(msg)
        target = rest
    host, slash, path = target.partition("/")
    return RequestSpec(host=host, path=slash + path if slash else "/", port=port)
