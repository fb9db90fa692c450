from __future__ import annotations

import asyncio
import contextlib
import logging
import socket
import time
from typing import Any, Callable

from reqprof.config import RequestSpec, TimeoutConfig
from reqprof.metrics import RequestResult
from reqprof.probe.errors import (
    ConnectError,
    MalformedResponseError,
    ProbeTimeoutError,
    ReceiveError,
    ResolutionError,
    SendError,
)
from reqprof.probe.wire import RESPONSE_BUFFER_SIZE, build_request, extract_status_code

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
AddrInfo = tuple[int, int, int, str, Any]


def monotonic_ms() -> int:
    return time.perf_counter_ns() // 1_000_000


async def execute(
    spec: RequestSpec,
    timeouts: TimeoutConfig | None = None,
    clock: Clock = monotonic_ms,
) -> RequestResult:
    """Send one GET for ``spec`` and read a single response chunk.

    The clock is sampled right before the request is written and right after
    the read returns, so resolution and connect time are not part of
    ``elapsed_ms``.
    """
    timeouts = timeouts or TimeoutConfig()
    loop = asyncio.get_running_loop()
    candidates = await _resolve(loop, spec)
    sock = await _connect(loop, spec, candidates, timeouts.connect_sec)
    try:
        reader, writer = await asyncio.open_connection(sock=sock)
    except OSError as exc:
        sock.close()
        msg = f"Could not open stream to {spec.host}:{spec.port}: {exc}"
        raise ConnectError(msg) from exc
    try:
        request = build_request(spec)
        start = clock()
        await _send(writer, request, timeouts.send_sec)
        response = await _receive(reader, timeouts.receive_sec)
        stop = clock()
    finally:
        writer.close()
        with contextlib.suppress(OSError):
            await writer.wait_closed()

    try:
        status_code: str | None = extract_status_code(response)
    except MalformedResponseError as exc:
        logger.warning("Malformed response from %s: %s", spec.host, exc)
        status_code = None
    return RequestResult(
        elapsed_ms=max(0, stop - start),
        byte_count=len(response),
        status_code=status_code,
        raw_response=response,
    )


async def _resolve(loop: asyncio.AbstractEventLoop, spec: RequestSpec) -> list[AddrInfo]:
    try:
        candidates = await loop.getaddrinfo(
            spec.host,
            spec.port,
            family=socket.AF_UNSPEC,
            type=socket.SOCK_STREAM,
            proto=socket.IPPROTO_TCP,
        )
    except socket.gaierror as exc:
        msg = f"Could not resolve {spec.host}: {exc}"
        raise ResolutionError(msg) from exc
    if not candidates:
        msg = f"No addresses found for {spec.host}"
        raise ResolutionError(msg)
    logger.debug("Resolved %s to %d candidate(s)", spec.host, len(candidates))
    return candidates


async def _connect(
    loop: asyncio.AbstractEventLoop,
    spec: RequestSpec,
    candidates: list[AddrInfo],
    timeout_sec: float,
) -> socket.socket:
    timed_out = 0
    last_error: BaseException | None = None
    for family, sock_type, proto, _canonname, address in candidates:
        try:
            sock = socket.socket(family, sock_type, proto)
        except OSError as exc:
            logger.debug("Could not create socket for %s: %s", address, exc)
            last_error = exc
            continue
        sock.setblocking(False)
        try:
            await asyncio.wait_for(loop.sock_connect(sock, address), timeout_sec)
        except asyncio.TimeoutError as exc:
            sock.close()
            timed_out += 1
            last_error = exc
            logger.debug("Connect to %s timed out", address)
            continue
        except OSError as exc:
            sock.close()
            last_error = exc
            logger.debug("Connect to %s failed: %s", address, exc)
            continue
        logger.debug("Connected to %s", address)
        return sock
    if timed_out == len(candidates):
        raise ProbeTimeoutError("connect", timeout_sec) from last_error
    msg = f"Could not connect to {spec.host}:{spec.port}"
    raise ConnectError(msg) from last_error


async def _send(writer: asyncio.StreamWriter, request: bytes, timeout_sec: float) -> None:
    try:
        writer.write(request)
        await asyncio.wait_for(writer.drain(), timeout_sec)
    except asyncio.TimeoutError as exc:
        raise ProbeTimeoutError("send", timeout_sec) from exc
    except OSError as exc:
        msg = f"Failed to send request: {exc}"
        raise SendError(msg) from exc


async def _receive(reader: asyncio.StreamReader, timeout_sec: float) -> bytes:
    try:
        return await asyncio.wait_for(reader.read(RESPONSE_BUFFER_SIZE), timeout_sec)
    except asyncio.TimeoutError as exc:
        raise ProbeTimeoutError("receive", timeout_sec) from exc
    except OSError as exc:
        msg = f"Failed to receive response: {exc}"
        raise ReceiveError(msg) from exc
