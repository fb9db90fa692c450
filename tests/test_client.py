from __future__ import annotations

import asyncio
import socket
from asyncio.selector_events import BaseSelectorEventLoop

import pytest

from reqprof.config import RequestSpec, TimeoutConfig
from reqprof.probe import (
    RESPONSE_BUFFER_SIZE,
    ConnectError,
    ProbeTimeoutError,
    ReceiveError,
    ResolutionError,
    SendError,
    execute,
)


def test_execute_reads_response(http_server) -> None:
    server = http_server()
    spec = RequestSpec(host="127.0.0.1", path="/index.html", port=server.port)
    ticks = iter([1000, 1012])
    result = asyncio.run(execute(spec, clock=lambda: next(ticks)))
    assert result.status_code == "200"
    assert result.raw_response == b"HTTP/1.1 200 OK\r\n\r\nhello"
    assert result.byte_count == len(result.raw_response)
    assert result.elapsed_ms == 12
    assert server.requests == [
        b"GET /index.html HTTP/1.1\r\nHost: 127.0.0.1\r\nConnection: close\r\n\r\n"
    ]


def test_execute_reports_error_status(http_server) -> None:
    server = http_server(b"HTTP/1.1 404 Not Found\r\nContent-Length: 0\r\n\r\n")
    result = asyncio.run(execute(RequestSpec("127.0.0.1", port=server.port)))
    assert result.status_code == "404"
    assert result.elapsed_ms >= 0


def test_execute_malformed_response_has_no_status(http_server) -> None:
    server = http_server(b"HTTP/1.1")
    result = asyncio.run(execute(RequestSpec("127.0.0.1", port=server.port)))
    assert result.status_code is None
    assert result.byte_count == 8


def test_execute_truncates_to_buffer(http_server) -> None:
    server = http_server(b"HTTP/1.1 200 OK\r\n\r\n" + b"x" * (RESPONSE_BUFFER_SIZE * 3))
    result = asyncio.run(execute(RequestSpec("127.0.0.1", port=server.port)))
    assert result.status_code == "200"
    assert 0 < result.byte_count <= RESPONSE_BUFFER_SIZE


def test_execute_connection_refused(refused_port: str) -> None:
    with pytest.raises(ConnectError):
        asyncio.run(execute(RequestSpec("127.0.0.1", port=refused_port)))


def test_execute_receive_timeout(http_server) -> None:
    server = http_server(None)
    timeouts = TimeoutConfig(receive_sec=0.2)
    with pytest.raises(ProbeTimeoutError) as excinfo:
        asyncio.run(execute(RequestSpec("127.0.0.1", port=server.port), timeouts))
    assert excinfo.value.phase == "receive"


def test_execute_resolution_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fail(self, *args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(asyncio.BaseEventLoop, "getaddrinfo", fail)
    with pytest.raises(ResolutionError):
        asyncio.run(execute(RequestSpec("no-such-host.invalid")))


def _serve_candidates(monkeypatch: pytest.MonkeyPatch, ports: list[str]) -> None:
    candidates = [
        (socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, "", ("127.0.0.1", int(port)))
        for port in ports
    ]

    async def resolve(self, *args, **kwargs):
        return candidates

    monkeypatch.setattr(asyncio.BaseEventLoop, "getaddrinfo", resolve)


def _track_connects(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    attempts: list[int] = []
    original = BaseSelectorEventLoop.sock_connect

    async def tracking(self, sock, address):
        attempts.append(address[1])
        return await original(self, sock, address)

    monkeypatch.setattr(BaseSelectorEventLoop, "sock_connect", tracking)
    return attempts


def test_execute_falls_back_past_refused_candidate(
    http_server, refused_port: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    server = http_server()
    _serve_candidates(monkeypatch, [refused_port, server.port])
    attempts = _track_connects(monkeypatch)
    result = asyncio.run(execute(RequestSpec("multi.example", port="80")))
    assert result.status_code == "200"
    assert attempts == [int(refused_port), int(server.port)]
    assert server.requests[0].startswith(b"GET / HTTP/1.1\r\nHost: multi.example\r\n")


def test_execute_stops_at_first_accepting_candidate(http_server, monkeypatch: pytest.MonkeyPatch) -> None:
    first = http_server()
    second = http_server()
    _serve_candidates(monkeypatch, [first.port, second.port])
    attempts = _track_connects(monkeypatch)
    asyncio.run(execute(RequestSpec("multi.example")))
    assert attempts == [int(first.port)]
    assert len(first.requests) == 1
    assert second.requests == []


def test_execute_all_candidates_refused(refused_port: str, monkeypatch: pytest.MonkeyPatch) -> None:
    _serve_candidates(monkeypatch, [refused_port, refused_port])
    attempts = _track_connects(monkeypatch)
    with pytest.raises(ConnectError):
        asyncio.run(execute(RequestSpec("multi.example")))
    assert len(attempts) == 2


def test_execute_connect_timeout_on_every_candidate(monkeypatch: pytest.MonkeyPatch) -> None:
    _serve_candidates(monkeypatch, ["8001", "8002"])
    attempts: list[int] = []

    async def hang(self, sock, address):
        attempts.append(address[1])
        await asyncio.sleep(10)

    monkeypatch.setattr(BaseSelectorEventLoop, "sock_connect", hang)
    with pytest.raises(ProbeTimeoutError) as excinfo:
        asyncio.run(execute(RequestSpec("slow.example"), TimeoutConfig(connect_sec=0.05)))
    assert excinfo.value.phase == "connect"
    assert attempts == [8001, 8002]


def test_execute_send_failure(http_server, monkeypatch: pytest.MonkeyPatch) -> None:
    server = http_server()

    async def broken_drain(self):
        raise ConnectionResetError("Connection reset by peer")

    monkeypatch.setattr(asyncio.StreamWriter, "drain", broken_drain)
    with pytest.raises(SendError):
        asyncio.run(execute(RequestSpec("127.0.0.1", port=server.port)))


def test_execute_receive_failure_on_reset(http_server) -> None:
    server = http_server(reset=True)
    with pytest.raises(ReceiveError):
        asyncio.run(execute(RequestSpec("127.0.0.1", port=server.port)))
    assert len(server.requests) == 1
