from __future__ import annotations

import socket
import socketserver
import struct
import threading
from typing import Callable, Iterator

import pytest

OK_RESPONSE = b"HTTP/1.1 200 OK\r\n\r\nhello"


class _CannedHandler(socketserver.BaseRequestHandler):
    server: "CannedServer"

    def handle(self) -> None:
        data = b""
        while b"\r\n\r\n" not in data:
            chunk = self.request.recv(1024)
            if not chunk:
                break
            data += chunk
        self.server.requests.append(data)
        if self.server.reset:
            # SO_LINGER 0 makes close() send RST instead of FIN.
            self.request.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
            self.request.close()
            return
        if self.server.response is None:
            self.server.release.wait(5)
            return
        self.request.sendall(self.server.response)


class CannedServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True
    block_on_close = False

    def __init__(self, response: bytes | None, reset: bool = False) -> None:
        super().__init__(("127.0.0.1", 0), _CannedHandler)
        self.response = response
        self.reset = reset
        self.requests: list[bytes] = []
        self.release = threading.Event()

    @property
    def port(self) -> str:
        return str(self.server_address[1])


@pytest.fixture
def http_server() -> Iterator[Callable[..., CannedServer]]:
    servers: list[CannedServer] = []

    def start(response: bytes | None = OK_RESPONSE, reset: bool = False) -> CannedServer:
        server = CannedServer(response, reset)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.release.set()
        server.shutdown()
        server.server_close()


@pytest.fixture
def refused_port() -> str:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return str(port)
