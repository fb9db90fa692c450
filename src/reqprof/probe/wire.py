from __future__ import annotations

from urllib.parse import quote

from reqprof.config import RequestSpec
from reqprof.probe.errors import MalformedResponseError

RESPONSE_BUFFER_SIZE = 4096

# "HTTP/1.1 200 OK": the code occupies bytes 9..11.
STATUS_CODE_OFFSET = 9
STATUS_CODE_LENGTH = 3
_STATUS_LINE_PREFIX = b"HTTP/"
# Reserved and already-escaped characters pass through untouched.
_PATH_SAFE = "/?&=%:@!$'()*+,;~#[]"


def build_request(spec: RequestSpec) -> bytes:
    path = quote(spec.path, safe=_PATH_SAFE)
    host = spec.host.encode("idna").decode("ascii")
    return (
        f"GET {path} HTTP/1.1\r\n"
        f"Host: {host}\r\n"
        "Connection: close\r\n"
        "\r\n"
    ).encode("ascii")


def extract_status_code(response: bytes) -> str:
    end = STATUS_CODE_OFFSET + STATUS_CODE_LENGTH
    if len(response) < end:
        msg = f"Response too short for a status line ({len(response)} bytes)"
        raise MalformedResponseError(msg)
    if not response.startswith(_STATUS_LINE_PREFIX):
        msg = f"Response does not start with a status line: {response[:end]!r}"
        raise MalformedResponseError(msg)
    code = response[STATUS_CODE_OFFSET:end]
    if not code.isdigit():
        msg = f"Non-numeric status code: {code!r}"
        raise MalformedResponseError(msg)
    return code.decode("ascii")
