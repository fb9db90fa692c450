from __future__ import annotations

import pytest

from reqprof.cli import main
from reqprof.storage import Storage


def test_single_shot_prints_response(http_server, capsys: pytest.CaptureFixture[str]) -> None:
    server = http_server()
    main(["--url", "127.0.0.1/index.html", "--port", server.port])
    out = capsys.readouterr().out
    assert out.startswith("Received 24 bytes\nResponse:\n")
    assert "hello" in out


def test_non_ascii_path_is_escaped(http_server, capsys: pytest.CaptureFixture[str]) -> None:
    server = http_server()
    main(["--url", "127.0.0.1/café", "--port", server.port])
    assert server.requests[0].startswith(b"GET /caf%C3%A9 HTTP/1.1\r\n")
    assert capsys.readouterr().out.startswith("Received 24 bytes\n")


def test_profile_prints_report(http_server, capsys: pytest.CaptureFixture[str]) -> None:
    server = http_server(b"HTTP/1.1 503 Unavailable\r\n\r\n")
    main(["--url", "127.0.0.1", "--port", server.port, "--profile", "2"])
    out = capsys.readouterr().out
    assert "Number of requests: 2" in out
    assert "Requests succeeded: 0.00%" in out
    assert "Error codes: 503 503" in out


def test_profile_with_store(http_server, tmp_path) -> None:
    server = http_server()
    db_path = tmp_path / "runs.duckdb"
    main(["--url", "127.0.0.1", "--port", server.port, "--profile", "3", "--store", str(db_path)])
    runs = Storage(db_path).list_runs()
    assert len(runs) == 1


def test_connection_failure_exits_nonzero(refused_port: str, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["--url", "127.0.0.1", "--port", refused_port, "--profile", "1"])
    assert excinfo.value.code == 1
    captured = capsys.readouterr()
    assert "error: Could not connect" in captured.err
    assert "Number of requests" not in captured.out


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--url", "example.com", "--profile", "0"],
        ["--url", "example.com", "--profile", "many"],
        ["--url", "https://example.com"],
        ["--url", "example.com", "--store"],
        ["--url", "exa mple.com/x"],
        ["--url", "\u00e9" * 70],
        ["--url", "example.com", "--receive-timeout", "1"],
    ],
)
def test_invalid_invocation(argv: list[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 2
