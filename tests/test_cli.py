from __future__ import annotations

import errno
import json
import socket
import threading
import time

import pytest

from tcpsend import cli
from tcpsend import session as session_mod
from tcpsend.errors import ConnectTimeout


@pytest.mark.parametrize("raw,expected", [("1024", 1024), ("8080", 8080), ("65535", 65535)])
def test_parse_port_accepts(raw, expected):
    assert cli.parse_port(raw) == expected


@pytest.mark.parametrize("raw", ["80", "1023", "65536", "0", "-5", "http", "12ab", ""])
def test_parse_port_rejects(raw):
    with pytest.raises(ValueError, match="greater than 1023"):
        cli.parse_port(raw)


def test_bad_port_exit_code(tmp_path, capsys):
    f = tmp_path / "f.bin"
    f.write_bytes(b"x")
    assert cli.main(["send", "127.0.0.1", "80", str(f)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("ERROR: Port number needs to be a valid integer greater than 1023.")


def test_bad_host_prints_usage(tmp_path, capsys):
    f = tmp_path / "f.bin"
    f.write_bytes(b"x")
    assert cli.main(["send", "no-such-host.invalid", "8080", str(f)]) == 1
    err = capsys.readouterr().err
    assert "ERROR: Host name is invalid." in err
    assert cli.USAGE in err


def test_missing_file(tmp_path, capsys):
    assert cli.main(["send", "127.0.0.1", "8080", str(tmp_path / "missing.bin")]) == 1
    assert capsys.readouterr().err.startswith("ERROR: Unable to read")


def test_transfer_error_is_reported(tmp_path, monkeypatch, capsys):
    def timeout(endpoint, path, config):
        raise ConnectTimeout("Timeout! Client has not been able to connect to the server in more than 15 seconds.")

    monkeypatch.setattr(cli, "send_file", timeout)
    f = tmp_path / "f.bin"
    f.write_bytes(b"x")
    assert cli.main(["send", "127.0.0.1", "8080", str(f)]) == 1
    assert "ERROR: Timeout! Client has not been able to connect" in capsys.readouterr().err


def test_send_success_is_silent(tmp_path, capsys, loopback_sink):
    f = tmp_path / "f.bin"
    f.write_bytes(b"hello world" * 300)
    rc = cli.main(["send", loopback_sink.host, str(loopback_sink.port), str(f)])
    assert rc == 0
    assert loopback_sink.received() == b"hello world" * 300
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_send_json(tmp_path, capsys, loopback_sink):
    f = tmp_path / "f.bin"
    f.write_bytes(b"a" * 2500)
    assert cli.main(["send", "--json", loopback_sink.host, str(loopback_sink.port), str(f)]) == 0
    loopback_sink.received()
    payload = json.loads(capsys.readouterr().out)
    assert payload["bytes"] == 2500
    assert payload["chunks"] == 3


def test_bench_json(capsys):
    assert cli.main(["bench", "--size-bytes", "50000", "--json"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["role"] == "bench"
    assert payload["bytes_transferred"] == 50000
    assert payload["chunks"] == 49


def test_socket_failure_is_not_reported_as_file_error(tmp_path, monkeypatch, capsys):
    def no_descriptors():
        raise OSError(errno.EMFILE, "Too many open files")

    monkeypatch.setattr(session_mod, "open_stream_socket", no_descriptors)
    f = tmp_path / "f.bin"
    f.write_bytes(b"x")
    assert cli.main(["send", "127.0.0.1", "8080", str(f)]) == 1
    assert capsys.readouterr().err == "ERROR: Too many open files\n"


def test_recv_port_in_use(tmp_path, capsys):
    busy = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    busy.bind(("127.0.0.1", 0))
    busy.listen(1)
    try:
        port = busy.getsockname()[1]
        rc = cli.main(["recv", "--listen-host", "127.0.0.1", "--listen-port", str(port), "--out", str(tmp_path / "o.bin")])
    finally:
        busy.close()
    assert rc == 1
    assert capsys.readouterr().err.startswith("ERROR: Receive failed:")


def test_recv_timeout_without_client(tmp_path, capsys):
    rc = cli.main(
        ["recv", "--listen-host", "127.0.0.1", "--listen-port", "0", "--out", str(tmp_path / "o.bin"), "--timeout", "0.2"]
    )
    assert rc == 1
    assert capsys.readouterr().err == "ERROR: Receive failed: timed out\n"


def test_recv_writes_stream_to_file(tmp_path, capsys):
    spare = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    spare.bind(("127.0.0.1", 0))
    port = spare.getsockname()[1]
    spare.close()

    out = tmp_path / "o.bin"
    result = {}
    argv = ["recv", "--listen-host", "127.0.0.1", "--listen-port", str(port), "--out", str(out), "--timeout", "5", "--json"]
    t = threading.Thread(target=lambda: result.setdefault("rc", cli.main(argv)), daemon=True)
    t.start()

    deadline = time.monotonic() + 5.0
    while True:
        try:
            conn = socket.create_connection(("127.0.0.1", port), timeout=1.0)
            break
        except ConnectionRefusedError:
            if time.monotonic() > deadline:
                raise
            time.sleep(0.05)
    with conn:
        conn.sendall(b"q" * 5000)
    t.join(timeout=5.0)

    assert result["rc"] == 0
    assert out.read_bytes() == b"q" * 5000
    assert json.loads(capsys.readouterr().out)["bytes"] == 5000


@pytest.mark.parametrize("raw", ["-1", "ten"])
def test_bench_rejects_bad_size(raw, capsys):
    with pytest.raises(SystemExit) as ei:
        cli.main(["bench", "--size-bytes", raw])
    assert ei.value.code == 2
    assert "--size-bytes" in capsys.readouterr().err


@pytest.mark.parametrize(
    "exc",
    [RuntimeError("sink received 10 bytes, expected 20"), OSError(errno.EADDRNOTAVAIL, "Cannot assign requested address")],
)
def test_bench_failures_are_reported(monkeypatch, capsys, exc):
    def fail(**kwargs):
        raise exc

    monkeypatch.setattr(cli, "run_benchmark", fail)
    assert cli.main(["bench", "--size-bytes", "10"]) == 1
    assert capsys.readouterr().err.startswith("ERROR: ")
