from __future__ import annotations

import argparse
import json
import logging
import socket
import sys
from dataclasses import asdict

from .bench import run_benchmark
from .config import TransferConfig
from .constants import EXIT_FAILURE, EXIT_OK, PORT_MAX, PORT_MIN
from .errors import TransferError
from .net import Endpoint, resolve_ipv4
from .session import send_file
from .sink import Sink

USAGE = "USAGE: tcpsend send <HOSTNAME-OR-IP> <PORT> <FILENAME>"


def print_error(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)


def parse_port(raw: str) -> int:
    try:
        port = int(raw, 10)
    except ValueError:
        port = -1
    if not PORT_MIN <= port <= PORT_MAX:
        raise ValueError("Port number needs to be a valid integer greater than 1023.")
    return port


def non_negative_int(raw: str) -> int:
    try:
        value = int(raw, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {raw!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return value


def cmd_send(args: argparse.Namespace) -> int:
    try:
        port = parse_port(args.port)
    except ValueError as exc:
        print_error(str(exc))
        return EXIT_FAILURE

    try:
        address = resolve_ipv4(args.host)
    except (socket.gaierror, UnicodeError):
        print_error("Host name is invalid.")
        print(USAGE, file=sys.stderr)
        return EXIT_FAILURE

    try:
        metrics = send_file(Endpoint(address, port), args.file, TransferConfig())
    except TransferError as exc:
        print_error(str(exc))
        return EXIT_FAILURE
    except OSError as exc:
        if exc.filename is not None:
            print_error(f"Unable to read {exc.filename}: {exc.strerror or exc}")
        else:
            print_error(exc.strerror or str(exc))
        return EXIT_FAILURE

    if args.json:
        payload = {
            "role": "sender",
            "bytes": metrics.bytes_sent,
            "chunks": metrics.chunks_sent,
            "partial_sends": metrics.partial_sends,
            "seconds": metrics.duration_s,
            "mbps": metrics.throughput_mbps,
        }
        print(json.dumps(payload, indent=2))
    return EXIT_OK


def cmd_recv(args: argparse.Namespace) -> int:
    try:
        with open(args.out, "wb") as out:
            sink = Sink.listening(args.listen_host, args.listen_port, out, timeout=args.timeout)
            try:
                metrics = sink.run()
            finally:
                sink.close()
    except OSError as exc:
        print_error(f"Receive failed: {exc.strerror or exc}")
        return EXIT_FAILURE

    payload = {
        "role": "receiver",
        "bytes": metrics.bytes_received,
        "seconds": metrics.duration_s,
        "mbps": metrics.throughput_mbps,
    }
    print(json.dumps(payload, indent=2) if args.json else payload)
    return EXIT_OK


def cmd_bench(args: argparse.Namespace) -> int:
    try:
        r = run_benchmark(size_bytes=args.size_bytes)
    except (TransferError, OSError, RuntimeError) as exc:
        print_error(str(exc))
        return EXIT_FAILURE
    payload = {"role": "bench", **asdict(r)}
    print(json.dumps(payload, indent=2) if args.json else payload)
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="tcpsend", description="Send a file over TCP with bounded connect/send deadlines.")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    send = sub.add_parser("send", help="send a file to a TCP peer")
    send.add_argument("host")
    send.add_argument("port")
    send.add_argument("file")
    send.add_argument("--json", action="store_true")
    send.set_defaults(func=cmd_send)

    recv = sub.add_parser("recv", help="accept one connection and write it to disk")
    recv.add_argument("--listen-host", default="0.0.0.0")
    recv.add_argument("--listen-port", type=int, required=True)
    recv.add_argument("--out", required=True)
    recv.add_argument("--timeout", type=float, default=0.0, help="accept/recv timeout in seconds (0 = none)")
    recv.add_argument("--json", action="store_true")
    recv.set_defaults(func=cmd_recv)

    bench = sub.add_parser("bench", help="loopback benchmark against an in-process sink")
    bench.add_argument("--size-bytes", type=non_negative_int, default=5_000_000)
    bench.add_argument("--json", action="store_true")
    bench.set_defaults(func=cmd_bench)

    args = p.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
