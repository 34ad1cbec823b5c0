from __future__ import annotations

import ipaddress
import selectors
import socket
from dataclasses import dataclass

from .constants import PORT_MAX, PORT_MIN

# Broken pipes must come back as EPIPE from send(), never as SIGPIPE.
SEND_FLAGS = getattr(socket, "MSG_NOSIGNAL", 0)


@dataclass(frozen=True, slots=True)
class Endpoint:
    address: str
    port: int

    def __post_init__(self) -> None:
        ipaddress.IPv4Address(self.address)
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ValueError(f"port must be an integer, got {self.port!r}")
        if not PORT_MIN <= self.port <= PORT_MAX:
            raise ValueError(f"port out of range [{PORT_MIN}, {PORT_MAX}]: {self.port}")

    def as_tuple(self) -> tuple[str, int]:
        return (self.address, self.port)

    def __str__(self) -> str:
        return f"{self.address}:{self.port}"


def resolve_ipv4(host: str) -> str:
    """Resolve ``host`` to a dotted-quad IPv4 address (first result wins)."""
    infos = socket.getaddrinfo(host, None, socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    if not infos:
        raise socket.gaierror(socket.EAI_NONAME, "no IPv4 address")
    return infos[0][4][0]


def open_stream_socket() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


def wait_writable(sock: socket.socket, timeout: float) -> bool:
    """Block until ``sock`` is write-ready or ``timeout`` seconds pass.

    Returns False on timeout. Errors from the readiness check itself are
    raised as ``OSError``.
    """
    with selectors.DefaultSelector() as sel:
        sel.register(sock, selectors.EVENT_WRITE)
        return bool(sel.select(max(0.0, timeout)))
