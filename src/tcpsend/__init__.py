"""tcpsend: push a file over one TCP connection with bounded waits.

- connector: non-blocking connect raced against a 15s write-readiness deadline
- transmitter: 1024-byte chunks, each with its own 10s send deadline
- session: owns the socket and the file, releases both on every exit path

Every failure is a TransferError subclass; nothing is retried.
"""

from .config import TransferConfig
from .connector import Connector, connect
from .errors import (
    ConnectCheckError,
    ConnectError,
    ConnectTimeout,
    SendCheckError,
    SendError,
    SendTimeout,
    TransferError,
)
from .net import Endpoint
from .session import send_file
from .transmitter import Metrics, Transmitter, transmit

__all__ = [
    "ConnectCheckError",
    "ConnectError",
    "ConnectTimeout",
    "Connector",
    "Endpoint",
    "Metrics",
    "SendCheckError",
    "SendError",
    "SendTimeout",
    "TransferConfig",
    "TransferError",
    "Transmitter",
    "connect",
    "send_file",
    "transmit",
]
