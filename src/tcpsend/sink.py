from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass, field
from typing import BinaryIO


@dataclass(slots=True)
class ReceiveMetrics:
    reads: int = 0
    bytes_received: int = 0
    start_ts: float = field(default_factory=time.monotonic)
    end_ts: float | None = None

    @property
    def duration_s(self) -> float:
        if self.end_ts is None:
            return 0.0
        return max(0.0, self.end_ts - self.start_ts)

    @property
    def throughput_mbps(self) -> float:
        if self.duration_s <= 0:
            return 0.0
        return (self.bytes_received * 8 / 1_000_000) / self.duration_s


@dataclass(slots=True)
class Sink:
    """Accepts one connection and copies it to ``out`` until the peer closes."""

    listener: socket.socket
    out: BinaryIO
    bufsize: int = 65536

    @classmethod
    def listening(cls, host: str, port: int, out: BinaryIO, timeout: float = 0.0) -> "Sink":
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            listener.bind((host, port))
            listener.listen(1)
        except OSError:
            listener.close()
            raise
        if timeout > 0:
            listener.settimeout(timeout)
        return cls(listener, out)

    @property
    def address(self) -> tuple[str, int]:
        return self.listener.getsockname()

    def run(self) -> ReceiveMetrics:
        logging.info("sink listening on %s:%d", *self.address)
        conn, peer = self.listener.accept()
        metrics = ReceiveMetrics()
        with conn:
            conn.settimeout(self.listener.gettimeout())
            logging.info("sink accepted %s:%d", *peer)
            while True:
                data = conn.recv(self.bufsize)
                if not data:
                    break
                self.out.write(data)
                metrics.reads += 1
                metrics.bytes_received += len(data)

        self.out.flush()
        metrics.end_ts = time.monotonic()
        logging.info("sink done; bytes=%d", metrics.bytes_received)
        return metrics

    def close(self) -> None:
        self.listener.close()
