from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass, field
from typing import BinaryIO

from .config import TransferConfig
from .errors import SendCheckError, SendError, SendTimeout
from .net import SEND_FLAGS, wait_writable


@dataclass(slots=True)
class Metrics:
    chunks_sent: int = 0
    bytes_sent: int = 0
    partial_sends: int = 0
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
        return (self.bytes_sent * 8 / 1_000_000) / self.duration_s


@dataclass(slots=True)
class Transmitter:
    """Streams ``source`` onto a connected, non-blocking socket.

    Each chunk gets its own ``send_timeout`` budget, started when the chunk
    is read. The next chunk is not read until the whole current one has
    been accepted by the kernel, however many send() calls that takes.
    """

    sock: socket.socket
    source: BinaryIO
    config: TransferConfig = field(default_factory=TransferConfig)

    def run(self) -> Metrics:
        metrics = Metrics()
        chunk_size = self.config.chunk_size

        while True:
            chunk = self.source.read(chunk_size)
            if not chunk:
                break
            self._push(chunk, metrics)
            metrics.chunks_sent += 1
            metrics.bytes_sent += len(chunk)
            logging.debug("chunk %d sent; %d bytes", metrics.chunks_sent, len(chunk))

        metrics.end_ts = time.monotonic()
        logging.info(
            "done; chunks=%d bytes=%d partial_sends=%d",
            metrics.chunks_sent,
            metrics.bytes_sent,
            metrics.partial_sends,
        )
        return metrics

    def _push(self, chunk: bytes, metrics: Metrics) -> None:
        deadline = time.monotonic() + self.config.send_timeout
        view = memoryview(chunk)

        while view:
            try:
                ready = wait_writable(self.sock, deadline - time.monotonic())
            except OSError as exc:
                raise SendCheckError("select() failed while sending", exc) from exc
            if not ready:
                raise self._timeout(metrics)

            try:
                n = self.sock.send(view, SEND_FLAGS)
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    raise self._timeout(metrics) from None
                continue
            except OSError as exc:
                raise SendError("Unable to send data to server", exc) from exc

            if n < len(view):
                metrics.partial_sends += 1
                logging.debug("partial send; %d of %d bytes accepted", n, len(view))
            view = view[n:]

    def _timeout(self, metrics: Metrics) -> SendTimeout:
        logging.info("send timed out at chunk %d", metrics.chunks_sent + 1)
        return SendTimeout(
            f"Timeout! Client has not been able to send data to the server in more than "
            f"{self.config.send_timeout:g} seconds."
        )


def transmit(sock: socket.socket, source: BinaryIO, config: TransferConfig | None = None) -> Metrics:
    return Transmitter(sock, source, config or TransferConfig()).run()
