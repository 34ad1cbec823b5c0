from __future__ import annotations

import os
import tempfile
import threading
from dataclasses import dataclass
from typing import BinaryIO, Union, cast

from .config import TransferConfig
from .net import Endpoint
from .session import send_file
from .sink import ReceiveMetrics, Sink


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    bytes_transferred: int
    chunks: int
    partial_sends: int
    duration_s: float
    throughput_mbps: float


def run_benchmark(*, size_bytes: int, config: TransferConfig | None = None) -> BenchmarkResult:
    """Send ``size_bytes`` over loopback to an in-process sink and time it."""
    if size_bytes < 0:
        raise ValueError(f"size_bytes must not be negative, got {size_bytes}")
    config = config or TransferConfig()
    payload = os.urandom(size_bytes)

    out_file = tempfile.NamedTemporaryFile(delete=False)
    try:
        sink = Sink.listening("127.0.0.1", 0, cast(BinaryIO, out_file), timeout=config.connect_timeout)
        recv_host, recv_port = sink.address

        sink_holder: dict[str, Union[ReceiveMetrics, OSError]] = {}

        def sink_runner():
            try:
                sink_holder["m"] = sink.run()
            except OSError as exc:
                sink_holder["error"] = exc
            finally:
                sink.close()

        t = threading.Thread(target=sink_runner, daemon=True)
        t.start()

        in_file = tempfile.NamedTemporaryFile(delete=False)
        try:
            in_file.write(payload)
            in_file.close()
            send_metrics = send_file(Endpoint(recv_host, recv_port), in_file.name, config)
        except BaseException:
            # unblocks the sink's accept()
            sink.close()
            raise
        finally:
            os.unlink(in_file.name)

        t.join(timeout=config.connect_timeout)

        error = sink_holder.get("error")
        if error is not None:
            raise RuntimeError(f"sink failed: {error}") from error
        sink_metrics = sink_holder.get("m")
        if not isinstance(sink_metrics, ReceiveMetrics):
            raise RuntimeError("sink did not finish")

        out_file.close()
        actual_size = os.path.getsize(out_file.name)
        if actual_size != size_bytes or sink_metrics.bytes_received != size_bytes:
            raise RuntimeError(f"sink received {actual_size} bytes, expected {size_bytes}")
    finally:
        out_file.close()
        os.unlink(out_file.name)

    duration_s = max(0.001, send_metrics.duration_s)
    throughput_mbps = (size_bytes * 8 / 1_000_000) / duration_s

    return BenchmarkResult(
        bytes_transferred=size_bytes,
        chunks=send_metrics.chunks_sent,
        partial_sends=send_metrics.partial_sends,
        duration_s=duration_s,
        throughput_mbps=throughput_mbps,
    )
