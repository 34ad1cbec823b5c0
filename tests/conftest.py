from __future__ import annotations

import io
import socket
import threading

import pytest

from tcpsend.sink import Sink


class LoopbackSink:
    def __init__(self) -> None:
        self.out = io.BytesIO()
        self.sink = Sink.listening("127.0.0.1", 0, self.out, timeout=5.0)
        self.host, self.port = self.sink.address
        self.metrics = None
        self.error: BaseException | None = None
        self._t = threading.Thread(target=self._run, daemon=True)
        self._t.start()

    def _run(self) -> None:
        try:
            self.metrics = self.sink.run()
        except BaseException as exc:  # surfaced through .received()
            self.error = exc
        finally:
            self.sink.close()

    def received(self) -> bytes:
        self._t.join(timeout=5.0)
        if self.error is not None:
            raise self.error
        return self.out.getvalue()


@pytest.fixture
def loopback_sink():
    s = LoopbackSink()
    yield s
    s.sink.close()


@pytest.fixture
def sock_pair():
    """(sender, peer) stream pair; the sender side is non-blocking."""
    a, b = socket.socketpair()
    a.setblocking(False)
    yield a, b
    a.close()
    b.close()
