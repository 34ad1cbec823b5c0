from __future__ import annotations

import errno
import logging
import os
import socket
from dataclasses import dataclass

from .constants import CONNECT_TIMEOUT_S
from .errors import ConnectCheckError, ConnectError, ConnectTimeout
from .net import Endpoint, wait_writable

_IN_PROGRESS = {errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN}


@dataclass(slots=True)
class Connector:
    """Deadline-bounded connect on a non-blocking stream socket.

    Once the socket reports write-ready the attempt is treated as resolved;
    a refused or reset connection shows up as a SendError on the first push.
    """

    sock: socket.socket
    timeout: float = CONNECT_TIMEOUT_S

    def connect(self, endpoint: Endpoint) -> socket.socket:
        logging.info("connecting to %s (timeout=%.1fs)", endpoint, self.timeout)
        try:
            rc = self.sock.connect_ex(endpoint.as_tuple())
        except OSError as exc:
            raise ConnectError(f"connect() to {endpoint} failed", exc) from exc

        if rc == 0:
            logging.debug("connected to %s immediately", endpoint)
            return self.sock

        if rc not in _IN_PROGRESS:
            exc = OSError(rc, os.strerror(rc))
            raise ConnectError(f"connect() to {endpoint} failed", exc) from exc

        try:
            ready = wait_writable(self.sock, self.timeout)
        except OSError as exc:
            raise ConnectCheckError("select() failed while connecting", exc) from exc

        if not ready:
            logging.info("connect to %s timed out after %.1fs", endpoint, self.timeout)
            raise ConnectTimeout(
                f"Timeout! Client has not been able to connect to the server in more than "
                f"{self.timeout:g} seconds."
            )

        logging.debug("connect to %s resolved", endpoint)
        return self.sock


def connect(sock: socket.socket, endpoint: Endpoint, timeout: float = CONNECT_TIMEOUT_S) -> socket.socket:
    return Connector(sock, timeout).connect(endpoint)
