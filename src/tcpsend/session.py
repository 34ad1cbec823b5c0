from __future__ import annotations

import logging
import os
from typing import Union

from .config import TransferConfig
from .connector import Connector
from .net import Endpoint, open_stream_socket
from .transmitter import Metrics, Transmitter


def send_file(
    endpoint: Endpoint,
    path: Union[str, os.PathLike],
    config: TransferConfig | None = None,
) -> Metrics:
    """Connect to ``endpoint`` and stream the file at ``path`` to it.

    The file and the socket are both closed before this returns or raises.
    """
    config = config or TransferConfig()
    logging.info("send start; file=%s dest=%s", path, endpoint)

    with open(path, "rb") as source, open_stream_socket() as sock:
        Connector(sock, config.connect_timeout).connect(endpoint)
        return Transmitter(sock, source, config).run()
