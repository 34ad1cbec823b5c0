from __future__ import annotations

CONNECT_TIMEOUT_S = 15.0
SEND_TIMEOUT_S = 10.0
CHUNK_SIZE = 1024

PORT_MIN = 1024
PORT_MAX = 65535

EXIT_OK = 0
EXIT_FAILURE = 1
