from __future__ import annotations

from dataclasses import dataclass

from .constants import CHUNK_SIZE, CONNECT_TIMEOUT_S, SEND_TIMEOUT_S


@dataclass(frozen=True, slots=True)
class TransferConfig:
    """Deadlines and chunk size for one run.

    The defaults are the ones the client is specified with; tests build
    their own with shorter deadlines.
    """

    connect_timeout: float = CONNECT_TIMEOUT_S
    send_timeout: float = SEND_TIMEOUT_S
    chunk_size: int = CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.connect_timeout <= 0:
            raise ValueError(f"connect_timeout must be positive, got {self.connect_timeout}")
        if self.send_timeout <= 0:
            raise ValueError(f"send_timeout must be positive, got {self.send_timeout}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
