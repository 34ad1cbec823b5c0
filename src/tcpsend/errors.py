from __future__ import annotations

from typing import Optional


class TransferError(Exception):
    """Base class for every failure that aborts a run."""

    kind = "TransferError"

    def __init__(self, message: str, cause: Optional[OSError] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        msg = super().__str__()
        if self.cause is not None and self.cause.strerror:
            return f"{msg}: {self.cause.strerror}"
        return msg


class ConnectError(TransferError):
    kind = "ConnectError"


class ConnectCheckError(TransferError):
    kind = "ConnectCheckError"


class ConnectTimeout(TransferError):
    kind = "ConnectTimeout"


class SendCheckError(TransferError):
    kind = "SendCheckError"


class SendTimeout(TransferError):
    kind = "SendTimeout"


class SendError(TransferError):
    kind = "SendError"
