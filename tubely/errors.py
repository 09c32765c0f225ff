"""Error taxonomy shared by the upload pipeline and the HTTP layer.

Every error carries a coarse HTTP status and a human-readable message. The
underlying exception, when there is one, is kept on ``cause`` for logging and
is never returned to the client.
"""

from __future__ import annotations

from typing import Optional


class TubelyError(Exception):
    status_code: int = 500

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(TubelyError):
    status_code = 400


class PayloadTooLargeError(ValidationError):
    status_code = 413


class AuthenticationError(TubelyError):
    status_code = 401


class AuthorizationError(TubelyError):
    status_code = 401


class NotFoundError(TubelyError):
    status_code = 404


class ProcessingError(TubelyError):
    status_code = 500


class ProbeError(ProcessingError):
    pass


class RemuxError(ProcessingError):
    pass


class StorageError(TubelyError):
    status_code = 500


__all__ = [
    "TubelyError",
    "ValidationError",
    "PayloadTooLargeError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ProcessingError",
    "ProbeError",
    "RemuxError",
    "StorageError",
]
