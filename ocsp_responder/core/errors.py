"""
Error types shared by the store, the responder and the HTTP layer.

Every error carries an ErrorKind; the transport boundary decides the status
code from the kind alone.
"""
from enum import Enum


class ErrorKind(str, Enum):
    REQUEST_REJECTED = "request_rejected"  # caller's fault, 4xx
    INTERNAL_FAILURE = "internal_failure"  # server's fault, 5xx


class ResponderError(Exception):
    """Base error with an explicit kind"""

    default_kind = ErrorKind.INTERNAL_FAILURE

    def __init__(self, message: str, kind: ErrorKind = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind

    @classmethod
    def rejected(cls, message: str) -> "ResponderError":
        return cls(message, ErrorKind.REQUEST_REJECTED)

    @classmethod
    def internal(cls, message: str) -> "ResponderError":
        return cls(message, ErrorKind.INTERNAL_FAILURE)

    @property
    def is_rejection(self) -> bool:
        return self.kind == ErrorKind.REQUEST_REJECTED

    def __repr__(self):
        return f"<{type(self).__name__}(kind={self.kind.value}, message={self.message!r})>"


class StoreError(ResponderError):
    """Underlying storage failed (I/O, schema, connection)"""


class KeyMaterialError(ResponderError):
    """Certificate or private key could not be loaded"""


HTTP_STATUS = {
    ErrorKind.REQUEST_REJECTED: 400,
    ErrorKind.INTERNAL_FAILURE: 500,
}


def status_code_for(kind: ErrorKind) -> int:
    return HTTP_STATUS[kind]
