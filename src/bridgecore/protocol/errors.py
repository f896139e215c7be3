from typing import Optional

from .enums import ErrorCode


class BridgeError(Exception):
    """
    Base error for every rejected request.

    Raising any BridgeError aborts the enclosing execution unit. The error
    is a pure function of the request and the persisted state, so a relayer
    may retry the identical request only after correcting the condition.
    """

    default_code: ErrorCode = ErrorCode.MALFORMED_PAYLOAD

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.code = code or self.default_code


class ConfigError(BridgeError):
    """Raised when a derived address or seed does not match."""

    default_code = ErrorCode.WRONG_SEEDS


class StateError(BridgeError):
    """Raised when a record is already initialized or not yet initialized."""

    default_code = ErrorCode.NOT_INITIALIZED


class AuthError(BridgeError):
    """Raised when a signature or commission charge does not authorize the request."""

    default_code = ErrorCode.WRONG_SIGNATURE


class DataError(BridgeError):
    """Raised when request data or a persisted buffer is malformed."""

    default_code = ErrorCode.MALFORMED_PAYLOAD


class ResourceError(BridgeError):
    """Raised when an account lacks the balance a transfer needs."""

    default_code = ErrorCode.INSUFFICIENT_BALANCE
