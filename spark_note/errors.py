"""
Spark Note Error Types

Every failure raised by this package derives from SparkError. Each error
carries a machine-readable code so callers can branch without parsing
messages. Errors are permanent and caller-correctable; nothing here is
retried.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Dict, Optional


class SecretErrorCode(Enum):
    """Error codes for secret validation."""
    EMPTY = "Empty"
    TOO_SHORT = "TooShort"
    TOO_LONG = "TooLong"
    INVALID_FORMAT = "InvalidFormat"


class ValueErrorCode(Enum):
    """Error codes for value validation."""
    ZERO = "Zero"
    EXCEEDS_MAX = "ExceedsMax"
    INVALID = "Invalid"


class NullifierErrorCode(Enum):
    """Error codes for nullifier operations."""
    ALREADY_SPENT = "AlreadySpent"
    INVALID_FORMAT = "InvalidFormat"
    EMPTY = "Empty"
    WRONG_LENGTH = "WrongLength"


class SparkError(Exception):
    """Base error for all Spark note operations."""

    kind: str = "Operation failed"
    prefix: str = "OPERATION"

    def __init__(self, message: str, code: Optional[Enum] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"

    def error_code(self) -> str:
        """Error code string for programmatic handling."""
        if self.code is None:
            return f"{self.prefix}_ERROR"
        return f"{self.prefix}_{self.code.value}"

    def detailed_message(self) -> str:
        """Message including the error code."""
        if self.code is None:
            return f"{self.kind}: {self.message}"
        return f"{self.kind} (code: {self.code.value}): {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": type(self).__name__,
            "code": self.error_code(),
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SparkError":
        """Rebuild an error produced by to_dict()."""
        kind = _ERROR_TYPES.get(data.get("kind", ""), OperationError)
        message = data.get("message", "")
        code_str = data.get("code", "")
        codes = _CODE_ENUMS.get(kind)
        if codes is None:
            return kind(message)
        suffix = code_str.split("_", 1)[-1]
        for code in codes:
            if code.value == suffix:
                if kind is AlreadySpentError:
                    return kind(message)
                return kind(message, code)
        raise ValueError(f"Unknown error code {code_str!r} for {kind.__name__}")


class InvalidSecretError(SparkError):
    """Secret fails length or format constraints."""
    kind = "Invalid secret"
    prefix = "SECRET"

    def __init__(self, message: str, code: SecretErrorCode):
        super().__init__(message, code)


class InvalidValueError(SparkError):
    """Note value outside the accepted range."""
    kind = "Invalid value"
    prefix = "VALUE"

    def __init__(self, message: str, code: ValueErrorCode):
        super().__init__(message, code)


class NullifierError(SparkError):
    """Malformed nullifier input or spent-set conflict."""
    kind = "Nullifier error"
    prefix = "NULLIFIER"

    def __init__(self, message: str, code: NullifierErrorCode):
        super().__init__(message, code)


class AlreadySpentError(NullifierError):
    """Nullifier is already present in the spent set."""

    def __init__(self, message: str = "Nullifier is already spent"):
        super().__init__(message, NullifierErrorCode.ALREADY_SPENT)


class SerializationError(SparkError):
    """Malformed or incompatible wire data."""
    kind = "Serialization error"
    prefix = "SERIALIZATION"


class OperationError(SparkError):
    """Registry misuse and other operation-level failures."""
    kind = "Operation failed"
    prefix = "OPERATION"


_ERROR_TYPES = {
    cls.__name__: cls
    for cls in (
        InvalidSecretError,
        InvalidValueError,
        NullifierError,
        AlreadySpentError,
        SerializationError,
        OperationError,
    )
}

_CODE_ENUMS = {
    InvalidSecretError: SecretErrorCode,
    InvalidValueError: ValueErrorCode,
    NullifierError: NullifierErrorCode,
    AlreadySpentError: NullifierErrorCode,
}
