"""
Exception classes for the MTA-STS lookup library.

All exceptions inherit from MailSTSError and provide structured
error information with codes, messages, and optional details.
"""

from typing import Optional


class MailSTSError(Exception):
    """Base exception for all MTA-STS lookup errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(MailSTSError):
    """Raised when a domain name or configuration value is invalid."""

    pass


class RetrievalError(MailSTSError):
    """Raised when a policy cannot be retrieved (HTTP status, transport failure)."""

    pass


class NoPolicyRecordError(RetrievalError):
    """Raised when the domain does not advertise an _mta-sts TXT record."""

    pass


class SizeLimitError(MailSTSError):
    """Raised when a policy document exceeds the configured maximum size."""

    pass


class ParseError(MailSTSError):
    """Raised when a policy document or TXT record is malformed."""

    pass
