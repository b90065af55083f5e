"""
Enumeration types for the MTA-STS lookup library.

These enums provide type-safe constants for record kinds, classification
results, policy states and error codes throughout the system.
"""

from enum import Enum


class RecordKind(Enum):
    """The five DNS lookups performed for a domain."""

    MX = "mx"
    A = "a"
    TLSA = "tlsa"
    STS = "sts"
    TLSRPT = "tlsrpt"


class RecordType(str, Enum):
    """How mail for a domain is routed; compares equal to its string value."""

    MX = "mx"
    A = "a"
    NON_EXISTENT = "non-existent"


class PolicyMode(Enum):
    """MTA-STS policy modes."""

    ENFORCE = "enforce"
    TESTING = "testing"
    NONE = "none"


class PolicyState(Enum):
    """Lifecycle state of a cached policy document."""

    UNFETCHED = "unfetched"
    VALID = "valid"
    EXPIRED = "expired"
    REFRESHING = "refreshing"
    ERROR = "error"


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class RetrievalErrorCode(Enum):
    """Error codes for policy retrieval failures."""

    NO_STS_RECORD = "no_sts_record"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    TLS_ERROR = "tls_error"
    TIMEOUT = "timeout"
    SIZE_LIMIT = "size_limit"


class ParseErrorCode(Enum):
    """Error codes for malformed records and policy documents."""

    INVALID_MAX_AGE = "invalid_max_age"
    MISSING_FIELD = "missing_field"
    EMPTY_RECORD = "empty_record"


class DomainValidationErrorCode(Enum):
    """Error codes for domain validation failures."""

    FORBIDDEN_CHARS = "forbidden_chars"
    IDNA_ERROR = "idna_error"
    EMPTY_INPUT = "empty_input"
    INVALID_LENGTH = "invalid_length"
