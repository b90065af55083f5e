"""
mail-sts - MTA-STS (RFC 8461) and TLSRPT lookups for mail domains.

This package resolves the mail exchanger topology of a domain, reports the
DNSSEC status of each lookup, discovers TLSA, TLSRPT and MTA-STS records and
fetches and caches the MTA-STS policy document over HTTPS.
"""

__version__ = "0.1.0"

from mail_sts.exceptions import (
    MailSTSError,
    ValidationError,
    RetrievalError,
    NoPolicyRecordError,
    SizeLimitError,
    ParseError,
)
from mail_sts.enums import (
    RecordKind,
    RecordType,
    PolicyMode,
    PolicyState,
    LogLevel,
    RetrievalErrorCode,
    ParseErrorCode,
    DomainValidationErrorCode,
)
from mail_sts.audit_logger import (
    AuditLogger,
    LogEntry,
)
from mail_sts.config import (
    DEFAULT_MAX_POLICY_SIZE,
    ResolverConfig,
    HTTPConfig,
    PolicyConfig,
    LoggingConfig,
    SystemConfig,
    config_from_dict,
    config_to_dict,
    load_config_from_file,
    load_config_from_env,
)
from mail_sts import sskv
from mail_sts.records import (
    STSRecord,
    TLSRPTRecord,
)
from mail_sts.policy import PolicyDocument
from mail_sts.domain_validator import DomainValidator
from mail_sts.dns_client import (
    DNSAnswer,
    DNSResolver,
    DNSPythonResolver,
    ResourceRecord,
)
from mail_sts.http_client import (
    HTTPAgent,
    HTTPResponse,
    HTTPXAgent,
)
from mail_sts.policy_cache import PolicyCache
from mail_sts.domain_resolver import (
    DomainResolver,
    MAX_CNAME_DEPTH,
)
from mail_sts.models import (
    DomainReport,
    PolicySummary,
)
from mail_sts.orchestrator import LookupOrchestrator

__all__ = [
    # Exceptions
    "MailSTSError",
    "ValidationError",
    "RetrievalError",
    "NoPolicyRecordError",
    "SizeLimitError",
    "ParseError",
    # Enums
    "RecordKind",
    "RecordType",
    "PolicyMode",
    "PolicyState",
    "LogLevel",
    "RetrievalErrorCode",
    "ParseErrorCode",
    "DomainValidationErrorCode",
    # Audit Logger
    "AuditLogger",
    "LogEntry",
    # Configuration
    "DEFAULT_MAX_POLICY_SIZE",
    "ResolverConfig",
    "HTTPConfig",
    "PolicyConfig",
    "LoggingConfig",
    "SystemConfig",
    "config_from_dict",
    "config_to_dict",
    "load_config_from_file",
    "load_config_from_env",
    # Records and policy
    "sskv",
    "STSRecord",
    "TLSRPTRecord",
    "PolicyDocument",
    # Domain Validator
    "DomainValidator",
    # Collaborators
    "DNSAnswer",
    "DNSResolver",
    "DNSPythonResolver",
    "ResourceRecord",
    "HTTPAgent",
    "HTTPResponse",
    "HTTPXAgent",
    # Resolution
    "PolicyCache",
    "DomainResolver",
    "MAX_CNAME_DEPTH",
    # Orchestrator
    "DomainReport",
    "PolicySummary",
    "LookupOrchestrator",
]
