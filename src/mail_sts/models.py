"""
Data models for lookup reports.

A DomainReport is a flat, JSON-ready summary of everything a
DomainResolver learned about one domain.
"""

from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass
class PolicySummary:
    """The fetched policy document plus its lifecycle metadata."""

    policy_id: Optional[str]
    version: str
    mode: str
    max_age: Optional[int]
    mx: list[str] = field(default_factory=list)
    expires_at: Optional[str] = None  # ISO 8601


@dataclass
class DomainReport:
    """Result of a complete domain lookup."""

    domain: str
    record_type: str
    primary: Optional[str]
    mx: list[str] = field(default_factory=list)
    is_primary_secure: bool = False
    secure: dict[str, bool] = field(default_factory=dict)  # record kind -> AD flag
    tlsa: Optional[str] = None
    sts: Optional[str] = None
    tlsrpt: Optional[str] = None
    policy: Optional[PolicySummary] = None
    errors: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return asdict(self)
