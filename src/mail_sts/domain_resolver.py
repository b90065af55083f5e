"""
Per-domain MTA-STS resolution.

A DomainResolver answers every question about how mail for one domain is
delivered: the MX topology, the primary MTA, its TLSA record, the
``_mta-sts`` and ``_smtp._tls`` TXT records and the DNSSEC status of each
answer. Lookups run on first access and are memoized; derived fields form
a dependency graph so that invalidating a raw answer also drops everything
computed from it.

Example::

    resolver = DomainResolver("example.com", DNSPythonResolver(), HTTPXAgent())
    resolver.record_type()   # RecordType.MX
    resolver.primary()       # 'mta1.example.com'
    resolver.policy().mode   # 'enforce'
"""

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from .audit_logger import AuditLogger
from .config import DEFAULT_MAX_POLICY_SIZE
from .dns_client import DNSAnswer, DNSResolver, ResourceRecord
from .domain_validator import DomainValidator
from .enums import LogLevel, PolicyState, RecordKind, RecordType
from .http_client import HTTPAgent
from .policy import PolicyDocument
from .policy_cache import PolicyCache
from .records import STSRecord, TLSRPTRecord

# Longest CNAME chain followed before a lookup is treated as unanswered
MAX_CNAME_DEPTH = 20


@dataclass(frozen=True)
class LookupSpec:
    """How one record kind is queried."""

    rdtypes: tuple[str, ...]
    name: Callable[[str], str]
    source: str  # 'domain' or 'primary'


LOOKUPS: dict[RecordKind, LookupSpec] = {
    RecordKind.MX: LookupSpec(("MX",), lambda n: n, "domain"),
    RecordKind.A: LookupSpec(("AAAA", "A"), lambda n: n, "domain"),
    RecordKind.TLSA: LookupSpec(("TLSA",), lambda n: f"_25._tcp.{n}", "primary"),
    RecordKind.STS: LookupSpec(("TXT",), lambda n: f"_mta-sts.{n}", "domain"),
    RecordKind.TLSRPT: LookupSpec(("TXT",), lambda n: f"_smtp._tls.{n}", "domain"),
}


def _answer_field(kind: RecordKind) -> str:
    return f"answer.{kind.value}"


# Memoized field -> fields computed from it
DEPENDENTS: dict[str, tuple[str, ...]] = {
    _answer_field(RecordKind.MX): ("mx",),
    _answer_field(RecordKind.A): ("a",),
    "mx": ("record_type",),
    "a": ("record_type",),
    "record_type": ("primary",),
    "primary": (_answer_field(RecordKind.TLSA),),
    _answer_field(RecordKind.TLSA): ("tlsa",),
    _answer_field(RecordKind.STS): ("sts",),
    _answer_field(RecordKind.TLSRPT): ("tlsrpt",),
}

MEMOIZED_FIELDS = frozenset(DEPENDENTS) | frozenset(
    dependent for dependents in DEPENDENTS.values() for dependent in dependents
)


class DomainResolver:
    """
    Lazily resolved MTA-STS view of a single mail domain.

    Every accessor computes its value at most once. ``invalidate()`` clears
    a field together with its dependents; the policy lifecycle lives in the
    owned PolicyCache and is reached through the policy accessors below.
    """

    def __init__(
        self,
        domain: str,
        resolver: DNSResolver,
        agent: HTTPAgent,
        max_policy_size: Optional[int] = DEFAULT_MAX_POLICY_SIZE,
        logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        missing_max_age: Optional[int] = None,
    ) -> None:
        """
        Initialize the resolver for one domain.

        Args:
            domain: Mail domain to resolve (canonicalized on construction)
            resolver: DNS collaborator
            agent: HTTPS collaborator used for policy retrieval
            max_policy_size: Largest accepted policy body in bytes, None for no limit
            logger: Optional audit logger
            clock: Optional UTC clock used for policy expiry
            missing_max_age: Lifetime in seconds for policies without max_age

        Raises:
            ValidationError: If the domain name is malformed
        """
        self._domain = DomainValidator().canonicalize(domain)
        self._resolver = resolver
        self._logger = logger
        self._cache: dict[str, Any] = {}
        self._lock = threading.RLock()
        self._policy_cache = PolicyCache(
            self,
            agent,
            max_policy_size=max_policy_size,
            logger=logger,
            clock=clock,
            missing_max_age=missing_max_age,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(domain={self._domain!r})"

    @property
    def domain(self) -> str:
        """Canonical domain name."""
        return self._domain

    @property
    def policy_cache(self) -> PolicyCache:
        return self._policy_cache

    # Memoization

    def _memoized(self, field_name: str, compute: Callable[[], Any]) -> Any:
        with self._lock:
            if field_name not in self._cache:
                self._cache[field_name] = compute()
            return self._cache[field_name]

    def is_cached(self, field_name: str) -> bool:
        """Whether a memoized field currently holds a computed value."""
        with self._lock:
            return field_name in self._cache

    def invalidate(self, field_name: str) -> None:
        """
        Drop a memoized field and every field derived from it.

        Args:
            field_name: A field such as 'sts', 'primary' or 'answer.sts'

        Raises:
            ValueError: If the field is not memoized
        """
        if field_name not in MEMOIZED_FIELDS:
            raise ValueError(f"Unknown memoized field: {field_name}")

        with self._lock:
            pending = [field_name]
            while pending:
                current = pending.pop()
                self._cache.pop(current, None)
                pending.extend(DEPENDENTS.get(current, ()))

    # Raw lookups

    def answer(self, kind: RecordKind) -> Optional[DNSAnswer]:
        """
        The terminal DNS answer for one record kind, or None.

        The query name derives from the domain, or from primary() for TLSA;
        without a primary MTA the TLSA lookup is not issued at all.
        """
        return self._memoized(_answer_field(kind), lambda: self._lookup(kind))

    def _lookup(self, kind: RecordKind) -> Optional[DNSAnswer]:
        spec = LOOKUPS[kind]
        base = self._domain if spec.source == "domain" else self.primary()
        if base is None:
            return None

        name = spec.name(base)
        fallback: Optional[DNSAnswer] = None
        for rdtype in spec.rdtypes:
            answer = self._resolve_chased(name, rdtype)
            if answer is not None and answer.records:
                return answer
            if answer is not None:
                fallback = answer
        return fallback

    def _resolve_chased(self, name: str, rdtype: str) -> Optional[DNSAnswer]:
        """Query name/rdtype, re-querying CNAME targets up to MAX_CNAME_DEPTH hops."""
        current = name
        depth = 0
        while True:
            self._log(LogLevel.DEBUG, f"Querying {current} {rdtype}", {"depth": depth})
            answer = self._resolver.query(current, rdtype)
            if answer is None or not answer.records:
                return answer

            first = answer.records[0]
            if first.rtype != "CNAME":
                return answer

            depth += 1
            if depth > MAX_CNAME_DEPTH:
                self._log(
                    LogLevel.WARN,
                    f"CNAME chain for {name} {rdtype} exceeds {MAX_CNAME_DEPTH} hops",
                    {"name": name, "rdtype": rdtype, "last": current},
                )
                return None
            current = first.target

    def _is_secure(self, kind: RecordKind) -> bool:
        answer = self.answer(kind)
        return answer is not None and answer.authenticated

    # Derived fields

    def mx(self) -> list[str]:
        """MX exchange hostnames, lowest preference first, answer order on ties."""
        return self._memoized("mx", self._compute_mx)

    def _compute_mx(self) -> list[str]:
        answer = self.answer(RecordKind.MX)
        if answer is None:
            return []
        records = sorted(answer.of_type("MX"), key=lambda r: r.preference or 0)
        return [record.exchange for record in records]

    def mx_count(self) -> int:
        return len(self.mx())

    def a(self) -> Optional[str]:
        """The domain itself if it has an AAAA or A record, otherwise None."""
        return self._memoized("a", self._compute_a)

    def _compute_a(self) -> Optional[str]:
        answer = self.answer(RecordKind.A)
        if answer is not None and (answer.of_type("AAAA") or answer.of_type("A")):
            return self._domain
        return None

    def record_type(self) -> RecordType:
        return self._memoized("record_type", self._compute_record_type)

    def _compute_record_type(self) -> RecordType:
        if self.mx():
            return RecordType.MX
        if self.a() is not None:
            return RecordType.A
        return RecordType.NON_EXISTENT

    def primary(self) -> Optional[str]:
        """Hostname of the primary MTA: first MX, else the domain, else None."""
        return self._memoized("primary", self._compute_primary)

    def _compute_primary(self) -> Optional[str]:
        record_type = self.record_type()
        if record_type is RecordType.MX:
            return self.mx()[0]
        if record_type is RecordType.A:
            return self.a()
        return None

    def tlsa(self) -> Optional[ResourceRecord]:
        """First TLSA record at ``_25._tcp.<primary>``."""
        return self._memoized("tlsa", self._compute_tlsa)

    def _compute_tlsa(self) -> Optional[ResourceRecord]:
        answer = self.answer(RecordKind.TLSA)
        if answer is None:
            return None
        records = answer.of_type("TLSA")
        return records[0] if records else None

    def tlsrpt(self) -> Optional[TLSRPTRecord]:
        """The ``_smtp._tls`` TXT record, or None if absent or malformed."""
        return self._memoized(
            "tlsrpt", lambda: self._decode_txt(RecordKind.TLSRPT, TLSRPTRecord)
        )

    def sts(self) -> Optional[STSRecord]:
        """The ``_mta-sts`` TXT record, or None if absent or malformed."""
        return self._memoized(
            "sts", lambda: self._decode_txt(RecordKind.STS, STSRecord)
        )

    def _decode_txt(self, kind: RecordKind, record_class: type) -> Any:
        answer = self.answer(kind)
        if answer is None:
            return None
        records = answer.of_type("TXT")
        if not records:
            return None

        text = records[0].txtdata or ""
        record = record_class.from_string(text)
        if record is None:
            self._log(
                LogLevel.WARN,
                f"Ignoring malformed {kind.value} TXT record for {self._domain}",
                {"txt": text},
            )
        return record

    # DNSSEC flags

    def is_mx_secure(self) -> bool:
        return self._is_secure(RecordKind.MX)

    def is_a_secure(self) -> bool:
        return self._is_secure(RecordKind.A)

    def is_tlsa_secure(self) -> bool:
        return self._is_secure(RecordKind.TLSA)

    def is_sts_secure(self) -> bool:
        return self._is_secure(RecordKind.STS)

    def is_tlsrpt_secure(self) -> bool:
        return self._is_secure(RecordKind.TLSRPT)

    def is_primary_secure(self) -> bool:
        """DNSSEC status of the lookup that decided record_type()."""
        record_type = self.record_type()
        if record_type is RecordType.MX:
            return self.is_mx_secure()
        if record_type is RecordType.A:
            return self.is_a_secure()
        return False

    # Policy lifecycle

    def policy(self) -> PolicyDocument:
        return self._policy_cache.policy()

    def retrieve_policy(self) -> PolicyDocument:
        return self._policy_cache.retrieve_policy()

    def is_policy_expired(self) -> bool:
        return self._policy_cache.is_policy_expired()

    def check_policy_update(self) -> bool:
        return self._policy_cache.check_policy_update()

    @property
    def policy_id(self) -> Optional[str]:
        return self._policy_cache.policy_id

    @property
    def policy_expires_at(self) -> Optional[datetime]:
        return self._policy_cache.policy_expires_at

    @property
    def policy_state(self) -> PolicyState:
        return self._policy_cache.state

    @property
    def max_policy_size(self) -> Optional[int]:
        return self._policy_cache.max_policy_size

    @max_policy_size.setter
    def max_policy_size(self, value: Optional[int]) -> None:
        self._policy_cache.max_policy_size = value

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "DomainResolver", message, data)
