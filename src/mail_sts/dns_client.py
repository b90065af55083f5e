"""
DNS lookup collaborator for the domain resolver.

The resolver core only needs ``query(name, rdtype)`` returning an ordered
list of resource records plus the DNSSEC authenticated-data flag. This
module defines that contract and a dnspython-backed implementation.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, runtime_checkable

import dns.exception
import dns.flags
import dns.rdatatype
import dns.resolver

from .audit_logger import AuditLogger
from .config import ResolverConfig
from .enums import LogLevel


@dataclass
class ResourceRecord:
    """A single answer record, flattened to the fields lookups need."""

    name: str
    rtype: str
    text: str
    ttl: int = 0
    preference: Optional[int] = None  # MX
    exchange: Optional[str] = None  # MX
    target: Optional[str] = None  # CNAME
    txtdata: Optional[str] = None  # TXT, character-strings concatenated


@dataclass
class DNSAnswer:
    """
    Answer section of a DNS response.

    An answer with an empty ``records`` list is a NOERROR response without
    matching data; "no answer at all" is represented by None instead.
    """

    name: str
    rdtype: str
    records: list[ResourceRecord] = field(default_factory=list)
    authenticated: bool = False

    def of_type(self, rtype: str) -> list[ResourceRecord]:
        """Records of the given type, in answer order."""
        return [record for record in self.records if record.rtype == rtype]


@runtime_checkable
class DNSResolver(Protocol):
    """Anything that can answer a single DNS question."""

    def query(self, name: str, rdtype: str) -> Optional[DNSAnswer]:
        ...


class DNSPythonResolver:
    """
    DNS resolver backed by dnspython.

    CNAME records returned ahead of the final data stay in the record list
    so that the caller can chase them itself. RRSIG records are dropped.
    """

    # Responses that mean "no answer at all" rather than an error
    NO_ANSWER_EXCEPTIONS = (
        dns.resolver.NXDOMAIN,
        dns.resolver.NoAnswer,
        dns.resolver.NoNameservers,
        dns.resolver.YXDOMAIN,
        dns.exception.Timeout,
    )

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        resolver: Optional[dns.resolver.Resolver] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            config: Resolver settings (nameservers, timeouts, DNSSEC)
            resolver: Optional preconfigured dnspython resolver
            logger: Optional audit logger
        """
        self._config = config or ResolverConfig()
        self._logger = logger
        self._resolver = resolver or self._build_resolver(self._config)

    @staticmethod
    def _build_resolver(config: ResolverConfig) -> dns.resolver.Resolver:
        resolver = dns.resolver.Resolver()
        if config.nameservers:
            resolver.nameservers = list(config.nameservers)
        resolver.timeout = config.timeout
        resolver.lifetime = config.lifetime
        if config.dnssec:
            # RD recursion desired, AD ask for authenticated data
            resolver.set_flags(dns.flags.RD | dns.flags.AD)
            resolver.use_edns(0, dns.flags.DO, 1232)
        return resolver

    def query(self, name: str, rdtype: str) -> Optional[DNSAnswer]:
        """
        Query a name for one record type.

        Args:
            name: Owner name to query
            rdtype: Record type mnemonic (e.g. 'MX', 'TXT')

        Returns:
            DNSAnswer, or None if the name does not exist or no server answered
        """
        try:
            answer = self._resolver.resolve(
                name, rdtype, raise_on_no_answer=False, search=False
            )
        except self.NO_ANSWER_EXCEPTIONS as e:
            self._log(
                LogLevel.DEBUG,
                f"No answer for {name} {rdtype}",
                {"name": name, "rdtype": rdtype, "reason": type(e).__name__},
            )
            return None

        response = answer.response
        return DNSAnswer(
            name=name,
            rdtype=rdtype,
            records=self._convert_records(response.answer),
            authenticated=bool(response.flags & dns.flags.AD),
        )

    @staticmethod
    def _convert_records(rrsets: list[Any]) -> list[ResourceRecord]:
        records: list[ResourceRecord] = []
        for rrset in rrsets:
            if rrset.rdtype == dns.rdatatype.RRSIG:
                continue
            rtype = dns.rdatatype.to_text(rrset.rdtype)
            owner = rrset.name.to_text(omit_final_dot=True)
            for rdata in rrset:
                record = ResourceRecord(
                    name=owner,
                    rtype=rtype,
                    text=rdata.to_text(),
                    ttl=rrset.ttl,
                )
                if rtype == "MX":
                    record.preference = rdata.preference
                    record.exchange = rdata.exchange.to_text(omit_final_dot=True)
                elif rtype == "CNAME":
                    record.target = rdata.target.to_text(omit_final_dot=True)
                elif rtype == "TXT":
                    record.txtdata = b"".join(rdata.strings).decode(
                        "utf-8", errors="replace"
                    )
                records.append(record)
        return records

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "DNSPythonResolver", message, data)
