"""
Lookup orchestrator for the MTA-STS lookup library.

Owns the DNS and HTTPS collaborators built from a SystemConfig, hands out
DomainResolver instances for validated domain names and condenses a full
lookup into a DomainReport.
"""

import time
from typing import Optional

from .audit_logger import AuditLogger
from .config import SystemConfig
from .dns_client import DNSPythonResolver, DNSResolver
from .domain_resolver import DomainResolver
from .domain_validator import DomainValidator
from .enums import LogLevel, RecordKind
from .exceptions import MailSTSError
from .http_client import HTTPAgent, HTTPXAgent
from .models import DomainReport, PolicySummary


class LookupOrchestrator:
    """
    Entry point for resolving MTA-STS information for many domains.

    Collaborators that are not injected are created from the configuration;
    an HTTPXAgent created here is closed when the orchestrator is closed.
    """

    def __init__(
        self,
        config: Optional[SystemConfig] = None,
        resolver: Optional[DNSResolver] = None,
        agent: Optional[HTTPAgent] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: System configuration (defaults apply when omitted)
            resolver: Optional DNS collaborator
            agent: Optional HTTPS collaborator
            logger: Optional audit logger
        """
        self._config = config or SystemConfig()
        self._logger = logger
        self._domain_validator = DomainValidator()
        self._resolver = resolver or DNSPythonResolver(self._config.resolver, logger=logger)
        self._owns_agent = agent is None
        self._agent = agent or HTTPXAgent(
            self._config.http,
            max_body_size=self._config.policy.max_policy_size,
        )

    def __enter__(self) -> "LookupOrchestrator":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def config(self) -> SystemConfig:
        return self._config

    def domain(self, name: str) -> DomainResolver:
        """
        Create a resolver for one domain.

        Raises:
            ValidationError: If the name is not a valid domain
        """
        canonical = self._domain_validator.canonicalize(name)
        return DomainResolver(
            canonical,
            self._resolver,
            self._agent,
            max_policy_size=self._config.policy.max_policy_size,
            logger=self._logger,
            missing_max_age=self._config.policy.missing_max_age,
        )

    def lookup(self, name: str, fetch_policy: bool = True) -> DomainReport:
        """
        Resolve everything about a domain into a report.

        Policy failures are collected in ``errors`` instead of being raised.

        Raises:
            ValidationError: If the name is not a valid domain
        """
        start_time = time.perf_counter()
        resolver = self.domain(name)

        self._log_info(
            f"Starting lookup for {resolver.domain}",
            {"raw_domain": name, "canonical": resolver.domain},
        )

        tlsa = resolver.tlsa()
        sts = resolver.sts()
        tlsrpt = resolver.tlsrpt()

        report = DomainReport(
            domain=resolver.domain,
            record_type=resolver.record_type().value,
            primary=resolver.primary(),
            mx=resolver.mx(),
            is_primary_secure=resolver.is_primary_secure(),
            secure={
                RecordKind.MX.value: resolver.is_mx_secure(),
                RecordKind.A.value: resolver.is_a_secure(),
                RecordKind.TLSA.value: resolver.is_tlsa_secure(),
                RecordKind.STS.value: resolver.is_sts_secure(),
                RecordKind.TLSRPT.value: resolver.is_tlsrpt_secure(),
            },
            tlsa=tlsa.text if tlsa is not None else None,
            sts=sts.as_string() if sts is not None else None,
            tlsrpt=tlsrpt.as_string() if tlsrpt is not None else None,
        )

        if fetch_policy and sts is not None:
            try:
                policy = resolver.policy()
            except MailSTSError as e:
                report.errors.append(f"{e.code}: {e.message}")
            else:
                report.policy = PolicySummary(
                    policy_id=resolver.policy_id,
                    version=policy.version,
                    mode=policy.mode,
                    max_age=policy.max_age,
                    mx=policy.effective_mx(),
                    expires_at=resolver.policy_expires_at.isoformat(),
                )

        report.duration_ms = (time.perf_counter() - start_time) * 1000
        self._log_info(
            f"Lookup completed for {resolver.domain}: {report.record_type}",
            {"primary": report.primary, "errors": report.errors},
        )
        return report

    def close(self) -> None:
        if self._owns_agent and isinstance(self._agent, HTTPXAgent):
            self._agent.close()

    def _log_info(self, message: str, data: dict) -> None:
        """Log an info message if logger is available."""
        if self._logger:
            self._logger.log(LogLevel.INFO, "LookupOrchestrator", message, data)
