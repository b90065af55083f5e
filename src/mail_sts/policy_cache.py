"""
Policy lifecycle for one mail domain.

The cache fetches the MTA-STS policy document over HTTPS, enforces the
maximum document size, tracks expiry from the policy's ``max_age`` and
detects upstream changes by comparing the ``id`` of the ``_mta-sts`` TXT
record across checks.

States::

    unfetched -> valid -> expired -> (refreshing ->) valid | error
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Optional

from .audit_logger import AuditLogger
from .config import DEFAULT_MAX_POLICY_SIZE
from .enums import LogLevel, PolicyState, RetrievalErrorCode
from .exceptions import MailSTSError, NoPolicyRecordError, RetrievalError, SizeLimitError
from .http_client import HTTPAgent
from .policy import PolicyDocument

if TYPE_CHECKING:
    from .domain_resolver import DomainResolver

POLICY_URL_TEMPLATE = "https://mta-sts.{domain}/.well-known/mta-sts.txt"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PolicyCache:
    """
    Holds the current policy of a domain and decides when it must be refreshed.

    The cache never refreshes on its own: callers ask ``check_policy_update()``
    and fetch again through ``policy()`` when it reports a new policy id.
    """

    COMPONENT = "PolicyCache"

    def __init__(
        self,
        domain: "DomainResolver",
        agent: HTTPAgent,
        max_policy_size: Optional[int] = DEFAULT_MAX_POLICY_SIZE,
        logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
        missing_max_age: Optional[int] = None,
    ) -> None:
        """
        Initialize the cache.

        Args:
            domain: The resolver whose ``sts()`` record gates retrieval
            agent: HTTPS collaborator
            max_policy_size: Largest accepted body in bytes, None disables the check
            logger: Optional audit logger
            clock: Returns the current UTC time
            missing_max_age: Seconds of validity for a policy without max_age;
                None makes such a policy expire at its fetch time
        """
        self._domain = domain
        self._agent = agent
        self.max_policy_size = max_policy_size
        self._logger = logger
        self._clock = clock or utc_now
        self._missing_max_age = missing_max_age

        self._policy: Optional[PolicyDocument] = None
        self._policy_id: Optional[str] = None
        self._policy_expires_at: Optional[datetime] = None
        self._failed = False
        self._refreshing = False
        self._lock = threading.RLock()

    @property
    def url(self) -> str:
        return POLICY_URL_TEMPLATE.format(domain=self._domain.domain)

    @property
    def policy_id(self) -> Optional[str]:
        """The STS record id the current policy was fetched under."""
        return self._policy_id

    @property
    def policy_expires_at(self) -> Optional[datetime]:
        return self._policy_expires_at

    @property
    def cached_policy(self) -> Optional[PolicyDocument]:
        """The held policy document without triggering a fetch."""
        return self._policy

    @property
    def state(self) -> PolicyState:
        if self._refreshing:
            return PolicyState.REFRESHING
        if self._failed:
            return PolicyState.ERROR
        if self._policy is None:
            return PolicyState.UNFETCHED
        if self.is_policy_expired():
            return PolicyState.EXPIRED
        return PolicyState.VALID

    def policy(self) -> PolicyDocument:
        """
        Return the cached policy, fetching it on first use.

        Raises:
            NoPolicyRecordError: If the domain has no ``_mta-sts`` TXT record
            SizeLimitError: If the document exceeds max_policy_size
            RetrievalError: On a non-success HTTP status or transport failure
            ParseError: If the document is malformed
        """
        if self._policy is not None:
            return self._policy

        with self._lock:
            # Another caller may have fetched while this one waited
            if self._policy is not None:
                return self._policy

            sts = self._domain.sts()
            if sts is None:
                self._failed = True
                raise self._no_record_error()

            try:
                policy = self.retrieve_policy()
            except MailSTSError:
                self._failed = True
                raise

            self._policy_id = sts.id
            self.set_policy_expire(policy.max_age)
            self._failed = False
            self._policy = policy

            if not policy.has_known_mode():
                self._log(
                    LogLevel.WARN,
                    f"Policy for {self._domain.domain} has unknown mode {policy.mode!r}",
                    {"mode": policy.mode, "policy_id": sts.id},
                )
            self._log(
                LogLevel.INFO,
                f"Policy for {self._domain.domain} fetched",
                {
                    "policy_id": sts.id,
                    "mode": policy.mode,
                    "max_age": policy.max_age,
                    "expires_at": self._policy_expires_at.isoformat(),
                },
            )
            return policy

    def retrieve_policy(self) -> PolicyDocument:
        """
        Fetch and parse the policy document without touching cache state.

        Raises:
            SizeLimitError: If the body is larger than max_policy_size or was
                cut off by the agent's own body limit
            RetrievalError: If the response status is not a success
            ParseError: If the document is malformed
        """
        url = self.url
        self._log(LogLevel.DEBUG, f"Retrieving policy from {url}", {"url": url})
        response = self._agent.get(url)

        size = len(response.body.encode("utf-8"))
        too_large = self.max_policy_size is not None and size > self.max_policy_size
        if too_large or response.truncated:
            error = SizeLimitError(
                code=RetrievalErrorCode.SIZE_LIMIT.value,
                message="policy exceeding maximum policy size limit",
                details={
                    "url": url,
                    "size": size,
                    "limit": self.max_policy_size,
                    "truncated": response.truncated,
                },
            )
            self._log_error(error, url, response.status_code)
            raise error

        if not response.is_success:
            error = RetrievalError(
                code=RetrievalErrorCode.HTTP_ERROR.value,
                message=f"could not retrieve policy: {response.status_line}",
                details={
                    "url": url,
                    "status_code": response.status_code,
                    "status_line": response.status_line,
                },
            )
            self._log_error(error, url, response.status_code)
            raise error

        return PolicyDocument.parse(response.body)

    def set_policy_expire(self, max_age: Optional[int]) -> datetime:
        """Set the expiry to now + max_age seconds and return it."""
        if max_age is None:
            max_age = self._missing_max_age
            self._log(
                LogLevel.WARN,
                f"Policy for {self._domain.domain} has no max_age",
                {"lifetime_seconds": max_age or 0},
            )
        self._policy_expires_at = self._clock() + timedelta(seconds=max_age or 0)
        return self._policy_expires_at

    def is_policy_expired(self) -> bool:
        """True once the clock has passed the expiry, or if nothing was fetched."""
        if self._policy_expires_at is None:
            return True
        return self._clock() > self._policy_expires_at

    def check_policy_update(self) -> bool:
        """
        Check whether an expired policy has been replaced upstream.

        Returns False while the policy is still fresh. Otherwise re-resolves
        the ``_mta-sts`` TXT record: an unchanged id extends the current
        policy's lifetime, a new id drops the cached policy so the next
        ``policy()`` call fetches it again.

        Returns:
            True if a new policy id was found

        Raises:
            NoPolicyRecordError: If the ``_mta-sts`` record has disappeared
        """
        with self._lock:
            if not self.is_policy_expired():
                return False

            self._refreshing = True
            try:
                self._domain.invalidate("answer.sts")
                sts = self._domain.sts()
            finally:
                self._refreshing = False

            if sts is None:
                self._failed = True
                raise self._no_record_error()

            if sts.id == self._policy_id and self._policy is not None:
                self.set_policy_expire(self._policy.max_age)
                self._failed = False
                self._log(
                    LogLevel.INFO,
                    f"Policy id for {self._domain.domain} unchanged, expiry extended",
                    {"policy_id": sts.id, "expires_at": self._policy_expires_at.isoformat()},
                )
                return False

            self._log(
                LogLevel.INFO,
                f"New policy id for {self._domain.domain}",
                {"old_policy_id": self._policy_id, "new_policy_id": sts.id},
            )
            self.reset()
            return True

    def reset(self) -> None:
        """Forget the cached policy, its id and its expiry."""
        with self._lock:
            self._policy = None
            self._policy_id = None
            self._policy_expires_at = None
            self._failed = False

    def _no_record_error(self) -> NoPolicyRecordError:
        error = NoPolicyRecordError(
            code=RetrievalErrorCode.NO_STS_RECORD.value,
            message="could not retrieve _mta-sts record",
            details={"domain": self._domain.domain},
        )
        self._log_error(error, None, None)
        return error

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, self.COMPONENT, message, data)

    def _log_error(
        self,
        error: Exception,
        url: Optional[str],
        status_code: Optional[int],
    ) -> None:
        if self._logger:
            self._logger.log_error(
                self.COMPONENT,
                str(error),
                error=error,
                request_url=url,
                response_status_code=status_code,
            )
