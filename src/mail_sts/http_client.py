"""
HTTPS collaborator for policy retrieval.

Policy documents are fetched with a plain GET. This module defines the
response shape the policy cache consumes and an httpx-backed agent that
enforces TLS, never follows redirects (RFC 8461, section 3.3) and stops
reading a body once it exceeds the configured size.
"""

from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable
from urllib.parse import urlparse

import httpx

from . import __version__
from .config import DEFAULT_MAX_POLICY_SIZE, HTTPConfig
from .enums import RetrievalErrorCode
from .exceptions import RetrievalError


@dataclass
class HTTPResponse:
    """Result of a GET request with the body decoded as text."""

    status_code: int
    status_line: str
    body: str
    url: str = ""
    truncated: bool = False  # body cut off after the agent's byte limit

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


@runtime_checkable
class HTTPAgent(Protocol):
    """Anything that can GET a URL."""

    def get(self, url: str) -> HTTPResponse:
        ...


class HTTPXAgent:
    """
    Synchronous HTTPS agent built on httpx.

    Usable as a context manager; the underlying client is created lazily
    on the first request otherwise.
    """

    def __init__(
        self,
        config: Optional[HTTPConfig] = None,
        max_body_size: Optional[int] = DEFAULT_MAX_POLICY_SIZE,
    ) -> None:
        """
        Initialize the agent.

        Args:
            config: HTTP settings (timeout, TLS verification, user agent)
            max_body_size: Bytes read before a body is cut off and marked
                truncated; None reads bodies completely
        """
        self._config = config or HTTPConfig()
        self._max_body_size = max_body_size
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> "HTTPXAgent":
        self._ensure_client()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def user_agent(self) -> str:
        return self._config.user_agent or f"mail-sts/{__version__}"

    @property
    def max_body_size(self) -> Optional[int]:
        return self._max_body_size

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                verify=self._config.verify_tls,
                timeout=httpx.Timeout(self._config.timeout),
                follow_redirects=False,
                headers={"User-Agent": self.user_agent},
            )
        return self._client

    def _validate_url(self, url: str) -> None:
        parsed = urlparse(url)
        if parsed.scheme.lower() != "https":
            raise RetrievalError(
                code=RetrievalErrorCode.TLS_ERROR.value,
                message=f"Policy URL must use HTTPS: {url}",
                details={"url": url, "scheme": parsed.scheme},
            )

    def _read_body(self, response: httpx.Response) -> tuple[str, bool]:
        """Read at most max_body_size + 1 bytes so oversized bodies stay detectable."""
        limit = self._max_body_size
        body = bytearray()
        truncated = False
        for chunk in response.iter_bytes():
            body.extend(chunk)
            if limit is not None and len(body) > limit:
                del body[limit + 1:]
                truncated = True
                break
        encoding = response.charset_encoding or "utf-8"
        try:
            return bytes(body).decode(encoding, errors="replace"), truncated
        except LookupError:
            # Unknown charset in Content-Type
            return bytes(body).decode("utf-8", errors="replace"), truncated

    def get(self, url: str) -> HTTPResponse:
        """
        GET a URL over HTTPS.

        Args:
            url: The https:// URL to fetch

        Returns:
            HTTPResponse for any HTTP status, including errors

        Raises:
            RetrievalError: On non-HTTPS URLs, timeouts, TLS or connection failures
        """
        self._validate_url(url)
        client = self._ensure_client()

        try:
            with client.stream("GET", url) as response:
                body, truncated = self._read_body(response)
        except httpx.TimeoutException as e:
            raise RetrievalError(
                code=RetrievalErrorCode.TIMEOUT.value,
                message=f"Request to {url} timed out after {self._config.timeout}s",
                details={"url": url, "error": str(e)},
            )
        except httpx.ConnectError as e:
            error_msg = str(e)
            code = RetrievalErrorCode.NETWORK_ERROR
            if "ssl" in error_msg.lower() or "certificate" in error_msg.lower():
                code = RetrievalErrorCode.TLS_ERROR
            raise RetrievalError(
                code=code.value,
                message=f"Connection error for {url}: {error_msg}",
                details={"url": url, "error": error_msg},
            )
        except httpx.HTTPError as e:
            raise RetrievalError(
                code=RetrievalErrorCode.NETWORK_ERROR.value,
                message=f"Request to {url} failed: {e}",
                details={"url": url, "error": str(e)},
            )

        return HTTPResponse(
            status_code=response.status_code,
            status_line=f"{response.status_code} {response.reason_phrase}".rstrip(),
            body=body,
            url=url,
            truncated=truncated,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None
