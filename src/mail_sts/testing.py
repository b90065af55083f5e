"""
In-memory collaborators for exercising resolvers without network access.

StaticResolver serves DNS answers from a table and StaticAgent serves HTTP
responses by URL. Both record every request so that tests can assert on
what was asked and how often.
"""

from typing import Optional

from .dns_client import DNSAnswer, ResourceRecord
from .http_client import HTTPResponse

_REASONS = {
    200: "OK",
    301: "Moved Permanently",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


class StaticResolver:
    """DNS resolver answering from a (name, rdtype) table."""

    def __init__(self) -> None:
        self._answers: dict[tuple[str, str], DNSAnswer] = {}
        self._cnames: dict[str, tuple[str, bool]] = {}
        self.queries: list[tuple[str, str]] = []

    def query(self, name: str, rdtype: str) -> Optional[DNSAnswer]:
        name = name.lower()
        self.queries.append((name, rdtype))
        if name in self._cnames:
            target, authenticated = self._cnames[name]
            return DNSAnswer(
                name=name,
                rdtype=rdtype,
                records=[ResourceRecord(name=name, rtype="CNAME", text=f"{target}.", target=target)],
                authenticated=authenticated,
            )
        return self._answers.get((name, rdtype))

    def query_count(self, name: str, rdtype: str) -> int:
        return self.queries.count((name.lower(), rdtype))

    def set_answer(
        self,
        name: str,
        rdtype: str,
        records: list[ResourceRecord],
        authenticated: bool = False,
    ) -> DNSAnswer:
        answer = DNSAnswer(
            name=name.lower(),
            rdtype=rdtype,
            records=list(records),
            authenticated=authenticated,
        )
        self._answers[(name.lower(), rdtype)] = answer
        return answer

    def remove(self, name: str, rdtype: str) -> None:
        self._answers.pop((name.lower(), rdtype), None)

    def add_mx(
        self,
        name: str,
        exchanges: list[tuple[int, str]],
        authenticated: bool = False,
    ) -> DNSAnswer:
        """Add an MX answer from (preference, exchange) pairs, in answer order."""
        records = [
            ResourceRecord(
                name=name,
                rtype="MX",
                text=f"{preference} {exchange}.",
                preference=preference,
                exchange=exchange,
            )
            for preference, exchange in exchanges
        ]
        return self.set_answer(name, "MX", records, authenticated)

    def add_address(
        self,
        name: str,
        address: str,
        rdtype: str = "A",
        authenticated: bool = False,
    ) -> DNSAnswer:
        record = ResourceRecord(name=name, rtype=rdtype, text=address)
        return self.set_answer(name, rdtype, [record], authenticated)

    def add_txt(self, name: str, text: str, authenticated: bool = False) -> DNSAnswer:
        record = ResourceRecord(name=name, rtype="TXT", text=f'"{text}"', txtdata=text)
        return self.set_answer(name, "TXT", [record], authenticated)

    def add_tlsa(self, name: str, data: str, authenticated: bool = False) -> DNSAnswer:
        record = ResourceRecord(name=name, rtype="TLSA", text=data)
        return self.set_answer(name, "TLSA", [record], authenticated)

    def add_cname(self, name: str, target: str, authenticated: bool = False) -> None:
        """Make every query for name answer with a CNAME to target."""
        self._cnames[name.lower()] = (target.lower(), authenticated)


class StaticAgent:
    """HTTP agent answering GET requests from a URL table."""

    def __init__(self) -> None:
        self._responses: dict[str, HTTPResponse] = {}
        self.requests: list[str] = []

    def set_response(self, url: str, body: str, status_code: int = 200) -> HTTPResponse:
        reason = _REASONS.get(status_code, "")
        response = HTTPResponse(
            status_code=status_code,
            status_line=f"{status_code} {reason}".rstrip(),
            body=body,
            url=url,
        )
        self._responses[url] = response
        return response

    def set_policy(self, domain: str, body: str, status_code: int = 200) -> HTTPResponse:
        url = f"https://mta-sts.{domain}/.well-known/mta-sts.txt"
        return self.set_response(url, body, status_code)

    def get(self, url: str) -> HTTPResponse:
        self.requests.append(url)
        if url in self._responses:
            return self._responses[url]
        return HTTPResponse(status_code=404, status_line="404 Not Found", body="", url=url)
