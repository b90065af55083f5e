"""
Tests for the dnspython-backed resolver.

Responses are real dnspython messages parsed from zone-file text, served
through a mocked ``resolve`` so no network access is needed.
"""

from unittest.mock import MagicMock

import dns.exception
import dns.message
import dns.resolver
import pytest

from mail_sts.dns_client import DNSAnswer, DNSPythonResolver, DNSResolver
from mail_sts.testing import StaticResolver


def make_answer(message_text: str) -> MagicMock:
    answer = MagicMock()
    answer.response = dns.message.from_text(message_text)
    return answer


def make_resolver(answer=None, side_effect=None) -> tuple[DNSPythonResolver, MagicMock]:
    backend = MagicMock()
    backend.resolve.return_value = answer
    if side_effect is not None:
        backend.resolve.side_effect = side_effect
    return DNSPythonResolver(resolver=backend), backend


MX_RESPONSE = """id 1
opcode QUERY
rcode NOERROR
flags QR RD RA AD
;QUESTION
example.com. IN MX
;ANSWER
example.com. 300 IN MX 20 mx2.example.com.
example.com. 300 IN MX 10 mx1.example.com.
"""

CNAME_RESPONSE = """id 2
opcode QUERY
rcode NOERROR
flags QR RD RA
;QUESTION
www.example.com. IN A
;ANSWER
www.example.com. 60 IN CNAME host.example.net.
host.example.net. 60 IN A 192.0.2.1
"""

TXT_RESPONSE = """id 3
opcode QUERY
rcode NOERROR
flags QR RD RA AD
;QUESTION
_mta-sts.example.com. IN TXT
;ANSWER
_mta-sts.example.com. 300 IN TXT "v=STSv1; " "id=20240101;"
_mta-sts.example.com. 300 IN RRSIG TXT 13 3 300 20300101000000 20240101000000 12345 example.com. AAAA
"""

EMPTY_RESPONSE = """id 4
opcode QUERY
rcode NOERROR
flags QR RD RA
;QUESTION
example.com. IN TLSA
;ANSWER
"""


class TestDNSPythonResolver:
    """Conversion of dnspython responses."""

    def test_mx_records_keep_answer_order(self) -> None:
        resolver, _ = make_resolver(make_answer(MX_RESPONSE))

        answer = resolver.query("example.com", "MX")

        assert isinstance(answer, DNSAnswer)
        assert [r.exchange for r in answer.records] == [
            "mx2.example.com",
            "mx1.example.com",
        ]
        assert [r.preference for r in answer.records] == [20, 10]
        assert answer.records[0].ttl == 300
        assert answer.records[0].name == "example.com"

    def test_ad_flag_sets_authenticated(self) -> None:
        resolver, _ = make_resolver(make_answer(MX_RESPONSE))

        assert resolver.query("example.com", "MX").authenticated is True

    def test_missing_ad_flag_is_unauthenticated(self) -> None:
        resolver, _ = make_resolver(make_answer(CNAME_RESPONSE))

        assert resolver.query("www.example.com", "A").authenticated is False

    def test_cname_comes_first_with_target(self) -> None:
        resolver, _ = make_resolver(make_answer(CNAME_RESPONSE))

        answer = resolver.query("www.example.com", "A")

        assert answer.records[0].rtype == "CNAME"
        assert answer.records[0].target == "host.example.net"
        assert answer.records[1].rtype == "A"
        assert answer.records[1].text == "192.0.2.1"

    def test_txt_strings_joined_and_rrsig_dropped(self) -> None:
        resolver, _ = make_resolver(make_answer(TXT_RESPONSE))

        answer = resolver.query("_mta-sts.example.com", "TXT")

        assert [r.rtype for r in answer.records] == ["TXT"]
        assert answer.records[0].txtdata == "v=STSv1; id=20240101;"

    def test_empty_answer_is_not_none(self) -> None:
        resolver, _ = make_resolver(make_answer(EMPTY_RESPONSE))

        answer = resolver.query("example.com", "TLSA")

        assert answer is not None
        assert answer.records == []

    @pytest.mark.parametrize(
        "error",
        [dns.resolver.NXDOMAIN(), dns.resolver.NoAnswer(), dns.exception.Timeout()],
    )
    def test_lookup_failures_mean_no_answer(self, error: Exception) -> None:
        resolver, _ = make_resolver(side_effect=error)

        assert resolver.query("nothing.example", "MX") is None

    def test_resolve_is_called_without_search_list(self) -> None:
        resolver, backend = make_resolver(make_answer(MX_RESPONSE))

        resolver.query("example.com", "MX")

        backend.resolve.assert_called_once_with(
            "example.com", "MX", raise_on_no_answer=False, search=False
        )


class TestResolverProtocol:
    """Both resolvers satisfy the DNSResolver protocol."""

    def test_dnspython_resolver(self) -> None:
        resolver, _ = make_resolver()
        assert isinstance(resolver, DNSResolver)

    def test_static_resolver(self) -> None:
        assert isinstance(StaticResolver(), DNSResolver)
