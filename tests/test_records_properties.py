"""
Tests for the STS and TLSRPT TXT record types.
"""

import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mail_sts.exceptions import ParseError
from mail_sts.records import STSRecord, TLSRPTRecord


class TestSTSRecord:
    """Parsing and formatting of the _mta-sts TXT record."""

    def test_parses_version_and_id(self) -> None:
        record = STSRecord.from_string("v=STSv1; id=foo;")
        assert record == STSRecord(id="foo", v="STSv1")

    def test_version_defaults_when_absent(self) -> None:
        record = STSRecord.from_string("id=20240101T000000")
        assert record is not None
        assert record.v == "STSv1"
        assert record.id == "20240101T000000"

    def test_missing_id_is_absent(self) -> None:
        assert STSRecord.from_string("v=STSv1;") is None

    def test_text_without_pairs_is_absent(self) -> None:
        assert STSRecord.from_string("STSv1 foo") is None

    def test_strict_parse_raises_on_missing_id(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            STSRecord.parse("v=STSv1;")
        assert exc_info.value.code == "missing_field"
        assert exc_info.value.details["field"] == "id"

    def test_strict_parse_raises_on_empty_text(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            STSRecord.parse("")
        assert exc_info.value.code == "empty_record"

    def test_unknown_keys_are_ignored(self) -> None:
        record = STSRecord.from_string("v=STSv1; id=abc; ext=1;")
        assert record == STSRecord(id="abc")

    def test_as_string(self) -> None:
        assert STSRecord(id="foo").as_string() == "v=STSv1; id=foo;"
        assert str(STSRecord(id="x", v="STSv2")) == "v=STSv2; id=x;"

    @given(st.text(alphabet=string.ascii_letters + string.digits, min_size=1, max_size=32))
    @settings(max_examples=100)
    def test_formatted_record_parses_back(self, policy_id: str) -> None:
        """*For any* id, the formatted record parses to an equal record."""
        record = STSRecord(id=policy_id)
        assert STSRecord.from_string(record.as_string()) == record


class TestTLSRPTRecord:
    """Parsing and formatting of the _smtp._tls TXT record."""

    def test_parses_rua(self) -> None:
        record = TLSRPTRecord.from_string("v=TLSRPTv1; rua=mailto:tlsrpt@example.com")
        assert record == TLSRPTRecord(rua="mailto:tlsrpt@example.com")

    def test_version_defaults_when_absent(self) -> None:
        record = TLSRPTRecord.from_string("rua=https://reports.example.com/v1")
        assert record is not None
        assert record.v == "TLSRPTv1"

    def test_missing_rua_is_absent(self) -> None:
        assert TLSRPTRecord.from_string("v=TLSRPTv1;") is None

    def test_as_string(self) -> None:
        record = TLSRPTRecord(rua="mailto:r@example.com")
        assert record.as_string() == "v=TLSRPTv1; rua=mailto:r@example.com;"
