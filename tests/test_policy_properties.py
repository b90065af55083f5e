"""
Property-based tests for MTA-STS policy document parsing.
"""

import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from mail_sts.exceptions import ParseError
from mail_sts.policy import PolicyDocument


EXAMPLE_POLICY = (
    "version: STSv1\n"
    "mode: enforce\n"
    "mx: mta1.example.com\n"
    "mx: mta2.example.com\n"
    "max_age: 604800\n"
)


@st.composite
def mx_pattern_strategy(draw) -> str:
    """Generate MX patterns like '*.example.com' or 'mta1.example.net'."""
    label = draw(st.text(alphabet=string.ascii_lowercase + string.digits, min_size=1, max_size=12))
    wildcard = draw(st.booleans())
    tld = draw(st.sampled_from(["com", "net", "org", "de"]))
    prefix = "*." if wildcard else ""
    return f"{prefix}{label}.example.{tld}"


@st.composite
def policy_strategy(draw) -> PolicyDocument:
    return PolicyDocument(
        version="STSv1",
        mode=draw(st.sampled_from(["enforce", "testing", "none"])),
        max_age=draw(st.one_of(st.none(), st.integers(min_value=0, max_value=31557600))),
        mx=draw(st.lists(mx_pattern_strategy(), max_size=5)),
    )


class TestPolicyParse:
    """Parsing of the line-oriented policy format."""

    def test_parses_example_policy(self) -> None:
        policy = PolicyDocument.parse(EXAMPLE_POLICY)
        assert policy.version == "STSv1"
        assert policy.mode == "enforce"
        assert policy.mx == ["mta1.example.com", "mta2.example.com"]
        assert policy.max_age == 604800

    def test_crlf_line_endings(self) -> None:
        policy = PolicyDocument.parse(EXAMPLE_POLICY.replace("\n", "\r\n"))
        assert policy.mx == ["mta1.example.com", "mta2.example.com"]
        assert policy.max_age == 604800

    def test_defaults_for_empty_document(self) -> None:
        policy = PolicyDocument.parse("")
        assert policy == PolicyDocument(version="STSv1", mode="none", max_age=None, mx=[])

    def test_unknown_keys_and_blank_lines_are_ignored(self) -> None:
        policy = PolicyDocument.parse("\nversion: STSv1\nfuture_key: x\n\nmode: testing\n")
        assert policy.mode == "testing"
        assert policy.mx == []

    def test_last_value_wins_for_scalar_keys(self) -> None:
        policy = PolicyDocument.parse("mode: testing\nmode: enforce\n")
        assert policy.mode == "enforce"

    def test_value_keeps_text_after_first_colon(self) -> None:
        policy = PolicyDocument.parse("mx: host.example.com:25\n")
        assert policy.mx == ["host.example.com:25"]

    def test_non_numeric_max_age_is_parse_error(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            PolicyDocument.parse("version: STSv1\nmax_age: one week\n")
        assert exc_info.value.code == "invalid_max_age"

    def test_negative_max_age_is_parse_error(self) -> None:
        with pytest.raises(ParseError):
            PolicyDocument.parse("max_age: -5\n")


class TestPolicySerialize:
    """Serialization back into the policy text format."""

    def test_serializes_scalars_then_mx(self) -> None:
        policy = PolicyDocument.parse(EXAMPLE_POLICY)
        assert policy.as_string() == (
            "version: STSv1\n"
            "mode: enforce\n"
            "max_age: 604800\n"
            "mx: mta1.example.com\n"
            "mx: mta2.example.com\n"
        )

    def test_missing_max_age_is_omitted(self) -> None:
        assert PolicyDocument(mode="none").as_string() == "version: STSv1\nmode: none\n"

    @given(policy_strategy())
    @settings(max_examples=100)
    def test_serialized_policy_parses_back(self, policy: PolicyDocument) -> None:
        """*For any* policy, parsing its serialization yields an equal policy."""
        assert PolicyDocument.parse(policy.as_string()) == policy


class TestEffectiveMx:
    """MX patterns only apply to enforce and testing policies."""

    def test_none_mode_has_no_effective_mx(self) -> None:
        policy = PolicyDocument(mode="none", mx=["mx.example.com"])
        assert policy.effective_mx() == []

    def test_enforce_mode_keeps_mx_order(self) -> None:
        policy = PolicyDocument(mode="enforce", mx=["b.example.com", "a.example.com"])
        assert policy.effective_mx() == ["b.example.com", "a.example.com"]

    @pytest.mark.parametrize("mode", ["Enforce", "TESTING", "report", ""])
    def test_unknown_mode_has_no_effective_mx(self, mode: str) -> None:
        policy = PolicyDocument.parse(f"version: STSv1\nmode: {mode}\nmx: mx.example.com\n")

        assert policy.mode == mode
        assert policy.has_known_mode() is False
        assert policy.effective_mx() == []

    @pytest.mark.parametrize("mode", ["enforce", "testing", "none"])
    def test_known_modes(self, mode: str) -> None:
        assert PolicyDocument(mode=mode).has_known_mode() is True
