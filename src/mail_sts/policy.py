"""
MTA-STS policy document parsing and serialization.

A policy document is served from
``https://mta-sts.<domain>/.well-known/mta-sts.txt`` as newline-separated
``key: value`` lines::

    version: STSv1
    mode: enforce
    mx: mta1.example.com
    mx: mta2.example.com
    max_age: 604800

``mx`` may repeat; every other key keeps its last value. Unknown keys are
ignored so that future policy extensions do not break parsing.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from .enums import ParseErrorCode, PolicyMode
from .exceptions import ParseError

_MAX_AGE_PATTERN = re.compile(r"^[0-9]+$")
_KNOWN_MODES = frozenset(mode.value for mode in PolicyMode)
_CONSTRAINING_MODES = frozenset((PolicyMode.ENFORCE.value, PolicyMode.TESTING.value))


@dataclass
class PolicyDocument:
    """A parsed MTA-STS policy."""

    version: str = "STSv1"
    mode: str = PolicyMode.NONE.value
    max_age: Optional[int] = None
    mx: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "PolicyDocument":
        """
        Parse a policy document.

        Args:
            text: Decoded policy body

        Returns:
            PolicyDocument with the fields found in the text

        Raises:
            ParseError: If ``max_age`` is not a non-negative integer
        """
        policy = cls()
        for line in text.splitlines():
            if not line.strip() or ":" not in line:
                continue

            key, value = line.split(":", 1)
            key = key.strip()
            if value.startswith(" "):
                value = value[1:]

            if key == "mx":
                policy.mx.append(value)
            elif key == "version":
                policy.version = value
            elif key == "mode":
                policy.mode = value
            elif key == "max_age":
                policy.max_age = cls._parse_max_age(value)

        return policy

    @staticmethod
    def _parse_max_age(value: str) -> int:
        candidate = value.strip()
        if not _MAX_AGE_PATTERN.match(candidate):
            raise ParseError(
                code=ParseErrorCode.INVALID_MAX_AGE.value,
                message=f"Invalid max_age in policy: {value!r}",
                details={"max_age": value},
            )
        return int(candidate)

    def as_string(self) -> str:
        """Serialize the policy back into its line-oriented text form."""
        lines = [
            f"{key}: {value}\n"
            for key, value in (
                ("version", self.version),
                ("mode", self.mode),
                ("max_age", self.max_age),
            )
            if value is not None
        ]
        lines.extend(f"mx: {pattern}\n" for pattern in self.mx)
        return "".join(lines)

    def has_known_mode(self) -> bool:
        """True if ``mode`` is one of enforce, testing or none."""
        return self.mode in _KNOWN_MODES

    def effective_mx(self) -> list[str]:
        """
        MX patterns that apply.

        Only enforce and testing policies constrain delivery; a ``none``
        policy or one with an unrecognized mode (modes are case-sensitive,
        so ``Enforce`` is unrecognized) constrains nothing.
        """
        if self.mode not in _CONSTRAINING_MODES:
            return []
        return list(self.mx)

    def as_dict(self) -> dict:
        return {
            "version": self.version,
            "mode": self.mode,
            "max_age": self.max_age,
            "mx": list(self.mx),
        }
