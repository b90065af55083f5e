"""
Typed wrappers for the MTA-STS and TLSRPT DNS TXT records.

Both records are thin dataclasses over the key/value codec in
:mod:`mail_sts.sskv`. The lenient ``from_string`` constructors return None
for text that does not form a complete record, which lets the resolver
treat a malformed TXT record exactly like a missing one.
"""

from dataclasses import dataclass
from typing import ClassVar, Optional

from . import sskv
from .enums import ParseErrorCode
from .exceptions import ParseError


def _parse_fields(text: str, record_name: str, required: str) -> dict[str, str]:
    fields = sskv.decode(text)
    if fields is None:
        raise ParseError(
            code=ParseErrorCode.EMPTY_RECORD.value,
            message=f"{record_name} record contains no key=value pairs",
            details={"text": text},
        )
    if required not in fields:
        raise ParseError(
            code=ParseErrorCode.MISSING_FIELD.value,
            message=f"{record_name} record is missing required field '{required}'",
            details={"text": text, "field": required},
        )
    return fields


@dataclass
class STSRecord:
    """The ``_mta-sts.<domain>`` TXT record."""

    FIELDS: ClassVar[list[str]] = ["v", "id"]

    id: str
    v: str = "STSv1"

    @classmethod
    def parse(cls, text: str) -> "STSRecord":
        """
        Parse record text strictly.

        Raises:
            ParseError: If the text has no pairs or lacks ``id``
        """
        fields = _parse_fields(text, "STS", "id")
        return cls(id=fields["id"], v=fields.get("v", "STSv1"))

    @classmethod
    def from_string(cls, text: str) -> Optional["STSRecord"]:
        """Parse record text, returning None instead of raising."""
        try:
            return cls.parse(text)
        except ParseError:
            return None

    def as_string(self) -> str:
        return sskv.encode({"v": self.v, "id": self.id}, self.FIELDS)

    def __str__(self) -> str:
        return self.as_string()


@dataclass
class TLSRPTRecord:
    """The ``_smtp._tls.<domain>`` TXT record."""

    FIELDS: ClassVar[list[str]] = ["v", "rua"]

    rua: str
    v: str = "TLSRPTv1"

    @classmethod
    def parse(cls, text: str) -> "TLSRPTRecord":
        """
        Parse record text strictly.

        Raises:
            ParseError: If the text has no pairs or lacks ``rua``
        """
        fields = _parse_fields(text, "TLSRPT", "rua")
        return cls(rua=fields["rua"], v=fields.get("v", "TLSRPTv1"))

    @classmethod
    def from_string(cls, text: str) -> Optional["TLSRPTRecord"]:
        """Parse record text, returning None instead of raising."""
        try:
            return cls.parse(text)
        except ParseError:
            return None

    def as_string(self) -> str:
        return sskv.encode({"v": self.v, "rua": self.rua}, self.FIELDS)

    def __str__(self) -> str:
        return self.as_string()
