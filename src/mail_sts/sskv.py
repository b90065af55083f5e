"""
Codec for semicolon-separated key/value text.

DNS TXT records for MTA-STS and TLSRPT share the same shape::

    v=STSv1; id=20190429T010101;

Both record types decode and encode through the two functions here,
parameterized by the record's declared field order.
"""

import re
from typing import Optional

_SEPARATOR = re.compile(r"\s*;\s*")


def decode(text: str) -> Optional[dict[str, str]]:
    """
    Decode semicolon-separated key/value text into a field map.

    Segments without ``=`` are skipped. Each remaining segment is split on
    its first ``=``; a key seen more than once keeps its last value.

    Args:
        text: The record text (e.g. ``"v=STSv1; id=foo;"``)

    Returns:
        Field map, or None if no key/value pair could be extracted
    """
    fields: dict[str, str] = {}
    for segment in _SEPARATOR.split(text.strip()):
        if "=" not in segment:
            continue
        key, value = segment.split("=", 1)
        fields[key] = value

    if not fields:
        return None
    return fields


def encode(fields: dict[str, Optional[str]], order: list[str]) -> str:
    """
    Encode a field map as semicolon-separated key/value text.

    Fields are emitted in the declared ``order``, not the map's own order.
    Fields missing from the map or set to None are omitted.

    Args:
        fields: Field values by key
        order: Declared field order of the record type

    Returns:
        Text like ``"v=STSv1; id=foo;"``
    """
    tokens = [
        f"{key}={fields[key]};"
        for key in order
        if fields.get(key) is not None
    ]
    return " ".join(tokens)
