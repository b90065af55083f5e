"""
Domain validation and normalization module.

Mail domains are looked up in canonical form: lowercase, without a
trailing dot, and IDNA-encoded when they contain non-ASCII characters.
"""

import re

import idna

from mail_sts.enums import DomainValidationErrorCode
from mail_sts.exceptions import ValidationError


# Forbidden characters in domain names (control chars, spaces, special symbols)
# Based on RFC 1035 and RFC 5891 (IDNA2008)
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'           # Control characters
    r'\s'                        # Whitespace
    r'!@#$%^&*()+=\[\]{}|\\:;"\'<>,?/`~]'  # Special symbols not allowed
)

MAX_DOMAIN_LENGTH = 253
MAX_LABEL_LENGTH = 63


class DomainValidator:
    """
    Validates and normalizes domain names.

    Handles:
    - Conversion to lowercase canonical form
    - Removal of a single trailing root dot
    - IDNA encoding for international characters
    - Rejection of forbidden characters and over-long names
    """

    def canonicalize(self, raw_domain: str) -> str:
        """
        Return the canonical form of a domain name.

        Raises:
            ValidationError: If the name is empty, malformed or not IDNA-encodable
        """
        if not raw_domain or not raw_domain.strip():
            raise ValidationError(
                code=DomainValidationErrorCode.EMPTY_INPUT.value,
                message="Domain input is empty",
                details={"raw_input": raw_domain},
            )

        domain = raw_domain.strip()
        if domain.endswith("."):
            domain = domain[:-1]

        forbidden_found = FORBIDDEN_CHARS_PATTERN.findall(domain)
        if forbidden_found:
            raise ValidationError(
                code=DomainValidationErrorCode.FORBIDDEN_CHARS.value,
                message="Domain contains forbidden characters",
                details={"raw_input": raw_domain, "forbidden_chars": forbidden_found},
            )

        canonical = self.normalize_to_canonical(domain)

        labels = canonical.split(".")
        if (
            len(canonical) > MAX_DOMAIN_LENGTH
            or any(not label or len(label) > MAX_LABEL_LENGTH for label in labels)
        ):
            raise ValidationError(
                code=DomainValidationErrorCode.INVALID_LENGTH.value,
                message="Domain or one of its labels has an invalid length",
                details={"raw_input": raw_domain, "canonical": canonical},
            )

        return canonical

    def normalize_to_canonical(self, domain: str) -> str:
        """
        Convert domain to canonical form (lowercase, IDNA-encoded).

        Raises:
            ValidationError: If IDNA encoding fails
        """
        domain_lower = domain.lower()

        if all(ord(c) < 128 for c in domain_lower):
            return domain_lower

        try:
            return idna.encode(domain_lower, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ValidationError(
                code=DomainValidationErrorCode.IDNA_ERROR.value,
                message=f"IDNA encoding failed: {e}",
                details={"domain": domain, "idna_error": str(e)},
            )
