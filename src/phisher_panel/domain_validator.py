"""
Domain validation and normalization module.

Whitelist and blacklist entries are validated locally before any network
call: the input is lower-cased, internationalised names are IDNA-encoded,
every label is checked for syntax and the last label must be one of the
allowed suffixes.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

import idna

from .enums import DomainValidationErrorCode
from .exceptions import ValidationError
from .tld_registry import DEFAULT_TLDS


# Forbidden characters in domain names (control chars, spaces, special symbols)
FORBIDDEN_CHARS_PATTERN = re.compile(
    r'[\x00-\x1f\x7f'           # Control characters
    r'\s'                        # Whitespace
    r'!@#$%^&*()+=\[\]{}|\\:;"\'<>,?/`~_]'  # Special symbols not allowed
)

# Letters, digits and inner hyphens, 1-63 characters
LABEL_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")

MAX_LABEL_LENGTH = 63


@dataclass
class DomainValidationError:
    """Structured error information for domain validation failures."""

    code: DomainValidationErrorCode
    message: str
    details: dict


@dataclass
class DomainValidationResult:
    """Result of domain validation operation."""

    valid: bool
    canonical_domain: Optional[str]
    error: Optional[DomainValidationError]


class DomainValidator:
    """
    Validates and normalizes domain names.

    Handles:
    - Conversion to lowercase canonical form
    - IDNA encoding for international characters
    - Rejection of forbidden characters
    - Label syntax (letters, digits, hyphens, no leading/trailing hyphen, <= 63 chars)
    - Suffix check against the allowed list
    """

    def __init__(self, allowed_tlds: Optional[Iterable[str]] = None) -> None:
        """
        Initialize validator with allowed TLDs.

        Args:
            allowed_tlds: Allowed top-level suffixes, defaults to the registry list
        """
        if allowed_tlds is None:
            allowed_tlds = DEFAULT_TLDS
        self._allowed_tlds = set(tld.lower().lstrip(".") for tld in allowed_tlds)

    def validate(self, raw_domain: str) -> DomainValidationResult:
        """
        Validate and normalize a domain string.

        Args:
            raw_domain: The raw domain string to validate

        Returns:
            DomainValidationResult with validation status and canonical form or error
        """
        if not raw_domain or not raw_domain.strip():
            return self._failure(
                DomainValidationErrorCode.EMPTY_INPUT,
                "Domain input is empty",
                {"raw_input": raw_domain},
            )

        domain = raw_domain.strip()

        if FORBIDDEN_CHARS_PATTERN.search(domain):
            return self._failure(
                DomainValidationErrorCode.FORBIDDEN_CHARS,
                "Domain contains forbidden characters",
                {
                    "raw_input": raw_domain,
                    "forbidden_chars": FORBIDDEN_CHARS_PATTERN.findall(domain),
                },
            )

        try:
            canonical = self.normalize_to_canonical(domain)
        except ValidationError as e:
            return self._failure(
                DomainValidationErrorCode.IDNA_ERROR,
                str(e.message),
                e.details,
            )

        labels = canonical.split(".")
        if len(labels) < 2:
            return self._failure(
                DomainValidationErrorCode.INVALID_TLD,
                "Could not extract TLD from domain",
                {"raw_input": raw_domain, "canonical": canonical},
            )

        for label in labels:
            if not self.is_valid_label(label):
                return self._failure(
                    DomainValidationErrorCode.INVALID_LABEL,
                    f"Invalid domain label '{label}'",
                    {"raw_input": raw_domain, "label": label},
                )

        tld = labels[-1]
        if not self.is_valid_tld(tld):
            return self._failure(
                DomainValidationErrorCode.INVALID_TLD,
                f"TLD '{tld}' is not in the allowed list",
                {"raw_input": raw_domain, "tld": tld},
            )

        return DomainValidationResult(
            valid=True,
            canonical_domain=canonical,
            error=None,
        )

    def is_valid(self, raw_domain: str) -> bool:
        return self.validate(raw_domain).valid

    def normalize_to_canonical(self, domain: str) -> str:
        """
        Convert domain to canonical form (lowercase, IDNA-encoded).

        Raises:
            ValidationError: If IDNA encoding fails
        """
        domain_lower = domain.lower()

        has_non_ascii = any(ord(c) > 127 for c in domain_lower)
        if not has_non_ascii:
            return domain_lower

        try:
            return idna.encode(domain_lower, uts46=True).decode("ascii")
        except idna.IDNAError as e:
            raise ValidationError(
                code=DomainValidationErrorCode.IDNA_ERROR.value,
                message=f"IDNA encoding failed: {e}",
                details={"domain": domain, "idna_error": str(e)},
            )

    @staticmethod
    def is_valid_label(label: str) -> bool:
        if not label or len(label) > MAX_LABEL_LENGTH:
            return False
        return LABEL_PATTERN.match(label) is not None

    def is_valid_tld(self, tld: str) -> bool:
        return tld.lower() in self._allowed_tlds

    @staticmethod
    def _failure(
        code: DomainValidationErrorCode,
        message: str,
        details: dict,
    ) -> DomainValidationResult:
        return DomainValidationResult(
            valid=False,
            canonical_domain=None,
            error=DomainValidationError(code=code, message=message, details=details),
        )
