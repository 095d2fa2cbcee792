"""
Recipient validation: address format rules and typo warnings.

Format rules run in a fixed order and the first failure wins, so every
rejected address carries exactly one human-readable reason. Addresses that
pass are checked for likely provider-domain typos, which only warn.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .address import extract_email
from .typos import MAX_LENGTH_DELTA, MIN_SIMILARITY, check_typo

# ============================================================================
# Patterns and Limits
# ============================================================================

EMAIL_RE = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)

MAX_LOCAL_LENGTH = 64
MAX_DOMAIN_LENGTH = 253
MIN_EMAIL_LENGTH = 3
MIN_TLD_LENGTH = 2

STATUS_VALID = "valid"
STATUS_WARNING = "warning"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class FormatCheck:
    is_valid: bool
    message: str | None = None


@dataclass
class ValidationResult:
    address: str
    email: str
    status: str = STATUS_VALID
    warnings: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.status != STATUS_ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "email": self.email,
            "status": self.status,
            "is_valid": self.is_valid,
            "warnings": list(self.warnings),
            "suggestions": list(self.suggestions),
        }


# ============================================================================
# Format Rules
# ============================================================================

def _invalid(message: str) -> FormatCheck:
    return FormatCheck(is_valid=False, message=message)


def validate_format(email: Any) -> FormatCheck:
    """Apply the ordered format rules to a bare email address."""
    if not email or not isinstance(email, str):
        return _invalid("Empty or invalid email address")

    email = email.strip()

    if len(email) <= MIN_EMAIL_LENGTH and "@" not in email:
        return _invalid("Email address is too short or malformed")
    if email.endswith(":") and "@" not in email:
        return _invalid("Email appears to be incomplete or malformed")
    if not email:
        return _invalid("Empty email address")
    if "@" not in email:
        return _invalid("Email must contain @ symbol")
    if email.count("@") != 1:
        return _invalid("Email must contain exactly one @ symbol")

    local, domain = email.split("@")

    if not local:
        return _invalid("Email must have content before @ symbol")
    if len(local) > MAX_LOCAL_LENGTH:
        return _invalid("Local part of email is too long")
    if not domain:
        return _invalid("Email must have content after @ symbol")
    if len(domain) > MAX_DOMAIN_LENGTH:
        return _invalid("Domain part of email is too long")
    if "." not in domain:
        return _invalid("Domain must contain at least one dot")
    if not EMAIL_RE.fullmatch(email):
        return _invalid("Invalid email format")
    if ".." in email:
        return _invalid("Email contains consecutive dots")
    if email.startswith(".") or email.endswith("."):
        return _invalid("Email starts or ends with a dot")
    if "@." in email or ".@" in email:
        return _invalid("Invalid dot placement near @ symbol")
    if email.startswith("-") or email.endswith("-"):
        return _invalid("Email starts or ends with hyphen")
    if len(domain.split(".")[-1]) < MIN_TLD_LENGTH:
        return _invalid("Top-level domain must be at least 2 characters")

    return FormatCheck(is_valid=True)


def is_valid_email(email: Any) -> bool:
    return validate_format(email).is_valid


def validate_recipient(entry: str,
                       max_length_delta: int = MAX_LENGTH_DELTA,
                       min_similarity: float = MIN_SIMILARITY) -> ValidationResult:
    """Classify one recipient entry as valid, warning (typo) or error."""
    email = extract_email(entry)
    result = ValidationResult(address=entry, email=email)

    fmt = validate_format(email)
    if not fmt.is_valid:
        result.status = STATUS_ERROR
        result.warnings.append(fmt.message)
        return result

    typo = check_typo(email, max_length_delta=max_length_delta, min_similarity=min_similarity)
    if typo.has_typo:
        result.status = STATUS_WARNING
        result.warnings.append(typo.message)
        result.suggestions.append(typo.suggestion)

    return result
