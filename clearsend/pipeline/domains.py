"""
Internal-domain matching.

Domains are matched on exact equality or as a parent of the address domain
(``mail.corp.com`` matches ``corp.com``). The internal-domain list is
priority-ordered: the first matching entry wins.
"""

from typing import Iterable, List

from .address import extract_email
from .validation import validate_format

NOT_FOUND = -1

# Placeholder shipped in the add-in's default settings; never a real domain.
PLACEHOLDER_DOMAIN = "mydomain.com"


def _domain_of(email: str) -> str | None:
    """Return the lower-cased domain, or None unless there is exactly one '@'."""
    if not email or email.count("@") != 1:
        return None
    return email.split("@", 1)[1].strip().lower()


def _matches(domain: str, candidate: str) -> bool:
    return domain == candidate or domain.endswith("." + candidate)


def match_domain_index(email: str, internal_domains: Iterable[str]) -> int:
    """
    Return the index of the first internal domain matching ``email``.

    Returns NOT_FOUND when the address does not have exactly one '@', when
    the domain list is empty, or when no configured domain matches.
    """
    domain = _domain_of(email)
    if not domain:
        return NOT_FOUND

    for i, raw in enumerate(internal_domains or []):
        candidate = (raw or "").strip().lower()
        if not candidate:
            continue
        if _matches(domain, candidate):
            return i
    return NOT_FOUND


def is_internal(email: str, internal_domains: Iterable[str]) -> bool:
    return match_domain_index(email, internal_domains) != NOT_FOUND


def is_external(email: str, org_domain: str) -> bool:
    """
    True when ``email`` does not belong to ``org_domain`` or its subdomains.

    Used for flagging only. Missing inputs are never flagged; an address
    without a domain part is always external.
    """
    if not email or not org_domain:
        return False

    parts = email.split("@")
    if len(parts) < 2 or not parts[1]:
        return True

    return not _matches(parts[1].strip().lower(), org_domain.strip().lower())


def sanitize_domains(domains: Iterable[str] | None) -> List[str]:
    """Drop blanks, the placeholder domain and duplicates; keep first-seen order."""
    seen = set()
    out: List[str] = []
    for raw in domains or []:
        if not isinstance(raw, str):
            continue
        d = raw.strip()
        key = d.lower()
        if not d or key == PLACEHOLDER_DOMAIN or key in seen:
            continue
        seen.add(key)
        out.append(d)
    return out


def recipient_status(entry: str, internal_domains: Iterable[str]) -> str:
    """Classify an entry for display: ``invalid``, ``internal`` or ``external``."""
    email = extract_email(entry)
    if not validate_format(email).is_valid:
        return "invalid"
    return "internal" if is_internal(email, internal_domains) else "external"
