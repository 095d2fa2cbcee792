"""
Recipient string parsing.

A recipient entry is either a bare address (``alice@corp.com``) or a display
form (``Alice Smith <alice@corp.com>``). Parsing is best-effort and never
raises; malformed entries degrade to an empty or partial email that the
validation step classifies later.
"""

import re
import unicodedata
from typing import Any, Tuple

# ============================================================================
# Patterns
# ============================================================================

_DISPLAY_RE = re.compile(r"^(.+?)\s*<(.+)>$", re.DOTALL)
_BRACKET_RE = re.compile(r"^<(.+)>$", re.DOTALL)


# ============================================================================
# Public API
# ============================================================================

def parse_recipient(entry: Any) -> Tuple[str, str]:
    """Return ``(display_name, email)`` for a recipient entry."""
    if not entry or not isinstance(entry, str):
        return "", ""

    s = entry.strip()
    m = _DISPLAY_RE.match(s)
    if m:
        return m.group(1).strip(), m.group(2).strip()

    m = _BRACKET_RE.match(s)
    if m:
        return "", m.group(1).strip()

    return "", s


def extract_email(entry: Any) -> str:
    return parse_recipient(entry)[1]


def extract_display_name(entry: Any) -> str:
    return parse_recipient(entry)[0]


def normalize_email(entry: Any) -> str:
    """Lower-cased email used as the identity of an entry for comparisons."""
    return extract_email(entry).lower()


def format_recipient(display_name: str, email: str) -> str:
    """Render the canonical ``Name <email>`` form, or the bare email."""
    name = (display_name or "").strip()
    email = (email or "").strip()
    if name and name != email:
        return f"{name} <{email}>"
    return email


def _fold(text: str) -> str:
    # Accent-insensitive, case-insensitive comparison form.
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.casefold()


def sort_key(entry: Any) -> Tuple[str, str]:
    """
    Collation key for alphabetical recipient ordering.

    Orders by display name when present, otherwise by email. The primary key
    ignores case and accents; the secondary key breaks ties on the
    case-folded raw text so ordering is total and deterministic.
    """
    display_name, email = parse_recipient(entry)
    text = display_name or email
    return _fold(text), text.casefold()
