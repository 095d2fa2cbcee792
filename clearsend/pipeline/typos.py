"""
Typo detection for public mail provider domains.

Suggestions are advisory: the address is never rewritten, the caller decides
whether to surface the suggested correction.
"""

from dataclasses import dataclass
from typing import Dict, List

# ============================================================================
# Rule Inputs
# ============================================================================

COMMON_TYPOS: Dict[str, str] = {
    "gmial.com": "gmail.com",
    "gmai.com": "gmail.com",
    "gmal.com": "gmail.com",
    "yahooo.com": "yahoo.com",
    "yaho.com": "yahoo.com",
    "hotmial.com": "hotmail.com",
    "hotmial.co": "hotmail.com",
    "outlok.com": "outlook.com",
    "outloo.com": "outlook.com",
    "microsft.com": "microsoft.com",
    "mircosoft.com": "microsoft.com",
}

COMMON_DOMAINS: List[str] = [
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "microsoft.com",
]

# Empirical thresholds; both are overridable per call.
MAX_LENGTH_DELTA = 2
MIN_SIMILARITY = 0.80


@dataclass(frozen=True)
class TypoCheck:
    has_typo: bool
    suggestion: str | None = None
    message: str | None = None


# ============================================================================
# Edit Distance
# ============================================================================

def levenshtein(a: str, b: str) -> int:
    """Classic insertion/deletion/substitution edit distance."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalized similarity in [0, 1]: ``(max_len - distance) / max_len``."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein(a, b)) / longest


# ============================================================================
# Public API
# ============================================================================

def _suggest(local: str, domain: str) -> TypoCheck:
    corrected = f"{local}@{domain}"
    return TypoCheck(has_typo=True, suggestion=corrected, message=f'Did you mean "{corrected}"?')


def check_typo(email: str,
               max_length_delta: int = MAX_LENGTH_DELTA,
               min_similarity: float = MIN_SIMILARITY) -> TypoCheck:
    """
    Look for a likely misspelling of a well-known provider domain.

    The static correction table is consulted first; otherwise the domain is
    compared against COMMON_DOMAINS by normalized edit distance, skipping
    candidates whose length differs by more than ``max_length_delta``.
    """
    local, _, domain = (email or "").partition("@")
    if not domain:
        return TypoCheck(has_typo=False)

    lower = domain.lower()
    if lower in COMMON_TYPOS:
        return _suggest(local, COMMON_TYPOS[lower])
    if lower in COMMON_DOMAINS:
        return TypoCheck(has_typo=False)

    for candidate in COMMON_DOMAINS:
        if abs(len(lower) - len(candidate)) > max_length_delta:
            continue
        if similarity(lower, candidate) > min_similarity:
            return _suggest(local, candidate)

    return TypoCheck(has_typo=False)
