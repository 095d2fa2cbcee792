"""Values threaded through one pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..config import PipelineConfig

FIELDS: Tuple[str, ...] = ("to", "cc", "bcc")

# Step detail keys as they appear in the host payload. Keys not listed here
# (field names, domain names) pass through unchanged.
WIRE_KEYS: Dict[str, str] = {
    "removed_entries": "removedEntries",
    "removed_within_field": "removedWithinField",
    "removed_across_fields": "removedAcrossFields",
    "duplicates_found": "duplicatesFound",
    "validation_results": "validationResults",
    "valid_count": "validCount",
    "warning_count": "warningCount",
    "error_count": "errorCount",
    "is_valid": "isValid",
    "sort_alphabetically": "sortAlphabetically",
    "removed_by_field": "removedByField",
    "external_by_domain": "externalByDomain",
    "org_domain": "orgDomain",
    "total_recipients": "totalRecipients",
    "external_count": "externalCount",
    "internal_count": "internalCount",
    "unique_external_domains": "uniqueExternalDomains",
}


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _to_wire(value: Any, rename: bool = True) -> Any:
    """Deep-copy frozen details into plain dicts and lists."""
    if isinstance(value, Mapping):
        # Keys of domain-keyed maps are data, not names.
        out = {}
        for k, v in value.items():
            key = WIRE_KEYS.get(k, k) if rename else k
            out[key] = _to_wire(v, rename=k != "external_by_domain")
        return out
    if isinstance(value, tuple):
        return [_to_wire(v) for v in value]
    return value


@dataclass(frozen=True)
class RecipientLists:
    """The To, CC and BCC entries, each an ordered tuple of recipient strings."""

    to: Tuple[str, ...] = ()
    cc: Tuple[str, ...] = ()
    bcc: Tuple[str, ...] = ()

    @classmethod
    def of(cls,
           to: Optional[Iterable[str]] = None,
           cc: Optional[Iterable[str]] = None,
           bcc: Optional[Iterable[str]] = None) -> "RecipientLists":
        return cls(tuple(to or ()), tuple(cc or ()), tuple(bcc or ()))

    def fields(self) -> Iterable[Tuple[str, Tuple[str, ...]]]:
        return ((name, getattr(self, name)) for name in FIELDS)

    def map(self, fn) -> "RecipientLists":
        """Apply ``fn`` to each field independently."""
        return RecipientLists(*(tuple(fn(entries)) for _, entries in self.fields()))

    def total(self) -> int:
        return len(self.to) + len(self.cc) + len(self.bcc)

    def all_entries(self) -> Tuple[str, ...]:
        return self.to + self.cc + self.bcc

    def to_dict(self) -> Dict[str, list]:
        return {name: list(entries) for name, entries in self.fields()}


@dataclass(frozen=True)
class ActionRecord:
    """
    Audit entry produced by one step.

    type: step name as configured (e.g. "dedupe")
    input / output: lists the step saw and produced
    processed: entries examined
    removed: entries dropped from the lists (0 for reordering steps)
    details: step-specific reporting data, frozen on construction
    """

    type: str
    input: RecipientLists
    output: RecipientLists
    processed: int
    removed: int = 0
    details: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "details", _freeze(self.details))

    @property
    def skipped(self) -> bool:
        return bool(self.details.get("skipped"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "input": self.input.to_dict(),
            "output": self.output.to_dict(),
            "processed": self.processed,
            "removed": self.removed,
            **_to_wire(self.details),
        }


@dataclass(frozen=True)
class PipelineState:
    lists: RecipientLists
    config: PipelineConfig
    actions: Tuple[ActionRecord, ...] = ()

    def advance(self, lists: RecipientLists, action: ActionRecord) -> "PipelineState":
        return replace(self, lists=lists, actions=self.actions + (action,))
