"""
The cleaning steps.

Each step is a pure function ``PipelineState -> PipelineState`` that returns
the new lists and appends exactly one ActionRecord. Steps do not catch
unexpected errors; the orchestrator attributes them to the failing step.
Data problems (bad formats, external domains) are reported as data in the
action record, never raised.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, List, Sequence, Tuple

from ..config import (
    STEP_DEDUPE,
    STEP_FLAG_EXTERNAL,
    STEP_PRIORITIZE_INTERNAL,
    STEP_REMOVE_EXTERNAL,
    STEP_SORT,
    STEP_VALIDATE,
)
from .address import extract_email, normalize_email, sort_key
from .domains import NOT_FOUND, is_external, match_domain_index, sanitize_domains
from .state import ActionRecord, PipelineState, RecipientLists
from .validation import STATUS_ERROR, STATUS_VALID, STATUS_WARNING, validate_recipient

Step = Callable[[PipelineState], PipelineState]


# ============================================================================
# Sort
# ============================================================================

def sort_alphabetical(entries: Sequence[str]) -> List[str]:
    """Case- and accent-insensitive ordering by display name, else email."""
    return sorted(entries, key=sort_key)


def sort_step(state: PipelineState) -> PipelineState:
    lists = state.lists.map(sort_alphabetical)
    action = ActionRecord(
        type=STEP_SORT,
        input=state.lists,
        output=lists,
        processed=state.lists.total(),
    )
    return state.advance(lists, action)


# ============================================================================
# Dedupe
# ============================================================================

def remove_duplicates(entries: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Keep the first entry per normalized email; return ``(unique, removed)``."""
    seen = set()
    unique: List[str] = []
    removed: List[str] = []
    for entry in entries:
        key = normalize_email(entry)
        if key in seen:
            removed.append(entry)
            continue
        seen.add(key)
        unique.append(entry)
    return unique, removed


def dedupe_lists(lists: RecipientLists) -> Tuple[RecipientLists, List[str], List[str]]:
    """
    Two-phase dedupe: within each field, then across fields (To > CC > BCC).

    Returns the deduped lists, entries removed within a field, and entries
    removed because a higher-priority field already holds the address.
    """
    within_removed: List[str] = []
    per_field: List[List[str]] = []
    for _, entries in lists.fields():
        unique, removed = remove_duplicates(entries)
        per_field.append(unique)
        within_removed.extend(removed)

    claimed = set()
    across_removed: List[str] = []
    final: List[List[str]] = []
    for entries in per_field:
        kept: List[str] = []
        for entry in entries:
            key = normalize_email(entry)
            if key in claimed:
                across_removed.append(entry)
                continue
            claimed.add(key)
            kept.append(entry)
        final.append(kept)

    return RecipientLists.of(*final), within_removed, across_removed


def dedupe_step(state: PipelineState) -> PipelineState:
    lists, within, across = dedupe_lists(state.lists)
    removed = within + across
    action = ActionRecord(
        type=STEP_DEDUPE,
        input=state.lists,
        output=lists,
        processed=state.lists.total(),
        removed=len(removed),
        details={
            "removed_entries": removed,
            "removed_within_field": within,
            "removed_across_fields": across,
            "duplicates_found": len(removed),
        },
    )
    return state.advance(lists, action)


# ============================================================================
# Validate
# ============================================================================

def validate_step(state: PipelineState) -> PipelineState:
    config = state.config
    results: List[Dict[str, Any]] = []
    kept: List[List[str]] = []

    for name, entries in state.lists.fields():
        field_kept: List[str] = []
        for entry in entries:
            result = validate_recipient(
                entry,
                max_length_delta=config.typo_max_length_delta,
                min_similarity=config.typo_similarity_threshold,
            )
            results.append({**result.to_dict(), "field": name})
            if result.is_valid:
                field_kept.append(entry)
        kept.append(field_kept)

    errors = [r for r in results if r["status"] == STATUS_ERROR]
    warnings = [r for r in results if r["status"] == STATUS_WARNING]
    valid_count = sum(1 for r in results if r["status"] == STATUS_VALID)

    lists = RecipientLists.of(*kept)
    action = ActionRecord(
        type=STEP_VALIDATE,
        input=state.lists,
        output=lists,
        processed=state.lists.total(),
        removed=len(errors),
        details={
            "validation_results": results,
            "errors": errors,
            "warnings": warnings,
            "valid_count": valid_count,
            "warning_count": len(warnings),
            "error_count": len(errors),
        },
    )
    return state.advance(lists, action)


# ============================================================================
# Prioritize Internal
# ============================================================================

def prioritize_internal(entries: Sequence[str],
                        internal_domains: Sequence[str],
                        sort_alphabetically: bool = False) -> List[str]:
    """
    Internal entries first, by domain priority, then external entries.

    Entries sharing a priority keep their input order unless
    ``sort_alphabetically`` is set. An empty domain list leaves the
    entries untouched.
    """
    if not entries or not internal_domains:
        return list(entries)

    internal: List[Tuple[int, str]] = []
    external: List[str] = []
    for entry in entries:
        idx = match_domain_index(extract_email(entry), internal_domains)
        if idx == NOT_FOUND:
            external.append(entry)
        else:
            internal.append((idx, entry))

    if sort_alphabetically:
        internal.sort(key=lambda item: (item[0], sort_key(item[1])))
        external = sort_alphabetical(external)
    else:
        internal.sort(key=lambda item: item[0])

    return [entry for _, entry in internal] + external


def prioritize_internal_step(state: PipelineState) -> PipelineState:
    config = state.config
    lists = state.lists.map(
        lambda entries: prioritize_internal(entries, config.internal_domains, config.sort_alphabetically)
    )
    action = ActionRecord(
        type=STEP_PRIORITIZE_INTERNAL,
        input=state.lists,
        output=lists,
        processed=state.lists.total(),
        details={"sort_alphabetically": config.sort_alphabetically},
    )
    return state.advance(lists, action)


# ============================================================================
# Remove External
# ============================================================================

def remove_external(entries: Sequence[str], internal_domains: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Return ``(kept, removed)``; everything is kept when no usable domains are configured."""
    internal_domains = sanitize_domains(internal_domains)
    if not internal_domains:
        return list(entries), []

    kept: List[str] = []
    removed: List[str] = []
    for entry in entries:
        if match_domain_index(extract_email(entry), internal_domains) == NOT_FOUND:
            removed.append(entry)
        else:
            kept.append(entry)
    return kept, removed


def remove_external_step(state: PipelineState) -> PipelineState:
    domains = state.config.internal_domains
    kept: List[List[str]] = []
    removed: Dict[str, List[str]] = {}
    for name, entries in state.lists.fields():
        field_kept, field_removed = remove_external(entries, domains)
        kept.append(field_kept)
        removed[name] = field_removed

    total_removed = sum(len(v) for v in removed.values())
    lists = RecipientLists.of(*kept)
    action = ActionRecord(
        type=STEP_REMOVE_EXTERNAL,
        input=state.lists,
        output=lists,
        processed=state.lists.total(),
        removed=total_removed,
        details={"removed_by_field": removed, "skipped": not domains},
    )
    return state.advance(lists, action)


# ============================================================================
# Flag External
# ============================================================================

def flag_external_step(state: PipelineState) -> PipelineState:
    org_domain = state.config.org_domain
    lists = state.lists

    if not org_domain:
        action = ActionRecord(
            type=STEP_FLAG_EXTERNAL,
            input=lists,
            output=lists,
            processed=0,
            details={
                "flagged": [],
                "skipped": True,
                "message": "No organization domain provided",
            },
        )
        return state.advance(lists, action)

    flagged: List[Dict[str, Any]] = []
    for name, entries in lists.fields():
        for entry in entries:
            email = extract_email(entry)
            if not is_external(email, org_domain):
                continue
            parts = email.split("@")
            domain = parts[1] if len(parts) > 1 and parts[1] else "unknown"
            flagged.append({"recipient": entry, "email": email, "domain": domain, "field": name})

    by_domain: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
    for item in flagged:
        by_domain[item["domain"]].append(item)

    total = lists.total()
    action = ActionRecord(
        type=STEP_FLAG_EXTERNAL,
        input=lists,
        output=lists,
        processed=total,
        details={
            "flagged": [item["recipient"] for item in flagged],
            "external_by_domain": dict(by_domain),
            "summary": {
                "total_recipients": total,
                "external_count": len(flagged),
                "internal_count": total - len(flagged),
                "unique_external_domains": len(by_domain),
            },
            "org_domain": org_domain,
            "skipped": False,
        },
    )
    return state.advance(lists, action)


# ============================================================================
# Registry
# ============================================================================

STEP_REGISTRY: Dict[str, Step] = {
    STEP_SORT: sort_step,
    STEP_DEDUPE: dedupe_step,
    STEP_VALIDATE: validate_step,
    STEP_PRIORITIZE_INTERNAL: prioritize_internal_step,
    STEP_REMOVE_EXTERNAL: remove_external_step,
    STEP_FLAG_EXTERNAL: flag_external_step,
}

