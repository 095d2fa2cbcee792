"""
Host-facing clean operation.

Turns the integration payload into a PipelineConfig, applies the caller's
invalid-entry policy and runs the orchestrator. This is the single entry
point hosts use; they never re-implement step rules themselves.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .config import (
    POLICY_ABORT,
    POLICY_REMOVE,
    STEP_DEDUPE,
    STEP_REMOVE_EXTERNAL,
    STEP_VALIDATE,
    PipelineConfig,
)
from .pipeline.address import extract_email
from .pipeline.orchestrator import PipelineResult, run_pipeline
from .pipeline.state import RecipientLists
from .pipeline.validation import is_valid_email
from .schemas import CleanRequest, CleanResponse, SummaryOut

logger = logging.getLogger(__name__)

ABORT_MESSAGE = "Processing of addresses disabled due to invalid addresses in the lists"
NO_CHANGES_MESSAGE = "No changes applied"


# ============================================================================
# Helpers
# ============================================================================

def find_invalid_entries(lists: RecipientLists) -> List[str]:
    """Entries whose email fails the format rules, in To, CC, BCC order."""
    return [entry for entry in lists.all_entries() if not is_valid_email(extract_email(entry))]


def _removed_by(result: PipelineResult, step_name: str) -> int:
    return sum(a.removed for a in result.actions if a.type == step_name)


def describe_changes(result: PipelineResult) -> str:
    """Summarize removals the way the add-in's last-action line does."""
    changes = []
    invalid = _removed_by(result, STEP_VALIDATE)
    duplicates = _removed_by(result, STEP_DEDUPE)
    external = _removed_by(result, STEP_REMOVE_EXTERNAL)
    if invalid:
        changes.append(f"{invalid} invalid removed")
    if duplicates:
        changes.append(f"{duplicates} duplicates removed")
    if external:
        changes.append(f"{external} external removed")
    return ", ".join(changes) if changes else NO_CHANGES_MESSAGE


def _rejected_entries(result: PipelineResult) -> List[str]:
    rejected: List[str] = []
    for action in result.actions:
        if action.type == STEP_VALIDATE:
            rejected.extend(r["address"] for r in action.details.get("errors", []))
    return rejected


# ============================================================================
# Public API
# ============================================================================

def clean(lists: RecipientLists, config: PipelineConfig) -> CleanResponse:
    """
    Run the configured steps over ``lists`` under ``config.invalid_policy``.

    With the abort policy and validation enabled, any invalid entry stops the
    operation before any step runs: the lists come back unchanged, with the
    offending entries listed in ``invalid``.
    """
    total = lists.total()

    if config.invalid_policy == POLICY_ABORT and STEP_VALIDATE in config.enabled_steps:
        invalid = find_invalid_entries(lists)
        if invalid:
            logger.warning(f"Clean aborted: {len(invalid)} invalid recipient(s)")
            return CleanResponse(
                **lists.to_dict(),
                actions=[],
                summary=SummaryOut(total_processed=total, total_remaining=total, steps_executed=0),
                aborted=True,
                invalid=invalid,
                message=ABORT_MESSAGE,
            )

    result = run_pipeline(lists, config)
    logger.info(f"Cleaned {total} recipient(s) in {result.steps_executed} step(s), "
                f"{result.lists.total()} remaining")

    return CleanResponse(
        **result.lists.to_dict(),
        actions=[a.to_dict() for a in result.actions],
        summary=SummaryOut(
            total_processed=total,
            total_remaining=result.lists.total(),
            steps_executed=result.steps_executed,
        ),
        invalid=_rejected_entries(result),
        message=describe_changes(result),
    )


def process_recipients(payload: Union[CleanRequest, Dict[str, Any]],
                       policy: Optional[str] = None) -> CleanResponse:
    """
    Validate the integration payload and clean it.

    ``policy`` overrides the payload's invalidPolicy; both default to
    "remove". Raises pydantic.ValidationError for malformed payloads and
    StepExecutionError when a step fails.
    """
    request = payload if isinstance(payload, CleanRequest) else CleanRequest.model_validate(payload)
    config = PipelineConfig.build(
        enabled_steps=request.enabled_steps,
        internal_domains=request.internal_domains,
        org_domain=request.org_domain,
        invalid_policy=policy or request.invalid_policy or POLICY_REMOVE,
    )
    lists = RecipientLists.of(request.to, request.cc, request.bcc)
    return clean(lists, config)
