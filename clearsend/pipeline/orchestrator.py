"""
Pipeline orchestration.

Runs the caller's ordered step list over a fresh PipelineState and returns
the final lists plus the full action log. The run is deterministic and does
no I/O; inputs are never mutated.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..config import PipelineConfig
from ..errors import StepExecutionError
from .state import ActionRecord, PipelineState, RecipientLists
from .steps import STEP_REGISTRY, Step

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    lists: RecipientLists
    actions: Tuple[ActionRecord, ...]

    @property
    def steps_executed(self) -> int:
        return len(self.actions)

    def action(self, step_name: str) -> Optional[ActionRecord]:
        """Last action recorded for ``step_name``, if that step ran."""
        for action in reversed(self.actions):
            if action.type == step_name:
                return action
        return None


# ============================================================================
# Public API
# ============================================================================

def run_pipeline(lists: RecipientLists,
                 config: PipelineConfig,
                 registry: Optional[Dict[str, Step]] = None) -> PipelineResult:
    """
    Apply ``config.enabled_steps`` in order.

    Unknown step names are skipped so older hosts can carry settings written
    by newer ones. Any exception inside a step aborts the run and is re-raised
    as StepExecutionError naming the step.
    """
    steps = STEP_REGISTRY if registry is None else registry
    state = PipelineState(lists=lists, config=config)

    for name in config.enabled_steps:
        step = steps.get(name)
        if step is None:
            logger.debug(f"Skipping unknown step {name!r}")
            continue
        try:
            state = step(state)
        except Exception as e:
            logger.error(f"Step '{name}' failed: {e}")
            raise StepExecutionError(name, e) from e
        logger.debug(f"Step {name} done, {state.lists.total()} recipient(s) remaining")

    return PipelineResult(lists=state.lists, actions=state.actions)
