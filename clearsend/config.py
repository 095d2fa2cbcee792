"""
Pipeline configuration.

Settings are passed explicitly into every run as a PipelineConfig value;
nothing in the pipeline reads process-wide state. ``load_settings`` is the one
place that looks at a settings file and the environment; the command-line
runner merges its result under the payload, and ``load_config`` turns it
into a PipelineConfig for callers that have no payload of their own.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from .errors import ConfigurationError
from .pipeline.domains import sanitize_domains
from .pipeline.typos import MAX_LENGTH_DELTA, MIN_SIMILARITY

logger = logging.getLogger(__name__)

# ============================================================================
# Step Names and Defaults
# ============================================================================

STEP_SORT = "sort"
STEP_DEDUPE = "dedupe"
STEP_VALIDATE = "validate"
STEP_PRIORITIZE_INTERNAL = "prioritizeInternal"
STEP_REMOVE_EXTERNAL = "removeExternal"
STEP_FLAG_EXTERNAL = "flagExt"

STEP_NAMES: Tuple[str, ...] = (
    STEP_SORT,
    STEP_DEDUPE,
    STEP_VALIDATE,
    STEP_PRIORITIZE_INTERNAL,
    STEP_REMOVE_EXTERNAL,
    STEP_FLAG_EXTERNAL,
)

DEFAULT_ENABLED_STEPS: Tuple[str, ...] = (
    STEP_SORT,
    STEP_DEDUPE,
    STEP_VALIDATE,
    STEP_PRIORITIZE_INTERNAL,
)

# Ribbon "quick clean": validate, dedupe, then sort.
QUICK_CLEAN_STEPS: Tuple[str, ...] = (STEP_VALIDATE, STEP_DEDUPE, STEP_SORT)

POLICY_REMOVE = "remove"
POLICY_ABORT = "abort"
INVALID_POLICIES = (POLICY_REMOVE, POLICY_ABORT)


@dataclass(frozen=True)
class PipelineConfig:
    """
    Everything a pipeline run needs besides the recipient lists.

    enabled_steps: ordered step names; unknown names are tolerated
    internal_domains: priority-ordered organization domains (first wins)
    org_domain: single domain used only by the flagging step
    typo_max_length_delta / typo_similarity_threshold: typo detector tuning
    invalid_policy: "remove" drops invalid entries, "abort" refuses to clean
    """

    enabled_steps: Tuple[str, ...] = DEFAULT_ENABLED_STEPS
    internal_domains: Tuple[str, ...] = ()
    org_domain: str = ""
    typo_max_length_delta: int = MAX_LENGTH_DELTA
    typo_similarity_threshold: float = MIN_SIMILARITY
    invalid_policy: str = POLICY_REMOVE

    def __post_init__(self):
        # Direct construction gets the same domain cleanup as build().
        object.__setattr__(self, "enabled_steps", tuple(self.enabled_steps))
        object.__setattr__(self, "internal_domains", tuple(sanitize_domains(self.internal_domains)))
        object.__setattr__(self, "org_domain", (self.org_domain or "").strip())
        if self.invalid_policy not in INVALID_POLICIES:
            raise ConfigurationError(f"Unknown invalid-entry policy: {self.invalid_policy!r}")

    @classmethod
    def build(cls,
              enabled_steps: Optional[Iterable[str]] = None,
              internal_domains: Optional[Iterable[str]] = None,
              org_domain: Optional[str] = None,
              **kwargs: Any) -> "PipelineConfig":
        """Build a config from loose inputs; None means the default."""
        return cls(
            enabled_steps=DEFAULT_ENABLED_STEPS if enabled_steps is None else tuple(enabled_steps),
            internal_domains=tuple(internal_domains or ()),
            org_domain=org_domain or "",
            **kwargs,
        )

    def with_steps(self, steps: Iterable[str]) -> "PipelineConfig":
        return replace(self, enabled_steps=tuple(steps))

    @property
    def sort_alphabetically(self) -> bool:
        return STEP_SORT in self.enabled_steps


# ============================================================================
# Settings File and Environment
# ============================================================================

def _split_env(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read a JSON settings file and apply CLEARSEND_* environment overrides.

    Keys use the add-in's names: enabledSteps, internalDomains, orgDomain,
    invalidPolicy.
    """
    settings: Dict[str, Any] = {}
    if path is not None:
        try:
            settings = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot read settings file {path}: {e}") from e
        if not isinstance(settings, dict):
            raise ConfigurationError(f"Settings file {path} must contain a JSON object")

    steps = os.getenv("CLEARSEND_ENABLED_STEPS", "").strip()
    if steps:
        settings["enabledSteps"] = _split_env(steps)
    domains = os.getenv("CLEARSEND_INTERNAL_DOMAINS", "").strip()
    if domains:
        settings["internalDomains"] = _split_env(domains)
    org = os.getenv("CLEARSEND_ORG_DOMAIN", "").strip()
    if org:
        settings["orgDomain"] = org
    policy = os.getenv("CLEARSEND_INVALID_POLICY", "").strip()
    if policy:
        settings["invalidPolicy"] = policy

    return settings


def load_config(path: Optional[Path] = None) -> PipelineConfig:
    settings = load_settings(path)
    config = PipelineConfig.build(
        enabled_steps=settings.get("enabledSteps"),
        internal_domains=settings.get("internalDomains"),
        org_domain=settings.get("orgDomain"),
        invalid_policy=settings.get("invalidPolicy", POLICY_REMOVE),
    )
    logger.debug(f"Loaded config with {len(config.enabled_steps)} steps "
                 f"and {len(config.internal_domains)} internal domains")
    return config


__all__ = [
    "PipelineConfig",
    "STEP_NAMES",
    "DEFAULT_ENABLED_STEPS",
    "QUICK_CLEAN_STEPS",
    "POLICY_REMOVE",
    "POLICY_ABORT",
    "load_config",
    "load_settings",
]
