from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import DEFAULT_ENABLED_STEPS


class CleanRequest(BaseModel):
    """
    Payload handed over by the host integration.
    - to/cc/bcc: recipient entries, "email" or "Name <email>"
    - enabledSteps: ordered step names; unknown names are ignored
    - internalDomains: priority-ordered organization domains
    - orgDomain: single domain used for external flagging
    - invalidPolicy: "remove" (drop invalid entries) or "abort" (change nothing)
    A null field counts as empty; a null enabledSteps means the defaults.
    """

    model_config = ConfigDict(populate_by_name=True)

    to: List[str] = Field(default_factory=list)
    cc: List[str] = Field(default_factory=list)
    bcc: List[str] = Field(default_factory=list)
    enabled_steps: List[str] = Field(default_factory=lambda: list(DEFAULT_ENABLED_STEPS), alias="enabledSteps")
    internal_domains: List[str] = Field(default_factory=list, alias="internalDomains")
    org_domain: str = Field("", alias="orgDomain")
    invalid_policy: Optional[Literal["remove", "abort"]] = Field(None, alias="invalidPolicy")

    @field_validator("to", "cc", "bcc", "internal_domains", mode="before")
    @classmethod
    def _null_list(cls, v):
        return [] if v is None else v

    @field_validator("org_domain", mode="before")
    @classmethod
    def _null_str(cls, v):
        return "" if v is None else v

    @field_validator("enabled_steps", mode="before")
    @classmethod
    def _null_steps(cls, v):
        return list(DEFAULT_ENABLED_STEPS) if v is None else v


class SummaryOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_processed: int = Field(alias="totalProcessed")
    total_remaining: int = Field(alias="totalRemaining")
    steps_executed: int = Field(alias="stepsExecuted")


class CleanResponse(BaseModel):
    """
    Result of one clean operation.
    actions: one record per executed step, in execution order
    aborted: True when the abort policy refused to clean because of invalid entries
    invalid: entries rejected by validation (removed, or the reason for aborting)
    message: short description of what changed, for the host's status line
    """

    model_config = ConfigDict(populate_by_name=True)

    to: List[str]
    cc: List[str]
    bcc: List[str]
    actions: List[Dict[str, Any]]
    summary: SummaryOut
    aborted: bool = False
    invalid: List[str] = Field(default_factory=list)
    message: str = ""

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
