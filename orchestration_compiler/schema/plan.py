"""
Pydantic models for the untrusted ``orchestration.plan.v1`` payload.

The models only enforce JSON shape. Semantic rules (non-empty ids, backward
dependencies, unique agents) live in ``compiler.validate_plan`` so that every
violation surfaces as a structured compiler error.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from orchestration_compiler.schema.models import JSON_SAFE_INTEGER_MAX

PLAN_KIND = "orchestration.plan.v1"


class StrictModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        frozen=True,
    )


class AgentSelection(StrictModel):
    id: str
    reason: str


class PlanStep(StrictModel):
    id: Optional[str] = None
    agents: List[AgentSelection] = Field(default_factory=list)
    depends_on: Optional[List[str]] = None

    @property
    def has_dependencies(self) -> bool:
        return bool(self.depends_on)

    def key(self, index: int) -> str:
        """Trimmed step id, or ``step_<n>`` (1-based) for anonymous steps."""
        step_id = (self.id or "").strip()
        return step_id or f"step_{index + 1}"


class OrchestrationPlan(StrictModel):
    kind: Literal["orchestration.plan.v1"] = PLAN_KIND
    # Lower bound is checked in validate_plan so it reports as a plan error.
    max_parallelism: Optional[int] = Field(default=None, le=JSON_SAFE_INTEGER_MAX)
    steps: List[PlanStep] = Field(default_factory=list)

    @property
    def is_explicit(self) -> bool:
        """True when any step declares dependencies (explicit mode)."""
        return any(step.has_dependencies for step in self.steps)

    def step_keys(self) -> List[str]:
        return [step.key(idx) for idx, step in enumerate(self.steps)]
