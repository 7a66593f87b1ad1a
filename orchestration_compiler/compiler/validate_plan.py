"""
Stage 2: structural and referential validation of an orchestration plan.

Dependencies may only point at earlier steps. Because the plan is a flat
sequence, that single rule keeps the synthesized graph acyclic without a
separate cycle-detection pass.
"""

from __future__ import annotations

from typing import Dict, Set

from orchestration_compiler.errors import (
    InvalidDependencyError,
    InvalidPlanError,
    MissingDescriptionError,
    UnknownAgentError,
)
from orchestration_compiler.registry.agent_registry import AgentRegistry
from orchestration_compiler.schema.plan import OrchestrationPlan, PlanStep
from shared.logger import get_logger

logger = get_logger(__name__)


def validate_plan(plan: OrchestrationPlan, agent_registry: AgentRegistry) -> None:
    if plan.max_parallelism is not None and plan.max_parallelism < 1:
        raise InvalidPlanError(
            "max_parallelism must be >= 1", max_parallelism=plan.max_parallelism
        )
    if not plan.steps:
        raise InvalidPlanError("plan must include at least one step")

    step_ids = _collect_step_ids(plan)

    if plan.is_explicit:
        for idx, step in enumerate(plan.steps):
            if not (step.id or "").strip():
                raise InvalidPlanError(
                    "step id required when depends_on is used", step_index=idx
                )

    seen_agents: Set[str] = set()
    for idx, step in enumerate(plan.steps):
        if not step.agents:
            raise InvalidPlanError(
                f"step {idx + 1} must include at least one agent", step_index=idx
            )
        _validate_dependencies(idx, step, step_ids)
        _validate_agents(idx, step, agent_registry, seen_agents)

    logger.debug(
        f"Validated plan: {len(plan.steps)} steps, {len(seen_agents)} agents, "
        f"{'explicit' if plan.is_explicit else 'implicit'} mode"
    )


def _collect_step_ids(plan: OrchestrationPlan) -> Dict[str, int]:
    step_ids: Dict[str, int] = {}
    for idx, step in enumerate(plan.steps):
        key = (step.id or "").strip()
        if not key:
            continue
        if key in step_ids:
            raise InvalidPlanError(f'duplicate step id "{key}"', step_index=idx, step_id=key)
        step_ids[key] = idx
    return step_ids


def _validate_dependencies(idx: int, step: PlanStep, step_ids: Dict[str, int]) -> None:
    for raw in step.depends_on or []:
        dep_id = raw.strip()
        if not dep_id:
            raise InvalidDependencyError(
                f"step {idx + 1} has empty depends_on", step_index=idx
            )
        dep_index = step_ids.get(dep_id)
        if dep_index is None:
            raise InvalidDependencyError(
                f'step {idx + 1} depends on unknown step "{dep_id}"',
                step_index=idx,
                dependency=dep_id,
            )
        if dep_index == idx:
            raise InvalidDependencyError(
                f'step {idx + 1} depends on itself ("{dep_id}")',
                step_index=idx,
                dependency=dep_id,
            )
        if dep_index > idx:
            raise InvalidDependencyError(
                f'step {idx + 1} depends on future step "{dep_id}"',
                step_index=idx,
                dependency=dep_id,
            )


def _validate_agents(
    idx: int,
    step: PlanStep,
    agent_registry: AgentRegistry,
    seen: Set[str],
) -> None:
    for selection in step.agents:
        agent_id = selection.id.strip()
        if not agent_id:
            raise InvalidPlanError(f"step {idx + 1} agent id required", step_index=idx)

        agent = agent_registry.maybe_get(agent_id)
        if agent is None:
            raise UnknownAgentError(
                f'unknown agent "{agent_id}"', step_index=idx, agent_id=agent_id
            )
        if not agent.has_description:
            raise MissingDescriptionError(
                f'agent "{agent_id}" missing description', step_index=idx, agent_id=agent_id
            )
        if not selection.reason.strip():
            raise InvalidPlanError(
                f'agent "{agent_id}" must include a reason', step_index=idx, agent_id=agent_id
            )
        if agent_id in seen:
            raise InvalidPlanError(
                f'agent "{agent_id}" referenced more than once',
                step_index=idx,
                agent_id=agent_id,
            )
        seen.add(agent_id)
