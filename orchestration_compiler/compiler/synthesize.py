"""
Stage 3: synthesize workflow nodes and dependency edges from a validated plan.

Each agent selection becomes an ``llm`` node; steps with several agents get a
``join.all`` fan-in node; a final synthesis node consumes the terminal step
outputs. Node ids are derived deterministically from agent ids and step keys
and collisions are rejected rather than suffixed.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from orchestration_compiler.builder.workflow_builder import build_workflow
from orchestration_compiler.compiler.context import CompilerContext
from orchestration_compiler.compiler.node_ids import (
    format_agent_node_id,
    format_step_join_node_id,
)
from orchestration_compiler.compiler.prompts import (
    StepDependency,
    build_agent_user_prompt,
    build_synthesis_prompt,
)
from orchestration_compiler.compiler.tools import CLIENT_TOOL_EXECUTION, resolve_tool_refs
from orchestration_compiler.errors import InvalidDependencyError, InvalidPlanError
from orchestration_compiler.schema.models import (
    Edge,
    JoinAllNode,
    LLMNode,
    Node,
    OutputRef,
    WorkflowSpec,
)
from orchestration_compiler.schema.plan import OrchestrationPlan, PlanStep
from shared.config import config
from shared.logger import get_logger

logger = get_logger(__name__)


def synthesize_workflow(
    plan: OrchestrationPlan,
    context: CompilerContext,
    *,
    task: str,
    instructions: str = "",
    name: Optional[str] = None,
    model: Optional[str] = None,
) -> WorkflowSpec:
    synthesizer = _PlanSynthesizer(plan, context, task=task, instructions=instructions)
    nodes, edges, outputs = synthesizer.run()
    return build_workflow(
        nodes,
        edges,
        outputs,
        name=name,
        model=model or config.default_model,
        max_parallelism=plan.max_parallelism,
    )


def find_terminal_outputs(plan: OrchestrationPlan, step_outputs: List[str]) -> List[str]:
    """
    Output nodes that feed the synthesis node. Implicit mode: the last step's
    output. Explicit mode: every step output no other step depends on.
    """
    if not step_outputs:
        return []
    if not plan.is_explicit:
        return [step_outputs[-1]]

    depended: Set[str] = set()
    for step in plan.steps:
        depended.update(dep.strip() for dep in step.depends_on or [])
    return [
        output
        for key, output in zip(plan.step_keys(), step_outputs)
        if key not in depended
    ]


class _PlanSynthesizer:
    """Owns the intermediate node/edge collections for one compilation."""

    def __init__(
        self,
        plan: OrchestrationPlan,
        context: CompilerContext,
        *,
        task: str,
        instructions: str,
    ) -> None:
        self.plan = plan
        self.context = context
        self.task = task
        self.instructions = instructions
        self.step_keys = plan.step_keys()
        self.step_order: Dict[str, int] = {}
        for idx, key in enumerate(self.step_keys):
            self.step_order.setdefault(key, idx)
        self.step_outputs: Dict[str, str] = {}
        self.outputs_by_index: List[str] = []
        self.used_ids: Set[str] = set()
        self.nodes: List[Node] = []
        self.edges: List[Edge] = []

    def run(self):
        for idx, step in enumerate(self.plan.steps):
            deps = self._dependencies(idx, step)
            output_id = self._emit_step(idx, step, deps)
            self.step_outputs[self.step_keys[idx]] = output_id
            self.outputs_by_index.append(output_id)

        terminal = find_terminal_outputs(self.plan, self.outputs_by_index)
        synth_id = config.synthesis_node_id
        self._claim(synth_id)
        self.nodes.append(
            LLMNode(
                id=synth_id,
                user=build_synthesis_prompt(self.instructions, self.task, terminal),
            )
        )
        self.edges.extend(Edge(from_=node_id, to=synth_id) for node_id in terminal)
        outputs = [OutputRef(name=config.result_output_name, from_=synth_id)]

        logger.debug(
            f"Synthesized {len(self.nodes)} nodes from {len(self.plan.steps)} steps; "
            f"terminal outputs: {terminal}"
        )
        return self.nodes, self.edges, outputs

    def _dependencies(self, idx: int, step: PlanStep) -> List[StepDependency]:
        if not self.plan.is_explicit:
            if idx == 0:
                return []
            return [StepDependency(self.step_keys[idx - 1], self.outputs_by_index[idx - 1])]

        deps: List[StepDependency] = []
        seen: Set[str] = set()
        for raw in step.depends_on or []:
            key = raw.strip()
            if key in seen:
                continue
            seen.add(key)
            node_id = self.step_outputs.get(key)
            if node_id is None:
                raise InvalidDependencyError(
                    f'missing output for dependency "{key}"', step_index=idx, dependency=key
                )
            dep_index = self.step_order.get(key)
            if dep_index is None or dep_index >= idx:
                raise InvalidDependencyError(
                    f'invalid dependency "{key}"', step_index=idx, dependency=key
                )
            deps.append(StepDependency(key, node_id))
        return deps

    def _emit_step(self, idx: int, step: PlanStep, deps: List[StepDependency]) -> str:
        user_prompt = build_agent_user_prompt(self.instructions, self.task, deps)
        step_node_ids: List[str] = []
        for selection in step.agents:
            agent_id = selection.id.strip()
            agent = self.context.agent_registry.get(agent_id)
            node_id = format_agent_node_id(agent_id)
            self._claim(node_id, step_index=idx, agent_id=agent_id)

            tools = resolve_tool_refs(agent, self.context)
            self.nodes.append(
                LLMNode(
                    id=node_id,
                    system=agent.system_prompt.strip() or None,
                    user=user_prompt,
                    tools=tools or None,
                    tool_execution=CLIENT_TOOL_EXECUTION if tools else None,
                )
            )
            self.edges.extend(Edge(from_=dep.node_id, to=node_id) for dep in deps)
            step_node_ids.append(node_id)

        if not step_node_ids:
            raise InvalidPlanError(f"step {idx + 1} must include at least one agent", step_index=idx)
        if len(step_node_ids) == 1:
            return step_node_ids[0]

        join_id = format_step_join_node_id(self.step_keys[idx])
        self._claim(join_id, step_index=idx)
        self.nodes.append(JoinAllNode(id=join_id))
        self.edges.extend(Edge(from_=node_id, to=join_id) for node_id in step_node_ids)
        return join_id

    def _claim(self, node_id: str, **context) -> None:
        if node_id in self.used_ids:
            raise InvalidPlanError(f'duplicate node id "{node_id}"', node_id=node_id, **context)
        self.used_ids.add(node_id)
