"""
Prompt text for synthesized agent nodes, the final synthesis node and the
external plan generator.

Upstream outputs are referenced as ``{{node_id}}`` placeholders; the
execution engine substitutes them, never the compiler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from orchestration_compiler.registry.agent_registry import OrchestrationCandidate

PLANNER_SYSTEM_PROMPT = """You plan which plugin agents to run based only on their descriptions.

Rules:
- Output MUST be a single JSON object that matches orchestration.plan.v1.
- Do NOT output markdown, commentary, or code fences.
- Select only from the provided agent IDs.
- Prefer minimal agents needed to satisfy the user task.
- Use multiple steps only when later agents must build on earlier results.
- Each step can run agents in parallel.
- Use "id" + "depends_on" if you need non-sequential step ordering.
"""

SYNTHESIS_PREAMBLE = "Synthesize the results and complete the task."


@dataclass(frozen=True)
class StepDependency:
    step_key: str
    node_id: str


def placeholder(node_id: str) -> str:
    return "{{" + node_id + "}}"


def build_agent_user_prompt(
    instructions: str,
    task: str,
    deps: Sequence[StepDependency],
) -> str:
    parts: List[str] = []
    if instructions.strip():
        parts.append(instructions.strip())
    parts.append("USER_TASK:")
    parts.append(task.strip())
    if deps:
        parts.extend(["", "PREVIOUS_STEP_OUTPUTS:"])
        for dep in deps:
            parts.append(f"- {dep.step_key}: {placeholder(dep.node_id)}")
    return "\n".join(parts)


def build_synthesis_prompt(
    instructions: str,
    task: str,
    outputs: Sequence[str],
) -> str:
    parts: List[str] = [SYNTHESIS_PREAMBLE]
    if instructions.strip():
        parts.extend(["", "COMMAND:", instructions.strip()])
    parts.extend(["", "USER_TASK:", task.strip()])
    if outputs:
        parts.extend(["", "RESULTS:"])
        parts.extend(f"- {placeholder(node_id)}" for node_id in outputs)
    return "\n".join(parts)


def build_planner_prompt(
    task: str,
    candidates: Sequence[OrchestrationCandidate],
    *,
    command: Optional[str] = None,
    instructions: str = "",
    plugin_name: Optional[str] = None,
    plugin_description: Optional[str] = None,
) -> str:
    """
    Render the user prompt handed to the plan generator: plugin metadata, the
    task, the command instructions and the candidate agents with descriptions.
    """
    out: List[str] = []
    if plugin_name:
        out.append(f"PLUGIN_NAME: {plugin_name}")
    if plugin_description:
        out.append(f"PLUGIN_DESCRIPTION: {plugin_description}")
    if command:
        out.append(f"COMMAND: {command}")
    out.append("USER_TASK:")
    out.append(task.strip())
    out.append("")
    if instructions.strip():
        out.append("COMMAND_MARKDOWN:")
        out.append(instructions)
        out.append("")
    out.append("CANDIDATE_AGENTS:")
    for candidate in candidates:
        out.append(f"- id: {candidate.name}")
        out.append(f"  description: {candidate.description}")
    return "\n".join(out)
