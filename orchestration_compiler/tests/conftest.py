from __future__ import annotations

import pytest

from orchestration_compiler.compiler.context import CompilerContext
from orchestration_compiler.registry.agent_registry import AgentDefinition, AgentRegistry
from orchestration_compiler.registry.tool_registry import ToolRegistry

AGENTS = [
    AgentDefinition(
        name="researcher",
        system_prompt="You research the codebase.",
        description="Finds relevant files and facts.",
    ),
    AgentDefinition(
        name="writer",
        system_prompt="You write documentation.",
        description="Drafts prose from research notes.",
        tools=("fs_read_file", "write_file", "fs_read_file"),
    ),
    AgentDefinition(
        name="reviewer",
        system_prompt="You review drafts.",
        description="Checks drafts for mistakes.",
        tools=("fs_read_file",),
    ),
    AgentDefinition(
        name="Security Auditor",
        system_prompt="   ",
        description="Looks for vulnerabilities.",
    ),
    AgentDefinition(
        name="security-auditor",
        system_prompt="Audit.",
        description="Same token as Security Auditor.",
    ),
    AgentDefinition(
        name="undocumented",
        system_prompt="No description here.",
    ),
    AgentDefinition(
        name="shell_user",
        system_prompt="Runs commands.",
        description="Uses an unsupported tool.",
        tools=("docker_run",),
    ),
    AgentDefinition(
        name="!!!",
        system_prompt="Unsanitizable.",
        description="Has no alphanumeric characters.",
    ),
]


@pytest.fixture
def agent_registry() -> AgentRegistry:
    return AgentRegistry(AGENTS)


@pytest.fixture
def context(agent_registry: AgentRegistry) -> CompilerContext:
    return CompilerContext(agent_registry=agent_registry, tool_registry=ToolRegistry())


def make_plan(*steps: dict, max_parallelism: int | None = None) -> dict:
    plan: dict = {"kind": "orchestration.plan.v1", "steps": list(steps)}
    if max_parallelism is not None:
        plan["max_parallelism"] = max_parallelism
    return plan


def step(*agents: str, id: str | None = None, depends_on: list[str] | None = None) -> dict:
    data: dict = {"agents": [{"id": agent, "reason": f"{agent} is needed"} for agent in agents]}
    if id is not None:
        data["id"] = id
    if depends_on is not None:
        data["depends_on"] = depends_on
    return data
