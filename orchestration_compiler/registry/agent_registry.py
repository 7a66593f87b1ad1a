"""
Read-only agent registry.

The compiler consults this registry to resolve the agents a plan selects: each
entry supplies the agent's system prompt, the description planners choose
from, and an optional tool list. Nothing in the compiler writes to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from orchestration_compiler.errors import (
    InvalidPlanError,
    MissingDescriptionError,
    UnknownAgentError,
)


@dataclass(frozen=True)
class AgentDefinition:
    name: str
    system_prompt: str
    description: Optional[str] = None
    tools: Tuple[str, ...] = ()

    @property
    def has_description(self) -> bool:
        return bool((self.description or "").strip())


@dataclass(frozen=True)
class OrchestrationCandidate:
    name: str
    description: str
    agent: AgentDefinition


class AgentRegistry:
    """
    Immutable mapping of agent id -> AgentDefinition.
    """

    def __init__(self, agents: Iterable[AgentDefinition] = ()) -> None:
        self._agents: Mapping[str, AgentDefinition] = MappingProxyType(
            {agent.name: agent for agent in agents}
        )

    def __contains__(self, name: object) -> bool:
        return name in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    def names(self) -> List[str]:
        return sorted(self._agents)

    def maybe_get(self, name: str) -> Optional[AgentDefinition]:
        return self._agents.get(name)

    def get(self, name: str) -> AgentDefinition:
        agent = self._agents.get(name)
        if agent is None:
            raise UnknownAgentError(f'agent "{name}" not found', agent_id=name)
        return agent

    def candidates(self, names: Sequence[str] | None = None) -> List[OrchestrationCandidate]:
        """
        Agents a planner may choose from, restricted to ``names`` when given.
        Every candidate must exist and carry a description.
        """
        selected = list(names) if names else [agent.name for agent in self._agents.values()]
        if not selected:
            raise InvalidPlanError("no agents available for dynamic orchestration")

        candidates: List[OrchestrationCandidate] = []
        for name in selected:
            agent = self.get(str(name))
            if not agent.has_description:
                raise MissingDescriptionError(
                    f'agent "{name}" missing description', agent_id=name
                )
            candidates.append(
                OrchestrationCandidate(
                    name=agent.name,
                    description=agent.description.strip(),
                    agent=agent,
                )
            )
        return candidates
