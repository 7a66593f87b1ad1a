"""
Container for shared compiler dependencies (registries, etc.).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from orchestration_compiler.registry.agent_registry import AgentRegistry
from orchestration_compiler.registry.tool_registry import ToolRegistry


@dataclass(frozen=True)
class CompilerContext:
    agent_registry: AgentRegistry
    tool_registry: ToolRegistry = field(default_factory=ToolRegistry)
    # Tools declared by the invoking command; used when an agent declares none.
    command_tools: Tuple[str, ...] = ()
