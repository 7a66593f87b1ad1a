"""
Tool capability checks.

Agent nodes may only use client-executed function tools from the registry's
allow-set. Any node that declares tools runs them in ``client`` mode.
"""

from __future__ import annotations

from typing import List, Sequence

from orchestration_compiler.compiler.context import CompilerContext
from orchestration_compiler.errors import InvalidToolConfigError, UnknownToolError
from orchestration_compiler.registry.agent_registry import AgentDefinition
from orchestration_compiler.registry.tool_registry import ToolRegistry
from orchestration_compiler.schema.models import (
    LLMNode,
    MapFanoutNode,
    RouteSwitchNode,
    ToolExecution,
    ToolExecutionMode,
    WorkflowSpec,
)
from shared.config import config

CLIENT_TOOL_EXECUTION = ToolExecution(mode=ToolExecutionMode.client)


def resolve_tool_refs(agent: AgentDefinition, context: CompilerContext) -> List[str]:
    """
    Tools for an agent node: the agent's own, else the command's, else the
    registry defaults (falling back to the configured defaults).
    """
    registry = context.tool_registry
    names: Sequence[str] = (
        agent.tools
        or context.command_tools
        or registry.defaults
        or tuple(config.default_tools)
    )
    unique: List[str] = []
    for name in names:
        if not registry.is_allowed(name):
            raise UnknownToolError(
                f'unknown tool "{name}"', agent_id=agent.name, tool=name
            )
        if name not in unique:
            unique.append(name)
    return unique


def validate_workflow_tools(spec: WorkflowSpec, tool_registry: ToolRegistry) -> WorkflowSpec:
    """
    Check every request node's tools against the allow-set and force the
    client execution mode. Returns a spec with normalized nodes.
    """
    nodes = []
    for node in spec.nodes:
        if isinstance(node, (LLMNode, RouteSwitchNode)):
            node = _normalize_request_node(node, tool_registry)
        elif isinstance(node, MapFanoutNode) and isinstance(node.subnode, (LLMNode, RouteSwitchNode)):
            subnode = _normalize_request_node(node.subnode, tool_registry, parent=node.id)
            node = node.model_copy(update={"subnode": subnode})
        nodes.append(node)
    return spec.model_copy(update={"nodes": nodes})


def _normalize_request_node(node, tool_registry: ToolRegistry, parent: str | None = None):
    if not node.tools:
        return node

    for tool in node.tools:
        if not isinstance(tool, str):
            raise InvalidToolConfigError(
                "only function tool names are supported", node_id=node.id, parent_id=parent
            )
        if not tool_registry.is_allowed(tool):
            raise UnknownToolError(
                f'unknown tool "{tool}"', node_id=node.id, parent_id=parent, tool=tool
            )

    mode = node.tool_execution.mode if node.tool_execution else None
    if mode is not None and mode != ToolExecutionMode.client:
        raise InvalidToolConfigError(
            f'tool_execution.mode must be "client", got "{mode.value}"',
            node_id=node.id,
            parent_id=parent,
        )
    if mode is None:
        return node.model_copy(update={"tool_execution": CLIENT_TOOL_EXECUTION})
    return node
