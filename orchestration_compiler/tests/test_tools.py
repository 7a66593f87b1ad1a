from __future__ import annotations

import json

import pytest

from orchestration_compiler import normalize_workflow_intent
from orchestration_compiler.builder.workflow_builder import workflow
from orchestration_compiler.compiler.tools import resolve_tool_refs, validate_workflow_tools
from orchestration_compiler.errors import (
    ErrorCode,
    InvalidToolConfigError,
    UnknownToolError,
    WorkflowBuildError,
)
from orchestration_compiler.registry.agent_registry import AgentDefinition
from orchestration_compiler.compiler.context import CompilerContext
from orchestration_compiler.registry.tool_registry import DEFAULT_ALLOWED_TOOLS, ToolRegistry
from orchestration_compiler.schema.models import LLMNode, ToolExecutionMode


def _intent(*nodes: dict) -> dict:
    return {
        "kind": "workflow.intent",
        "nodes": list(nodes),
        "outputs": [{"name": "result", "from": nodes[-1]["id"]}],
    }


def test_tool_registry_defaults() -> None:
    registry = ToolRegistry.create()

    assert registry.allowed == DEFAULT_ALLOWED_TOOLS
    assert registry.is_allowed("bash")
    assert not registry.is_allowed("docker_run")
    assert registry.sorted_names()[0] == "bash"


def test_resolve_prefers_registry_defaults(agent_registry) -> None:
    context = CompilerContext(
        agent_registry=agent_registry,
        tool_registry=ToolRegistry.create(defaults=["fs_search", "fs_search"]),
    )
    agent = AgentDefinition(name="plain", system_prompt="x", description="d")

    assert resolve_tool_refs(agent, context) == ["fs_search"]


def test_resolve_checks_restricted_allow_set(agent_registry) -> None:
    context = CompilerContext(
        agent_registry=agent_registry,
        tool_registry=ToolRegistry.create(allowed=["fs_read_file"]),
    )
    agent = AgentDefinition(name="editor", system_prompt="x", description="d", tools=("fs_edit",))

    with pytest.raises(UnknownToolError) as excinfo:
        resolve_tool_refs(agent, context)

    assert excinfo.value.context == {"agent_id": "editor", "tool": "fs_edit"}


def test_validate_sets_client_mode() -> None:
    spec = workflow().llm("a", user="A", tools=["bash"]).output("result", "a").build()

    checked = validate_workflow_tools(spec, ToolRegistry())

    assert checked.node("a").tool_execution.mode is ToolExecutionMode.client
    assert spec.node("a").tool_execution is None


def test_validate_rejects_non_client_mode() -> None:
    spec = (
        workflow()
        .llm("a", user="A", tools=["bash"], tool_execution="server")
        .output("result", "a")
        .build()
    )

    with pytest.raises(InvalidToolConfigError, match='must be "client"') as excinfo:
        validate_workflow_tools(spec, ToolRegistry())

    assert excinfo.value.code is ErrorCode.invalid_tool_config


def test_validate_rejects_structured_tool() -> None:
    spec = (
        workflow()
        .llm("a", user="A", tools=[{"type": "web_search"}])
        .output("result", "a")
        .build()
    )

    with pytest.raises(InvalidToolConfigError, match="function tool names"):
        validate_workflow_tools(spec, ToolRegistry())


def test_validate_checks_fanout_subnodes() -> None:
    spec = (
        workflow()
        .llm("list", user="List")
        .map_fanout("each", LLMNode(id="s", user="{{item}}", tools=["rm_rf"]), items_from="list")
        .output("result", "each")
        .build()
    )

    with pytest.raises(UnknownToolError) as excinfo:
        validate_workflow_tools(spec, ToolRegistry())

    assert excinfo.value.context["parent_id"] == "each"


def test_nodes_without_tools_are_untouched() -> None:
    spec = workflow().llm("a", user="A").join_all("j").edge("a", "j").output("result", "j").build()

    assert validate_workflow_tools(spec, ToolRegistry()) == spec


def test_normalize_workflow_intent(context) -> None:
    payload = _intent(
        {"id": "b", "type": "llm", "user": "B", "tools": ["fs_search"]},
        {"id": "a", "type": "llm", "user": "A"},
        {"id": "j", "type": "join.all", "depends_on": ["b", "a", "b"]},
    )

    spec = normalize_workflow_intent(json.dumps(payload), context)

    assert spec.node("j").depends_on == ["a", "b"]
    assert spec.node("b").tool_execution.mode is ToolExecutionMode.client


def test_normalize_rejects_cycles(context) -> None:
    payload = _intent(
        {"id": "a", "type": "llm", "user": "A", "depends_on": ["b"]},
        {"id": "b", "type": "llm", "user": "B", "depends_on": ["a"]},
    )

    with pytest.raises(WorkflowBuildError, match="dependency cycle"):
        normalize_workflow_intent(payload, context)


def test_normalize_rejects_unknown_tools(context) -> None:
    payload = _intent({"id": "a", "type": "llm", "user": "A", "tools": ["curl"]})

    with pytest.raises(UnknownToolError):
        normalize_workflow_intent(payload, context)
