"""
Pydantic models describing the compiled workflow specification.

Nodes are a discriminated union on ``type`` so each node kind only carries the
fields that belong to it. All workflow models are frozen: a compiled spec is
immutable once the builder returns it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union, Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator


# -----------------------------
# JSON-ish values
# -----------------------------
JSONPrimitive = Union[str, int, float, bool, None]
JSONValue = Union[JSONPrimitive, Dict[str, Any], List[Any]]

WORKFLOW_KIND = "workflow.intent"
ITEM_PLACEHOLDER = "item"
# Largest integer RFC 8785 canonical JSON can represent exactly
JSON_SAFE_INTEGER_MAX = 2**53 - 1


class WorkflowModel(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        frozen=True,
    )


class NodeType(str, Enum):
    llm = "llm"
    route_switch = "route.switch"
    join_all = "join.all"
    join_any = "join.any"
    join_collect = "join.collect"
    transform_json = "transform.json"
    map_fanout = "map.fanout"


class ToolExecutionMode(str, Enum):
    server = "server"
    client = "client"
    agentic = "agentic"


class BindingEncoding(str, Enum):
    json = "json"
    json_string = "json_string"


# -----------------------------
# Conditions and edges
# -----------------------------
class ConditionSource(str, Enum):
    node_output = "node_output"
    node_status = "node_status"


class ConditionOp(str, Enum):
    equals = "equals"
    matches = "matches"
    exists = "exists"


class Condition(WorkflowModel):
    source: ConditionSource
    op: ConditionOp
    path: str = Field(min_length=1)
    value: Optional[JSONValue] = None

    @model_validator(mode="after")
    def _check_path(self) -> "Condition":
        if not self.path.startswith("$"):
            raise ValueError('Condition: path must be a JSONPath starting with "$"')
        return self


class Edge(WorkflowModel):
    from_: str = Field(min_length=1, alias="from")
    to: str = Field(min_length=1)
    when: Optional[Condition] = None


class OutputRef(WorkflowModel):
    name: str = Field(min_length=1)
    from_: str = Field(min_length=1, alias="from")
    pointer: Optional[str] = None

    def sort_key(self) -> tuple:
        return (self.name, self.from_, self.pointer or "")


# -----------------------------
# Requests and bindings
# -----------------------------
class ContentBlock(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    type: str = "text"
    text: Optional[str] = None


class InputMessage(WorkflowModel):
    type: Literal["message"] = "message"
    role: str = Field(min_length=1)
    content: List[ContentBlock] = Field(default_factory=list)

    @classmethod
    def text(cls, role: str, text: str) -> "InputMessage":
        return cls(role=role, content=[ContentBlock(type="text", text=text)])


class Binding(WorkflowModel):
    """
    Splices one node's output into another node's request.

    Exactly one of ``to`` (a JSON pointer into the request) or
    ``to_placeholder`` (a ``{{name}}`` placeholder) must be set.
    """

    from_: str = Field(min_length=1, alias="from")
    pointer: Optional[str] = None
    to: Optional[str] = None
    to_placeholder: Optional[str] = None
    encoding: BindingEncoding = BindingEncoding.json_string

    @model_validator(mode="after")
    def _check_target(self) -> "Binding":
        if bool(self.to) == bool(self.to_placeholder):
            raise ValueError("Binding: exactly one of to or to_placeholder is required")
        return self


class ToolExecution(WorkflowModel):
    mode: ToolExecutionMode


class ValueRef(WorkflowModel):
    from_: str = Field(min_length=1, alias="from")
    pointer: Optional[str] = None


# -----------------------------
# Nodes
# -----------------------------
class NodeBase(WorkflowModel):
    id: str = Field(min_length=1)
    type: str
    depends_on: Optional[List[str]] = None


class _RequestNode(NodeBase):
    model: Optional[str] = None
    system: Optional[str] = None
    user: Optional[str] = None
    input: Optional[List[InputMessage]] = None
    stream: Optional[bool] = None
    tools: Optional[List[Union[str, Dict[str, Any]]]] = None
    tool_execution: Optional[ToolExecution] = None
    tool_limits: Optional[Dict[str, int]] = None
    bindings: Optional[List[Binding]] = None

    def request_messages(self) -> List[InputMessage]:
        """
        Messages the execution engine will send for this node: the explicit
        ``input`` list when present, otherwise system then user text.
        """
        if self.input is not None:
            return list(self.input)
        messages: List[InputMessage] = []
        if self.system:
            messages.append(InputMessage.text("system", self.system))
        if self.user:
            messages.append(InputMessage.text("user", self.user))
        return messages


class LLMNode(_RequestNode):
    type: Literal["llm"] = "llm"


class RouteSwitchNode(_RequestNode):
    type: Literal["route.switch"] = "route.switch"


class JoinAllNode(NodeBase):
    type: Literal["join.all"] = "join.all"


class JoinAnyNode(NodeBase):
    type: Literal["join.any"] = "join.any"
    predicate: Optional[Condition] = None


class JoinCollectNode(NodeBase):
    type: Literal["join.collect"] = "join.collect"
    limit: Optional[int] = Field(default=None, gt=0, le=JSON_SAFE_INTEGER_MAX)
    timeout_ms: Optional[int] = Field(default=None, gt=0, le=JSON_SAFE_INTEGER_MAX)
    predicate: Optional[Condition] = None


class TransformJSONNode(NodeBase):
    type: Literal["transform.json"] = "transform.json"
    object: Optional[Dict[str, ValueRef]] = None
    merge: Optional[List[ValueRef]] = None

    def sources(self) -> List[ValueRef]:
        refs = list((self.object or {}).values())
        refs.extend(self.merge or [])
        return refs


SubNode = Annotated[
    Union[LLMNode, RouteSwitchNode, TransformJSONNode],
    Field(discriminator="type"),
]


class MapFanoutNode(NodeBase):
    type: Literal["map.fanout"] = "map.fanout"
    items_from: Optional[str] = None
    items_from_input: Optional[str] = None
    items_pointer: Optional[str] = None
    subnode: SubNode
    item_bindings: Optional[List[Binding]] = None
    max_parallelism: Optional[int] = Field(default=None, gt=0, le=JSON_SAFE_INTEGER_MAX)

    @model_validator(mode="after")
    def _check_item_source(self) -> "MapFanoutNode":
        if bool(self.items_from) == bool(self.items_from_input):
            raise ValueError("map.fanout: exactly one of items_from or items_from_input is required")
        return self


Node = Annotated[
    Union[
        LLMNode,
        RouteSwitchNode,
        JoinAllNode,
        JoinAnyNode,
        JoinCollectNode,
        TransformJSONNode,
        MapFanoutNode,
    ],
    Field(discriminator="type"),
]

RequestNode = Union[LLMNode, RouteSwitchNode]


class WorkflowSpec(WorkflowModel):
    kind: Literal["workflow.intent"] = WORKFLOW_KIND
    name: Optional[str] = None
    model: Optional[str] = None
    max_parallelism: Optional[int] = Field(default=None, gt=0, le=JSON_SAFE_INTEGER_MAX)
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)
    outputs: List[OutputRef] = Field(default_factory=list)

    def node(self, node_id: str) -> Node:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict for the execution engine (aliases, no nulls)."""
        payload = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not payload.get("edges"):
            payload.pop("edges", None)
        return payload
