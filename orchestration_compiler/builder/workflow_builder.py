"""
Workflow assembly and canonicalization.

``build_workflow`` is the single place where edge lists and per-node
``depends_on`` lists are reconciled. It checks referential integrity,
acyclicity, binding targets and fan-out shapes, then emits the spec in
canonical order. Any failure aborts the build; no partial spec is returned.

``WorkflowBuilder`` is an immutable fluent front-end over the same function.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import networkx as nx

from orchestration_compiler.builder.bindings import validate_binding_targets
from orchestration_compiler.builder.canonical import (
    canonical_dependencies,
    sort_edges,
    sort_outputs,
)
from orchestration_compiler.builder.fanout import validate_map_fanout_input
from orchestration_compiler.errors import WorkflowBuildError
from orchestration_compiler.schema.models import (
    Binding,
    Condition,
    Edge,
    InputMessage,
    JoinAllNode,
    JoinAnyNode,
    JoinCollectNode,
    LLMNode,
    MapFanoutNode,
    Node,
    OutputRef,
    RouteSwitchNode,
    ToolExecution,
    ToolExecutionMode,
    TransformJSONNode,
    ValueRef,
    WorkflowSpec,
)
from shared.logger import get_logger

logger = get_logger(__name__)


def build_workflow(
    nodes: Sequence[Node],
    edges: Iterable[Edge] = (),
    outputs: Iterable[OutputRef] = (),
    *,
    name: Optional[str] = None,
    model: Optional[str] = None,
    max_parallelism: Optional[int] = None,
) -> WorkflowSpec:
    if not nodes:
        raise WorkflowBuildError("workflow requires at least one node")

    node_ids = _collect_node_ids(nodes)
    ordered_edges = sort_edges(edges)
    dependencies = _merge_dependencies(nodes, node_ids, ordered_edges)

    ordered_outputs = sort_outputs(outputs)
    if not ordered_outputs:
        raise WorkflowBuildError("workflow requires at least one output")
    for output in ordered_outputs:
        if output.from_ not in node_ids:
            raise WorkflowBuildError(
                f'output "{output.name}" references unknown node "{output.from_}"',
                output=output.name,
                node_id=output.from_,
            )

    for node in nodes:
        _validate_node(node, node_ids)

    _ensure_acyclic(node_ids, dependencies)

    emitted = [
        node.model_copy(
            update={"depends_on": canonical_dependencies(dependencies[node.id]) or None}
        )
        for node in nodes
    ]
    spec = WorkflowSpec(
        name=(name or "").strip() or None,
        model=model,
        max_parallelism=max_parallelism,
        nodes=emitted,
        # depends_on cannot carry a condition; conditional edges stay explicit.
        edges=[edge for edge in ordered_edges if edge.when is not None],
        outputs=ordered_outputs,
    )
    logger.debug(
        f"Built workflow {spec.name or '<unnamed>'}: {len(emitted)} nodes, "
        f"{len(ordered_edges)} edges, {len(ordered_outputs)} outputs"
    )
    return spec


def _collect_node_ids(nodes: Sequence[Node]) -> Set[str]:
    seen: Set[str] = set()
    for node in nodes:
        if node.id in seen:
            raise WorkflowBuildError(f'duplicate node id "{node.id}"', node_id=node.id)
        seen.add(node.id)
    return seen


def _merge_dependencies(
    nodes: Sequence[Node],
    node_ids: Set[str],
    edges: Sequence[Edge],
) -> Dict[str, Set[str]]:
    dependencies: Dict[str, Set[str]] = {}
    for node in nodes:
        deps = set(node.depends_on or [])
        for dep in deps:
            if dep == node.id:
                raise WorkflowBuildError(f'node "{node.id}" depends on itself', node_id=node.id)
            if dep not in node_ids:
                raise WorkflowBuildError(
                    f'node "{node.id}" depends on unknown node "{dep}"',
                    node_id=node.id,
                    dependency=dep,
                )
        dependencies[node.id] = deps

    for edge in edges:
        if edge.to not in node_ids:
            raise WorkflowBuildError(
                f'edge to unknown node "{edge.to}"', edge_from=edge.from_, edge_to=edge.to
            )
        if edge.from_ not in node_ids:
            raise WorkflowBuildError(
                f'edge from unknown node "{edge.from_}"', edge_from=edge.from_, edge_to=edge.to
            )
        if edge.from_ == edge.to:
            raise WorkflowBuildError(
                f'edge from "{edge.from_}" to itself', edge_from=edge.from_, edge_to=edge.to
            )
        dependencies[edge.to].add(edge.from_)
    return dependencies


def _validate_node(node: Node, node_ids: Set[str]) -> None:
    if isinstance(node, (LLMNode, RouteSwitchNode)):
        _validate_request_node(node, node_ids)
    elif isinstance(node, TransformJSONNode):
        _validate_refs(node.id, node.sources(), node_ids)
    elif isinstance(node, MapFanoutNode):
        if node.items_from and node.items_from not in node_ids:
            raise WorkflowBuildError(
                f'node "{node.id}" items_from references unknown node "{node.items_from}"',
                node_id=node.id,
                dependency=node.items_from,
            )
        validate_map_fanout_input(node)


def _validate_request_node(node: LLMNode | RouteSwitchNode, node_ids: Set[str]) -> None:
    if not node.bindings:
        return
    for index, binding in enumerate(node.bindings):
        if binding.from_ not in node_ids:
            raise WorkflowBuildError(
                f'node "{node.id}" binding {index} references unknown node "{binding.from_}"',
                node_id=node.id,
                binding_index=index,
            )
    validate_binding_targets(node.id, node.request_messages(), node.bindings)


def _validate_refs(node_id: str, refs: Sequence[ValueRef], node_ids: Set[str]) -> None:
    for ref in refs:
        if ref.from_ not in node_ids:
            raise WorkflowBuildError(
                f'node "{node_id}" references unknown node "{ref.from_}"',
                node_id=node_id,
                dependency=ref.from_,
            )


def _ensure_acyclic(node_ids: Set[str], dependencies: Dict[str, Set[str]]) -> None:
    graph = nx.DiGraph()
    graph.add_nodes_from(sorted(node_ids))
    for node_id, deps in dependencies.items():
        graph.add_edges_from((dep, node_id) for dep in sorted(deps))
    if nx.is_directed_acyclic_graph(graph):
        return
    cycle = nx.find_cycle(graph)
    path = " -> ".join([u for u, _ in cycle] + [cycle[0][0]])
    raise WorkflowBuildError(f"dependency cycle: {path}", cycle=[u for u, _ in cycle])


# -----------------------------
# Fluent builder
# -----------------------------
@dataclass(frozen=True)
class WorkflowBuilderState:
    name: Optional[str] = None
    model: Optional[str] = None
    max_parallelism: Optional[int] = None
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    outputs: Tuple[OutputRef, ...] = ()


class WorkflowBuilder:
    """
    Immutable builder: every method returns a new builder.

    Example:
        spec = (
            WorkflowBuilder()
            .llm("draft", user="Write a haiku")
            .llm("review", user="Review: {{draft}}")
            .edge("draft", "review")
            .output("result", "review")
            .build()
        )
    """

    def __init__(self, state: Optional[WorkflowBuilderState] = None) -> None:
        self._state = state or WorkflowBuilderState()

    @property
    def state(self) -> WorkflowBuilderState:
        return self._state

    def _with(self, **changes: Any) -> "WorkflowBuilder":
        return WorkflowBuilder(replace(self._state, **changes))

    def name(self, name: str) -> "WorkflowBuilder":
        return self._with(name=name.strip() or None)

    def model(self, model: Optional[str]) -> "WorkflowBuilder":
        return self._with(model=model)

    def execution(self, *, max_parallelism: Optional[int] = None) -> "WorkflowBuilder":
        return self._with(max_parallelism=max_parallelism)

    def node(self, node: Node) -> "WorkflowBuilder":
        return self._with(nodes=self._state.nodes + (node,))

    def llm(self, node_id: str, **options: Any) -> "WorkflowBuilder":
        return self.node(LLMNode(id=node_id, **_request_options(options)))

    def route_switch(self, node_id: str, **options: Any) -> "WorkflowBuilder":
        return self.node(RouteSwitchNode(id=node_id, **_request_options(options)))

    def join_all(self, node_id: str, depends_on: Optional[Sequence[str]] = None) -> "WorkflowBuilder":
        return self.node(JoinAllNode(id=node_id, depends_on=_deps(depends_on)))

    def join_any(
        self,
        node_id: str,
        predicate: Optional[Condition] = None,
        depends_on: Optional[Sequence[str]] = None,
    ) -> "WorkflowBuilder":
        return self.node(JoinAnyNode(id=node_id, predicate=predicate, depends_on=_deps(depends_on)))

    def join_collect(
        self,
        node_id: str,
        *,
        limit: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        predicate: Optional[Condition] = None,
        depends_on: Optional[Sequence[str]] = None,
    ) -> "WorkflowBuilder":
        return self.node(
            JoinCollectNode(
                id=node_id,
                limit=limit,
                timeout_ms=timeout_ms,
                predicate=predicate,
                depends_on=_deps(depends_on),
            )
        )

    def transform_json(
        self,
        node_id: str,
        *,
        object: Optional[Dict[str, ValueRef]] = None,
        merge: Optional[Sequence[ValueRef]] = None,
        depends_on: Optional[Sequence[str]] = None,
    ) -> "WorkflowBuilder":
        return self.node(
            TransformJSONNode(
                id=node_id,
                object=dict(object) if object is not None else None,
                merge=list(merge) if merge is not None else None,
                depends_on=_deps(depends_on),
            )
        )

    def map_fanout(
        self,
        node_id: str,
        subnode: LLMNode | RouteSwitchNode | TransformJSONNode,
        *,
        items_from: Optional[str] = None,
        items_from_input: Optional[str] = None,
        items_pointer: Optional[str] = None,
        item_bindings: Optional[Sequence[Binding]] = None,
        max_parallelism: Optional[int] = None,
        depends_on: Optional[Sequence[str]] = None,
    ) -> "WorkflowBuilder":
        return self.node(
            MapFanoutNode(
                id=node_id,
                subnode=subnode,
                items_from=items_from,
                items_from_input=items_from_input,
                items_pointer=items_pointer,
                item_bindings=list(item_bindings) if item_bindings is not None else None,
                max_parallelism=max_parallelism,
                depends_on=_deps(depends_on),
            )
        )

    def edge(self, from_: str, to: str, when: Optional[Condition] = None) -> "WorkflowBuilder":
        return self._with(edges=self._state.edges + (Edge(from_=from_, to=to, when=when),))

    def output(self, name: str, from_: str, pointer: Optional[str] = None) -> "WorkflowBuilder":
        ref = OutputRef(name=name, from_=from_, pointer=pointer or None)
        return self._with(outputs=self._state.outputs + (ref,))

    def build(self) -> WorkflowSpec:
        state = self._state
        return build_workflow(
            list(state.nodes),
            state.edges,
            state.outputs,
            name=state.name,
            model=state.model,
            max_parallelism=state.max_parallelism,
        )


def workflow() -> WorkflowBuilder:
    return WorkflowBuilder()


def _deps(depends_on: Optional[Sequence[str]]) -> Optional[List[str]]:
    return list(depends_on) if depends_on else None


def _request_options(options: Dict[str, Any]) -> Dict[str, Any]:
    allowed = {
        "system",
        "user",
        "input",
        "model",
        "stream",
        "tools",
        "tool_execution",
        "tool_limits",
        "bindings",
        "depends_on",
    }
    unknown = set(options) - allowed
    if unknown:
        raise TypeError(f"unsupported request node options: {sorted(unknown)}")

    opts = dict(options)
    mode = opts.get("tool_execution")
    if isinstance(mode, (str, ToolExecutionMode)):
        opts["tool_execution"] = ToolExecution(mode=ToolExecutionMode(mode))
    if opts.get("input") is not None:
        opts["input"] = [
            msg if isinstance(msg, InputMessage) else InputMessage.model_validate(msg)
            for msg in opts["input"]
        ]
    for key in ("tools", "bindings", "depends_on"):
        if opts.get(key) is not None:
            opts[key] = list(opts[key])
    return opts
