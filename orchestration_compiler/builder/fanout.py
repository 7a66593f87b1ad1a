"""
Shape rules for ``map.fanout`` nodes.

A fan-out subnode is instantiated once per item, so its input is synthesized
from the item rather than bound statically.
"""

from __future__ import annotations

from orchestration_compiler.errors import MapFanoutInputError
from orchestration_compiler.schema.models import (
    ITEM_PLACEHOLDER,
    LLMNode,
    MapFanoutNode,
    RouteSwitchNode,
    TransformJSONNode,
)


def validate_map_fanout_input(node: MapFanoutNode) -> None:
    subnode = node.subnode

    if isinstance(subnode, (LLMNode, RouteSwitchNode)) and subnode.bindings:
        raise MapFanoutInputError(
            node.id, "map.fanout subnode bindings are not allowed", field="subnode.bindings"
        )

    if not isinstance(subnode, TransformJSONNode):
        return

    if node.item_bindings:
        raise MapFanoutInputError(
            node.id,
            "map.fanout transform.json subnode cannot use item_bindings",
            field="item_bindings",
        )

    has_object = bool(subnode.object)
    has_merge = bool(subnode.merge)
    if has_object == has_merge:
        raise MapFanoutInputError(
            node.id, "map.fanout transform.json must provide exactly one of object or merge"
        )

    if has_object:
        for key, value in subnode.object.items():
            if not key.strip():
                continue
            if value.from_ != ITEM_PLACEHOLDER:
                raise MapFanoutInputError(
                    node.id,
                    f'map.fanout transform.json object.{key}.from must be "{ITEM_PLACEHOLDER}"',
                    field=f"subnode.object.{key}.from",
                )

    if has_merge:
        for index, value in enumerate(subnode.merge):
            if value.from_ != ITEM_PLACEHOLDER:
                raise MapFanoutInputError(
                    node.id,
                    f'map.fanout transform.json merge[{index}].from must be "{ITEM_PLACEHOLDER}"',
                    field=f"subnode.merge[{index}].from",
                )
