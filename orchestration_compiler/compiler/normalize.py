"""
Validate a workflow intent produced outside the plan compiler.

The intent goes through the same builder checks and tool rules as a compiled
plan, so a converter-produced spec can never reach the execution engine in a
shape a compiled one could not have.
"""

from __future__ import annotations

from typing import Any

from orchestration_compiler.builder.workflow_builder import build_workflow
from orchestration_compiler.compiler.context import CompilerContext
from orchestration_compiler.compiler.parse import parse_workflow_intent
from orchestration_compiler.compiler.tools import validate_workflow_tools
from orchestration_compiler.schema.models import WorkflowSpec


def normalize_workflow_intent(payload: Any, context: CompilerContext) -> WorkflowSpec:
    intent = parse_workflow_intent(payload)
    spec = build_workflow(
        intent.nodes,
        intent.edges,
        intent.outputs,
        name=intent.name,
        model=intent.model,
        max_parallelism=intent.max_parallelism,
    )
    return validate_workflow_tools(spec, context.tool_registry)
