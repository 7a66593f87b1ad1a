"""
Public entrypoint for compiling orchestration plans into workflow specs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from orchestration_compiler.builder.canonical import CANONICAL_VERSION, canonical_json, plan_hash
from orchestration_compiler.builder.workflow_builder import WorkflowBuilder, build_workflow, workflow
from orchestration_compiler.compiler.context import CompilerContext
from orchestration_compiler.compiler.normalize import normalize_workflow_intent
from orchestration_compiler.compiler.parse import parse_orchestration_plan
from orchestration_compiler.compiler.synthesize import synthesize_workflow
from orchestration_compiler.compiler.tools import validate_workflow_tools
from orchestration_compiler.compiler.validate_plan import validate_plan
from orchestration_compiler.errors import OrchestrationCompilerError
from orchestration_compiler.registry.agent_registry import AgentDefinition, AgentRegistry
from orchestration_compiler.registry.tool_registry import ToolRegistry
from orchestration_compiler.schema.models import WorkflowSpec
from orchestration_compiler.schema.plan import OrchestrationPlan
from shared.logger import get_logger

logger = get_logger(__name__)

__all__ = [
    "AgentDefinition",
    "AgentRegistry",
    "CompileResult",
    "CompilerContext",
    "OrchestrationCompilerError",
    "OrchestrationPlan",
    "ToolRegistry",
    "WorkflowBuilder",
    "WorkflowSpec",
    "build_workflow",
    "canonical_json",
    "compile_plan",
    "normalize_workflow_intent",
    "plan_hash",
    "try_compile_plan",
    "workflow",
]


def compile_plan(
    payload: Any,
    context: CompilerContext,
    *,
    task: str,
    instructions: str = "",
    name: Optional[str] = None,
    model: Optional[str] = None,
) -> WorkflowSpec:
    """
    Compile an orchestration plan into a canonical workflow specification.

    Raises an ``OrchestrationCompilerError`` subclass on the first violation;
    no partial specification is ever returned.
    """

    plan = parse_orchestration_plan(payload)
    validate_plan(plan, context.agent_registry)
    spec = synthesize_workflow(
        plan,
        context,
        task=task,
        instructions=instructions,
        name=name,
        model=model,
    )
    spec = validate_workflow_tools(spec, context.tool_registry)
    logger.info(
        f"Compiled plan into {len(spec.nodes)} nodes "
        f"({CANONICAL_VERSION} {plan_hash(spec)[:12]})"
    )
    return spec


@dataclass(frozen=True)
class CompileResult:
    spec: Optional[WorkflowSpec] = None
    error: Optional[OrchestrationCompilerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def try_compile_plan(
    payload: Any,
    context: CompilerContext,
    *,
    task: str,
    instructions: str = "",
    name: Optional[str] = None,
    model: Optional[str] = None,
) -> CompileResult:
    """
    Like ``compile_plan`` but returns rejected plans as a ``CompileResult``
    instead of raising. Malformed upstream plans are an expected outcome.
    """
    try:
        spec = compile_plan(
            payload,
            context,
            task=task,
            instructions=instructions,
            name=name,
            model=model,
        )
    except OrchestrationCompilerError as exc:
        logger.warning(f"Rejected orchestration plan: {exc.to_dict()}")
        return CompileResult(error=exc)
    return CompileResult(spec=spec)
