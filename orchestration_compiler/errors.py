"""
Shared exception hierarchy for the orchestration compiler.

Every error carries a stable ``code`` and a ``context`` dict naming the step,
agent, node, binding index or pointer that triggered it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    invalid_plan = "INVALID_PLAN"
    unknown_agent = "UNKNOWN_AGENT"
    missing_description = "MISSING_DESCRIPTION"
    unknown_tool = "UNKNOWN_TOOL"
    invalid_dependency = "INVALID_DEPENDENCY"
    invalid_tool_config = "INVALID_TOOL_CONFIG"
    invalid_workflow = "INVALID_WORKFLOW"
    binding_target = "BINDING_TARGET"
    map_fanout_input = "MAP_FANOUT_INPUT"


class OrchestrationCompilerError(Exception):
    """Base class for all compiler related errors."""

    code: ErrorCode = ErrorCode.invalid_plan
    prefix = "orchestration"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}
        super().__init__(f"{self.prefix}: {message}")

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code.value, "message": self.message, **self.context}


class InvalidPlanError(OrchestrationCompilerError):
    """Raised when the plan is structurally invalid."""

    code = ErrorCode.invalid_plan


class UnknownAgentError(OrchestrationCompilerError):
    """Raised when a plan selects an agent the registry does not know."""

    code = ErrorCode.unknown_agent


class MissingDescriptionError(OrchestrationCompilerError):
    """Raised when a registry entry lacks the description planners rely on."""

    code = ErrorCode.missing_description


class UnknownToolError(OrchestrationCompilerError):
    """Raised when a node references a tool outside the allow-set."""

    code = ErrorCode.unknown_tool


class InvalidDependencyError(OrchestrationCompilerError):
    """Raised for empty, unknown or forward step dependencies."""

    code = ErrorCode.invalid_dependency


class InvalidToolConfigError(OrchestrationCompilerError):
    """Raised when a node's tool execution settings are unsupported."""

    code = ErrorCode.invalid_tool_config


class WorkflowBuildError(OrchestrationCompilerError):
    """Raised when the workflow builder cannot assemble a consistent graph."""

    code = ErrorCode.invalid_workflow
    prefix = "workflow"


class BindingTargetError(WorkflowBuildError):
    """Raised when a binding targets a path that does not exist in the request."""

    code = ErrorCode.binding_target

    def __init__(self, node_id: str, binding_index: int, pointer: str, reason: str) -> None:
        self.node_id = node_id
        self.binding_index = binding_index
        self.pointer = pointer
        self.reason = reason
        super().__init__(
            f'node "{node_id}" binding {binding_index}: {reason}',
            node_id=node_id,
            binding_index=binding_index,
            pointer=pointer,
        )


class MapFanoutInputError(WorkflowBuildError):
    """Raised when a map.fanout node's subnode shape is invalid."""

    code = ErrorCode.map_fanout_input

    def __init__(self, node_id: str, reason: str, *, field: Optional[str] = None) -> None:
        self.node_id = node_id
        self.reason = reason
        super().__init__(f'node "{node_id}": {reason}', node_id=node_id, field=field)
