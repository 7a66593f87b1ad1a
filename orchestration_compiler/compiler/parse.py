"""
Stage 1: parse JSON into strongly typed plan / workflow models.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel, ValidationError

from orchestration_compiler.errors import InvalidPlanError
from orchestration_compiler.schema.models import WorkflowSpec
from orchestration_compiler.schema.plan import OrchestrationPlan

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_orchestration_plan(payload: Any) -> OrchestrationPlan:
    """
    Accepts either a JSON string, a mapping or an already-parsed
    OrchestrationPlan and returns a validated OrchestrationPlan instance.
    """

    if isinstance(payload, OrchestrationPlan):
        return payload
    return _parse(payload, OrchestrationPlan, label="orchestration plan")


def parse_workflow_intent(payload: Any) -> WorkflowSpec:
    if isinstance(payload, WorkflowSpec):
        return payload
    return _parse(payload, WorkflowSpec, label="workflow intent")


def _parse(payload: Any, model: Type[ModelT], *, label: str) -> ModelT:
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidPlanError(f"invalid {label} JSON payload: {exc}") from exc
    elif isinstance(payload, Mapping):
        data = payload
    else:
        raise InvalidPlanError(
            f"unsupported payload type {type(payload).__name__}; expected str or Mapping"
        )

    if not isinstance(data, Mapping):
        raise InvalidPlanError(f"{label} must be a JSON object")

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidPlanError(
            f"{label} validation failed: {_summarize(exc)}",
            errors=exc.errors(include_url=False, include_context=False),
        ) from exc


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(part) for part in error.get("loc", ())) or "$"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)
