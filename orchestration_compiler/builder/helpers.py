"""
Factories for edge conditions, bindings and common JSON pointers.

    builder.edge("router", "billing", when_output_equals("$.route", "billing"))
    builder.llm("summary", user="...", bindings=[bind_to_placeholder("join", "results")])
"""

from __future__ import annotations

from typing import Any, Optional

from orchestration_compiler.schema.models import (
    Binding,
    BindingEncoding,
    Condition,
    ConditionOp,
    ConditionSource,
    ValueRef,
)


# -----------------------------
# JSON pointers into LLM requests / responses
# -----------------------------
def llm_output_pointer(output: int = 0, content: int = 0, field: str = "text") -> str:
    """Pointer into a response: ``/output/<i>/content/<j>/<field>``."""
    return f"/output/{output}/content/{content}/{field}"


def llm_input_pointer(message: int, content: int = 0, field: str = "text") -> str:
    """Pointer into a request: ``/input/<i>/content/<j>/<field>``."""
    return f"/input/{message}/content/{content}/{field}"


LLM_TEXT_OUTPUT = llm_output_pointer()
LLM_SYSTEM_MESSAGE_TEXT = llm_input_pointer(0)
LLM_USER_MESSAGE_TEXT = llm_input_pointer(1)


# -----------------------------
# Conditions
# -----------------------------
def when_output_equals(path: str, value: Any) -> Condition:
    return Condition(source=ConditionSource.node_output, op=ConditionOp.equals, path=path, value=value)


def when_output_matches(path: str, pattern: str) -> Condition:
    return Condition(source=ConditionSource.node_output, op=ConditionOp.matches, path=path, value=pattern)


def when_output_exists(path: str) -> Condition:
    return Condition(source=ConditionSource.node_output, op=ConditionOp.exists, path=path)


def when_status_equals(path: str, value: Any) -> Condition:
    return Condition(source=ConditionSource.node_status, op=ConditionOp.equals, path=path, value=value)


def when_status_matches(path: str, pattern: str) -> Condition:
    return Condition(source=ConditionSource.node_status, op=ConditionOp.matches, path=path, value=pattern)


def when_status_exists(path: str) -> Condition:
    return Condition(source=ConditionSource.node_status, op=ConditionOp.exists, path=path)


# -----------------------------
# Bindings and transform values
# -----------------------------
def bind_to_placeholder(
    from_: str,
    placeholder: str,
    *,
    pointer: Optional[str] = None,
    encoding: BindingEncoding = BindingEncoding.json_string,
) -> Binding:
    return Binding(from_=from_, pointer=pointer or None, to_placeholder=placeholder, encoding=encoding)


def bind_to_pointer(
    from_: str,
    to: str,
    *,
    pointer: Optional[str] = None,
    encoding: BindingEncoding = BindingEncoding.json_string,
) -> Binding:
    return Binding(from_=from_, pointer=pointer or None, to=to, encoding=encoding)


def transform_value(from_: str, pointer: Optional[str] = None) -> ValueRef:
    return ValueRef(from_=from_, pointer=pointer or None)
