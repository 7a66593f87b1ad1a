"""
Deterministic node-id generation for synthesized workflows.
"""

from __future__ import annotations

import re

from orchestration_compiler.errors import InvalidPlanError

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
_UNDERSCORE_RUNS = re.compile(r"_+")


def sanitize_node_token(raw: str) -> str:
    """
    Map every character outside ``[A-Za-z0-9]`` to ``_``, lower-case, then
    collapse underscore runs and trim leading/trailing underscores.
    """
    token = _NON_ALNUM.sub("_", raw.strip()).lower()
    return _UNDERSCORE_RUNS.sub("_", token).strip("_")


def format_agent_node_id(agent_id: str) -> str:
    token = sanitize_node_token(agent_id)
    if not token:
        raise InvalidPlanError(
            "agent id must contain alphanumeric characters", agent_id=agent_id
        )
    return f"agent_{token}"


def format_step_join_node_id(step_key: str) -> str:
    token = sanitize_node_token(step_key)
    if not token:
        raise InvalidPlanError(
            "step id must contain alphanumeric characters", step_id=step_key
        )
    if token.startswith("step_"):
        return f"{token}_join"
    return f"step_{token}_join"
