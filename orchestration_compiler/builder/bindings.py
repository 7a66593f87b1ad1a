"""
Binding target validation.

A binding whose ``to`` pointer addresses ``/input/<message>[/content/<block>]``
must point at a message (and content block) that exists in the destination
request. Anything else would only fail once the execution engine tries to
splice the value in.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from orchestration_compiler.errors import BindingTargetError
from orchestration_compiler.schema.models import Binding, InputMessage

INPUT_POINTER_PATTERN = re.compile(r"^/input/(\d+)(?:/content/(\d+))?")


def validate_binding_targets(
    node_id: str,
    messages: Sequence[InputMessage],
    bindings: Sequence[Binding],
) -> None:
    for index, binding in enumerate(bindings):
        # Placeholder bindings carry no pointer to check.
        if not binding.to:
            continue
        reason = validate_input_pointer(binding.to, messages)
        if reason:
            raise BindingTargetError(node_id, index, binding.to, reason)


def validate_input_pointer(pointer: str, messages: Sequence[InputMessage]) -> Optional[str]:
    """
    Returns a human readable reason when ``pointer`` targets a missing message
    or content block, ``None`` otherwise. Pointers outside ``/input/`` are not
    checked.
    """
    if not pointer.startswith("/input/"):
        return None

    match = INPUT_POINTER_PATTERN.match(pointer)
    if match is None:
        return None

    message_index = int(match.group(1))
    if message_index >= len(messages):
        if not messages:
            return (
                f"targets {pointer} (message index {message_index}) but request has no "
                "messages; add placeholder messages or adjust binding target"
            )
        return (
            f"targets {pointer} (message index {message_index}) but request only has "
            f"{len(messages)} messages (indices 0-{len(messages) - 1}); add placeholder "
            "messages or adjust binding target"
        )

    if match.group(2) is not None:
        content_index = int(match.group(2))
        content = messages[message_index].content
        if content_index >= len(content):
            return (
                f"targets {pointer} (content index {content_index}) but message "
                f"{message_index} only has {len(content)} content blocks"
            )

    return None
