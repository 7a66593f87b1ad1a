from __future__ import annotations

import pytest

from orchestration_compiler.builder.bindings import validate_binding_targets, validate_input_pointer
from orchestration_compiler.builder.helpers import (
    LLM_USER_MESSAGE_TEXT,
    bind_to_placeholder,
    bind_to_pointer,
    llm_input_pointer,
)
from orchestration_compiler.builder.workflow_builder import workflow
from orchestration_compiler.errors import BindingTargetError, ErrorCode
from orchestration_compiler.schema.models import InputMessage

TWO_MESSAGES = [
    InputMessage.text("system", "You summarize."),
    InputMessage.text("user", "Summarize the notes."),
]


def test_binding_past_last_message_cites_index() -> None:
    pointer = "/input/5/content/0/text"

    with pytest.raises(BindingTargetError) as excinfo:
        validate_binding_targets("summary", TWO_MESSAGES, [bind_to_pointer("notes", pointer)])

    err = excinfo.value
    assert err.code is ErrorCode.binding_target
    assert err.binding_index == 0
    assert err.pointer == pointer
    assert "message index 5" in str(err)
    assert "only has 2 messages (indices 0-1)" in str(err)


def test_binding_into_missing_content_block() -> None:
    reason = validate_input_pointer("/input/1/content/3/text", TWO_MESSAGES)

    assert reason is not None
    assert "content index 3" in reason


def test_binding_against_empty_request() -> None:
    reason = validate_input_pointer("/input/0", [])

    assert reason is not None and "no messages" in reason


@pytest.mark.parametrize("pointer", ["/input/1/content/0/text", "/input/0", "/metadata/x"])
def test_valid_or_unchecked_pointers_pass(pointer: str) -> None:
    assert validate_input_pointer(pointer, TWO_MESSAGES) is None


def test_placeholder_bindings_are_skipped() -> None:
    validate_binding_targets("summary", [], [bind_to_placeholder("notes", "notes")])


def test_binding_index_reported_for_later_binding() -> None:
    bindings = [
        bind_to_pointer("notes", LLM_USER_MESSAGE_TEXT),
        bind_to_pointer("notes", llm_input_pointer(2)),
    ]

    with pytest.raises(BindingTargetError) as excinfo:
        validate_binding_targets("summary", TWO_MESSAGES, bindings)

    assert excinfo.value.binding_index == 1


def test_builder_derives_messages_from_system_and_user() -> None:
    ok = (
        workflow()
        .llm("notes", user="Take notes")
        .llm(
            "summary",
            system="You summarize.",
            user="placeholder",
            bindings=[bind_to_pointer("notes", LLM_USER_MESSAGE_TEXT)],
        )
        .edge("notes", "summary")
        .output("result", "summary")
        .build()
    )
    assert ok.node("summary").depends_on == ["notes"]

    user_only = (
        workflow()
        .llm("notes", user="Take notes")
        .llm("summary", user="placeholder", bindings=[bind_to_pointer("notes", LLM_USER_MESSAGE_TEXT)])
        .output("result", "summary")
    )
    with pytest.raises(BindingTargetError, match='node "summary" binding 0'):
        user_only.build()


def test_builder_uses_explicit_input_messages() -> None:
    spec = (
        workflow()
        .llm("notes", user="Take notes")
        .llm(
            "summary",
            input=[
                {"role": "system", "content": [{"type": "text", "text": "s"}]},
                {"role": "user", "content": [{"type": "text", "text": "u"}, {"type": "text", "text": "v"}]},
            ],
            bindings=[bind_to_pointer("notes", "/input/1/content/1/text")],
        )
        .output("result", "summary")
        .build()
    )

    assert len(spec.node("summary").input) == 2
