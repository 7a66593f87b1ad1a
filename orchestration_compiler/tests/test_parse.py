from __future__ import annotations

import json

import pytest

from orchestration_compiler.compiler.parse import parse_orchestration_plan, parse_workflow_intent
from orchestration_compiler.errors import ErrorCode, InvalidPlanError
from orchestration_compiler.schema.models import JoinAllNode, LLMNode

from conftest import make_plan, step


def test_parse_accepts_json_string_and_mapping() -> None:
    payload = make_plan(step("researcher", id="a"), max_parallelism=2)

    from_mapping = parse_orchestration_plan(payload)
    from_string = parse_orchestration_plan(json.dumps(payload))

    assert from_mapping == from_string
    assert from_mapping.max_parallelism == 2
    assert from_mapping.steps[0].agents[0].id == "researcher"


def test_parse_rejects_wrong_kind() -> None:
    payload = make_plan(step("researcher"))
    payload["kind"] = "orchestration.plan.v2"

    with pytest.raises(InvalidPlanError) as excinfo:
        parse_orchestration_plan(payload)

    assert excinfo.value.code is ErrorCode.invalid_plan
    assert "kind" in str(excinfo.value)


def test_parse_rejects_unknown_step_fields() -> None:
    payload = make_plan({"agents": [{"id": "researcher", "reason": "x"}], "parallel": True})

    with pytest.raises(InvalidPlanError):
        parse_orchestration_plan(payload)


@pytest.mark.parametrize("payload", ["{not json", "[1, 2]", 42])
def test_parse_rejects_non_object_payloads(payload) -> None:
    with pytest.raises(InvalidPlanError):
        parse_orchestration_plan(payload)


def test_parse_workflow_intent_builds_tagged_nodes() -> None:
    intent = parse_workflow_intent(
        {
            "kind": "workflow.intent",
            "nodes": [
                {"id": "a", "type": "llm", "user": "hi"},
                {"id": "j", "type": "join.all", "depends_on": ["a"]},
            ],
            "outputs": [{"name": "result", "from": "j"}],
        }
    )

    assert isinstance(intent.nodes[0], LLMNode)
    assert isinstance(intent.nodes[1], JoinAllNode)
    assert intent.outputs[0].from_ == "j"


def test_parse_workflow_intent_rejects_unknown_node_type() -> None:
    with pytest.raises(InvalidPlanError):
        parse_workflow_intent(
            {
                "kind": "workflow.intent",
                "nodes": [{"id": "a", "type": "shell"}],
                "outputs": [{"name": "result", "from": "a"}],
            }
        )


def test_parse_rejects_invalid_utf8_bytes() -> None:
    with pytest.raises(InvalidPlanError, match="invalid orchestration plan JSON payload"):
        parse_orchestration_plan(b'{"kind": "\xff"}')


def test_parse_accepts_utf8_bytes() -> None:
    payload = json.dumps(make_plan(step("researcher"))).encode("utf-8")

    assert parse_orchestration_plan(payload).steps[0].agents[0].id == "researcher"


def test_parse_rejects_unsafe_max_parallelism() -> None:
    with pytest.raises(InvalidPlanError, match="max_parallelism"):
        parse_orchestration_plan(make_plan(step("researcher"), max_parallelism=2**60))


def test_parse_workflow_intent_rejects_unsafe_join_limits() -> None:
    with pytest.raises(InvalidPlanError, match="limit"):
        parse_workflow_intent(
            {
                "kind": "workflow.intent",
                "nodes": [{"id": "c", "type": "join.collect", "limit": 2**60}],
                "outputs": [{"name": "result", "from": "c"}],
            }
        )
