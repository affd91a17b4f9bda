from __future__ import annotations

from aichat.engine.events import ToolUseAccumulator, ToolUseEvent


def test_tool_use_accumulator_merges_argument_fragments():
    acc = ToolUseAccumulator()

    acc.apply(ToolUseEvent(tool_name="user_choice_tool", tool_id="call_1", input_json="{"))
    acc.apply(ToolUseEvent(input_json='"choices":["a","b"]}'))

    calls = acc.list()
    assert len(calls) == 1
    assert calls[0].tool_id == "call_1"
    assert calls[0].tool_name == "user_choice_tool"
    assert calls[0].input_json == '{"choices":["a","b"]}'


def test_tool_use_accumulator_keeps_calls_apart_by_id():
    acc = ToolUseAccumulator()

    acc.apply(ToolUseEvent(tool_name="a", tool_id="c1", input_json="{}"))
    acc.apply(ToolUseEvent(tool_name="b", tool_id="c2", input_json="{"))
    acc.apply(ToolUseEvent(tool_id="c1"))
    acc.apply(ToolUseEvent(tool_name="ignored", tool_id="c2", input_json="}"))

    calls = acc.list()
    assert [(c.tool_id, c.tool_name, c.input_json) for c in calls] == [
        ("c1", "a", "{}"),
        ("c2", "b", "{}"),
    ]


def test_fragment_without_prior_call_starts_incomplete_state():
    acc = ToolUseAccumulator()
    acc.apply(ToolUseEvent(input_json="{}"))

    calls = acc.list()
    assert len(calls) == 1
    assert calls[0].tool_id == ""


def test_completed_skips_invocations_missing_id_or_name():
    acc = ToolUseAccumulator()
    acc.apply(ToolUseEvent(input_json="{"))
    acc.apply(ToolUseEvent(tool_id="c1", input_json="{}"))
    acc.apply(ToolUseEvent(tool_name="page_content_tool", tool_id="c2", input_json="{}"))

    assert len(acc.list()) == 3
    assert acc.completed() == [
        ToolUseEvent(tool_name="page_content_tool", tool_id="c2", input_json="{}")
    ]
