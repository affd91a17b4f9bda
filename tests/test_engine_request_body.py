from __future__ import annotations

import json

import pytest

from aichat.engine.messages import (
    CharacterType,
    ConversationEvent,
    ConversationEventType,
    TextContent,
)
from aichat.engine.request_body import (
    DEFAULT_SYSTEM_LANGUAGE,
    build_body,
    default_system_language,
)
from aichat.engine.tools import Tool, UserChoiceTool
from aichat.utils.exceptions import ToolSchemaError


def _conversation():
    return [
        ConversationEvent(
            role=CharacterType.HUMAN,
            type=ConversationEventType.CHAT_MESSAGE,
            content=TextContent(texts=("你好",)),
        )
    ]


def test_body_has_required_top_level_keys():
    body = json.loads(
        build_body(_conversation(), [], "zh", "llama-3-8b-instruct", True, system_language="zh_CN")
    )

    assert body == {
        "events": [{"role": "user", "type": "chatMessage", "content": "你好"}],
        "model": "llama-3-8b-instruct",
        "selected_language": "zh",
        "system_language": "zh_CN",
        "stream": True,
        "use_citations": True,
    }


def test_body_is_not_ascii_escaped():
    body = build_body(_conversation(), [], "", "m", False, system_language="en_US")
    assert "你好" in body


def test_use_citations_can_be_disabled():
    body = json.loads(
        build_body(_conversation(), [], "", "m", False, system_language="en_US", use_citations=False)
    )
    assert "use_citations" not in body
    assert body["stream"] is False


def test_tools_are_declared_and_unnamed_tools_skipped():
    tools = [UserChoiceTool(), Tool(name="", description="anonymous")]
    body = json.loads(build_body(_conversation(), tools, "", "m", False, system_language="en_US"))

    assert [t["function"]["name"] for t in body["tools"]] == ["user_choice_tool"]


def test_tools_key_absent_without_tools():
    body = json.loads(build_body(_conversation(), [], "", "m", False, system_language="en_US"))
    assert "tools" not in body


def test_unparsable_tool_schema_propagates():
    with pytest.raises(ToolSchemaError):
        build_body(
            _conversation(),
            [Tool(name="bad", input_properties="{")],
            "",
            "m",
            False,
            system_language="en_US",
        )


@pytest.mark.parametrize(
    ("locale_name", "expected"),
    [
        (("de_DE", "UTF-8"), "de_DE"),
        (("pt_br", "UTF-8"), "pt_BR"),
        (("C", None), DEFAULT_SYSTEM_LANGUAGE),
        ((None, None), DEFAULT_SYSTEM_LANGUAGE),
        (("en", None), DEFAULT_SYSTEM_LANGUAGE),
    ],
)
def test_default_system_language(monkeypatch, locale_name, expected):
    monkeypatch.setattr("aichat.engine.request_body.locale.getlocale", lambda: locale_name)
    assert default_system_language() == expected
