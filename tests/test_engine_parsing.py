from __future__ import annotations

import pytest

from aichat.engine.events import (
    CompletionEvent,
    ContentReceiptEvent,
    ConversationTitleEvent,
    SearchQueriesEvent,
    SearchStatusEvent,
    SelectedLanguageEvent,
    ToolUseEvent,
    WebSourcesEvent,
)
from aichat.engine.parsing import (
    DEFAULT_WEB_SOURCE_FAVICON_URL,
    parse_completion_body,
    parse_response_event,
    parse_stream_payload,
    parse_tool_calls,
)

MODEL = "claude-3-sonnet"


def _event(payload, model_catalog):
    result = parse_response_event({"model": MODEL, **payload}, model_catalog)
    return None if result is None else result.event


def test_completion_event_carries_model_key(model_catalog):
    result = parse_response_event(
        {"model": MODEL, "type": "completion", "completion": "Hi"}, model_catalog
    )
    assert result.event == CompletionEvent(completion="Hi")
    assert result.model_key == "chat-claude-sonnet"


def test_unknown_model_name_has_no_key(model_catalog):
    result = parse_response_event(
        {"model": "mystery", "type": "completion", "completion": "Hi"}, model_catalog
    )
    assert result.model_key is None


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "completion", "completion": "x"},
        {"model": MODEL, "completion": "x"},
        {"model": MODEL, "type": "futureEventType", "data": 1},
        {"model": MODEL, "type": "completion", "completion": ""},
        {"model": MODEL, "type": "completion"},
        {"model": 1, "type": "completion", "completion": "x"},
        {"model": MODEL, "type": "searchQueries"},
        {"model": MODEL, "type": "conversationTitle"},
        {"model": MODEL, "type": "selectedLanguage", "language": 3},
        {"model": MODEL, "type": "webSources", "sources": "nope"},
    ],
)
def test_incomplete_or_unknown_payloads_are_skipped(payload, model_catalog):
    assert parse_response_event(payload, model_catalog) is None


@pytest.mark.parametrize("value", [None, [], "text", 42])
def test_non_object_payload_is_skipped(value, model_catalog):
    assert parse_response_event(value, model_catalog) is None
    assert parse_tool_calls(value) == []


def test_simple_event_types(model_catalog):
    assert _event({"type": "isSearching"}, model_catalog) == SearchStatusEvent()
    assert _event(
        {"type": "searchQueries", "queries": ["a", 1, "b"]}, model_catalog
    ) == SearchQueriesEvent(search_queries=("a", "b"))
    assert _event({"type": "conversationTitle", "title": "Trip"}, model_catalog) == (
        ConversationTitleEvent(title="Trip")
    )
    assert _event({"type": "selectedLanguage", "language": "fr"}, model_catalog) == (
        SelectedLanguageEvent(selected_language="fr")
    )


def test_web_sources_drop_disallowed_favicon_host(model_catalog):
    event = _event(
        {
            "type": "webSources",
            "sources": [
                {"title": "A", "url": "https://x", "favicon": "https://imgs.search.brave.com/f.svg"},
                {"title": "B", "url": "https://y", "favicon": "https://evil.com/f.svg"},
            ],
        },
        model_catalog,
    )

    assert isinstance(event, WebSourcesEvent)
    assert [source.title for source in event.sources] == ["A"]


def test_web_sources_all_disallowed_yields_nothing(model_catalog):
    event = _event(
        {
            "type": "webSources",
            "sources": [
                {"title": "B", "url": "https://y", "favicon": "https://evil.com/f.svg"},
                {"title": "C", "url": "https://z", "favicon": "http://imgs.search.brave.com/f.svg"},
            ],
        },
        model_catalog,
    )
    assert event is None


def test_web_source_defaults_favicon_and_drops_bad_items(model_catalog):
    event = _event(
        {
            "type": "webSources",
            "sources": [
                {"title": "A", "url": "https://a.example"},
                {"title": "No url"},
                {"title": "Bad", "url": "not a url"},
                "garbage",
                {"title": "Upper", "url": "https://u", "favicon": "https://IMGS.search.brave.com/x"},
            ],
        },
        model_catalog,
    )

    assert [source.title for source in event.sources] == ["A", "Upper"]
    assert event.sources[0].favicon_url == DEFAULT_WEB_SOURCE_FAVICON_URL


def test_content_receipt_clamps_negative_tokens(model_catalog):
    assert _event({"type": "contentReceipt", "total_tokens": -5}, model_catalog) == (
        ContentReceiptEvent(total_tokens=0, trimmed_tokens=0)
    )
    assert _event(
        {"type": "contentReceipt", "total_tokens": 120, "trimmed_tokens": 20}, model_catalog
    ) == ContentReceiptEvent(total_tokens=120, trimmed_tokens=20)
    assert _event({"type": "contentReceipt", "total_tokens": True}, model_catalog) == (
        ContentReceiptEvent()
    )


def test_tool_calls_emit_one_event_per_entry():
    results = parse_tool_calls(
        {
            "tool_calls": [
                {"id": "c1", "function": {"name": "user_choice_tool", "arguments": '{"cho'}},
                {"id": "c2"},
                {"function": {"arguments": 'ices":["a"]}'}},
            ]
        }
    )

    assert [r.event for r in results] == [
        ToolUseEvent(tool_name="user_choice_tool", tool_id="c1", input_json='{"cho'),
        ToolUseEvent(tool_name="", tool_id="", input_json='ices":["a"]}'),
    ]
    assert all(r.model_key is None for r in results)


def test_one_payload_can_yield_completion_and_tool_use(model_catalog):
    results = parse_stream_payload(
        {
            "model": MODEL,
            "type": "completion",
            "completion": "Choose one.",
            "tool_calls": [{"id": "c1", "function": {"name": "user_choice_tool"}}],
        },
        model_catalog,
    )

    assert isinstance(results[0].event, CompletionEvent)
    assert isinstance(results[1].event, ToolUseEvent)
    assert len(results) == 2


def test_tool_calls_without_type_still_parse(model_catalog):
    results = parse_stream_payload(
        {"tool_calls": [{"id": "c1", "function": {"name": "t", "arguments": "{}"}}]},
        model_catalog,
    )
    assert [r.event.tool_id for r in results] == ["c1"]


def test_completion_body_is_trimmed(model_catalog):
    result = parse_completion_body({"completion": "  hello  ", "model": MODEL}, model_catalog)
    assert result.event == CompletionEvent(completion="hello")
    assert result.model_key == "chat-claude-sonnet"


@pytest.mark.parametrize("body", [None, [], "text", {"model": 1}])
def test_completion_body_without_completion_is_empty(body, model_catalog):
    result = parse_completion_body(body, model_catalog)
    assert result.event == CompletionEvent(completion="")
    assert result.model_key is None
