"""Parsing of backend response payloads into typed events.

The backend adds new event types over time, so anything unrecognised or
incomplete is skipped (``None``) rather than treated as an error.
"""

from __future__ import annotations

from typing import Any, Mapping
from urllib.parse import urlsplit

from aichat.utils.logger import get_logger

from .endpoint import is_valid_url
from .events import (
    CompletionEvent,
    ContentReceiptEvent,
    ConversationEntryEvent,
    ConversationTitleEvent,
    GenerationResultData,
    SearchQueriesEvent,
    SearchStatusEvent,
    SelectedLanguageEvent,
    ToolUseEvent,
    WebSource,
    WebSourcesEvent,
)
from .models import ModelService

logger = get_logger(__name__)

ALLOWED_WEB_SOURCE_FAVICON_HOST = "imgs.search.brave.com"
DEFAULT_WEB_SOURCE_FAVICON_URL = "chrome-untrusted://resources/brave-icons/globe.svg"


def _find_string(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    return value if isinstance(value, str) else None


def _find_list(payload: Mapping[str, Any], key: str) -> list[Any] | None:
    value = payload.get(key)
    return value if isinstance(value, list) else None


def _find_int(payload: Mapping[str, Any], key: str) -> int | None:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _non_negative(value: int | None) -> int:
    return value if value is not None and value >= 0 else 0


def _parse_web_source(item: Any) -> WebSource | None:
    if not isinstance(item, dict):
        return None
    title = _find_string(item, "title")
    url = _find_string(item, "url")
    favicon_url = _find_string(item, "favicon")
    if title is None or url is None:
        logger.debug(f"missing required fields in web source: {item!r}")
        return None

    favicon = favicon_url if favicon_url is not None else DEFAULT_WEB_SOURCE_FAVICON_URL
    if not is_valid_url(url) or not is_valid_url(favicon):
        logger.debug(f"invalid url in web source: {item!r}")
        return None

    if favicon_url is not None:
        parsed = urlsplit(favicon)
        if (
            parsed.scheme.lower() != "https"
            or (parsed.hostname or "").lower() != ALLOWED_WEB_SOURCE_FAVICON_HOST
        ):
            logger.warning(f"web source favicon has disallowed host or scheme: {favicon}")
            return None

    return WebSource(title=title, url=url, favicon_url=favicon)


def _parse_event_payload(
    event_type: str, payload: Mapping[str, Any]
) -> ConversationEntryEvent | None:
    if event_type == "completion":
        completion = _find_string(payload, "completion")
        if not completion:
            return None
        return CompletionEvent(completion=completion)

    if event_type == "isSearching":
        return SearchStatusEvent()

    if event_type == "searchQueries":
        queries = _find_list(payload, "queries")
        if queries is None:
            return None
        return SearchQueriesEvent(
            search_queries=tuple(query for query in queries if isinstance(query, str))
        )

    if event_type == "webSources":
        items = _find_list(payload, "sources")
        if items is None:
            return None
        sources = tuple(
            source for source in (_parse_web_source(item) for item in items) if source is not None
        )
        if not sources:
            return None
        return WebSourcesEvent(sources=sources)

    if event_type == "conversationTitle":
        title = _find_string(payload, "title")
        if title is None:
            return None
        return ConversationTitleEvent(title=title)

    if event_type == "selectedLanguage":
        language = _find_string(payload, "language")
        if language is None:
            return None
        return SelectedLanguageEvent(selected_language=language)

    if event_type == "contentReceipt":
        return ContentReceiptEvent(
            total_tokens=_non_negative(_find_int(payload, "total_tokens")),
            trimmed_tokens=_non_negative(_find_int(payload, "trimmed_tokens")),
        )

    logger.debug(f"ignoring unknown response event type: {event_type}")
    return None


def parse_response_event(
    payload: Mapping[str, Any], model_service: ModelService
) -> GenerationResultData | None:
    """Classify one streamed JSON object by its ``type`` field.

    Returns None when ``model`` or ``type`` is missing, the type is unknown, or a
    required field of the type is missing.
    """
    if not isinstance(payload, Mapping):
        return None
    model = _find_string(payload, "model")
    if model is None:
        return None
    event_type = _find_string(payload, "type")
    if event_type is None:
        return None

    event = _parse_event_payload(event_type, payload)
    if event is None:
        return None
    return GenerationResultData(event=event, model_key=model_service.resolve_key_by_name(model))


def parse_tool_calls(payload: Mapping[str, Any]) -> list[GenerationResultData]:
    """Emit one ToolUseEvent per ``tool_calls`` entry, fragments included as received."""
    if not isinstance(payload, Mapping):
        return []
    tool_calls = _find_list(payload, "tool_calls")
    if tool_calls is None:
        return []

    results: list[GenerationResultData] = []
    for tool_call in tool_calls:
        if not isinstance(tool_call, dict):
            continue
        function = tool_call.get("function")
        if not isinstance(function, dict):
            logger.warning("no function info found in tool call")
            continue
        event = ToolUseEvent(
            tool_name=_find_string(function, "name") or "",
            tool_id=_find_string(tool_call, "id") or "",
            input_json=_find_string(function, "arguments") or "",
        )
        results.append(GenerationResultData(event=event))
    return results


def parse_stream_payload(
    payload: Mapping[str, Any], model_service: ModelService
) -> list[GenerationResultData]:
    """All results carried by one streamed object: the typed event first, then tool calls."""
    results: list[GenerationResultData] = []
    result = parse_response_event(payload, model_service)
    if result is not None:
        results.append(result)
    results.extend(parse_tool_calls(payload))
    return results


def parse_completion_body(value_body: Any, model_service: ModelService) -> GenerationResultData:
    """Build the single completion result of a non-streaming response."""
    completion = ""
    model_key: str | None = None
    if isinstance(value_body, dict):
        value = _find_string(value_body, "completion")
        if value is not None:
            # some models prepend a space
            completion = value.strip()
        model = _find_string(value_body, "model")
        if model is not None:
            model_key = model_service.resolve_key_by_name(model)
    return GenerationResultData(event=CompletionEvent(completion=completion), model_key=model_key)
