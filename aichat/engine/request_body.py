from __future__ import annotations

import json
import locale
from typing import Any, Sequence

from aichat.utils.logger import get_logger

from .messages import ConversationEvent, events_to_wire
from .tools import Tool

logger = get_logger(__name__)

DEFAULT_SYSTEM_LANGUAGE = "en_US"


def default_system_language() -> str:
    """``<language>_<COUNTRY>`` of the process locale, ``en_US`` when unknown."""
    try:
        name = locale.getlocale()[0]
    except ValueError:
        name = None
    if not name or name in ("C", "POSIX"):
        return DEFAULT_SYSTEM_LANGUAGE
    language, _, country = name.partition(".")[0].partition("_")
    if not language or not country:
        return DEFAULT_SYSTEM_LANGUAGE
    return f"{language.lower()}_{country.upper()}"


def tools_to_wire(tools: Sequence[Tool]) -> list[dict[str, Any]]:
    declarations: list[dict[str, Any]] = []
    for tool in tools:
        if not tool.name:
            logger.warning("tool name is empty, skipping tool")
            continue
        declarations.append(tool.to_wire())
    return declarations


def build_request_dict(
    conversation: Sequence[ConversationEvent],
    tools: Sequence[Tool],
    selected_language: str,
    model_name: str,
    is_sse_enabled: bool,
    *,
    system_language: str,
    use_citations: bool = True,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "events": events_to_wire(conversation),
        "model": model_name,
        "selected_language": selected_language,
        "system_language": system_language,
        "stream": is_sse_enabled,
    }
    if use_citations:
        body["use_citations"] = True
    if tools:
        body["tools"] = tools_to_wire(tools)
    return body


def build_body(
    conversation: Sequence[ConversationEvent],
    tools: Sequence[Tool],
    selected_language: str,
    model_name: str,
    is_sse_enabled: bool,
    *,
    system_language: str | None = None,
    use_citations: bool = True,
) -> str:
    """Serialize a conversation request to the backend's JSON body.

    Raises:
        SerializationError: an event has an unknown role or type.
        ToolSchemaError: a tool declares an input schema that is not a JSON object.
    """
    body = build_request_dict(
        conversation,
        tools,
        selected_language,
        model_name,
        is_sse_enabled,
        system_language=system_language or default_system_language(),
        use_citations=use_citations,
    )
    return json.dumps(body, ensure_ascii=False, separators=(",", ":"))
