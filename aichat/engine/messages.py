from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from aichat.utils.exceptions import SerializationError

from .events import ToolUseEvent


class CharacterType(str, Enum):
    HUMAN = "human"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ConversationEventType(str, Enum):
    """Kind of a conversation event. Values are the backend's wire names."""

    CONTEXT_URL = "contextURL"
    USER_TEXT = "userText"
    PAGE_TEXT = "pageText"
    PAGE_EXCERPT = "pageExcerpt"
    VIDEO_TRANSCRIPT = "videoTranscript"
    VIDEO_TRANSCRIPT_XML = "videoTranscriptXML"
    VIDEO_TRANSCRIPT_VTT = "videoTranscriptVTT"
    CHAT_MESSAGE = "chatMessage"
    REQUEST_REWRITE = "requestRewrite"
    REQUEST_SUMMARY = "requestSummary"
    REQUEST_SUGGESTED_ACTIONS = "requestSuggestedActions"
    SUGGESTED_ACTIONS = "suggestedActions"
    GET_SUGGESTED_TOPICS_FOR_FOCUS_TABS = "suggestFocusTopics"
    DEDUPE_TOPICS = "dedupeFocusTopics"
    GET_SUGGESTED_AND_DEDUPE_TOPICS_FOR_FOCUS_TABS = "suggestAndDedupeFocusTopics"
    GET_FOCUS_TABS_FOR_TOPIC = "classifyTabs"
    UPLOAD_IMAGE = "uploadImage"
    PAGE_SCREENSHOT = "pageScreenshot"
    TOOL_USE = "toolUse"


def role_to_wire(role: CharacterType | str) -> str:
    try:
        role = CharacterType(role)
    except ValueError as exc:
        raise SerializationError(f"unknown role: {role!r}", field="role") from exc

    match role:
        case CharacterType.HUMAN:
            return "user"
        case CharacterType.ASSISTANT:
            return "assistant"
        case CharacterType.TOOL:
            return "tool"


def event_type_to_wire(event_type: ConversationEventType | str) -> str:
    try:
        return ConversationEventType(event_type).value
    except ValueError as exc:
        raise SerializationError(f"unknown event type: {event_type!r}", field="type") from exc


@dataclass(frozen=True, slots=True)
class TextContentBlock:
    """Content block: plain text."""

    text: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True, slots=True)
class ImageContentBlock:
    """Content block: image URL (usually a data: URL)."""

    image_url: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": "image_url", "image_url": {"url": self.image_url}}


ContentBlock = TextContentBlock | ImageContentBlock


@dataclass(frozen=True, slots=True)
class TextContent:
    """Event content made of plain strings."""

    texts: Sequence[str] = ()

    def to_wire(self) -> str | list[str]:
        if not self.texts:
            return ""
        if len(self.texts) == 1:
            return self.texts[0]
        return list(self.texts)


@dataclass(frozen=True, slots=True)
class BlockContent:
    """Event content made of typed blocks (text and images)."""

    blocks: Sequence[ContentBlock] = ()

    def to_wire(self) -> list[dict[str, Any]]:
        return [block.to_wire() for block in self.blocks]


EventContent = TextContent | BlockContent


@dataclass(frozen=True, slots=True)
class ConversationEvent:
    """One turn of the conversation as sent to the backend."""

    role: CharacterType
    type: ConversationEventType
    content: EventContent = TextContent()
    topic: str = ""
    tool_calls: Sequence[ToolUseEvent] = ()
    tool_call_id: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.content, (TextContent, BlockContent)):
            raise ValueError("content must be TextContent or BlockContent")

    def to_wire(self) -> dict[str, Any]:
        event: dict[str, Any] = {
            "role": role_to_wire(self.role),
            "type": event_type_to_wire(self.type),
            "content": self.content.to_wire(),
        }

        if self.tool_calls:
            event["tool_calls"] = [tool_call.to_wire() for tool_call in self.tool_calls]
            event["type"] = "toolCalls"

        if self.tool_call_id:
            event["tool_call_id"] = self.tool_call_id

        if self.type == ConversationEventType.GET_FOCUS_TABS_FOR_TOPIC:
            event["topic"] = self.topic

        return event


def events_to_wire(conversation: Sequence[ConversationEvent]) -> list[dict[str, Any]]:
    return [event.to_wire() for event in conversation]
