from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class CompletionEvent:
    completion: str
    type: Literal["completion"] = "completion"


@dataclass(frozen=True, slots=True)
class SearchStatusEvent:
    is_searching: bool = True
    type: Literal["search_status"] = "search_status"


@dataclass(frozen=True, slots=True)
class SearchQueriesEvent:
    search_queries: tuple[str, ...] = ()
    type: Literal["search_queries"] = "search_queries"


@dataclass(frozen=True, slots=True)
class WebSource:
    title: str
    url: str
    favicon_url: str


@dataclass(frozen=True, slots=True)
class WebSourcesEvent:
    sources: tuple[WebSource, ...] = ()
    type: Literal["web_sources"] = "web_sources"


@dataclass(frozen=True, slots=True)
class ConversationTitleEvent:
    title: str
    type: Literal["conversation_title"] = "conversation_title"


@dataclass(frozen=True, slots=True)
class SelectedLanguageEvent:
    selected_language: str
    type: Literal["selected_language"] = "selected_language"


@dataclass(frozen=True, slots=True)
class ContentReceiptEvent:
    total_tokens: int = 0
    trimmed_tokens: int = 0
    type: Literal["content_receipt"] = "content_receipt"


@dataclass(frozen=True, slots=True)
class ToolUseEvent:
    """A tool invocation requested by the assistant.

    Streamed responses may deliver one invocation as several fragments; only the
    first fragment carries ``tool_id`` and ``tool_name``, later ones carry more
    ``input_json`` text. Use :class:`ToolUseAccumulator` to merge them.
    """

    tool_name: str = ""
    tool_id: str = ""
    input_json: str = ""
    type: Literal["tool_use"] = "tool_use"

    def to_wire(self) -> dict[str, object]:
        return {
            "id": self.tool_id,
            "type": "function",
            "function": {"name": self.tool_name, "arguments": self.input_json},
        }


ConversationEntryEvent = (
    CompletionEvent
    | SearchStatusEvent
    | SearchQueriesEvent
    | WebSourcesEvent
    | ConversationTitleEvent
    | SelectedLanguageEvent
    | ContentReceiptEvent
    | ToolUseEvent
)


@dataclass(frozen=True, slots=True)
class GenerationResultData:
    """One parsed unit of output plus the catalog key of the model that produced it."""

    event: ConversationEntryEvent
    model_key: str | None = None


@dataclass(slots=True)
class ToolUseState:
    tool_id: str = ""
    tool_name: str = ""
    input_json: str = ""

    def is_complete(self) -> bool:
        return bool(self.tool_id and self.tool_name)

    def to_event(self) -> ToolUseEvent:
        return ToolUseEvent(
            tool_name=self.tool_name, tool_id=self.tool_id, input_json=self.input_json
        )


class ToolUseAccumulator:
    """Merge streamed tool-use fragments by ``tool_id``.

    A fragment without an id continues the most recent invocation.
    """

    def __init__(self) -> None:
        self._calls: list[ToolUseState] = []
        self._by_id: dict[str, ToolUseState] = {}

    def apply(self, event: ToolUseEvent) -> None:
        state: ToolUseState | None = None
        if event.tool_id:
            state = self._by_id.get(event.tool_id)
            if state is None:
                state = ToolUseState(tool_id=event.tool_id)
                self._by_id[event.tool_id] = state
                self._calls.append(state)
        elif self._calls:
            state = self._calls[-1]
        else:
            state = ToolUseState()
            self._calls.append(state)

        if event.tool_name and not state.tool_name:
            state.tool_name = event.tool_name
        if event.input_json:
            state.input_json += event.input_json

    def list(self) -> list[ToolUseEvent]:
        return [state.to_event() for state in self._calls]

    def completed(self) -> list[ToolUseEvent]:
        """Invocations that have both an id and a tool name."""
        return [state.to_event() for state in self._calls if state.is_complete()]
