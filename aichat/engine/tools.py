from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from aichat.utils.exceptions import ToolSchemaError

from .models import Model

if TYPE_CHECKING:
    from aichat.config.settings import ServiceConfig

PAGE_CONTENT_TOOL_NAME = "page_content_fetcher"
USER_CHOICE_TOOL_NAME = "user_choice_tool"


@dataclass(frozen=True)
class Tool:
    """A capability the assistant may invoke.

    ``input_properties`` is a JSON Schema object as text. ``extra_params`` is
    only used for non-"function" tool types (e.g. provider-defined tools that
    need a screen size) and is merged into the declaration verbatim.
    """

    name: str = ""
    description: str = ""
    type: str = "function"
    input_properties: str | None = None
    required_properties: Sequence[str] | None = None
    extra_params: Mapping[str, Any] | None = None
    requires_content_association: bool = False
    requires_user_interaction: bool = False
    is_agent_tool: bool = False

    def is_supported_by(self, model: Model) -> bool:
        return model.supports_tools

    def is_function(self) -> bool:
        return not self.type or self.type == "function"

    def parameters_schema(self) -> dict[str, Any] | None:
        if self.input_properties is None:
            return None
        try:
            parameters = json.loads(self.input_properties)
        except json.JSONDecodeError as exc:
            raise ToolSchemaError(
                f"failed to parse input schema: {exc}", tool_name=self.name
            ) from exc
        if not isinstance(parameters, dict):
            raise ToolSchemaError("input schema is not an object", tool_name=self.name)
        if self.required_properties:
            parameters["required"] = list(self.required_properties)
        return parameters

    def to_wire(self) -> dict[str, Any]:
        if not self.is_function():
            declaration: dict[str, Any] = {"type": self.type, "name": self.name}
            if self.extra_params:
                declaration.update(self.extra_params)
            return declaration

        func: dict[str, Any] = {"name": self.name}
        if self.description:
            func["description"] = self.description
        parameters = self.parameters_schema()
        if parameters is not None:
            func["parameters"] = parameters
        return {"type": "function", "function": func}


@dataclass(frozen=True)
class PageContentTool(Tool):
    name: str = PAGE_CONTENT_TOOL_NAME
    description: str = (
        "Fetches the text content of the active Tab in the user's current browser session "
        "that is open alongside this conversation. This web page may or may not be relevant "
        "to the user's question. The assistant will call this function when determining that "
        "the user's question could be related to the content they are looking at and is not "
        "a standalone question. The assistant should only query this when it is at least 80% "
        "sure the user's query is related to the web page content."
    )
    input_properties: str | None = json.dumps(
        {
            "type": "object",
            "properties": {
                "confidence_percent": {
                    "type": "number",
                    "description": (
                        "How confident the assistant is that it needs the content of the "
                        "active web page to answer the user's query, where 100 is definitely "
                        "related and 0 is definitely not related."
                    ),
                }
            },
        }
    )
    requires_content_association: bool = True
    requires_user_interaction: bool = True


@dataclass(frozen=True)
class UserChoiceTool(Tool):
    name: str = USER_CHOICE_TOOL_NAME
    description: str = (
        "Presents a list of text choices to the user and returns the user's selection. "
        "The assistant will call this function only when it needs the user to make a "
        "choice between a couple of options in order to move forward with a task."
    )
    input_properties: str | None = json.dumps(
        {
            "type": "object",
            "properties": {
                "choices": {
                    "type": "array",
                    "description": "A list of choices for the user to select from",
                    "items": {"type": "string"},
                }
            },
        }
    )
    required_properties: Sequence[str] | None = ("choices",)
    requires_user_interaction: bool = True


@dataclass(frozen=True)
class ToolCatalog:
    """Immutable set of tools, built once at startup and shared by clients."""

    tools: tuple[Tool, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for tool in self.tools:
            if tool.name and tool.name in seen:
                raise ValueError(f"tool already registered: {tool.name}")
            seen.add(tool.name)

    @classmethod
    def default(cls, config: ServiceConfig) -> ToolCatalog:
        if not config.tools_enabled:
            return cls()
        tools: list[Tool] = [UserChoiceTool()]
        if config.smart_page_content_enabled:
            tools.append(PageContentTool())
        return cls(tools=tuple(tools))

    def get(self, name: str) -> Tool | None:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    def tools_for_conversation(self, has_associated_content: bool, model: Model) -> list[Tool]:
        return [
            tool
            for tool in self.tools
            if (has_associated_content or not tool.requires_content_association)
            and tool.is_supported_by(model)
        ]
