"""
AI Chat 会话 API 客户端核心。

本包负责与远端会话后端通信，包括：
- 会话事件协议（ConversationEvent → 请求 JSON）
- 工具声明（Tool/ToolCatalog）
- 服务地址解析与请求签名（digest + HMAC Signature）
- 响应解析（类型化事件、tool_calls 片段）与错误分类
- ConversationAPIClient（凭据获取、SSE/一次性请求、取消）

说明：UI、会话历史、凭据缓存与工具执行均为外部协作方，不在本包内实现。
"""

from .conversation_api_client import (
    CompletedCallback,
    ConversationAPIClient,
    DataReceivedCallback,
    GenerationResult,
)
from .credentials import CredentialCacheEntry, CredentialManager
from .endpoint import resolve_url
from .errors import APIError, classify_response, should_return_credential
from .events import (
    CompletionEvent,
    ContentReceiptEvent,
    ConversationEntryEvent,
    ConversationTitleEvent,
    GenerationResultData,
    SearchQueriesEvent,
    SearchStatusEvent,
    SelectedLanguageEvent,
    ToolUseAccumulator,
    ToolUseEvent,
    WebSource,
    WebSourcesEvent,
)
from .messages import (
    BlockContent,
    CharacterType,
    ConversationEvent,
    ConversationEventType,
    ImageContentBlock,
    TextContent,
    TextContentBlock,
)
from .models import Model, ModelCatalog, ModelService
from .parsing import parse_completion_body, parse_response_event, parse_stream_payload
from .request_body import build_body
from .signing import sign
from .tools import PageContentTool, Tool, ToolCatalog, UserChoiceTool

__all__ = [
    "APIError",
    "BlockContent",
    "CharacterType",
    "CompletedCallback",
    "CompletionEvent",
    "ContentReceiptEvent",
    "ConversationAPIClient",
    "ConversationEntryEvent",
    "ConversationEvent",
    "ConversationEventType",
    "ConversationTitleEvent",
    "CredentialCacheEntry",
    "CredentialManager",
    "DataReceivedCallback",
    "GenerationResult",
    "GenerationResultData",
    "ImageContentBlock",
    "Model",
    "ModelCatalog",
    "ModelService",
    "PageContentTool",
    "SearchQueriesEvent",
    "SearchStatusEvent",
    "SelectedLanguageEvent",
    "TextContent",
    "TextContentBlock",
    "Tool",
    "ToolCatalog",
    "ToolUseAccumulator",
    "ToolUseEvent",
    "UserChoiceTool",
    "WebSource",
    "WebSourcesEvent",
    "build_body",
    "classify_response",
    "parse_completion_body",
    "parse_response_event",
    "parse_stream_payload",
    "resolve_url",
    "should_return_credential",
    "sign",
]
