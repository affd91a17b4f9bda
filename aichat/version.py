"""
aichat 版本管理模块

统一管理项目版本号，确保版本一致性。
"""

__version__ = "0.4.2"
__version_info__ = (0, 4, 2)

VERSION_HISTORY = {
    "0.4.2": {
        "date": "2026-09-30",
        "changes": [
            "webSources: favicon host comparison is now case-insensitive",
            "SSE: ignore `[DONE]` sentinel and comment lines",
        ],
    },
    "0.4.1": {
        "date": "2026-09-12",
        "changes": [
            "Tool declarations: non-function tool types merge extra_params verbatim",
        ],
    },
    "0.4.0": {
        "date": "2026-08-28",
        "changes": [
            "ConversationAPIClient: streaming tool_calls are emitted as ToolUseEvent fragments",
            "ToolUseAccumulator for caller-side fragment merging",
        ],
    },
}


def get_version() -> str:
    """获取当前版本号"""
    return __version__
