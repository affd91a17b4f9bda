"""
工具函数模块

提供日志、异常与 HTTP 传输等通用工具。
"""

from .logger import (
    apply_settings,
    bind_context,
    clear_context,
    get_logger,
    log_context,
    logger,
    set_log_level,
    setup_logger,
)

__all__ = [
    "get_logger",
    "setup_logger",
    "logger",
    "apply_settings",
    "set_log_level",
    "bind_context",
    "clear_context",
    "log_context",
]
