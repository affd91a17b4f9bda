"""
日志工具模块

- 后端统一为 loguru：控制台 sink，必要时加上轮转文本文件与 JSONL 文件
- 请求级上下文（如 request_id）存放在 ContextVar 中，由 patcher 注入每条记录
- 标准库 logging（aiohttp/asyncio）转发到 loguru

导入本模块不会创建任何文件；调用 `setup_logger()` 后才安装 sink。
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger as loguru_logger

ENV_PREFIX = "AICHAT_LOG_"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[logger_name]}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level> <dim>{extra[context_str]}</dim>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{extra[logger_name]}:{function}:{line} - {message} {extra[context_str]}"
)

QUIET_LIBS = ("asyncio", "aiohttp", "aiohttp.access", "aiohttp.client", "charset_normalizer")

LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("aichat_log_context", default={})

_current_config: Optional["LoggerConfig"] = None


def _env(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(ENV_PREFIX + name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_keywords() -> List[str]:
    raw = _env("DROP_KEYWORDS", "")
    return [kw.strip().lower() for kw in raw.split(",") if kw.strip()]


@dataclass
class LoggerConfig:
    """日志配置；默认值取自 AICHAT_LOG_* 环境变量"""

    level: str = field(default_factory=lambda: _env("LEVEL", "INFO"))
    log_dir: Path = field(default_factory=lambda: Path(_env("DIR", "logs")))
    log_file: str = field(default_factory=lambda: _env("FILE", "aichat.log"))
    json_file: str = field(default_factory=lambda: _env("JSON_FILE", "aichat.jsonl"))
    rotation: str = field(default_factory=lambda: _env("ROTATION", "20 MB"))
    retention: str = field(default_factory=lambda: _env("RETENTION", "7 days"))
    enable_file: bool = field(default_factory=lambda: _env_flag("FILE_ENABLED", False))
    enable_json: bool = field(default_factory=lambda: _env_flag("JSON", False))
    colorize: bool = field(default_factory=lambda: _env_flag("COLOR", True))
    enqueue: bool = field(default_factory=lambda: _env_flag("ENQUEUE", False))
    diagnose: bool = field(default_factory=lambda: _env_flag("DIAGNOSE", False))
    quiet_libs: List[str] = field(default_factory=lambda: list(QUIET_LIBS))
    quiet_level: str = field(default_factory=lambda: _env("QUIET_LEVEL", "WARNING"))
    drop_keywords: List[str] = field(default_factory=_env_keywords)

    def __post_init__(self) -> None:
        self.level = str(self.level).upper()
        self.quiet_level = str(self.quiet_level).upper()
        self.log_dir = Path(self.log_dir)
        self.drop_keywords = [
            str(kw).strip().lower() for kw in self.drop_keywords if str(kw).strip()
        ]


class _InterceptHandler(logging.Handler):
    """标准 logging -> loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # 跳过 logging 模块自身的栈帧，让 loguru 记录真实调用位置
        frame, depth = logging.currentframe(), 0
        while frame is not None and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        loguru_logger.bind(logger_name=record.name).opt(
            depth=depth, exception=record.exc_info
        ).log(level, record.getMessage())


def _inject_context(record: Dict[str, Any]) -> None:
    context = LOG_CONTEXT.get()
    extra = record["extra"]
    extra.setdefault("logger_name", record["name"] or "aichat")
    extra["context"] = dict(context)
    extra["context_str"] = " ".join(f"{key}={value}" for key, value in context.items())


def _should_drop(message: str, keywords: List[str]) -> bool:
    """关键字（小写）命中则丢弃该条日志"""
    if not message or not keywords:
        return False
    lowered = message.lower()
    return any(kw in lowered for kw in keywords)


def _build_handlers(cfg: LoggerConfig) -> List[Dict[str, Any]]:
    def keep(record: Dict[str, Any]) -> bool:
        return not _should_drop(record["message"], cfg.drop_keywords)

    common = {"level": cfg.level, "enqueue": cfg.enqueue, "filter": keep}
    handlers: List[Dict[str, Any]] = [
        {
            "sink": sys.stderr,
            "format": CONSOLE_FORMAT,
            "colorize": cfg.colorize,
            "diagnose": cfg.diagnose,
            **common,
        }
    ]

    rotating = {"rotation": cfg.rotation, "retention": cfg.retention, "encoding": "utf-8"}
    if cfg.enable_file:
        handlers.append(
            {"sink": cfg.log_dir / cfg.log_file, "format": FILE_FORMAT, **rotating, **common}
        )
    if cfg.enable_json:
        handlers.append(
            {"sink": cfg.log_dir / cfg.json_file, "serialize": True, **rotating, **common}
        )
    return handlers


def setup_logger(config: Optional[LoggerConfig] = None, **overrides: Any):
    """
    安装（或重新安装）全部 sink，可重复调用

    Args:
        config: 基础配置；省略时沿用上一次的配置
        **overrides: 覆盖 LoggerConfig 字段（值为 None 的项忽略）

    Returns:
        绑定了 logger_name="aichat" 的 loguru logger
    """
    global _current_config

    base = config or _current_config or LoggerConfig()
    cfg = replace(base, **{k: v for k, v in overrides.items() if v is not None})
    _current_config = cfg

    if cfg.enable_file or cfg.enable_json:
        cfg.log_dir.mkdir(parents=True, exist_ok=True)

    loguru_logger.configure(
        handlers=_build_handlers(cfg),
        patcher=_inject_context,
        extra={"app": "aichat"},
    )

    logging.basicConfig(
        handlers=[_InterceptHandler()],
        level=getattr(logging, cfg.level, logging.INFO),
        force=True,
    )
    set_library_log_levels({name: cfg.quiet_level for name in cfg.quiet_libs})
    return get_logger("aichat")


def apply_settings(settings: Any) -> None:
    """用 Settings 的顶层日志项重新初始化日志"""
    setup_logger(
        level=settings.log_level,
        log_dir=settings.log_dir,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        enable_file=settings.log_file,
        enable_json=settings.log_json,
        quiet_level=settings.log_quiet_level,
    )


def set_log_level(level: str) -> None:
    setup_logger(level=level)


def set_library_log_levels(level_map: Dict[str, str], default_level: Optional[str] = None) -> None:
    """按名称设置标准库 logger 级别；default_level 作用于 root"""
    for name, level in level_map.items():
        logging.getLogger(name).setLevel(str(level).upper())
    if default_level:
        logging.getLogger().setLevel(str(default_level).upper())


def bind_context(**kwargs: Any) -> None:
    """在当前上下文（协程/线程）中追加日志字段"""
    LOG_CONTEXT.set({**LOG_CONTEXT.get(), **kwargs})


@contextmanager
def log_context(**kwargs: Any):
    """with 块内追加日志字段，退出时恢复"""
    token = LOG_CONTEXT.set({**LOG_CONTEXT.get(), **kwargs})
    try:
        yield
    finally:
        LOG_CONTEXT.reset(token)


def clear_context() -> None:
    LOG_CONTEXT.set({})


def get_logger(name: str) -> Any:
    """获取带 logger_name 的 loguru logger（未 setup 时上下文同样生效）"""
    return loguru_logger.bind(logger_name=name).patch(_inject_context)


logger = get_logger("aichat")
