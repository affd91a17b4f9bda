"""
应用配置类

使用 Pydantic 进行配置管理，支持从 YAML 配置文件加载。
基于 config.user.yaml + config.dev.yaml 的统一配置方案（dev 覆盖 user）。
"""

from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from aichat.config.config_files import (
    ConfigSources,
    DEFAULT_DEV_CONFIG_PATH,
    DEFAULT_USER_CONFIG_EXAMPLE_PATH,
    DEFAULT_USER_CONFIG_PATH,
    deep_merge_dict,
    read_yaml_file,
    resolve_config_paths,
    to_project_path,
    write_yaml_atomic,
)
from aichat.utils.logger import get_logger

logger = get_logger(__name__)

ServicesEnvironment = Literal["prod", "staging", "dev"]


class ServiceConfig(BaseModel):
    """会话 API 服务配置"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, protected_namespaces=())

    model_name: str = Field(
        default="chat-basic",
        min_length=1,
        description="未指定 model 覆盖时请求体中使用的默认模型",
        validation_alias=AliasChoices("model_name", "model"),
    )

    services_environment: ServicesEnvironment = Field(
        default="dev",
        description="服务域名环境：prod / staging / dev",
    )

    free_host_prefix: str = Field(default="ai-chat.bsg", description="免费层主机前缀")

    premium_host_prefix: str = Field(
        default="ai-chat-premium.bsg",
        description="持有高级凭据时使用的主机前缀",
    )

    remote_path: str = Field(
        default="v1/conversation",
        description="会话 API 路径（不以 / 开头）",
    )

    service_key: str = Field(
        default="",
        description="Authorization 签名所用的 HMAC 密钥（为空则不签名）",
    )

    service_key_id: str = Field(default="", description="签名头中的 keyId")

    services_key: str = Field(
        default="",
        description="静态服务身份头 x-brave-key 的值",
    )

    sse_enabled: bool = Field(
        default=True,
        description="是否启用 SSE 流式请求（仍需调用方提供 data_received 回调）",
        validation_alias=AliasChoices("sse_enabled", "sse"),
    )

    use_citations: bool = Field(default=True, description="请求体中是否携带 use_citations")

    tools_enabled: bool = Field(default=True, description="是否向后端声明工具")

    smart_page_content_enabled: bool = Field(
        default=True,
        description="是否提供页面内容获取工具",
    )

    official_build: bool = Field(
        default=False,
        description="正式构建：忽略运行时服务地址覆盖",
    )

    server_url_override: Optional[str] = Field(
        default=None,
        description="开发用服务地址覆盖（正式构建下无效；AI_CHAT_SERVER_URL 优先）",
    )

    request_timeout_s: float = Field(default=120.0, gt=0, description="请求总超时（秒）")

    connect_timeout_s: float = Field(default=10.0, gt=0, description="连接超时（秒）")


LOG_SETTING_KEYS = (
    "log_level",
    "log_dir",
    "log_rotation",
    "log_retention",
    "log_file",
    "log_json",
    "log_quiet_level",
)


class Settings(BaseModel):
    """应用配置：AI_CHAT 服务段 + 顶层日志项"""

    model_config = ConfigDict(extra="ignore")

    ai_chat: ServiceConfig = Field(default_factory=ServiceConfig)

    log_level: str = Field(default="INFO", description="日志级别")
    log_dir: str = Field(default="logs", description="日志目录")
    log_rotation: str = Field(default="20 MB", description="日志轮转大小")
    log_retention: str = Field(default="7 days", description="日志保留时长")
    log_file: bool = Field(default=False, description="是否写入文本日志文件")
    log_json: bool = Field(default=False, description="是否写入 JSON 日志文件")
    log_quiet_level: str = Field(default="WARNING", description="第三方库日志级别")

    @classmethod
    def from_yaml(cls, config_path: str = DEFAULT_USER_CONFIG_PATH) -> "Settings":
        """
        从单个 YAML 文件加载配置

        Raises:
            FileNotFoundError: 配置文件不存在
            ValueError: YAML 语法错误、顶层不是 mapping 或文件为空
        """
        config_file = to_project_path(config_path)
        if not config_file.is_file():
            raise FileNotFoundError(
                f"配置文件不存在: {config_file}"
                f"（可参考 {DEFAULT_USER_CONFIG_EXAMPLE_PATH}）"
            )

        try:
            config_data = read_yaml_file(config_file)
        except yaml.YAMLError as e:
            raise ValueError(f"配置文件格式错误: {config_file}: {e}") from e

        if not config_data:
            raise ValueError(f"配置文件为空: {config_file}")
        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "Settings":
        """从 dict（通常是 user + dev 合并结果）构建配置"""
        if not config_data:
            raise ValueError("配置数据为空")

        values: Dict[str, Any] = {
            key: config_data[key] for key in LOG_SETTING_KEYS if key in config_data
        }
        values["ai_chat"] = ServiceConfig.model_validate(config_data.get("AI_CHAT") or {})
        return cls.model_validate(values)

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(include=set(LOG_SETTING_KEYS))
        return {"AI_CHAT": self.ai_chat.model_dump(exclude_none=True), **data}

    def to_yaml(self, output_path: str) -> None:
        """保存为 YAML（格式与 from_yaml 读取的一致）"""
        write_yaml_atomic(output_path, self.to_dict())


_settings_cache: Optional[Settings] = None
_settings_cache_key: Optional[tuple[Any, ...]] = None


def _read_sources(sources: ConfigSources) -> Dict[str, Any]:
    user_data: Dict[str, Any] = {}
    if sources.user_path.is_file():
        user_data = read_yaml_file(sources.user_path)
    else:
        logger.warning(f"配置文件不存在: {sources.user_path}，将使用默认配置")

    dev_data: Dict[str, Any] = {}
    if sources.dev_path is not None:
        try:
            dev_data = read_yaml_file(sources.dev_path)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            logger.warning(f"开发者配置读取失败，已忽略: {sources.dev_path} ({exc})")

    return deep_merge_dict(user_data, dev_data)


def load_settings(
    user_config_path: str = DEFAULT_USER_CONFIG_PATH,
    dev_config_path: str = DEFAULT_DEV_CONFIG_PATH,
    use_cache: bool = True,
) -> Settings:
    """
    加载 user + dev 合并后的配置

    Args:
        user_config_path: 用户配置文件（默认 config.user.yaml）
        dev_config_path: 开发者配置文件（可选，存在时覆盖 user）
        use_cache: 两个文件的路径与 mtime 均未变化时复用上次结果
    """
    global _settings_cache, _settings_cache_key

    sources = resolve_config_paths(user_config_path, dev_config_path)
    cache_key = (sources.user_path, sources.dev_path, *sources.mtimes())

    if use_cache and _settings_cache is not None and _settings_cache_key == cache_key:
        logger.debug(f"配置缓存命中: {sources.user_path}")
        return _settings_cache

    config_data = _read_sources(sources)
    settings_instance = Settings.from_dict(config_data) if config_data else Settings()
    logger.debug(
        f"配置已加载: user={sources.user_path} dev={sources.dev_path} "
        f"env={settings_instance.ai_chat.services_environment}"
    )

    if use_cache:
        _settings_cache, _settings_cache_key = settings_instance, cache_key
    return settings_instance
