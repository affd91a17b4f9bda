"""
aichat 自定义异常类

These exceptions mark internal contract violations (bad configuration, a tool
schema that is not JSON, an unmapped event kind). Network and HTTP failures are
never raised: they are reported through :class:`aichat.engine.errors.APIError`.
"""

from typing import Any, Dict, Optional


class AIChatException(Exception):
    """aichat 基础异常类；子类通过 default_code 指定错误代码"""

    default_code = "UNKNOWN_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.context: Dict[str, Any] = dict(context or {})

    @staticmethod
    def _merge_context(context: Optional[Dict[str, Any]], **fields: Any) -> Dict[str, Any]:
        """把非空字段并入上下文"""
        merged = dict(context or {})
        merged.update({key: value for key, value in fields.items() if value is not None})
        return merged

    def __str__(self) -> str:
        text = f"[{self.error_code}] {self.message}"
        return f"{text} | Context: {self.context}" if self.context else text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "type": type(self).__name__,
        }


class ConfigurationError(AIChatException):
    """配置错误（例如无法构成合法 URL 的服务地址）"""

    default_code = "CONFIG_ERROR"

    def __init__(
        self, message: str, url: Optional[str] = None, context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context=self._merge_context(context, url=url))


class ToolSchemaError(AIChatException):
    """工具声明的 JSON Schema 无法解析或不是对象"""

    default_code = "TOOL_SCHEMA_ERROR"

    def __init__(
        self, message: str, tool_name: Optional[str] = None, context: Optional[Dict[str, Any]] = None
    ):
        ctx = self._merge_context(context, tool_name=tool_name or None)
        super().__init__(message, context=ctx)


class SerializationError(AIChatException):
    """会话事件序列化错误（未知的 role / event type）"""

    default_code = "SERIALIZATION_ERROR"

    def __init__(
        self, message: str, field: Optional[str] = None, context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, context=self._merge_context(context, field=field or None))
