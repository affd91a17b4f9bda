"""
配置管理模块

提供会话 API 客户端的配置管理功能。
"""

from .settings import ServiceConfig, Settings, load_settings

__all__ = ["Settings", "ServiceConfig", "load_settings"]
