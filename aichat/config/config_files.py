"""
配置文件定位与读写

用户配置 config.user.yaml 与可选的开发者配置 config.dev.yaml，
两者深度合并（dev 覆盖 user）。
相对路径以 AICHAT_CONFIG_DIR（未设置时为项目根目录）为基准。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_DIR_ENV = "AICHAT_CONFIG_DIR"

DEFAULT_USER_CONFIG_PATH = "config.user.yaml"
DEFAULT_DEV_CONFIG_PATH = "config.dev.yaml"
DEFAULT_USER_CONFIG_EXAMPLE_PATH = "config.user.yaml.example"


@dataclass(frozen=True, slots=True)
class ConfigSources:
    """一次加载实际使用的配置文件"""

    user_path: Path
    dev_path: Path | None = None

    def mtimes(self) -> tuple[int | None, int | None]:
        return _mtime_ns(self.user_path), _mtime_ns(self.dev_path)


def _mtime_ns(path: Path | None) -> int | None:
    if path is None:
        return None
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None


def config_base_dir() -> Path:
    override = os.getenv(CONFIG_DIR_ENV)
    return Path(override).expanduser() if override else PROJECT_ROOT


def to_project_path(path: str | Path) -> Path:
    value = Path(path).expanduser()
    return value if value.is_absolute() else config_base_dir() / value


def deep_merge_dict(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """递归合并两个 dict，override 优先；不修改入参"""
    merged = dict(base or {})
    for key, value in (override or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge_dict(current, value)
        merged[key] = value
    return merged


def read_yaml_file(path: Path) -> dict[str, Any]:
    """读取 YAML mapping；空文件视为 {}"""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"配置文件必须为 YAML mapping/object: {path}")
    return data


def resolve_config_paths(
    user_config_path: str = DEFAULT_USER_CONFIG_PATH,
    dev_config_path: str = DEFAULT_DEV_CONFIG_PATH,
) -> ConfigSources:
    """定位配置文件；dev 配置仅在文件存在时使用"""
    dev_path = to_project_path(dev_config_path) if dev_config_path else None
    if dev_path is not None and not dev_path.exists():
        dev_path = None
    return ConfigSources(user_path=to_project_path(user_config_path), dev_path=dev_path)


def write_yaml_atomic(path: str | Path, data: dict[str, Any]) -> None:
    """原子写入 YAML 配置"""
    output_path = to_project_path(path)
    tmp_path = output_path.with_suffix(output_path.suffix + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)
        os.replace(tmp_path, output_path)
    finally:
        tmp_path.unlink(missing_ok=True)
