"""
pytest 配置文件

提供测试所需的 fixtures 和桩对象
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from aichat.engine.credentials import CredentialCacheEntry
from aichat.engine.models import Model, ModelCatalog


class FakeCredentialManager:
    """凭据管理器桩：记录取出与归还的凭据"""

    def __init__(self, credential: CredentialCacheEntry | None = None) -> None:
        self.credential = credential
        self.fetch_calls = 0
        self.returned: list[CredentialCacheEntry] = []

    async def fetch_premium_credential(self) -> CredentialCacheEntry | None:
        self.fetch_calls += 1
        return self.credential

    def put_credential_in_cache(self, credential: CredentialCacheEntry) -> None:
        self.returned.append(credential)


@pytest.fixture
def temp_dir():
    """创建临时目录 fixture"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def model_catalog() -> ModelCatalog:
    return ModelCatalog(
        [
            Model(key="chat-basic", name="llama-3-8b-instruct", supports_tools=False),
            Model(key="chat-claude-sonnet", name="claude-3-sonnet", supports_tools=True),
        ]
    )


@pytest.fixture
def credential_manager() -> FakeCredentialManager:
    return FakeCredentialManager()


@pytest.fixture
def premium_credential_manager() -> FakeCredentialManager:
    return FakeCredentialManager(CredentialCacheEntry(credential="premium-token"))


@pytest.fixture
def sample_config_dict():
    """示例配置字典 fixture"""
    return {
        "AI_CHAT": {
            "model": "chat-claude-sonnet",
            "services_environment": "staging",
            "service_key": "secret",
            "service_key_id": "key-1",
            "services_key": "identity",
            "sse": False,
        },
        "log_level": "DEBUG",
    }


@pytest.fixture
def sample_config_yaml(temp_dir, sample_config_dict):
    """创建示例配置 YAML 文件 fixture"""
    import yaml

    config_path = temp_dir / "config.user.yaml"
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config_dict, f)

    return config_path
