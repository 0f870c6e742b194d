"""
测试配置和 Fixtures
提供测试用的 KV 存储、配置和客户端
"""

import os
import sys

# 立即设置测试环境变量，确保核心模块加载时使用测试配置
os.environ.setdefault("KV_BACKEND", "memory")
os.environ.setdefault("DEBUG", "true")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# 确保可以导入项目模块
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import Settings, get_settings
from core.deps import get_kv
from core.kv import MemoryKVStore
from main import app


# ==================== Fixtures ====================

@pytest.fixture
def kv_store() -> MemoryKVStore:
    """每个测试独立的内存 KV 存储"""
    return MemoryKVStore()


@pytest.fixture
def test_settings() -> Settings:
    """测试用配置（不读取 Redis）"""
    return Settings(kv_backend="memory", debug=True)


@pytest_asyncio.fixture(scope="function")
async def client(kv_store, test_settings) -> AsyncGenerator[AsyncClient, None]:
    """
    创建异步测试客户端
    通过依赖覆盖注入测试用的 KV 存储和配置
    """
    app.dependency_overrides[get_kv] = lambda: kv_store
    app.dependency_overrides[get_settings] = lambda: test_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
