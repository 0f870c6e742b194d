"""
KV 存储单元测试
覆盖：Redis 读写删除、异常转换、内存存储、按配置初始化
"""

import pytest
from unittest.mock import patch, MagicMock, AsyncMock
from redis.exceptions import ConnectionError as RedisConnectionError

from core.config import Settings
from core.errors import StorageException
from core.kv import (
    RedisKVStore, MemoryKVStore,
    init_kv_store, close_kv_store,
)


class TestRedisKVStore:
    """Redis KV 存储测试"""

    @pytest.mark.asyncio
    async def test_get(self):
        """测试读取"""
        mock_redis = AsyncMock()
        mock_redis.get.return_value = "ciphertext"
        store = RedisKVStore(mock_redis)

        assert await store.get("_tmp/abc") == "ciphertext"
        mock_redis.get.assert_called_with("_tmp/abc")

    @pytest.mark.asyncio
    async def test_get_missing_key(self):
        """测试读取不存在的键"""
        mock_redis = AsyncMock()
        mock_redis.get.return_value = None
        store = RedisKVStore(mock_redis)

        assert await store.get("_tmp/missing") is None

    @pytest.mark.asyncio
    async def test_put_without_expire(self):
        """测试写入不设置过期时间"""
        mock_redis = AsyncMock()
        store = RedisKVStore(mock_redis)

        await store.put("share_abc", "{}")
        mock_redis.set.assert_called_once_with("share_abc", "{}")
        mock_redis.setex.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete(self):
        """测试删除"""
        mock_redis = AsyncMock()
        store = RedisKVStore(mock_redis)

        await store.delete("_tmp/abc")
        mock_redis.delete.assert_called_with("_tmp/abc")

    @pytest.mark.asyncio
    async def test_errors_become_storage_exception(self):
        """测试 Redis 异常转换为 StorageException"""
        mock_redis = AsyncMock()
        mock_redis.get.side_effect = RedisConnectionError("down")
        mock_redis.set.side_effect = RedisConnectionError("down")
        mock_redis.delete.side_effect = RedisConnectionError("down")
        store = RedisKVStore(mock_redis)

        with pytest.raises(StorageException):
            await store.get("k")
        with pytest.raises(StorageException):
            await store.put("k", "v")
        with pytest.raises(StorageException):
            await store.delete("k")

    @pytest.mark.asyncio
    async def test_close(self):
        """测试关闭连接"""
        mock_redis = AsyncMock()
        store = RedisKVStore(mock_redis)

        await store.close()
        mock_redis.aclose.assert_called_once()


class TestMemoryKVStore:
    """内存 KV 存储测试"""

    @pytest.mark.asyncio
    async def test_basic_operations(self):
        """测试基本读写删除"""
        store = MemoryKVStore()

        assert await store.get("k") is None
        await store.put("k", "v1")
        await store.put("k", "v2")
        assert await store.get("k") == "v2"
        await store.delete("k")
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_delete_missing_key(self):
        """测试删除不存在的键不报错"""
        store = MemoryKVStore()
        await store.delete("missing")

    def test_initial_data_is_copied(self):
        """测试初始数据被复制"""
        initial = {"k": "v"}
        store = MemoryKVStore(initial)
        store.data["k2"] = "v2"
        assert "k2" not in initial


class TestInitKVStore:
    """按配置初始化测试"""

    @pytest.mark.asyncio
    async def test_init_memory(self):
        """测试内存后端"""
        store = await init_kv_store(Settings(kv_backend="memory"))
        assert isinstance(store, MemoryKVStore)

    @pytest.mark.asyncio
    async def test_init_unknown_backend(self):
        """测试未知后端"""
        with pytest.raises(ValueError):
            await init_kv_store(Settings(kv_backend="cassandra"))

    @pytest.mark.asyncio
    async def test_init_redis(self):
        """测试 Redis 后端初始化并 ping"""
        mock_redis = AsyncMock()
        mock_redis.ping.return_value = True

        with patch("core.kv.redis.Redis", MagicMock(return_value=mock_redis)) as redis_cls:
            store = await init_kv_store(Settings(kv_backend="redis", redis_host="kv.local"))

        assert isinstance(store, RedisKVStore)
        assert redis_cls.call_args.kwargs["host"] == "kv.local"
        assert redis_cls.call_args.kwargs["decode_responses"] is True
        mock_redis.ping.assert_called_once()

    @pytest.mark.asyncio
    async def test_init_redis_unreachable(self):
        """测试 Redis 不可用时初始化失败"""
        mock_redis = AsyncMock()
        mock_redis.ping.side_effect = RedisConnectionError("refused")

        with patch("core.kv.redis.Redis", MagicMock(return_value=mock_redis)):
            with pytest.raises(StorageException):
                await init_kv_store(Settings(kv_backend="redis"))

    @pytest.mark.asyncio
    async def test_close_none(self):
        """测试关闭空存储"""
        await close_kv_store(None)
