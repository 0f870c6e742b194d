"""
KV 存储
提供统一的键值存储接口，所有笔记、密码记录和分享快照都保存在这里

单个键的 get/put/delete 各自原子，不提供跨键事务。
"""

import logging
from typing import Dict, Optional, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from core.config import Settings, get_settings
from core.errors import StorageException

logger = logging.getLogger(__name__)


class KVStore(Protocol):
    """键值存储接口"""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def put(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def close(self) -> None:
        ...


class RedisKVStore:
    """基于 Redis 的 KV 存储"""

    def __init__(self, client: "redis.Redis"):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisKVStore":
        client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password,  # 支持密码认证
            decode_responses=True,
            socket_connect_timeout=settings.redis_socket_timeout,
            socket_timeout=settings.redis_socket_timeout
        )
        return cls(client)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis 连接失败: {e}")
            raise StorageException("Redis 连接失败") from e

    async def get(self, key: str) -> Optional[str]:
        """
        获取值

        Args:
            key: 存储键

        Returns:
            字符串值，键不存在时返回 None
        """
        try:
            return await self._client.get(key)
        except RedisError as e:
            logger.error(f"读取 KV 失败 {key}: {e}")
            raise StorageException(f"读取失败: {key}") from e

    async def put(self, key: str, value: str) -> None:
        """
        写入值（覆盖已有值，不设过期时间）

        Args:
            key: 存储键
            value: 字符串值
        """
        try:
            await self._client.set(key, value)
        except RedisError as e:
            logger.error(f"写入 KV 失败 {key}: {e}")
            raise StorageException(f"写入失败: {key}") from e

    async def delete(self, key: str) -> None:
        """删除键（键不存在时无操作）"""
        try:
            await self._client.delete(key)
        except RedisError as e:
            logger.error(f"删除 KV 失败 {key}: {e}")
            raise StorageException(f"删除失败: {key}") from e

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis 连接已关闭")


class MemoryKVStore:
    """进程内 KV 存储，用于测试和本地开发"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def put(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)

    async def close(self) -> None:
        self.data.clear()


async def init_kv_store(settings: Optional[Settings] = None) -> KVStore:
    """根据配置创建 KV 存储"""
    settings = settings or get_settings()

    if settings.kv_backend == "memory":
        logger.info("使用内存 KV 存储")
        return MemoryKVStore()

    if settings.kv_backend != "redis":
        raise ValueError(f"不支持的 KV 存储后端: {settings.kv_backend}")

    store = RedisKVStore.from_settings(settings)
    await store.ping()
    logger.info(f"Redis 连接成功: {settings.redis_host}:{settings.redis_port}")
    return store


async def close_kv_store(store: Optional[KVStore]) -> None:
    """关闭 KV 存储"""
    if store is not None:
        await store.close()
