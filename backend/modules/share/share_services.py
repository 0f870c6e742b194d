"""
分享业务逻辑
分享快照按随机分享ID保存，创建后只有访问次数会变化，不会过期
"""

import logging

from pydantic import ValidationError

from core.errors import ErrorCode, NotFoundException, StorageException
from core.kv import KVStore

from .share_schemas import ShareSnapshot

logger = logging.getLogger(__name__)

SHARE_KEY_PREFIX = "share_"


def share_key(share_id: str) -> str:
    """分享快照的存储键"""
    return SHARE_KEY_PREFIX + share_id


class ShareService:
    """分享服务"""

    def __init__(self, kv: KVStore):
        self.kv = kv

    async def create_share(self, share_id: str, snapshot: ShareSnapshot) -> ShareSnapshot:
        """保存分享快照（同ID已存在时直接覆盖）"""
        await self.kv.put(share_key(share_id), snapshot.to_storage())
        logger.info(f"创建分享: {share_id}")
        return snapshot

    async def read_share(self, share_id: str) -> ShareSnapshot:
        """
        读取分享快照并增加访问次数

        返回增加之后的快照。并发读取可能丢失计数，不做保证。

        Raises:
            NotFoundException: 分享不存在
            StorageException: 已保存的数据无法解析
        """
        key = share_key(share_id)
        stored = await self.kv.get(key)
        if not stored:
            raise NotFoundException(ErrorCode.SHARE_NOT_FOUND)

        try:
            snapshot = ShareSnapshot.model_validate_json(stored)
        except ValidationError as e:
            logger.error(f"分享数据损坏 {share_id}: {e.error_count()} 个字段无效")
            raise StorageException(code=ErrorCode.SHARE_LOAD_FAILED) from e

        snapshot.visit_count += 1
        await self.kv.put(key, snapshot.to_storage())
        return snapshot
