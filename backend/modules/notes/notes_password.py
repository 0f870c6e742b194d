"""
笔记密码保护
每篇笔记最多一条密码记录 {hash, salt}，记录存在即表示受保护

密码只控制客户端的访问界面，服务端读取笔记内容时不做校验；
密码遗失后无法找回，只能由知道密码的人解除保护。
"""

import hashlib
import hmac
import json
import logging
import secrets
from typing import Optional, Tuple

from core.errors import AuthException
from core.kv import KVStore

from .notes_identity import password_key, validate_note_name

logger = logging.getLogger(__name__)

SALT_SIZE = 16


def hash_password(password: str, salt: bytes) -> str:
    """SHA256(密码 UTF-8 字节 ‖ 盐值) 的十六进制摘要"""
    return hashlib.sha256(password.encode('utf-8') + salt).hexdigest()


class PasswordService:
    """笔记密码服务"""

    def __init__(self, kv: KVStore):
        self.kv = kv

    async def _load_record(self, note_name: str) -> Optional[Tuple[str, bytes]]:
        """读取密码记录，不存在或格式损坏时返回 None"""
        stored = await self.kv.get(password_key(note_name))
        if not stored:
            return None
        try:
            record = json.loads(stored)
            return record["hash"], bytes.fromhex(record["salt"])
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"密码记录格式损坏 {note_name}: {e}")
            return None

    async def set_password(self, note_name: str, password: str) -> None:
        """设置密码（已有记录时直接覆盖）"""
        note_name = validate_note_name(note_name)
        # 为每次设置生成新的盐值
        salt = secrets.token_bytes(SALT_SIZE)
        record = {
            "hash": hash_password(password, salt),
            "salt": salt.hex()
        }
        await self.kv.put(password_key(note_name), json.dumps(record))
        logger.info(f"笔记已设置密码保护: {note_name}")

    async def is_protected(self, note_name: str) -> bool:
        """检查笔记是否设置了密码"""
        note_name = validate_note_name(note_name)
        return bool(await self.kv.get(password_key(note_name)))

    async def verify_password(self, note_name: str, password: str) -> bool:
        """验证密码，未设置密码时视为验证失败"""
        note_name = validate_note_name(note_name)
        record = await self._load_record(note_name)
        if record is None:
            return False
        stored_hash, salt = record
        return hmac.compare_digest(
            hash_password(password, salt).encode('ascii'),
            str(stored_hash).encode('utf-8')
        )

    async def remove_password(self, note_name: str, password: str) -> None:
        """
        解除密码保护

        Raises:
            AuthException: 密码错误或未设置密码，记录保持不变
        """
        if not await self.verify_password(note_name, password):
            raise AuthException()
        await self.kv.delete(password_key(note_name))
        logger.info(f"笔记已解除密码保护: {note_name}")
