"""
笔记业务逻辑
笔记内容在 KV 中只保存密文，读写时在这里完成加解密
"""

import logging
from typing import Optional

from core.config import Settings, get_settings
from core.errors import DecryptionFailed
from core.kv import KVStore

from .notes_crypto import NoteCrypto
from .notes_identity import note_path, validate_note_name

logger = logging.getLogger(__name__)


class NotesService:
    """笔记服务"""

    def __init__(self, kv: KVStore, settings: Optional[Settings] = None):
        self.kv = kv
        self.settings = settings or get_settings()

    def _key_for(self, path: str) -> bytes:
        return NoteCrypto.derive_key(path, self.settings.note_key_secret)

    async def get_content(self, note_name: str) -> str:
        """获取笔记明文，笔记不存在时返回空字符串"""
        path = note_path(validate_note_name(note_name))
        encrypted = await self.kv.get(path)
        if not encrypted:
            return ""

        try:
            return NoteCrypto.decrypt(encrypted, self._key_for(path))
        except DecryptionFailed as e:
            if not self.settings.decrypt_failure_as_empty:
                raise
            logger.warning(f"笔记解密失败，按空内容处理 {path}: {e.message}")
            return ""

    async def save_content(self, note_name: str, text: str) -> None:
        """加密并保存笔记内容（覆盖已有内容）"""
        path = note_path(validate_note_name(note_name))
        await self.kv.put(path, NoteCrypto.encrypt(text, self._key_for(path)))

    async def delete_content(self, note_name: str) -> None:
        """删除笔记"""
        path = note_path(validate_note_name(note_name))
        await self.kv.delete(path)

    async def submit(self, note_name: str, text: str) -> bool:
        """
        提交编辑器内容

        内容为空（或只有空白）时删除笔记并返回 False，否则保存并返回 True
        """
        if not text or not text.strip():
            await self.delete_content(note_name)
            return False
        await self.save_content(note_name, text)
        return True
