"""
笔记内容加密
AES-256-GCM 加密/解密，密钥由笔记路径派生

注意：默认密钥只由笔记路径派生，而笔记路径本身出现在 URL 中并作为存储键，
因此该加密只能防止存储中出现明文，不能防御知道笔记名称且能读取 KV 的人。
配置 NOTE_KEY_SECRET 后改为 HMAC(服务端密钥, 笔记路径)。
"""

import base64
import binascii
import hashlib
import hmac
import logging
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from core.errors import DecryptionFailed

logger = logging.getLogger(__name__)


class NoteCrypto:
    """加密工具类"""

    NONCE_SIZE = 12  # AES-GCM 推荐的 96 位 IV

    @staticmethod
    def derive_key(note_path: str, secret: Optional[str] = None) -> bytes:
        """从笔记路径派生 256 位加密密钥"""
        data = note_path.encode('utf-8')
        if secret:
            return hmac.new(secret.encode('utf-8'), data, hashlib.sha256).digest()
        return hashlib.sha256(data).digest()

    @staticmethod
    def encrypt(plaintext: str, key: bytes) -> str:
        """
        加密文本

        每次调用都生成新的随机 IV；输出为 base64(IV ‖ 密文 ‖ 认证标签)
        """
        nonce = os.urandom(NoteCrypto.NONCE_SIZE)
        encrypted = AESGCM(key).encrypt(nonce, plaintext.encode('utf-8'), None)
        return base64.b64encode(nonce + encrypted).decode('ascii')

    @staticmethod
    def decrypt(blob: str, key: bytes) -> str:
        """
        解密文本

        Raises:
            DecryptionFailed: base64 格式错误、数据过短、认证失败或不是合法 UTF-8
        """
        try:
            raw = base64.b64decode(blob, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecryptionFailed("密文不是合法的 base64") from e

        # 至少需要 IV 和 16 字节的认证标签
        if len(raw) < NoteCrypto.NONCE_SIZE + 16:
            raise DecryptionFailed("密文长度不足")

        nonce, encrypted = raw[:NoteCrypto.NONCE_SIZE], raw[NoteCrypto.NONCE_SIZE:]
        try:
            decrypted = AESGCM(key).decrypt(nonce, encrypted, None)
        except InvalidTag as e:
            raise DecryptionFailed("认证标签校验失败") from e

        try:
            return decrypted.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecryptionFailed("明文不是合法的 UTF-8") from e
