"""
笔记标识与存储键
校验笔记名称并派生各类 KV 存储键（纯函数，无副作用）
"""

import re
import hashlib
import secrets
import string

from core.errors import InvalidNoteNameException

# 保存笔记的路径前缀
SAVE_PATH = "_tmp"
# 有效的笔记名称格式(只允许字母、数字、下划线和连字符)
VALID_NOTE_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")
MAX_NOTE_NAME_LENGTH = 64

# 随机笔记名称
RANDOM_NAME_LENGTH = 5
RANDOM_NAME_CHARS = string.digits + string.ascii_lowercase

PASSWORD_KEY_PREFIX = "_secure_"
PASSWORD_KEY_SUFFIX = "_pwd_protected"


def is_valid_note_name(note_name) -> bool:
    """检查笔记名称是否有效"""
    if not note_name or not isinstance(note_name, str):
        return False
    if len(note_name) > MAX_NOTE_NAME_LENGTH:
        return False
    return VALID_NOTE_PATTERN.fullmatch(note_name) is not None


def validate_note_name(note_name) -> str:
    """
    校验笔记名称

    Raises:
        InvalidNoteNameException: 名称为空、过长或包含非法字符
    """
    if not is_valid_note_name(note_name):
        raise InvalidNoteNameException(note_name)
    return note_name


def generate_note_name() -> str:
    """生成 5 位随机笔记名称（小写字母和数字）"""
    return "".join(secrets.choice(RANDOM_NAME_CHARS) for _ in range(RANDOM_NAME_LENGTH))


def note_path(note_name: str) -> str:
    """笔记内容的存储键，同时也是内容加密密钥的派生输入"""
    return f"{SAVE_PATH}/{note_name}"


def password_key(note_name: str) -> str:
    """使用笔记名和固定后缀生成密码记录的存储键"""
    digest = hashlib.sha256((note_name + PASSWORD_KEY_SUFFIX).encode("utf-8")).hexdigest()
    return PASSWORD_KEY_PREFIX + digest
