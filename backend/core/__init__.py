"""
mmnote 核心模块
提供服务的基础设施和通用功能

导出列表：
- 配置管理: get_settings, Settings
- KV 存储: KVStore, RedisKVStore, MemoryKVStore, init_kv_store, close_kv_store
- 错误处理: ErrorCode, AppException, register_exception_handlers
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# KV 存储
from .kv import KVStore, RedisKVStore, MemoryKVStore, init_kv_store, close_kv_store

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ValidationException,
    InvalidNoteNameException,
    AuthException,
    NotFoundException,
    StorageException,
    DecryptionFailed,
    register_exception_handlers
)

__all__ = [
    # 配置
    "get_settings", "Settings", "reload_settings",
    # KV 存储
    "KVStore", "RedisKVStore", "MemoryKVStore", "init_kv_store", "close_kv_store",
    # 错误
    "ErrorCode", "AppException", "ValidationException", "InvalidNoteNameException",
    "AuthException", "NotFoundException", "StorageException", "DecryptionFailed",
    "register_exception_handlers",
]
