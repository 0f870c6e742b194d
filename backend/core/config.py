"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

from pathlib import Path
from pydantic_settings import BaseSettings
from typing import Optional

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    """系统配置"""

    # 应用信息
    app_name: str = "mmnote"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # KV 存储后端: redis（生产）或 memory（本地开发/测试，进程退出即丢失）
    kv_backend: str = "redis"

    # Redis配置
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    redis_socket_timeout: float = 5.0

    # 笔记加密密钥混入的服务端密钥
    # 未设置时密钥仅由笔记路径派生（与旧数据兼容，但不提供真正的保密性）
    note_key_secret: Optional[str] = None

    # 解密失败时按空内容处理（兼容旧行为）；关闭后返回 500
    decrypt_failure_as_empty: bool = True

    # 请求日志
    slow_request_threshold: float = 1.0  # 超过该秒数记录为慢请求

    class Config:
        env_file = str(ENV_FILE)
        env_file_encoding = "utf-8"


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    获取配置单例
    支持运行时重新加载
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        if _settings_instance.kv_backend == "memory" and not _settings_instance.debug:
            import logging
            logging.getLogger("core.config").warning(
                "⚠️ 当前使用内存 KV 存储，笔记数据不会持久化。"
                "生产环境请在 .env 中配置 KV_BACKEND=redis。"
            )
    return _settings_instance


def reload_settings():
    """
    重新加载配置
    """
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
