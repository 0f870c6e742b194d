"""
依赖注入
提供全局可复用的依赖项
"""

from typing import List
from urllib.parse import unquote

from fastapi import Request

from .config import get_settings, Settings, reload_settings
from .kv import KVStore


# 重新导出常用依赖
__all__ = [
    "get_kv",
    "get_raw_path_segments",
    "get_settings",
    "Settings",
    "reload_settings",
]


def get_kv(request: Request) -> KVStore:
    """获取应用启动时创建的 KV 存储"""
    return request.app.state.kv


def get_raw_path_segments(request: Request) -> List[str]:
    """
    按原始请求路径切分路径段，每段再做 URL 解码

    路由匹配使用解码后的路径，%2F 会被当作分隔符；
    这里保留编码的斜杠，使其留在所属的路径段内。
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1").split("?", 1)[0]
    else:
        path = request.url.path
    return [unquote(p) for p in path.split("/") if p]
