"""
笔记数据验证模式
"""

from pydantic import BaseModel


class PasswordPayload(BaseModel):
    """密码请求体（客户端已做过一次哈希）"""
    password: str
