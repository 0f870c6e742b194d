"""
分享快照数据验证模式
KV 中按客户端字段名（驼峰）保存
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    """当前 UTC 时间，ISO-8601 格式（与浏览器 toISOString 一致）"""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class ShareSnapshot(BaseModel):
    """分享快照"""
    content: str
    create_time: str = Field(default_factory=_now_iso, alias="createTime")
    last_edit_time: str = Field(default_factory=_now_iso, alias="lastEditTime")
    visit_count: int = Field(default=0, ge=0, alias="visitCount")

    # 客户端附带的其他字段原样保存
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_storage(self) -> str:
        """序列化为 KV 存储的 JSON"""
        return self.model_dump_json(by_alias=True)
