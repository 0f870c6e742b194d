"""
分享路由
POST /share/{share_id} 保存快照，GET /share/{share_id} 展示快照
"""

import json
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError
from starlette.templating import Jinja2Templates

from core.deps import get_kv, get_raw_path_segments
from core.errors import ErrorCode, InvalidNoteNameException, StorageException
from core.kv import KVStore

from .share_schemas import ShareSnapshot
from .share_services import ShareService

logger = logging.getLogger(__name__)


def share_path(request: Request) -> None:
    """原始路径第一段必须是 share（/share%2Fxxx 按无效笔记名称处理）"""
    segments = get_raw_path_segments(request)
    if not segments or segments[0] != "share":
        raise InvalidNoteNameException(segments[0] if segments else None)


router = APIRouter(dependencies=[Depends(share_path)])

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def get_service(kv: KVStore) -> ShareService:
    """创建分享服务实例"""
    return ShareService(kv)


@router.post("/share/{share_id}")
async def create_share(
    share_id: str,
    request: Request,
    kv: KVStore = Depends(get_kv)
):
    """保存分享快照"""
    try:
        snapshot = ShareSnapshot.model_validate(json.loads(await request.body()))
    except (ValueError, ValidationError) as e:
        logger.warning(f"分享数据无效 {share_id}: {type(e).__name__}")
        raise StorageException(code=ErrorCode.SHARE_SAVE_FAILED) from e

    try:
        await get_service(kv).create_share(share_id, snapshot)
    except StorageException as e:
        raise StorageException(code=ErrorCode.SHARE_SAVE_FAILED) from e
    return Response(status_code=200)


@router.get("/share/{share_id}")
async def view_share(
    share_id: str,
    request: Request,
    kv: KVStore = Depends(get_kv)
):
    """展示分享页面（每次访问计数加一）"""
    snapshot = await get_service(kv).read_share(share_id)
    return templates.TemplateResponse(
        request,
        "share.html",
        {"share_id": share_id, "snapshot": snapshot}
    )
