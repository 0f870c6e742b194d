"""
笔记路由
/{note_name} 读取/保存笔记，/{note_name}/password* 管理密码保护

无效的笔记名称一律重定向到随机生成的新笔记。
"""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.templating import Jinja2Templates

from core.config import Settings, get_settings
from core.deps import get_kv, get_raw_path_segments
from core.errors import AuthException, ValidationException
from core.kv import KVStore

from .notes_identity import validate_note_name
from .notes_password import PasswordService
from .notes_schemas import PasswordPayload
from .notes_services import NotesService

logger = logging.getLogger(__name__)

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

# 命令行工具直接返回纯文本
CLI_USER_AGENTS = ("curl", "Wget")
FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")

# 密码动作及其允许的请求方法
PASSWORD_ACTION_METHODS = {
    "password": ("POST", "DELETE"),
    "password-check": ("GET",),
    "password-verify": ("POST",),
}


def get_service(kv: KVStore, settings: Settings) -> NotesService:
    """创建笔记服务实例"""
    return NotesService(kv, settings)


def get_password_service(kv: KVStore) -> PasswordService:
    """创建密码服务实例"""
    return PasswordService(kv)


def valid_note_name(request: Request) -> str:
    """
    路径中的笔记名称，无效时抛出异常并由异常处理器重定向

    名称取自原始路径的第一段，编码的斜杠（%2F）不会被拆成动作。
    """
    segments = get_raw_path_segments(request)
    return validate_note_name(segments[0] if segments else "")


def is_command_line_request(request: Request) -> bool:
    """检查是否为命令行请求"""
    user_agent = request.headers.get("User-Agent", "")
    return user_agent.startswith(CLI_USER_AGENTS)


async def read_submitted_text(request: Request) -> str:
    """读取提交的笔记内容：表单字段 text（可以是上传的文件），或整个请求体"""
    # 先缓存请求体，表单解析会复用它
    body = await request.body()
    content_type = request.headers.get("Content-Type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        text = form.get("text")
        if isinstance(text, UploadFile):
            return (await text.read()).decode("utf-8", errors="replace")
        return text if isinstance(text, str) else ""
    return body.decode("utf-8", errors="replace")


async def read_password_payload(request: Request) -> PasswordPayload:
    """解析密码请求体，格式错误时返回 400"""
    try:
        return PasswordPayload.model_validate_json(await request.body())
    except ValidationError as e:
        raise ValidationException() from e


async def render_note(request: Request, note_name: str, service: NotesService) -> Response:
    """返回笔记页面，或 ?raw / 命令行请求时返回纯文本"""
    content = await service.get_content(note_name)

    if "raw" in request.query_params or is_command_line_request(request):
        if not content:
            return PlainTextResponse("404 Not Found", status_code=404)
        return PlainTextResponse(content)

    return templates.TemplateResponse(
        request,
        "note.html",
        {"note_name": note_name, "content": content}
    )


async def submit_note(request: Request, note_name: str, service: NotesService) -> Response:
    """保存笔记；内容为空时删除"""
    text = await read_submitted_text(request)
    if not await service.submit(note_name, text):
        return PlainTextResponse("Note will be deleted", status_code=200)
    return Response(status_code=204)


async def run_password_action(
    kv: KVStore,
    note_name: str,
    action: str,
    method: str,
    payload: Optional[PasswordPayload] = None
) -> Response:
    """执行密码动作，调用方已确认动作与方法匹配"""
    service = get_password_service(kv)

    if action == "password-check":
        protected = await service.is_protected(note_name)
        return Response(status_code=200 if protected else 404)

    if action == "password" and method == "POST":
        await service.set_password(note_name, payload.password)
    elif action == "password":
        await service.remove_password(note_name, payload.password)
    elif not await service.verify_password(note_name, payload.password):
        raise AuthException()
    return Response(status_code=200)


# ============ 密码接口 ============

@router.get("/{note_name}/password-check")
async def check_password(
    note_name: str = Depends(valid_note_name),
    kv: KVStore = Depends(get_kv)
):
    """检查笔记是否受密码保护"""
    return await run_password_action(kv, note_name, "password-check", "GET")


@router.post("/{note_name}/password")
async def set_password(
    data: PasswordPayload,
    note_name: str = Depends(valid_note_name),
    kv: KVStore = Depends(get_kv)
):
    """设置密码"""
    return await run_password_action(kv, note_name, "password", "POST", data)


@router.delete("/{note_name}/password")
async def remove_password(
    data: PasswordPayload,
    note_name: str = Depends(valid_note_name),
    kv: KVStore = Depends(get_kv)
):
    """解除密码保护（需要正确的密码）"""
    return await run_password_action(kv, note_name, "password", "DELETE", data)


@router.post("/{note_name}/password-verify")
async def verify_password(
    data: PasswordPayload,
    note_name: str = Depends(valid_note_name),
    kv: KVStore = Depends(get_kv)
):
    """验证密码"""
    return await run_password_action(kv, note_name, "password-verify", "POST", data)


# ============ 笔记接口 ============

@router.get("/{note_name}")
async def get_note(
    request: Request,
    note_name: str = Depends(valid_note_name),
    kv: KVStore = Depends(get_kv),
    settings: Settings = Depends(get_settings)
):
    """获取笔记"""
    return await render_note(request, note_name, get_service(kv, settings))


@router.post("/{note_name}")
async def save_note(
    request: Request,
    note_name: str = Depends(valid_note_name),
    kv: KVStore = Depends(get_kv),
    settings: Settings = Depends(get_settings)
):
    """保存笔记"""
    return await submit_note(request, note_name, get_service(kv, settings))


# ============ 回退路由（必须放在所有笔记路由之后） ============

@router.api_route(
    "/{full_path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False
)
async def note_fallback(
    request: Request,
    full_path: str,
    kv: KVStore = Depends(get_kv),
    settings: Settings = Depends(get_settings)
):
    """
    其余路径（按原始路径切分，只看前两段）：
    - 根路径或无效笔记名称 -> 重定向
    - 密码动作 -> 方法匹配时执行，否则 405
    - 未知动作的 GET/POST -> 按笔记本身处理
    - 其他 -> 405
    """
    segments = get_raw_path_segments(request)
    note_name = validate_note_name(segments[0] if segments else "")
    action = segments[1] if len(segments) > 1 else None
    method = request.method

    if action in PASSWORD_ACTION_METHODS:
        if method not in PASSWORD_ACTION_METHODS[action]:
            return PlainTextResponse("Method Not Allowed", status_code=405)
        payload = None
        if action != "password-check":
            payload = await read_password_payload(request)
        return await run_password_action(kv, note_name, action, method, payload)

    if method not in ("GET", "POST"):
        return PlainTextResponse("Method Not Allowed", status_code=405)

    service = get_service(kv, settings)
    if method == "POST":
        return await submit_note(request, note_name, service)
    return await render_note(request, note_name, service)
