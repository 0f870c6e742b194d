"""
标准错误码体系
提供统一的错误码定义和异常处理

对外的失败响应只包含纯文本或状态码，不泄露内部细节。
"""

import logging
from typing import Optional, Any, Dict
from enum import IntEnum
from fastapi import status
from fastapi.responses import PlainTextResponse, RedirectResponse

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - 1xxx: 系统级错误
    - 2xxx: 认证错误
    - 3xxx: 业务通用错误
    - 4xxx: 模块级错误
    """

    # ==================== 成功 ====================
    SUCCESS = 0

    # ==================== 系统级错误 (1xxx) ====================
    INTERNAL_ERROR = 1000           # 服务器内部错误
    STORAGE_ERROR = 1001            # KV 存储错误
    DECRYPTION_FAILED = 1002        # 内容解密失败

    # ==================== 认证错误 (2xxx) ====================
    PASSWORD_INCORRECT = 2008       # 密码错误

    # ==================== 业务通用错误 (3xxx) ====================
    VALIDATION_ERROR = 3001         # 参数验证失败
    RESOURCE_NOT_FOUND = 3002       # 资源不存在
    METHOD_NOT_ALLOWED = 3003       # 不支持的请求方法
    NOTE_NAME_INVALID = 3004        # 笔记名称无效（重定向处理）

    # ==================== 模块级错误 (4xxx) ====================
    # 4100-4199: 笔记模块
    NOTES_NOTE_NOT_FOUND = 4102

    # 4200-4299: 分享模块
    SHARE_NOT_FOUND = 4201
    SHARE_SAVE_FAILED = 4202
    SHARE_LOAD_FAILED = 4203


# 错误码对应的默认消息
ERROR_MESSAGES: Dict[int, str] = {
    ErrorCode.SUCCESS: "OK",

    ErrorCode.INTERNAL_ERROR: "Internal Server Error",
    ErrorCode.STORAGE_ERROR: "Storage Error",
    ErrorCode.DECRYPTION_FAILED: "Internal Server Error",

    ErrorCode.PASSWORD_INCORRECT: "Invalid password",

    ErrorCode.VALIDATION_ERROR: "Bad Request",
    ErrorCode.RESOURCE_NOT_FOUND: "404 Not Found",
    ErrorCode.METHOD_NOT_ALLOWED: "Method Not Allowed",
    ErrorCode.NOTE_NAME_INVALID: "Invalid note name",

    ErrorCode.NOTES_NOTE_NOT_FOUND: "404 Not Found",

    ErrorCode.SHARE_NOT_FOUND: "分享内容不存在或已过期",
    ErrorCode.SHARE_SAVE_FAILED: "保存分享数据失败",
    ErrorCode.SHARE_LOAD_FAILED: "加载分享内容失败",
}

# 错误码对应的 HTTP 状态码
ERROR_HTTP_STATUS: Dict[int, int] = {
    ErrorCode.SUCCESS: status.HTTP_200_OK,

    # 系统级 -> 500
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.STORAGE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.DECRYPTION_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,

    # 认证 -> 401
    ErrorCode.PASSWORD_INCORRECT: status.HTTP_401_UNAUTHORIZED,

    # 业务通用
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.RESOURCE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.NOTE_NAME_INVALID: status.HTTP_302_FOUND,

    # 模块级
    ErrorCode.NOTES_NOTE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SHARE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SHARE_SAVE_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.SHARE_LOAD_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppException(Exception):
    """
    应用异常基类

    用于抛出业务异常，包含错误码和详细信息

    Usage:
        raise AppException(ErrorCode.RESOURCE_NOT_FOUND)
        raise AppException(ErrorCode.STORAGE_ERROR, "KV 写入失败")
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "Internal Server Error")
        self.data = data
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    @property
    def public_message(self) -> str:
        """返回给客户端的消息（5xx 只返回通用消息）"""
        if self.http_status >= 500:
            return ERROR_MESSAGES.get(self.code, "Internal Server Error")
        return self.message

    def to_response(self) -> PlainTextResponse:
        """转换为纯文本响应"""
        return PlainTextResponse(self.public_message, status_code=self.http_status)


class ValidationException(AppException):
    """参数验证异常"""

    def __init__(self, message: str = "Bad Request", code: int = ErrorCode.VALIDATION_ERROR):
        super().__init__(code=code, message=message)


class InvalidNoteNameException(ValidationException):
    """
    笔记名称无效

    不作为错误页面返回，由异常处理器重定向到一个新生成的笔记名称。
    """

    def __init__(self, note_name: Optional[str] = None):
        self.note_name = note_name
        super().__init__(
            message=ERROR_MESSAGES[ErrorCode.NOTE_NAME_INVALID],
            code=ErrorCode.NOTE_NAME_INVALID
        )


class AuthException(AppException):
    """认证异常（密码错误）"""

    def __init__(
        self,
        code: int = ErrorCode.PASSWORD_INCORRECT,
        message: Optional[str] = None
    ):
        super().__init__(code=code, message=message)


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(self, code: int = ErrorCode.RESOURCE_NOT_FOUND, message: Optional[str] = None):
        super().__init__(code=code, message=message)


class StorageException(AppException):
    """KV 存储异常"""

    def __init__(self, message: Optional[str] = None, code: int = ErrorCode.STORAGE_ERROR):
        super().__init__(code=code, message=message)


class DecryptionFailed(AppException):
    """
    内容解密失败

    仅在内部使用；是否对外表现为空内容由笔记服务根据配置决定。
    """

    def __init__(self, message: str = "解密失败"):
        super().__init__(code=ErrorCode.DECRYPTION_FAILED, message=message)


# ==================== 异常处理器 ====================

async def app_exception_handler(request, exc: AppException):
    """AppException 异常处理器"""
    if exc.http_status >= 500:
        logger.error(f"请求处理失败 [{exc.code}]: {exc.message}")
    return exc.to_response()


async def invalid_note_name_handler(request, exc: InvalidNoteNameException):
    """笔记名称无效时重定向到随机生成的新笔记"""
    from modules.notes.notes_identity import generate_note_name

    target = f"{str(request.base_url).rstrip('/')}/{generate_note_name()}"
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)


def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    app.add_exception_handler(InvalidNoteNameException, invalid_note_name_handler)
    app.add_exception_handler(AppException, app_exception_handler)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        fields = ", ".join(
            ".".join(str(loc) for loc in error["loc"]) for error in exc.errors()
        )
        logger.debug(f"请求参数验证失败: {request.method} {request.url.path} [{fields}]")
        return PlainTextResponse(
            ERROR_MESSAGES[ErrorCode.VALIDATION_ERROR],
            status_code=status.HTTP_400_BAD_REQUEST
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        # 映射 HTTP 状态码到默认消息
        code_mapping = {
            400: ErrorCode.VALIDATION_ERROR,
            401: ErrorCode.PASSWORD_INCORRECT,
            404: ErrorCode.RESOURCE_NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }

        code = code_mapping.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = ERROR_MESSAGES.get(code, "Internal Server Error")

        return PlainTextResponse(
            message,
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None)
        )
