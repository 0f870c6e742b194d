"""
中间件模块
提供请求日志、安全响应头等中间件

两个中间件共用 classify_request 的请求分类：
- note: 笔记页面或保存
- raw: 原始内容读取（?raw 或命令行）
- password: 密码动作
- share: 分享快照
- root: 根路径（重定向）
"""

import time
import uuid
import logging
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

PASSWORD_ACTIONS = ("password", "password-check", "password-verify")
RAW_USER_AGENTS = ("curl", "Wget")

# 这些分类的响应包含笔记内容或密码状态，不允许被缓存
NO_STORE_KINDS = ("raw", "password", "share")


def classify_request(request: Request) -> str:
    """按路径和查询参数给请求分类"""
    segments = [p for p in request.url.path.split("/") if p]
    if not segments:
        return "root"
    if segments[0] == "share" and len(segments) > 1:
        return "share"
    if len(segments) > 1 and segments[1] in PASSWORD_ACTIONS:
        return "password"
    if "raw" in request.query_params:
        return "raw"
    if request.headers.get("User-Agent", "").startswith(RAW_USER_AGENTS):
        return "raw"
    return "note"


def get_client_ip(request: Request) -> str:
    """获取客户端IP（优先取反向代理头）"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or (
        request.client.host if request.client else "unknown"
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件

    每个请求附加 X-Request-ID / X-Response-Time 响应头。
    日志只记录慢请求、错误请求和密码动作的结果，带上请求分类；
    不记录请求体，笔记内容和密码不会出现在日志中。
    """

    def __init__(
        self,
        app: ASGIApp,
        skip_paths: Optional[Iterable[str]] = None,
        slow_request_threshold: float = 1.0
    ):
        super().__init__(app)
        self.skip_paths = tuple(skip_paths or ("/favicon.ico", "/robots.txt"))
        self.slow_request_threshold = slow_request_threshold

    def _log_result(self, kind: str, request: Request, status_code: int, elapsed: float):
        summary = (
            f"[{kind}] {request.method} {request.url.path} | {status_code} | "
            f"{round(elapsed * 1000, 2)}ms | {get_client_ip(request)}"
        )
        if elapsed > self.slow_request_threshold:
            logger.warning(f"[慢请求] {summary}")
        elif status_code >= 400:
            logger.warning(f"[请求错误] {summary}")
        elif kind == "password" and request.method != "GET":
            # 密码设置/解除/验证成功属于需要留痕的操作
            logger.info(f"[密码操作] {summary}")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path.startswith(self.skip_paths):
            return await call_next(request)

        kind = classify_request(request)
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.error(f"[请求异常] [{kind}] {request.method} {request.url.path} | {elapsed_ms}ms | {e}")
            raise

        elapsed = time.perf_counter() - started
        self._log_result(kind, request, response.status_code, elapsed)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{round(elapsed * 1000, 2)}ms"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    安全响应头中间件
    添加常见的安全响应头，原始内容、密码动作和分享页面禁用缓存
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if classify_request(request) in NO_STORE_KINDS:
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"

        # 移除服务器标识
        if "Server" in response.headers:
            del response.headers["Server"]

        return response
