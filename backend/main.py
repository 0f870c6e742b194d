"""
mmnote - 主入口
基于FastAPI的 Markdown 笔记服务，数据保存在 KV 存储中

功能：
- 笔记内容加密存储
- 笔记密码保护
- 分享快照
- 请求日志 / 安全响应头中间件
- 标准化错误处理
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from core.config import get_settings
from core.kv import init_kv_store, close_kv_store
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from core.errors import register_exception_handlers

settings = get_settings()

# 配置日志
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 减少第三方库的日志输出
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.WARNING)
logging.getLogger("watchfiles.main").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # ==================== 启动阶段 ====================
    current_settings = get_settings()
    logger.info(f"🚀 正在启动 {current_settings.app_name} v{current_settings.app_version}...")

    try:
        app.state.kv = await init_kv_store(current_settings)
    except Exception as e:
        logger.error(f"❌ KV 存储初始化失败: {e}")
        raise
    logger.info(f"✅ KV 存储已就绪（{current_settings.kv_backend}）")

    if not current_settings.note_key_secret:
        logger.warning("⚠️ 未配置 NOTE_KEY_SECRET，笔记密钥仅由笔记路径派生")

    logger.info(f"🎉 {current_settings.app_name} 启动完成! 访问: http://localhost:8000")

    yield

    # ==================== 关闭阶段 ====================
    logger.info("🛑 系统关闭中...")
    await close_kv_store(getattr(app.state, "kv", None))
    logger.info("👋 系统已关闭")


# ==================== 创建应用 ====================
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Markdown 笔记服务",
    lifespan=lifespan,
    # 笔记名称占用了根路径下的所有单段路径，不暴露文档页面
    docs_url=None,
    redoc_url=None,
    openapi_url=None
)


# ==================== 中间件配置（顺序重要，后添加的先执行） ====================

# 1. 安全响应头中间件
app.add_middleware(SecurityHeadersMiddleware)

# 2. 请求日志中间件
app.add_middleware(
    RequestLoggingMiddleware,
    skip_paths=["/favicon.ico", "/robots.txt"],
    slow_request_threshold=settings.slow_request_threshold
)


# ==================== 异常处理器 ====================
register_exception_handlers(app)

# 全局未捕获异常处理
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常捕获"""
    logger.error(f"未处理异常: {exc}", exc_info=True)
    return PlainTextResponse("Internal Server Error", status_code=500)


# ==================== 注册路由（分享路由必须在笔记路由之前） ====================
from modules.share.share_router import router as share_router
from modules.notes.notes_router import router as notes_router

app.include_router(share_router, tags=["分享"])
app.include_router(notes_router, tags=["笔记"])


# ==================== 启动入口 ====================
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
