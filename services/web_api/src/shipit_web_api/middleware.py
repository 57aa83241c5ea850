"""HTTP 中间件"""

import time

from fastapi.middleware import Middleware
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from shipit_core.common.config import settings


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """记录请求耗时，慢请求提升为 warning"""

    def __init__(self, app, slow_threshold_ms: float = 1000.0):
        super().__init__(app)
        self.slow_threshold_ms = slow_threshold_ms

    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        message = f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)"
        if elapsed_ms >= self.slow_threshold_ms:
            logger.warning(f"慢请求: {message}")
        else:
            logger.debug(message)
        return response


def make_middlewares() -> list[Middleware]:
    """创建 FastAPI 中间件列表"""
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials="*" not in settings.CORS_ORIGINS,
            allow_methods=["*"],
            allow_headers=["*"],
        ),
        Middleware(RequestLoggingMiddleware),
    ]


__all__ = ["RequestLoggingMiddleware", "make_middlewares"]
