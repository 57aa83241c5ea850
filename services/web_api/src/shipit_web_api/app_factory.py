"""应用工厂模块。

提供 create_app() 工厂函数，用于创建 FastAPI 应用实例。
"""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError

from shipit_core.common.config import settings
from shipit_core.common.exceptions import ShipItException
from shipit_core.common.logging import setup_logging
from shipit_web_api.exceptions import (
    BusinessException,
    business_exception_handler,
    general_exception_handler,
    http_exception_handler,
    shipit_exception_handler,
    validation_exception_handler,
)
from shipit_web_api.lifespan import lifespan as default_lifespan
from shipit_web_api.middleware import make_middlewares


def create_app(lifespan=default_lifespan) -> FastAPI:
    """创建并配置 FastAPI 应用。

    Args:
        lifespan: 生命周期上下文，测试时可替换为注入假实现的版本

    Returns:
        FastAPI: 已配置的应用实例。
    """
    setup_logging()
    from shipit_web_api.routes import register_routes

    app = FastAPI(
        title=settings.APP_TITLE,
        version=settings.APP_VERSION,
        description=settings.APP_DESCRIPTION,
        middleware=make_middlewares(),
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(ShipItException, shipit_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    register_routes(app)

    return app
