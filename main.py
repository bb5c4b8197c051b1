"""
FastAPI应用主入口 - 结账/退款服务
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routes import payments as payments_routes
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging, get_logger
from core.response import success_response
from core.settings import payment_settings
from infrastructure.database import create_tables, engine


configure_logging()
logger = get_logger(__name__)


def _log_gateway_readiness() -> None:
    """启动时报告当前生效的网关环境；只记录是否配置，不记录凭据本身"""
    sandbox = payment_settings.sandbox_enabled(settings.ENVIRONMENT)
    g2apay = payment_settings.g2apay.active(sandbox)
    skrill = payment_settings.skrill.active(sandbox)
    logger.info(
        "payments_configured",
        environment="sandbox" if sandbox else "live",
        default_method=payment_settings.default_method,
        g2apay_ready=bool(g2apay.api_hash and g2apay.secret and g2apay.merchant_email),
        skrill_ready=bool(skrill.email),
        skrill_refunds_ready=bool(skrill.email and skrill.api_password),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 开发环境自动建表，生产环境由外部迁移负责
    if settings.DEBUG:
        await create_tables()
        logger.info("database_initialized", message="Database tables created (development)")
    _log_gateway_readiness()
    yield
    await engine.dispose()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="多网关结账与退款服务（G2A Pay / Skrill）",
)

# 后添加的中间件先执行：RequestID 需要先于日志中间件绑定上下文
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(payments_routes.router, prefix="/api/v1")


@app.get("/health", tags=["Health"])
async def health_check():
    return success_response(data={"status": "healthy"}, message="OK")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
