"""
数据库连接管理（订单库，PostgreSQL + asyncpg）
"""
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.engine import make_url

from core.config import settings
from infrastructure.models import Base


def _build_async_url(database_url: str) -> str:
    """postgres:// 与 postgresql:// 统一换成 asyncpg 驱动"""
    url = make_url(database_url)
    if url.drivername == "postgresql+asyncpg":
        return database_url
    if url.drivername not in ("postgresql", "postgres"):
        raise ValueError(f"不支持的数据库驱动: {url.drivername}. 订单库仅支持 PostgreSQL (DATABASE__URL)")
    return url.set(drivername="postgresql+asyncpg").render_as_string(hide_password=False)


engine = create_async_engine(
    _build_async_url(settings.database.url),
    echo=settings.database.echo,
    pool_pre_ping=True,
)

# expire_on_commit=False：提交后仍可读取已加载的订单字段
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
)


async def create_tables():
    """开发环境建表；生产环境由外部迁移负责"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
