from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

def _connect_args(url: str) -> dict:
    if url.startswith("postgresql+asyncpg") and settings.DB_SSL:
        return {
            "ssl": "require",
            "server_settings": {
                "application_name": "taskhub"
            }
        }
    return {}

engine = create_async_engine(
    settings.ASYNC_DATABASE_URL,
    echo=settings.DB_ECHO,
    connect_args=_connect_args(settings.ASYNC_DATABASE_URL),
)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

Base = declarative_base()

async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
