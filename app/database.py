import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from app.config import settings
from app.utils.exceptions import StorageError

logger = logging.getLogger(__name__)

# Ensure we use the async driver
SQLALCHEMY_DATABASE_URL = settings.database_url.replace("postgresql://", "postgresql+asyncpg://")

# SQLite connections must not be shared across event loops
engine_kwargs = {"poolclass": NullPool} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

engine = create_async_engine(SQLALCHEMY_DATABASE_URL, echo=False, **engine_kwargs)

# Async session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

Base = declarative_base()

async def get_db():
    async with AsyncSessionLocal() as db:
        try:
            yield db
        finally:
            await db.close()


async def commit_or_raise(db: AsyncSession, action: str):
    """Commit the unit of work; on failure roll it back and surface a StorageError."""
    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("[DB] Failed to %s", action)
        raise StorageError(f"Could not {action}") from exc


async def create_schema():
    # Importing the models registers their tables on Base.metadata
    from app.models import project, tasks, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
