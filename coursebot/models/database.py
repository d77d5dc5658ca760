"""
Async SQLAlchemy engine, session factory, and base model.
"""

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from coursebot.config import settings

IS_SQLITE = settings.DATABASE_URL.startswith("sqlite")

_engine_kwargs = {"echo": settings.DEBUG}
if not IS_SQLITE:
    _engine_kwargs.update({"pool_size": 10, "max_overflow": 5, "pool_pre_ping": True})

engine = create_async_engine(settings.DATABASE_URL, **_engine_kwargs)

if IS_SQLITE:
    # chat_messages.course_id relies on ON DELETE SET NULL, which SQLite
    # only enforces with foreign keys switched on per connection.
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def init_db():
    """Create the courses and chat_messages tables if they are missing."""
    async with engine.begin() as conn:
        from coursebot.models.entities import Course, ChatMessage  # noqa
        await conn.run_sync(Base.metadata.create_all)


async def drop_db():
    async with engine.begin() as conn:
        from coursebot.models.entities import Course, ChatMessage  # noqa
        await conn.run_sync(Base.metadata.drop_all)


async def ping_db():
    """Raise if the database cannot be reached."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
