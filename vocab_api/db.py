from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text

from .config import DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set")

engine = create_async_engine(DATABASE_URL, echo=False, pool_pre_ping=True)

class Base(DeclarativeBase):
    pass

async def ping(bind=None):
    async with (bind or engine).connect() as conn:
        await conn.execute(text("SELECT 1"))

async def create_tables(bind=None):
    # models register themselves on Base.metadata at import
    from . import models  # noqa: F401
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
