# vocab_api/storage.py
from __future__ import annotations

import functools
import logging
from datetime import datetime
from typing import Any, List, Optional

import pytz
from sqlalchemy import select, delete
from sqlalchemy.exc import DBAPIError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlalchemy.dialects import postgresql, sqlite

from .config import HISTORY_DEFAULT_LIMIT, HISTORY_MAX_LIMIT
from .errors import StorageUnavailableError
from .models import SearchHistory, Word
from .schema import HistoryRecord, LexicalEntry, LexicalEntryDraft

logger = logging.getLogger(__name__)

# dialect-specific INSERT with ON CONFLICT support
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

def _utcnow() -> datetime:
    return datetime.now(pytz.utc)

def clamp_history_limit(value: Any) -> int:
    """Non-integer or non-positive -> default; above the cap -> cap."""
    try:
        n = int(value)
    except (TypeError, ValueError):
        return HISTORY_DEFAULT_LIMIT
    if isinstance(value, float) and value != n:
        return HISTORY_DEFAULT_LIMIT
    if n <= 0:
        return HISTORY_DEFAULT_LIMIT
    return min(n, HISTORY_MAX_LIMIT)

def _storage_call(fn):
    """Translate connectivity failures and pool exhaustion into StorageUnavailableError."""
    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except (DBAPIError, PoolTimeoutError, OSError) as e:
            logger.error("storage operation %s failed: %s", fn.__name__, e)
            raise StorageUnavailableError(f"{fn.__name__}: {e}") from e
    return wrapper

class LexicalStore:
    """
    Saved entries + search history over an async SQLAlchemy engine.

    Every operation opens its own session, so a cache check and a history
    append can run at the same time.
    """

    def __init__(self, engine: AsyncEngine):
        dialect = engine.dialect.name
        if dialect not in _UPSERT_INSERTS:
            raise RuntimeError(f"Unsupported database dialect: {dialect}")
        self._insert = _UPSERT_INSERTS[dialect]
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)

    # ───────── words ─────────
    @_storage_call
    async def get_by_word(self, word: str) -> Optional[LexicalEntry]:
        async with self._sessions() as session:
            row = await session.get(Word, word)
            return LexicalEntry.from_row(row) if row else None

    @_storage_call
    async def list_all(self) -> List[LexicalEntry]:
        async with self._sessions() as session:
            res = await session.scalars(select(Word).order_by(Word.timestamp.desc()))
            return [LexicalEntry.from_row(r) for r in res]

    @_storage_call
    async def upsert(self, draft: LexicalEntryDraft) -> LexicalEntry:
        data = draft.model_dump()
        fields = dict(
            ipa=data["ipa"],
            meanings=data["meanings"],
            phrases=data["phrases"],
            origin_details=data["originDetails"],
            translation=data["translation"],
            timestamp=_utcnow(),
        )
        # single INSERT ... ON CONFLICT (word) DO UPDATE; last write wins
        stmt = (
            self._insert(Word)
            .values(word=data["word"], **fields)
            .on_conflict_do_update(index_elements=[Word.word], set_=fields)
            .returning(Word)
        )
        async with self._sessions() as session:
            res = await session.scalars(stmt, execution_options={"populate_existing": True})
            row = res.one()
            entry = LexicalEntry.from_row(row)
            await session.commit()
        return entry

    @_storage_call
    async def delete(self, word: str) -> None:
        async with self._sessions() as session:
            await session.execute(delete(Word).where(Word.word == word))
            await session.commit()

    # ───────── history (append-only) ─────────
    @_storage_call
    async def append_history(self, word: str) -> HistoryRecord:
        async with self._sessions() as session:
            row = SearchHistory(word=word, searched_at=_utcnow())
            session.add(row)
            await session.commit()
            return HistoryRecord.from_row(row)

    @_storage_call
    async def list_recent_history(self, limit: Any = HISTORY_DEFAULT_LIMIT) -> List[HistoryRecord]:
        stmt = (
            select(SearchHistory)
            .order_by(SearchHistory.searched_at.desc(), SearchHistory.id.desc())
            .limit(clamp_history_limit(limit))
        )
        async with self._sessions() as session:
            res = await session.scalars(stmt)
            return [HistoryRecord.from_row(r) for r in res]
