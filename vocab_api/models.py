# vocab_api/models.py
from __future__ import annotations
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import DateTime, Index, Integer, JSON, Text
from sqlalchemy.dialects.postgresql import JSONB
from .db import Base

# JSONB on PostgreSQL, plain JSON on anything else (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

class Word(Base):
    __tablename__ = "words"

    # normalized key (trimmed, lower-cased); sole identity
    word: Mapped[str] = mapped_column(Text, primary_key=True)
    ipa: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # nested structures kept as JSON documents
    meanings: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    phrases: Mapped[list[Any]] = mapped_column(JSONType, nullable=False, default=list)
    origin_details: Mapped[dict[str, Any]] = mapped_column("origin_details", JSONType, nullable=False, default=dict)
    translation: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    # refreshed on every upsert
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

class SearchHistory(Base):
    __tablename__ = "search_history"
    __table_args__ = (Index("ix_search_history_recent", "searched_at", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # no FK to words: failed or pending lookups are logged too
    word: Mapped[str] = mapped_column(Text, nullable=False)
    searched_at: Mapped[datetime] = mapped_column("searched_at", DateTime(timezone=True), nullable=False)
