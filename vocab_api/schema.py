from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

import pytz
from pydantic import BaseModel, Field

from .config import TTS_MAX_CHARS

def _as_utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is written in UTC
    return pytz.utc.localize(ts) if ts is not None and ts.tzinfo is None else ts

# ───────── Lexical entry (canonical nested shape) ─────────
class SubDefinition(BaseModel):
    definition: str
    example: str = ""
    synonyms: List[str] = []
    antonyms: List[str] = []

class Definition(SubDefinition):
    subs: List[SubDefinition] = []

class MeaningGroup(BaseModel):
    partOfSpeech: str = ""
    forms: str = ""          # "; "-delimited, e.g. "noun: scoop; plural noun: scoops"
    definitions: List[Definition] = []

class Phrase(BaseModel):
    phrase: str
    meaning: str = ""
    example: str = ""

class LexicalEntryDraft(BaseModel):
    """Validated entry, not yet persisted."""
    word: str
    ipa: str = ""
    meanings: List[MeaningGroup] = []
    phrases: List[Phrase] = []
    # {} when unknown, otherwise {"text": str, "flow": [str]}
    originDetails: Dict[str, Any] = {}
    # {} when unknown, otherwise {"primary": str, "others": [str]}
    translation: Dict[str, Any] = {}

class LexicalEntry(LexicalEntryDraft):
    timestamp: datetime

    @classmethod
    def from_row(cls, row) -> "LexicalEntry":
        return cls(
            word=row.word,
            ipa=row.ipa or "",
            meanings=row.meanings or [],
            phrases=row.phrases or [],
            originDetails=row.origin_details or {},
            translation=row.translation or {},
            timestamp=_as_utc(row.timestamp),
        )

# ───────── History ─────────
class HistoryRecord(BaseModel):
    id: int
    word: str
    searchedAt: datetime

    @classmethod
    def from_row(cls, row) -> "HistoryRecord":
        return cls(id=row.id, word=row.word, searchedAt=_as_utc(row.searched_at))

# ───────── Request / response bodies ─────────
class WordIn(BaseModel):
    word: str

class LookupOut(BaseModel):
    result: LexicalEntry
    fromCache: bool

class TtsIn(BaseModel):
    text: str = Field(..., min_length=1, max_length=TTS_MAX_CHARS)

class TtsOut(BaseModel):
    audioBase64: str
    contentType: str
