# vocab_api/lookup.py
"""
Cache-or-generate lookup pipeline.

    normalize -> cache check (+ history append, concurrently)
        hit  -> return cached entry
        miss -> provider lookup -> validate -> upsert -> return

Each call is independent; the store is the only shared state. Two concurrent
first lookups of the same word may both reach the provider, and the later
upsert wins.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .errors import StorageUnavailableError
from .llm_client import GenerativeClient
from .normalize import normalize_word
from .schema import LexicalEntry
from .storage import LexicalStore
from .validator import validate_lookup_payload

logger = logging.getLogger(__name__)

@dataclass
class LookupResult:
    entry: LexicalEntry
    from_cache: bool

class LookupService:
    def __init__(self, store: LexicalStore, client: GenerativeClient):
        self.store = store
        self.client = client

    async def _record_history(self, key: str) -> None:
        # history must never break a lookup
        try:
            await self.store.append_history(key)
        except StorageUnavailableError as e:
            logger.warning("could not record history for %r: %s", key, e)

    async def lookup(self, raw_word: str) -> LookupResult:
        key = normalize_word(raw_word)

        cached, _ = await asyncio.gather(
            self.store.get_by_word(key),
            self._record_history(key),
        )
        if cached is not None:
            logger.info("lookup %r: cache hit", key)
            return LookupResult(entry=cached, from_cache=True)

        logger.info("lookup %r: cache miss, asking provider", key)
        raw = await self.client.lookup(key)

        # NotFoundError / SchemaValidationError propagate; nothing is persisted
        draft = validate_lookup_payload(raw, fallback_word=key)
        # identity is always our key, never the provider's casing
        draft = draft.model_copy(update={"word": key})

        entry = await self.store.upsert(draft)
        return LookupResult(entry=entry, from_cache=False)
