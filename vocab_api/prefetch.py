# vocab_api/prefetch.py
"""
Warm the word cache from a word list, one word per line:

    python -m vocab_api.prefetch words.txt --concurrency 4

Every word goes through the normal lookup pipeline, so cached words are
skipped by the provider and each lookup also lands in the search history.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from .db import create_tables, engine
from .errors import InvalidInputError, VocabError
from .llm_client import GenerativeClient
from .logging_setup import configure_logging
from .lookup import LookupService
from .normalize import normalize_word
from .storage import LexicalStore

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4

@dataclass
class PrefetchReport:
    hits: List[str] = field(default_factory=list)
    misses: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    def summary(self) -> str:
        return f"{len(self.misses)} fetched, {len(self.hits)} already cached, {len(self.failed)} failed"

def read_words(lines: Iterable[str]) -> List[str]:
    """Normalized, de-duplicated words in file order; blank lines and #comments skipped."""
    seen = set()
    out: List[str] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            key = normalize_word(line)
        except InvalidInputError:
            continue
        if key not in seen:
            seen.add(key)
            out.append(key)
    return out

async def run_prefetch(service: LookupService, words: List[str], concurrency: int = DEFAULT_CONCURRENCY) -> PrefetchReport:
    report = PrefetchReport()
    sem = asyncio.Semaphore(max(1, concurrency))

    async def one(word: str):
        async with sem:
            try:
                res = await service.lookup(word)
            except VocabError as e:
                # one bad word must not stop the batch
                logger.warning("[prefetch] %s failed: %s", word, e)
                report.failed.append(word)
                return
            (report.hits if res.from_cache else report.misses).append(word)

    await asyncio.gather(*(one(w) for w in words))
    return report

async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Prefetch dictionary entries into the word cache")
    parser.add_argument("wordlist", type=Path, help="file with one word per line")
    parser.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY)
    args = parser.parse_args(argv)

    configure_logging()
    words = read_words(args.wordlist.read_text(encoding="utf-8").splitlines())
    if not words:
        print("[prefetch] no words to fetch")
        return 0

    await create_tables()
    service = LookupService(LexicalStore(engine), GenerativeClient())
    try:
        report = await run_prefetch(service, words, args.concurrency)
    finally:
        await engine.dispose()
    print(f"[prefetch] DONE: {report.summary()}")
    return 1 if report.failed else 0

def cli():
    raise SystemExit(asyncio.run(main()))

if __name__ == "__main__":
    cli()
