"""Shared fixtures: a throwaway SQLite database per test and a mocked provider."""

import os

# must be set before vocab_api.db / vocab_api.config are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LLM_API_KEY", "test-key")

import httpx
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from vocab_api.db import create_tables
from vocab_api.llm_client import GenerativeClient
from vocab_api.lookup import LookupService
from vocab_api.main import app, get_client, get_store
from vocab_api.storage import LexicalStore


SERENDIPITY = {
    "word": "Serendipity",
    "ipa": "/ˌsɛr.ənˈdɪp.ɪ.ti/",
    "meanings": [
        {
            "partOfSpeech": "noun",
            "forms": ["noun: serendipity", "plural noun: serendipities"],
            "definitions": [
                {
                    "definition": "the occurrence of events by chance in a happy way.",
                    "example": "a fortunate stroke of serendipity",
                    "synonyms": ["chance", "happy accident"],
                    "subs": [{"definition": "a lucky find.", "example": ""}],
                }
            ],
        }
    ],
    "phrases": [],
    "originDetails": {"text": "coined by Horace Walpole in 1754", "flow": ["PERSIAN", "ENGLISH"]},
    "translation": {"primary": "serendipia", "others": ["casualidad"]},
}


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite file per test; NullPool keeps connections on the test's loop."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vocab.db'}", poolclass=NullPool)
    await create_tables(eng)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def store(engine):
    return LexicalStore(engine)


@pytest.fixture
def provider():
    """Generative client double; async methods must be AsyncMocks."""
    client = MagicMock(spec=GenerativeClient)
    client.lookup = AsyncMock(return_value=SERENDIPITY)
    client.speak = AsyncMock(return_value=(b"ID3audio", "audio/mpeg"))
    return client


@pytest.fixture
def service(store, provider):
    return LookupService(store, provider)


@pytest_asyncio.fixture
async def api(store, provider):
    """HTTP client bound to the app with store/provider swapped for test doubles."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_client] = lambda: provider
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
