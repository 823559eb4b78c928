# vocab_api/main.py
from __future__ import annotations

import base64
import logging
from functools import lru_cache
from typing import Any, List, Optional

from fastapi import Body, Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .db import create_tables, engine, ping
from .errors import NotFoundError, SchemaValidationError, VocabError
from .llm_client import GenerativeClient
from .logging_setup import configure_logging
from .lookup import LookupService
from .normalize import normalize_word
from .schema import HistoryRecord, LexicalEntry, LookupOut, TtsIn, TtsOut, WordIn
from .storage import LexicalStore
from .validator import validate_entry

configure_logging()
logger = logging.getLogger(__name__)

# ───────── App ─────────
app = FastAPI(title="Vocabulary Lookup API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# ───────── Dependencies ─────────
@lru_cache(maxsize=1)
def get_store() -> LexicalStore:
    return LexicalStore(engine)

@lru_cache(maxsize=1)
def get_client() -> GenerativeClient:
    return GenerativeClient()

def get_lookup_service(
    store: LexicalStore = Depends(get_store),
    client: GenerativeClient = Depends(get_client),
) -> LookupService:
    return LookupService(store, client)

# ───────── Error mapping ─────────
@app.exception_handler(VocabError)
async def vocab_error_handler(request: Request, exc: VocabError):
    if exc.status_code >= 500:
        # full detail stays in the server log
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
    body = {"message": exc.public_message}
    if isinstance(exc, SchemaValidationError):
        body["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=body)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    body = {"message": first.get("msg", "Invalid request")}
    # malformed JSON is located by character offset, not by a field
    if loc and first.get("type") != "json_invalid":
        body["field"] = ".".join(loc)
    return JSONResponse(status_code=400, content=body)

# ───────── Lifecycle ─────────
@app.on_event("startup")
async def on_startup():
    await ping()
    await create_tables()
    logger.info("database ready")

@app.get("/healthz")
async def healthz():
    return {"ok": True}

# ───────── Dictionary lookup ─────────
@app.post("/api/dictionary/lookup", response_model=LookupOut)
async def lookup_word(body: WordIn, service: LookupService = Depends(get_lookup_service)):
    res = await service.lookup(body.word)
    return LookupOut(result=res.entry, fromCache=res.from_cache)

# ───────── Saved words ─────────
@app.get("/api/words", response_model=List[LexicalEntry])
async def list_words(store: LexicalStore = Depends(get_store)):
    return await store.list_all()

@app.get("/api/words/{word}", response_model=LexicalEntry)
async def get_word(word: str, store: LexicalStore = Depends(get_store)):
    entry = await store.get_by_word(normalize_word(word))
    if entry is None:
        raise NotFoundError()
    return entry

@app.post("/api/words", response_model=LexicalEntry, status_code=201)
async def save_word(payload: Any = Body(...), store: LexicalStore = Depends(get_store)):
    draft = validate_entry(payload)
    draft = draft.model_copy(update={"word": normalize_word(draft.word)})
    return await store.upsert(draft)

@app.delete("/api/words/{word}", status_code=204)
async def delete_word(word: str, store: LexicalStore = Depends(get_store)):
    key = normalize_word(word)
    # the store's delete is idempotent; the API reports absent words as 404
    if await store.get_by_word(key) is None:
        raise NotFoundError()
    await store.delete(key)
    return Response(status_code=204)

# ───────── Search history ─────────
@app.get("/api/search-history", response_model=List[HistoryRecord])
async def list_search_history(
    limit: Optional[str] = Query(None, description="How many records (default 5, max 50)"),
    store: LexicalStore = Depends(get_store),
):
    return await store.list_recent_history(limit if limit is not None else config.HISTORY_DEFAULT_LIMIT)

@app.post("/api/search-history", response_model=HistoryRecord, status_code=201)
async def add_search_history(body: WordIn, store: LexicalStore = Depends(get_store)):
    return await store.append_history(normalize_word(body.word))

# ───────── Text to speech ─────────
@app.post("/api/tts", response_model=TtsOut)
async def text_to_speech(body: TtsIn, client: GenerativeClient = Depends(get_client)):
    audio, content_type = await client.speak(body.text)
    return TtsOut(audioBase64=base64.b64encode(audio).decode("ascii"), contentType=content_type)
