# vocab_api/llm_client.py
from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx

from . import config
from .errors import GenerativeProviderError, InvalidInputError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional lexicographer. Return exhaustive, deeply structured JSON "
    "mirroring a search-engine dictionary card. Do not skip any meanings. Use nested "
    "sub-definitions for variant meanings of the same sense. Number distinct senses "
    "(1., 2., 3.). Include full part-of-speech forms (plural nouns, verb conjugations). "
    "Return ONLY valid JSON."
)

EXAMPLE_STRUCTURE = """{
  "word": "scoop",
  "ipa": "/skuːp/",
  "meanings": [
    {
      "partOfSpeech": "noun",
      "forms": "noun: scoop; plural noun: scoops",
      "definitions": [
        {
          "definition": "a utensil resembling a spoon...",
          "example": "the powder is packed in tubs...",
          "synonyms": ["spoon", "ladle"],
          "antonyms": [],
          "subs": [
            { "definition": "a short-handled deep shovel...", "example": "...", "synonyms": [] },
            { "definition": "a moving bowl-shaped part...", "example": "..." }
          ]
        }
      ]
    }
  ],
  "phrases": [{ "phrase": "...", "meaning": "...", "example": "..." }],
  "originDetails": { "text": "...", "flow": ["LATIN", "FRENCH", "ENGLISH"] },
  "translation": { "primary": "...", "others": ["..."] }
}"""

# greedy: first "{" through the last "}" of the whole response
_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

_AUDIO_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/ogg",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/pcm",
}

def build_lookup_prompt(word: str) -> str:
    return (
        f'Return JSON only. Format strictly like a search-engine dictionary card for "{word}".\n'
        "Ensure every part of speech is listed. Use numbering (1., 2., 3.) for main definitions.\n"
        "Use sub-points for related definitions under a main number.\n"
        'Include plurality for nouns (e.g., "noun: scoop; plural noun: scoops").\n'
        'Include verb forms (e.g., "verb: scoop; 3rd person present: scoops...").\n'
        'Include "Similar" synonyms for BOTH main definitions AND sub-definitions where applicable.\n'
        'Include "originDetails" with text and a flow array (e.g., ["MIDDLE DUTCH", "ENGLISH"]).\n'
        'Include a "phrases" section if common.\n'
        f"Example Structure:\n{EXAMPLE_STRUCTURE}"
    )

def extract_json_object(text: str) -> Any:
    """Pull a JSON object out of a response that may wrap it in prose or fences."""
    m = _JSON_OBJECT.search(text or "")
    if not m:
        raise GenerativeProviderError("No JSON object in provider response")
    try:
        return json.loads(m.group(0))
    except ValueError as e:
        raise GenerativeProviderError(f"Unparsable JSON in provider response: {e}") from e

def _message_content(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise GenerativeProviderError(f"Unexpected completion envelope: {e}") from e
    if not isinstance(content, str) or not content.strip():
        raise GenerativeProviderError("Empty completion from provider")
    return content

class GenerativeClient:
    """
    OpenAI-compatible chat + speech endpoints over httpx.

    No retries here; a failed call is reported to the caller as
    GenerativeProviderError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        json_mode: Optional[bool] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or config.LLM_API_KEY
        if not self.api_key:
            raise RuntimeError("LLM_API_KEY is not set")
        self.base_url = (base_url or config.LLM_API_BASE).rstrip("/")
        self.model = model or config.LLM_MODEL
        self.json_mode = config.LLM_JSON_MODE if json_mode is None else json_mode
        self.timeout = timeout or config.LLM_TIMEOUT
        self._transport = transport

    @property
    def _headers(self) -> Dict[str, str]:
        return {"authorization": f"Bearer {self.api_key}", "accept": "application/json"}

    async def _http_post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(f"{self.base_url}{path}", headers=self._headers, json=payload)
                r.raise_for_status()
                return r
        except httpx.TimeoutException as e:
            raise GenerativeProviderError(f"Provider timed out after {self.timeout}s: {path}") from e
        except httpx.HTTPStatusError as e:
            raise GenerativeProviderError(
                f"Provider returned {e.response.status_code} for {path}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise GenerativeProviderError(f"Provider transport failure for {path}: {e}") from e

    async def lookup(self, word: str) -> Any:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_lookup_prompt(word)},
        ]
        payload: Dict[str, Any] = {"model": self.model, "messages": messages, "temperature": 0.2}
        if self.json_mode:
            payload["response_format"] = {"type": "json_object"}

        r = await self._http_post("/chat/completions", payload)
        try:
            data = r.json()
        except ValueError as e:
            raise GenerativeProviderError(f"Provider envelope is not JSON: {e}") from e
        content = _message_content(data)

        if not self.json_mode:
            return extract_json_object(content)
        try:
            return json.loads(content)
        except ValueError as e:
            raise GenerativeProviderError(f"Provider ignored JSON mode: {e}") from e

    async def speak(self, text: str) -> Tuple[bytes, str]:
        text = (text or "").strip()
        if not text:
            raise InvalidInputError("Text is required")
        if len(text) > config.TTS_MAX_CHARS:
            raise InvalidInputError(f"Text must be at most {config.TTS_MAX_CHARS} characters")

        payload = {
            "model": config.TTS_MODEL,
            "voice": config.TTS_VOICE,
            "input": text,
            "response_format": config.TTS_FORMAT,
        }
        try:
            r = await self._http_post("/audio/speech", payload)
        except GenerativeProviderError as e:
            e.public_message = "Speech synthesis failed"
            raise
        audio = r.content
        if not audio:
            raise GenerativeProviderError(
                "Provider returned no audio", public_message="Speech synthesis failed"
            )
        content_type = r.headers.get("content-type", "").split(";")[0].strip()
        if not content_type.startswith("audio/"):
            content_type = _AUDIO_TYPES.get(config.TTS_FORMAT, "audio/mpeg")
        return audio, content_type
