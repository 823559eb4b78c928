# vocab_api/validator.py
"""
Coerce untrusted provider JSON into a LexicalEntryDraft.

Two payload shapes exist:

- structured: {"word", "ipa", "meanings": [{"partOfSpeech", "forms",
  "definitions": [{"definition", "example", "synonyms", "antonyms", "subs"}]}],
  "phrases", "originDetails", "translation"}
- flat (earlier schema): {"word", "ipa", "partOfSpeech", "definition",
  "example", "synonyms", "antonyms", "usageTips"}

Both end up in the structured shape. Only structurally required fields raise;
anything optional gets a default.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from .errors import NotFoundError, SchemaValidationError
from .schema import LexicalEntryDraft

FORMS_SEP = "; "
TEXT_SEP = " "

# ───────── scalar / list coercion ─────────
def _first_key(d: dict, *keys: str) -> Any:
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return None

def _as_text(value: Any, sep: str = TEXT_SEP) -> str:
    """str -> stripped; array -> items trimmed, blanks dropped, joined with sep."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        parts = [_as_text(v, sep) for v in value]
        return sep.join(p for p in parts if p)
    return ""

def _as_str_list(value: Any) -> List[str]:
    """array -> trimmed non-empty strings; "a, b" -> ["a", "b"]."""
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = value
    else:
        return []
    out = []
    for item in items:
        text = _as_text(item)
        if text:
            out.append(text)
    return out

def _as_object_list(value: Any, path: str) -> List[Any]:
    """None -> []; lone object -> [object]; array -> array; anything else raises."""
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return value
    raise SchemaValidationError(path, f"{path} must be a list")

# ───────── nested pieces ─────────
def _definition(item: Any, path: str, allow_subs: bool) -> Optional[Dict[str, Any]]:
    if isinstance(item, str):
        item = {"definition": item}
    if not isinstance(item, dict):
        raise SchemaValidationError(path, f"{path} must be an object")

    text = _as_text(_first_key(item, "definition", "text"))
    if not text:
        return None

    out: Dict[str, Any] = {
        "definition": text,
        "example": _as_text(item.get("example")),
        "synonyms": _as_str_list(_first_key(item, "synonyms", "similar")),
        "antonyms": _as_str_list(_first_key(item, "antonyms", "opposite")),
    }
    if allow_subs:
        subs_path = f"{path}.subs"
        raw_subs = _as_object_list(_first_key(item, "subs", "subDefinitions"), subs_path)
        subs = []
        for i, sub in enumerate(raw_subs):
            d = _definition(sub, f"{subs_path}[{i}]", allow_subs=False)
            if d:
                subs.append(d)
        out["subs"] = subs
    return out

def _meaning_group(item: Any, path: str) -> Optional[Dict[str, Any]]:
    if not isinstance(item, dict):
        raise SchemaValidationError(path, f"{path} must be an object")

    defs_path = f"{path}.definitions"
    definitions = []
    for i, d in enumerate(_as_object_list(item.get("definitions"), defs_path)):
        parsed = _definition(d, f"{defs_path}[{i}]", allow_subs=True)
        if parsed:
            definitions.append(parsed)
    if not definitions:
        return None

    return {
        "partOfSpeech": _as_text(_first_key(item, "partOfSpeech", "pos")),
        "forms": _as_text(item.get("forms"), FORMS_SEP),
        "definitions": definitions,
    }

def _phrases(value: Any) -> List[Dict[str, str]]:
    out = []
    for i, item in enumerate(_as_object_list(value, "phrases")):
        if isinstance(item, str):
            item = {"phrase": item}
        if not isinstance(item, dict):
            raise SchemaValidationError(f"phrases[{i}]", f"phrases[{i}] must be an object")
        phrase = _as_text(item.get("phrase"))
        if not phrase:
            continue
        out.append({
            "phrase": phrase,
            "meaning": _as_text(item.get("meaning")),
            "example": _as_text(item.get("example")),
        })
    return out

def _origin(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        value = {"text": value}
    if not isinstance(value, dict):
        raise SchemaValidationError("originDetails", "originDetails must be an object")
    text = _as_text(value.get("text"))
    flow = _as_str_list(value.get("flow"))
    if not text and not flow:
        return {}
    return {"text": text, "flow": flow}

def _translation(value: Any) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        value = {"primary": value}
    if not isinstance(value, dict):
        raise SchemaValidationError("translation", "translation must be an object")
    primary = _as_text(value.get("primary"))
    others = _as_str_list(value.get("others"))
    if not primary and not others:
        return {}
    return {"primary": primary, "others": others}

def _require_object(raw: Any) -> dict:
    if not isinstance(raw, dict):
        raise SchemaValidationError("$", "Entry must be a JSON object")
    return raw

def _require_word(raw: dict, fallback: Optional[str] = None) -> str:
    word = raw.get("word")
    if word is None:
        word = fallback
    if word is None:
        raise SchemaValidationError("word", "word is required")
    if not isinstance(word, str):
        raise SchemaValidationError("word", "word must be a string")
    word = word.strip()
    if not word:
        raise SchemaValidationError("word", "word must not be empty")
    return word

# ───────── public entry points ─────────
def validate_entry(raw: Any) -> LexicalEntryDraft:
    """Structured variant; ``word`` is required."""
    raw = _require_object(raw)
    word = _require_word(raw)

    meanings = []
    for i, item in enumerate(_as_object_list(raw.get("meanings"), "meanings")):
        group = _meaning_group(item, f"meanings[{i}]")
        if group:
            meanings.append(group)

    return LexicalEntryDraft(
        word=word,
        ipa=_as_text(raw.get("ipa")),
        meanings=meanings,
        phrases=_phrases(raw.get("phrases")),
        originDetails=_origin(_first_key(raw, "originDetails", "origin")),
        translation=_translation(raw.get("translation")),
    )

def validate_flat_entry(raw: Any, fallback_word: Optional[str] = None) -> LexicalEntryDraft:
    """
    Flat variant. An empty definition means the provider did not know the
    word: NotFoundError, not a validation failure.
    """
    raw = _require_object(raw)
    definition = _as_text(raw.get("definition"))
    if not definition:
        raise NotFoundError()
    word = _require_word(raw, fallback_word)

    # usageTips has no slot of its own in the nested shape; keep it as a sub-point
    subs = []
    tips = _as_text(raw.get("usageTips"), FORMS_SEP)
    if tips:
        subs.append({"definition": tips})

    group = {
        "partOfSpeech": _as_text(_first_key(raw, "partOfSpeech", "pos")),
        "definitions": [{
            "definition": definition,
            "example": _as_text(raw.get("example")),
            "synonyms": _as_str_list(raw.get("synonyms")),
            "antonyms": _as_str_list(raw.get("antonyms")),
            "subs": subs,
        }],
    }
    return LexicalEntryDraft(
        word=word,
        ipa=_as_text(raw.get("ipa")),
        meanings=[group],
        phrases=_phrases(raw.get("phrases")),
        originDetails=_origin(_first_key(raw, "originDetails", "origin")),
        translation=_translation(raw.get("translation")),
    )

def is_flat_payload(raw: Any) -> bool:
    return isinstance(raw, dict) and "meanings" not in raw and "definition" in raw

def validate_lookup_payload(raw: Any, fallback_word: Optional[str] = None) -> LexicalEntryDraft:
    """
    Pick the variant from the payload's shape and validate it.

    A generated entry with no usable definition in either shape is a
    not-found signal; it must never reach the cache.
    """
    if is_flat_payload(raw):
        return validate_flat_entry(raw, fallback_word)
    draft = validate_entry(raw)
    if not draft.meanings:
        raise NotFoundError()
    return draft
