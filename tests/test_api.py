"""HTTP-level tests for the FastAPI app."""

import base64
from datetime import datetime

import pytest

from vocab_api.errors import GenerativeProviderError


@pytest.mark.asyncio
class TestLookupEndpoint:

    async def test_end_to_end_miss_then_hit(self, api, provider):
        r = await api.post("/api/dictionary/lookup", json={"word": "serendipity"})
        assert r.status_code == 200
        body = r.json()
        assert body["fromCache"] is False
        assert body["result"]["word"] == "serendipity"
        assert body["result"]["translation"] == {"primary": "serendipia", "others": ["casualidad"]}

        r2 = await api.post("/api/dictionary/lookup", json={"word": "Serendipity "})
        assert r2.status_code == 200
        assert r2.json() == {"result": body["result"], "fromCache": True}
        assert provider.lookup.await_count == 1

        saved = (await api.get("/api/words")).json()
        assert [w["word"] for w in saved] == ["serendipity"]

    async def test_blank_word(self, api):
        r = await api.post("/api/dictionary/lookup", json={"word": "   "})
        assert r.status_code == 400
        assert r.json() == {"message": "Word is required"}

    async def test_missing_word_field(self, api):
        r = await api.post("/api/dictionary/lookup", json={})
        assert r.status_code == 400
        assert r.json()["field"] == "word"

    async def test_malformed_json_has_no_field(self, api, provider):
        r = await api.post(
            "/api/dictionary/lookup",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )
        assert r.status_code == 400
        assert "field" not in r.json()
        assert r.json()["message"]
        provider.lookup.assert_not_awaited()

    async def test_not_found(self, api, provider):
        provider.lookup.return_value = {"definition": ""}
        r = await api.post("/api/dictionary/lookup", json={"word": "zzxq"})
        assert r.status_code == 404
        assert r.json() == {"message": "Word not found"}
        assert (await api.get("/api/words")).json() == []

    async def test_structured_not_found(self, api, provider, store):
        provider.lookup.return_value = {
            "word": "zzxq",
            "meanings": [{"partOfSpeech": "noun", "definitions": [{"definition": "  "}]}],
        }
        r = await api.post("/api/dictionary/lookup", json={"word": "zzxq"})
        assert r.status_code == 404
        assert r.json() == {"message": "Word not found"}
        assert await store.get_by_word("zzxq") is None

    async def test_provider_failure_is_generic(self, api, provider):
        provider.lookup.side_effect = GenerativeProviderError("upstream said: secret internals")
        r = await api.post("/api/dictionary/lookup", json={"word": "cat"})
        assert r.status_code == 500
        assert r.json() == {"message": "Lookup failed"}

    async def test_schema_failure(self, api, provider):
        provider.lookup.return_value = {"word": 12, "meanings": []}
        r = await api.post("/api/dictionary/lookup", json={"word": "cat"})
        assert r.status_code == 400
        assert r.json()["field"] == "word"


@pytest.mark.asyncio
class TestSavedWords:

    async def test_crud_cycle(self, api):
        r = await api.post("/api/words", json={"word": " Cat ", "ipa": "/kæt/"})
        assert r.status_code == 201
        created = r.json()
        assert created["word"] == "cat"
        assert created["meanings"] == []
        assert created["originDetails"] == {}

        r = await api.get("/api/words/CAT")
        assert r.status_code == 200
        assert r.json()["ipa"] == "/kæt/"

        r = await api.delete("/api/words/cat")
        assert r.status_code == 204
        assert r.content == b""

        assert (await api.get("/api/words/cat")).status_code == 404

    async def test_delete_absent_is_404(self, api):
        r = await api.delete("/api/words/ghost")
        assert r.status_code == 404
        assert r.json() == {"message": "Word not found"}

    async def test_save_twice_updates(self, api):
        await api.post("/api/words", json={"word": "cat", "ipa": "/kæt/"})
        await api.post("/api/words", json={"word": "CAT", "ipa": "/kat/"})
        saved = (await api.get("/api/words")).json()
        assert len(saved) == 1
        assert saved[0]["ipa"] == "/kat/"

    async def test_save_invalid(self, api):
        r = await api.post("/api/words", json={"word": 5})
        assert r.status_code == 400
        assert r.json()["field"] == "word"

        r = await api.post("/api/words", json=["cat"])
        assert r.status_code == 400

    async def test_path_is_percent_decoded_and_normalized(self, api):
        await api.post("/api/words", json={"word": "ice cream"})
        r = await api.get("/api/words/Ice%20Cream%20")
        assert r.status_code == 200
        assert r.json()["word"] == "ice cream"


@pytest.mark.asyncio
class TestSearchHistory:

    async def test_add_and_list(self, api):
        r = await api.post("/api/search-history", json={"word": " Hello "})
        assert r.status_code == 201
        rec = r.json()
        assert rec["word"] == "hello"
        datetime.fromisoformat(rec["searchedAt"].replace("Z", "+00:00"))

        listed = (await api.get("/api/search-history")).json()
        assert [h["word"] for h in listed] == ["hello"]
        assert listed[0]["id"] == rec["id"]

    async def test_blank_word(self, api):
        r = await api.post("/api/search-history", json={"word": ""})
        assert r.status_code == 400
        assert r.json() == {"message": "Word is required"}

    @pytest.mark.parametrize("query, expected", [
        ("", 5), ("?limit=3", 3), ("?limit=abc", 5), ("?limit=0", 5), ("?limit=-2", 5), ("?limit=500", 50),
    ])
    async def test_limit(self, api, store, query, expected):
        for i in range(55):
            await store.append_history(f"w{i}")
        r = await api.get(f"/api/search-history{query}")
        assert r.status_code == 200
        listed = r.json()
        assert len(listed) == expected
        assert listed[0]["word"] == "w54"

    async def test_lookups_land_in_history(self, api):
        await api.post("/api/dictionary/lookup", json={"word": "serendipity"})
        await api.post("/api/dictionary/lookup", json={"word": "serendipity"})
        listed = (await api.get("/api/search-history")).json()
        assert [h["word"] for h in listed] == ["serendipity", "serendipity"]
        assert listed[0]["id"] > listed[1]["id"]


@pytest.mark.asyncio
class TestTts:

    async def test_speak(self, api, provider):
        r = await api.post("/api/tts", json={"text": "serendipity"})
        assert r.status_code == 200
        body = r.json()
        assert base64.b64decode(body["audioBase64"]) == b"ID3audio"
        assert body["contentType"] == "audio/mpeg"
        provider.speak.assert_awaited_once_with("serendipity")

    @pytest.mark.parametrize("text", ["", "x" * 81])
    async def test_bounds(self, api, provider, text):
        r = await api.post("/api/tts", json={"text": text})
        assert r.status_code == 400
        assert r.json()["field"] == "text"
        provider.speak.assert_not_awaited()

    async def test_provider_failure(self, api, provider):
        provider.speak.side_effect = GenerativeProviderError("no audio", public_message="Speech synthesis failed")
        r = await api.post("/api/tts", json={"text": "cat"})
        assert r.status_code == 500
        assert r.json() == {"message": "Speech synthesis failed"}


@pytest.mark.asyncio
async def test_healthz(api):
    r = await api.get("/healthz")
    assert r.json() == {"ok": True}
