import json

import httpx
import pytest

from adapters import GeminiAdapter, GeminiHTTPClient, TranscriptionError, TranscriptionRequest
from adapters.gemini_adapter import FALLBACK_SUBTITLES, extract_payload


def _reply(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class FakeGemini:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def generate_content(self, *, model, prompt, media, mime_type, temperature):
        self.calls.append({"model": model, "prompt": prompt, "media": media, "mime_type": mime_type})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


REQUEST = TranscriptionRequest(media=b"video", prompt="transcribe")


def test_dry_run_returns_fallback_without_client():
    adapter = GeminiAdapter(api_key=None, dry_run=True)
    payload = adapter.transcribe(REQUEST)
    assert len(payload["subtitles"]) == len(FALLBACK_SUBTITLES) == 3
    assert payload["subtitles"][0]["startTime"] == 0.2


def test_live_requires_client():
    adapter = GeminiAdapter(api_key="k", dry_run=False)
    with pytest.raises(RuntimeError):
        adapter.transcribe(REQUEST)


def test_live_extracts_json_from_chatty_reply():
    body = {"subtitles": [{"speaker": "S1", "line": "hey", "startTime": 0.1, "endTime": 0.9}]}
    fake = FakeGemini([_reply("Sure! ```json\n" + json.dumps(body) + "\n``` hope it helps")])
    payload = GeminiAdapter(api_key="k", client=fake).transcribe(REQUEST)
    assert payload == body
    assert fake.calls[0]["media"] == b"video"
    assert fake.calls[0]["mime_type"] == "video/mp4"


def test_retries_transient_errors(monkeypatch):
    monkeypatch.setattr("adapters.gemini_adapter.time.sleep", lambda s: None)
    fake = FakeGemini([httpx.ConnectError("boom"), _reply('{"subtitles": []}')])
    payload = GeminiAdapter(api_key="k", client=fake, max_attempts=3).transcribe(REQUEST)
    assert payload == {"subtitles": []}
    assert len(fake.calls) == 2


def test_gives_up_after_max_attempts(monkeypatch):
    monkeypatch.setattr("adapters.gemini_adapter.time.sleep", lambda s: None)
    fake = FakeGemini([httpx.ConnectError("boom")] * 2)
    with pytest.raises(TranscriptionError):
        GeminiAdapter(api_key="k", client=fake, max_attempts=2).transcribe(REQUEST)


def test_client_errors_are_not_retried():
    request = httpx.Request("POST", "https://example.test")
    error = httpx.HTTPStatusError("bad", request=request, response=httpx.Response(400, request=request))
    fake = FakeGemini([error, _reply('{"subtitles": []}')])
    with pytest.raises(TranscriptionError):
        GeminiAdapter(api_key="k", client=fake).transcribe(REQUEST)
    assert len(fake.calls) == 1


@pytest.mark.parametrize("text", ["no json here", "{not json}", '{"lines": []}'])
def test_bad_replies_raise(text):
    with pytest.raises(TranscriptionError):
        extract_payload(text)


def test_missing_candidates_raise():
    fake = FakeGemini([{"promptFeedback": {"blockReason": "SAFETY"}}])
    with pytest.raises(TranscriptionError):
        GeminiAdapter(api_key="k", client=fake).transcribe(REQUEST)


def test_http_client_posts_inline_media():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply('{"subtitles": []}'))

    client = GeminiHTTPClient("secret", http=httpx.Client(transport=httpx.MockTransport(handler)))
    result = client.generate_content(model="gemini-test", prompt="p", media=b"abc", mime_type="video/mp4", temperature=0.1)
    assert result["candidates"][0]["content"]["parts"][0]["text"] == '{"subtitles": []}'
    assert seen["url"].endswith("/models/gemini-test:generateContent")
    assert seen["key"] == "secret"
    parts = seen["body"]["contents"][0]["parts"]
    assert parts[0] == {"text": "p"}
    assert parts[1]["inline_data"] == {"mime_type": "video/mp4", "data": "YWJj"}
    assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"


def test_http_client_closes_only_its_own_connection_pool():
    with GeminiHTTPClient("secret") as owned:
        pool = owned._http
    assert pool.is_closed

    shared = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    with GeminiHTTPClient("secret", http=shared):
        pass
    assert not shared.is_closed
    shared.close()


def test_adapter_context_closes_client():
    class Closable(FakeGemini):
        closed = False

        def close(self):
            self.closed = True

    client = Closable([])
    with GeminiAdapter("k", client=client) as adapter:
        assert adapter.client is client
    assert client.closed
