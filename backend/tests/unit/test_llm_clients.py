import json

import httpx
import pytest

from app.clients.llm import GeminiClient, LLMError

BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def _ok(request):
    return httpx.Response(
        200, json={"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}
    )


@pytest.mark.asyncio
async def test_generate_content_posts_to_model_endpoint():
    seen = {}

    async def handler(request):
        seen["path"] = request.url.path
        seen["key"] = request.headers["x-goog-api-key"]
        seen["payload"] = json.loads(request.content)
        return _ok(request)

    client = GeminiClient(
        base_url=BASE_URL,
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )

    result = await client.generate_content("gemini-2.5-flash", {"contents": []})

    assert result["candidates"][0]["content"]["parts"][0]["text"] == "ok"
    assert seen["path"] == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert seen["key"] == "secret"
    assert seen["payload"] == {"contents": []}

    await client.close()


@pytest.mark.asyncio
async def test_no_retry_by_default_on_server_error():
    calls = {"count": 0}

    async def handler(request):
        calls["count"] += 1
        return httpx.Response(503, text="unavailable")

    client = GeminiClient(
        base_url=BASE_URL,
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(LLMError) as exc:
        await client.generate_content("gemini-2.5-flash", {})

    assert calls["count"] == 1
    assert exc.value.status_code == 503
    assert "unavailable" in str(exc.value)

    await client.close()


@pytest.mark.asyncio
async def test_retries_on_request_error_when_configured():
    calls = {"count": 0}

    async def handler(request):
        calls["count"] += 1
        if calls["count"] == 1:
            raise httpx.ReadTimeout("timeout", request=request)
        return _ok(request)

    client = GeminiClient(
        base_url=BASE_URL,
        api_key="secret",
        retries=1,
        transport=httpx.MockTransport(handler),
    )

    result = await client.generate_content("gemini-2.5-flash", {})

    assert result["candidates"]
    assert calls["count"] == 2

    await client.close()


@pytest.mark.asyncio
async def test_client_error_is_not_retried_and_keeps_body():
    calls = {"count": 0}

    async def handler(request):
        calls["count"] += 1
        return httpx.Response(400, json={"error": {"message": "bad schema"}})

    client = GeminiClient(
        base_url=BASE_URL,
        api_key="secret",
        retries=2,
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(LLMError) as exc:
        await client.generate_content("gemini-2.5-flash", {})

    assert calls["count"] == 1
    assert exc.value.status_code == 400
    assert "bad schema" in exc.value.body

    await client.close()


@pytest.mark.asyncio
async def test_generate_content_requires_candidates_field():
    async def handler(request):
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    client = GeminiClient(
        base_url=BASE_URL,
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(LLMError) as exc:
        await client.generate_content("gemini-2.5-flash", {})

    assert "Missing 'candidates'" in str(exc.value)

    await client.close()
