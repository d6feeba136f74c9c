import httpx
import pytest

from app.clients.llm import GeminiClient
from app.services.analysis_session import registry
from app.services.model_gateway import ModelGateway
from tests.factories import gemini_response


@pytest.fixture(autouse=True)
def _set_env(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    monkeypatch.setenv("GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-2.5-flash")


@pytest.fixture(autouse=True)
def _clear_registry():
    registry.clear()
    yield
    registry.clear()


@pytest.fixture
async def gemini_client():
    async def handler(request):
        return httpx.Response(200, json=gemini_response("ok"))

    client = GeminiClient(
        base_url="https://generativelanguage.googleapis.com/v1beta",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )
    yield client
    await client.close()


@pytest.fixture
async def gateway(gemini_client):
    yield ModelGateway(gemini_client, model="gemini-2.5-flash")
