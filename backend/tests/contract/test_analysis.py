from __future__ import annotations

import base64

import httpx
import pytest
from fastapi import status

from app.api.deps import analysis as analysis_deps
from app.main import app
from app.services.analysis_session import registry
from app.services.model_gateway import BackendError
from tests.factories import make_evaluation


class FakeGateway:
    def __init__(self):
        self.calls = []
        self.fail_for: str | None = None

    async def invoke(self, system_instruction, user_prompt, attachment=None, structured=False):
        self.calls.append((system_instruction, user_prompt, attachment, structured))
        name = system_instruction.split(",", 1)[0].replace("Você é a ", "").replace(
            "Você é o ", ""
        )
        if self.fail_for and self.fail_for in system_instruction:
            raise BackendError("503 Service Unavailable")
        criteria = {
            "Prof. Ana Silva": (160, 160, 160, 160, 160),
            "Dr. Carlos Mendes": (200, 200, 200, 200, 200),
        }.get(name, (160, 160, 160, 160, 160))
        return make_evaluation(name, criteria, note=name)


@pytest.fixture
def fake_gateway():
    gateway = FakeGateway()

    async def _override():
        yield gateway

    app.dependency_overrides[analysis_deps.model_gateway] = _override
    yield gateway
    app.dependency_overrides.pop(analysis_deps.model_gateway, None)


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _new_session(client) -> str:
    response = await client.post("/api/sessions")
    return response.json()["id"]


@pytest.mark.asyncio
async def test_analysis_returns_ordered_evaluations_and_aggregate(client, fake_gateway):
    session_id = await _new_session(client)

    response = await client.post(
        f"/api/sessions/{session_id}/analysis",
        json={"essayText": "A educação é a base."},
    )

    assert response.status_code == status.HTTP_200_OK
    payload = response.json()
    assert [item["corretor"] for item in payload["evaluations"]] == [
        "Prof. Ana Silva",
        "Dr. Carlos Mendes",
        "Profa. Maria Santos",
    ]
    assert payload["aggregate"]["corretor"] == "Média de 3 corretores"
    assert payload["aggregate"]["scores"]["competencia1"] == 173
    assert payload["aggregate"]["scores"]["total"] == 865
    assert payload["selection"] == "aggregate"
    assert len(fake_gateway.calls) == 3


@pytest.mark.asyncio
async def test_analysis_requires_text_or_attachment(client, fake_gateway):
    session_id = await _new_session(client)

    response = await client.post(
        f"/api/sessions/{session_id}/analysis", json={"essayText": "   "}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert fake_gateway.calls == []


@pytest.mark.asyncio
async def test_analysis_rejects_invalid_base64(client, fake_gateway):
    session_id = await _new_session(client)

    response = await client.post(
        f"/api/sessions/{session_id}/analysis",
        json={
            "attachment": {
                "filename": "redacao.txt",
                "mimeType": "text/plain",
                "dataBase64": "not base64!",
            }
        },
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_analysis_accepts_attachment_only(client, fake_gateway):
    session_id = await _new_session(client)

    response = await client.post(
        f"/api/sessions/{session_id}/analysis",
        json={
            "attachment": {
                "filename": "redacao.png",
                "mimeType": "image/png",
                "dataBase64": base64.b64encode(b"png-bytes").decode(),
            }
        },
    )

    assert response.status_code == status.HTTP_200_OK
    attachment = fake_gateway.calls[0][2]
    assert attachment.data == b"png-bytes"
    assert attachment.kind.value == "image"


@pytest.mark.asyncio
async def test_failed_corrector_fails_the_run(client, fake_gateway):
    session_id = await _new_session(client)
    fake_gateway.fail_for = "Dr. Carlos Mendes"

    response = await client.post(
        f"/api/sessions/{session_id}/analysis", json={"essayText": "Texto"}
    )

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["detail"] == (
        "Erro ao analisar a redação: 503 Service Unavailable"
    )
    snapshot = (await client.get(f"/api/sessions/{session_id}")).json()
    assert snapshot["status"] == "failed"
    assert snapshot["evaluationCount"] == 0
    assert snapshot["lastError"] == "503 Service Unavailable"
    view = await client.get(f"/api/sessions/{session_id}/view")
    assert view.status_code == status.HTTP_409_CONFLICT


@pytest.mark.asyncio
async def test_busy_session_rejects_new_analysis(client, fake_gateway):
    session_id = await _new_session(client)
    registry.get(session_id).busy = True

    response = await client.post(
        f"/api/sessions/{session_id}/analysis", json={"essayText": "Texto"}
    )

    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["busy"] is True
    assert fake_gateway.calls == []


@pytest.mark.asyncio
async def test_view_selection_round_trip(client, fake_gateway):
    session_id = await _new_session(client)
    await client.post(f"/api/sessions/{session_id}/analysis", json={"essayText": "Texto"})

    default_view = await client.get(f"/api/sessions/{session_id}/view")
    selected = await client.put(f"/api/sessions/{session_id}/view", json={"target": 1})
    current = await client.get(f"/api/sessions/{session_id}/view")
    out_of_range = await client.put(f"/api/sessions/{session_id}/view", json={"target": 3})
    back = await client.put(f"/api/sessions/{session_id}/view", json={"target": "avg"})
    invalid = await client.put(f"/api/sessions/{session_id}/view", json={"target": "nope"})

    assert default_view.json()["isAggregate"] is True
    assert default_view.json()["result"]["corretor"] == "Média de 3 corretores"
    assert selected.json()["result"]["corretor"] == "Dr. Carlos Mendes"
    assert selected.json()["result"]["scores"]["total"] == 1000
    assert current.json()["selection"] == 1
    assert out_of_range.status_code == status.HTTP_404_NOT_FOUND
    assert back.json()["isAggregate"] is True
    assert invalid.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_new_run_resets_view_to_aggregate(client, fake_gateway):
    session_id = await _new_session(client)
    await client.post(f"/api/sessions/{session_id}/analysis", json={"essayText": "Texto"})
    await client.put(f"/api/sessions/{session_id}/view", json={"target": 2})

    response = await client.post(
        f"/api/sessions/{session_id}/analysis", json={"essayText": "Outro texto"}
    )
    view = await client.get(f"/api/sessions/{session_id}/view")

    assert response.json()["selection"] == "aggregate"
    assert view.json()["isAggregate"] is True
