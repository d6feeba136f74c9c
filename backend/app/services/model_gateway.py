from __future__ import annotations

import base64
import json
import logging
import math
from typing import Any

from app.clients.llm import GeminiClient, LLMError
from app.config import Settings, load_settings
from app.models.analysis import Attachment, MediaKind
from app.models.evaluation import (
    CRITERION_FIELDS,
    FEEDBACK_FIELDS,
    MAX_CRITERION_SCORE,
    Evaluation,
    Feedback,
    Scores,
)
from app.telemetry.otel import start_span

logger = logging.getLogger(__name__)

FILE_TEXT_START = "--- INÍCIO DA REDAÇÃO DO ARQUIVO ---"
FILE_TEXT_END = "--- FIM DA REDAÇÃO DO ARQUIVO ---"

EVALUATION_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "corretor": {"type": "STRING"},
        "scores": {
            "type": "OBJECT",
            "properties": {
                **{name: {"type": "NUMBER"} for name in CRITERION_FIELDS},
                "total": {"type": "NUMBER"},
            },
            "required": [*CRITERION_FIELDS, "total"],
        },
        "feedback": {
            "type": "OBJECT",
            "properties": {name: {"type": "STRING"} for name in FEEDBACK_FIELDS},
            "required": list(FEEDBACK_FIELDS),
        },
    },
    "required": ["corretor", "scores", "feedback"],
}


class MalformedResponse(ValueError):
    pass


class BackendError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _unsupported_attachment_note(attachment: Attachment) -> str:
    return (
        f"(Anexo: {attachment.filename}, tipo: {attachment.mime_type or 'desconhecido'}. "
        "Não foi possível processar o conteúdo.)"
    )


def build_parts(user_prompt: str, attachment: Attachment | None) -> list[dict[str, Any]]:
    text = user_prompt
    binary_parts: list[dict[str, Any]] = []
    if attachment is not None:
        kind = attachment.kind
        if kind in {MediaKind.IMAGE, MediaKind.PDF}:
            binary_parts.append(
                {
                    "inlineData": {
                        "mimeType": attachment.mime_type,
                        "data": base64.b64encode(attachment.data).decode("ascii"),
                    }
                }
            )
        elif kind is MediaKind.TEXT:
            file_text = attachment.data.decode("utf-8", errors="replace")
            text += f"\n\n{FILE_TEXT_START}\n{file_text}\n{FILE_TEXT_END}"
        else:
            logger.warning(
                "Unsupported attachment type filename=%s mime_type=%s",
                attachment.filename,
                attachment.mime_type,
            )
            text += f"\n\n{_unsupported_attachment_note(attachment)}"
    return [{"text": text}, *binary_parts]


def build_request_payload(
    system_instruction: str,
    user_prompt: str,
    attachment: Attachment | None,
    *,
    structured: bool,
    temperature: float,
    seed: int,
) -> dict[str, Any]:
    generation_config: dict[str, Any] = {
        "temperature": temperature,
        "seed": seed,
        "responseMimeType": "application/json" if structured else "text/plain",
    }
    if structured:
        generation_config["responseSchema"] = EVALUATION_SCHEMA
    return {
        "systemInstruction": {"parts": [{"text": system_instruction}]},
        "contents": [{"role": "user", "parts": build_parts(user_prompt, attachment)}],
        "generationConfig": generation_config,
    }


def extract_text(response: dict[str, Any]) -> str:
    candidates = response.get("candidates") or []
    if not candidates:
        raise MalformedResponse("Missing candidates in model response")
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    texts = [part.get("text") for part in parts if isinstance(part.get("text"), str)]
    if not texts:
        finish_reason = candidates[0].get("finishReason")
        raise MalformedResponse(f"Model response has no text (finishReason={finish_reason})")
    return "".join(texts)


def _load_json_object(text: str) -> dict[str, Any]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end == -1:
            raise MalformedResponse("Evaluation response missing JSON payload") from None
        try:
            parsed = json.loads(text[start : end + 1])
        except json.JSONDecodeError as exc:
            raise MalformedResponse("Evaluation response is not valid JSON") from exc
    if not isinstance(parsed, dict):
        raise MalformedResponse("Evaluation response is not a JSON object")
    return parsed


def _score_value(scores: dict[str, Any], field: str) -> int:
    if field not in scores:
        raise MalformedResponse(f"Missing scores.{field} in evaluation response")
    value = scores[field]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponse(f"scores.{field} must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedResponse(f"scores.{field} must be finite: {value}")
    if value != int(value):
        raise MalformedResponse(f"scores.{field} must be an integer: {value}")
    return int(value)


def parse_evaluation(text: str) -> Evaluation:
    parsed = _load_json_object(text)
    corretor = parsed.get("corretor")
    scores_payload = parsed.get("scores")
    feedback_payload = parsed.get("feedback")
    if not isinstance(corretor, str):
        raise MalformedResponse("Missing corretor in evaluation response")
    if not isinstance(scores_payload, dict) or not isinstance(feedback_payload, dict):
        raise MalformedResponse("Evaluation response missing scores or feedback")

    criteria = [_score_value(scores_payload, field) for field in CRITERION_FIELDS]
    for field, value in zip(CRITERION_FIELDS, criteria):
        if value < 0 or value > MAX_CRITERION_SCORE:
            raise MalformedResponse(f"scores.{field} out of range: {value}")
    total = _score_value(scores_payload, "total")
    if total != sum(criteria):
        raise MalformedResponse(
            f"scores.total ({total}) does not match the sum of criteria ({sum(criteria)})"
        )

    feedback: dict[str, str] = {}
    for field in FEEDBACK_FIELDS:
        value = feedback_payload.get(field)
        if not isinstance(value, str):
            raise MalformedResponse(f"Missing feedback.{field} in evaluation response")
        feedback[field] = value

    return Evaluation(
        corretor=corretor,
        scores=Scores.from_criteria(criteria),
        feedback=Feedback(**feedback),
    )


class ModelGateway:
    def __init__(
        self,
        client: GeminiClient,
        *,
        model: str,
        temperature: float = 0.2,
        seed: int = 42,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._seed = seed

    async def close(self) -> None:
        await self._client.close()

    async def invoke(
        self,
        system_instruction: str,
        user_prompt: str,
        attachment: Attachment | None = None,
        structured: bool = False,
    ) -> Evaluation | str:
        if not system_instruction.strip():
            raise ValueError("system_instruction must not be empty")
        if not user_prompt.strip():
            raise ValueError("user_prompt must not be empty")
        payload = build_request_payload(
            system_instruction,
            user_prompt,
            attachment,
            structured=structured,
            temperature=self._temperature,
            seed=self._seed,
        )
        with start_span(
            "gateway.request",
            {
                "model": self._model,
                "structured": structured,
                "attachment": attachment.kind.value if attachment else None,
            },
        ):
            try:
                response = await self._client.generate_content(self._model, payload)
            except LLMError as exc:
                raise BackendError(str(exc), status_code=exc.status_code) from exc
        text = extract_text(response)
        if not structured:
            return text
        with start_span("gateway.parse", {"model": self._model}):
            return parse_evaluation(text)


def build_gateway(settings: Settings | None = None) -> ModelGateway:
    settings = settings or load_settings()
    client = GeminiClient(
        base_url=settings.gemini_api_base,
        api_key=settings.gemini_api_key,
        timeout=settings.llm_timeout_seconds,
        retries=settings.llm_retries,
    )
    return ModelGateway(
        client,
        model=settings.gemini_model,
        temperature=settings.llm_temperature,
        seed=settings.llm_seed,
    )
