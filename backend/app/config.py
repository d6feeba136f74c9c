from __future__ import annotations

from dataclasses import dataclass
import os
from urllib.parse import urlparse

DEFAULT_GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


class SettingsError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str
    gemini_api_base: str
    gemini_model: str
    llm_timeout_seconds: float
    llm_retries: int
    llm_temperature: float
    llm_seed: int


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise SettingsError(f"Missing required environment variable: {name}")
    return value


def _optional_env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _require_url(name: str, value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise SettingsError(f"Invalid URL for {name}: {value}")
    return value


def _float_env(name: str, default: float) -> float:
    raw = _optional_env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise SettingsError(f"Invalid number for {name}: {raw}") from exc


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = _optional_env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise SettingsError(f"Invalid integer for {name}: {raw}") from exc
    if value < minimum:
        raise SettingsError(f"{name} must be >= {minimum}: {raw}")
    return value


def load_settings() -> Settings:
    gemini_api_key = _require_env("GEMINI_API_KEY")
    gemini_api_base = _require_url(
        "GEMINI_API_BASE",
        _optional_env("GEMINI_API_BASE") or DEFAULT_GEMINI_API_BASE,
    )
    gemini_model = _optional_env("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL
    llm_timeout_seconds = _float_env("LLM_TIMEOUT_SECONDS", 60.0)
    if llm_timeout_seconds <= 0:
        raise SettingsError("LLM_TIMEOUT_SECONDS must be positive")
    llm_retries = _int_env("LLM_RETRIES", 0)
    llm_temperature = _float_env("LLM_TEMPERATURE", 0.2)
    llm_seed = _int_env("LLM_SEED", 42)

    return Settings(
        gemini_api_key=gemini_api_key,
        gemini_api_base=gemini_api_base,
        gemini_model=gemini_model,
        llm_timeout_seconds=llm_timeout_seconds,
        llm_retries=llm_retries,
        llm_temperature=llm_temperature,
        llm_seed=llm_seed,
    )
