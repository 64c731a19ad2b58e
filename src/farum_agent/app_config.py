from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from farum_agent.models import InteractionMode


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str


@dataclass
class AppConfig:
    provider_name: str
    model: str
    max_tokens: int
    temperature: float
    generation_timeout_seconds: float | None
    storage_backend: str
    sqlite_db_path: str
    history_window: int
    journal_enabled: bool
    default_mode: InteractionMode
    user_id: str
    log_level: str
    log_consumers: list | None


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def _to_timeout(value: object) -> float | None:
    if value is None or value == "":
        return None
    seconds = float(value)
    return seconds if seconds > 0 else None


def parse_app_config(config: dict) -> AppConfig:
    return AppConfig(
        provider_name=str(config.get("Provider", "mock")).strip().lower(),
        model=str(config.get("Model", "")),
        max_tokens=int(config.get("MaxTokens", 512)),
        temperature=float(config.get("Temperature", 0.6)),
        generation_timeout_seconds=_to_timeout(config.get("GenerationTimeoutSeconds")),
        storage_backend=str(config.get("StorageBackend", "memory")).strip().lower(),
        sqlite_db_path=str(config.get("SqliteDbPath", ".farum/farum.db")),
        history_window=int(config.get("HistoryWindow", 20)),
        journal_enabled=_to_bool(config.get("JournalEnabled", True), default=True),
        default_mode=InteractionMode.parse(config.get("DefaultMode")),
        user_id=str(config.get("UserId", "local-user")).strip() or "local-user",
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    if provider_name == "openai":
        provider_env_var = "OPENAI_API_KEY"
    elif provider_name == "anthropic":
        provider_env_var = "ANTHROPIC_API_KEY"
    else:
        return RuntimeEnv(provider_api_key="", provider_env_var="")

    return RuntimeEnv(
        provider_api_key=os.environ.get(provider_env_var, ""),
        provider_env_var=provider_env_var,
    )
