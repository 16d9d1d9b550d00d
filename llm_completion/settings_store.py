from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any, Optional

from llm_completion.providers import DEFAULT_GEMINI_MODEL
from llm_completion.types import (
    AppSettings,
    CompletionProviderDefinition,
    ProviderKind,
)

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = os.path.join("config", "prompt_engineer.json")


def default_settings() -> AppSettings:
    """First-run settings: hosted Gemini active, a local Ollama model available."""
    return AppSettings(
        schema_version=1,
        active_provider_id="gemini",
        copy_feedback_ms=2000,
        providers=[
            CompletionProviderDefinition(
                provider_id="gemini",
                kind=ProviderKind.GEMINI,
                display_name="Google Gemini",
                config={"model_name": DEFAULT_GEMINI_MODEL},
            ),
            CompletionProviderDefinition(
                provider_id="local-ollama",
                kind=ProviderKind.LOCAL,
                display_name="Ollama (local)",
                config={"model_name": "llama3.1:8b"},
            ),
        ],
    )


def settings_to_dict(settings: AppSettings) -> dict[str, Any]:
    return {
        "schema_version": settings.schema_version,
        "active_provider_id": settings.active_provider_id,
        "copy_feedback_ms": settings.copy_feedback_ms,
        "providers": [
            {
                "provider_id": provider.provider_id,
                "kind": ProviderKind(provider.kind).value,
                "display_name": provider.display_name,
                "config": dict(provider.config),
            }
            for provider in settings.providers
        ],
    }


def settings_from_dict(data: Any) -> AppSettings:
    """Parse a decoded settings document; missing fields take their defaults.

    Raises ValueError when the document is not a JSON object or names an
    unknown provider kind.
    """
    if not isinstance(data, dict):
        raise ValueError("Settings file must contain a JSON object")

    providers = []
    for entry in data.get("providers", []):
        provider_id = entry["provider_id"]
        providers.append(
            CompletionProviderDefinition(
                provider_id=provider_id,
                kind=ProviderKind(entry["kind"]),
                display_name=entry.get("display_name", provider_id),
                config=dict(entry.get("config", {})),
            )
        )

    return AppSettings(
        schema_version=int(data.get("schema_version", 1)),
        active_provider_id=data.get("active_provider_id"),
        copy_feedback_ms=int(data.get("copy_feedback_ms", 2000)),
        providers=providers,
    )


def _write_json_atomically(path: str, payload: dict[str, Any]) -> None:
    # Readers see either the old file or the new one, never a partial write.
    directory = os.path.dirname(path) or "."
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            json.dump(payload, tmp, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise


class SettingsStore:
    """JSON file holding the provider list, the active provider and UI timings."""

    def __init__(self, file_path: str = DEFAULT_SETTINGS_PATH):
        self.file_path = file_path

    def exists(self) -> bool:
        return os.path.exists(self.file_path)

    def load(self) -> AppSettings:
        with open(self.file_path, "r", encoding="utf-8") as f:
            return settings_from_dict(json.load(f))

    def save(self, settings: AppSettings) -> None:
        _write_json_atomically(self.file_path, settings_to_dict(settings))

    def ensure_exists(self, seed: Optional[AppSettings] = None) -> AppSettings:
        """Load the settings file, writing `seed` (or the defaults) on first run."""
        if self.exists():
            return self.load()

        settings = seed or default_settings()
        logger.info("No settings at %s; writing defaults", self.file_path)
        self.save(settings)
        return settings
