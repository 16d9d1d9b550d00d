from __future__ import annotations

from typing import Optional

from llm_completion.providers import (
    DEFAULT_API_KEY_ENV_VARS,
    DEFAULT_GEMINI_MODEL,
    ApiCompletionProvider,
    CompletionProvider,
    GeminiCompletionProvider,
    LocalCompletionProvider,
)
from llm_completion.settings_store import SettingsStore
from llm_completion.types import (
    AppSettings,
    CompletionProviderDefinition,
    ProviderKind,
)


class SettingsValidationError(ValueError):
    pass


class SettingsService:
    """High-level API over the persisted settings.

    - Provider selection: which configured provider answers completion requests.
    - Provider construction: turns a persisted definition into a live
      CompletionProvider (config aliases and fallbacks are resolved here).

    Settings are persisted via SettingsStore.
    """

    def __init__(self, store: Optional[SettingsStore] = None):
        self.store = store or SettingsStore()

    def load(self) -> AppSettings:
        return self.store.ensure_exists()

    def save(self, settings: AppSettings) -> None:
        self.store.save(settings)

    # -------- Providers --------

    def list_providers(self) -> list[CompletionProviderDefinition]:
        return list(self.load().providers)

    def get_provider(self, provider_id: str) -> CompletionProviderDefinition:
        try:
            return self.load().get_provider(provider_id)
        except KeyError as e:
            raise SettingsValidationError(f"Unknown provider_id: '{provider_id}'") from e

    def get_active_provider(self) -> CompletionProviderDefinition:
        settings = self.load()
        if not settings.providers:
            raise SettingsValidationError("No completion provider configured")
        if not settings.active_provider_id:
            return settings.providers[0]
        try:
            return settings.get_provider(settings.active_provider_id)
        except KeyError as e:
            raise SettingsValidationError(
                f"Active provider '{settings.active_provider_id}' is not configured"
            ) from e

    def set_active_provider(self, provider_id: str) -> None:
        settings = self.load()
        if not any(p.provider_id == provider_id for p in settings.providers):
            raise SettingsValidationError(f"Unknown provider_id: '{provider_id}'")
        settings.active_provider_id = provider_id
        self.save(settings)

    def copy_feedback_ms(self) -> int:
        value = self.load().copy_feedback_ms
        if value <= 0:
            raise SettingsValidationError("copy_feedback_ms must be greater than 0")
        return value

    def build_active_provider(self) -> CompletionProvider:
        return self.build_provider(self.get_active_provider())

    @staticmethod
    def build_provider(definition: CompletionProviderDefinition) -> CompletionProvider:
        config = definition.config
        options_val = config.get("options")
        options = dict(options_val) if isinstance(options_val, dict) else None

        if definition.kind == ProviderKind.GEMINI:
            env_vars = config.get("api_key_env")
            if isinstance(env_vars, str):
                env_vars = [env_vars]
            return GeminiCompletionProvider(
                model_name=str(config.get("model_name") or DEFAULT_GEMINI_MODEL),
                api_key_env_vars=tuple(env_vars or DEFAULT_API_KEY_ENV_VARS),
                options=options,
            )

        if definition.kind == ProviderKind.LOCAL:
            model_name = str(config.get("model_name") or "").strip()
            if not model_name:
                raise SettingsValidationError(
                    f"Local provider '{definition.provider_id}' has no model_name"
                )
            host = config.get("host") or config.get("base_url")
            return LocalCompletionProvider(
                model_name=model_name,
                host=str(host) if host else None,
                options=options,
            )

        if definition.kind == ProviderKind.API:
            base_url = str(config.get("base_url") or "").strip()
            if not base_url:
                raise SettingsValidationError(
                    f"API provider '{definition.provider_id}' has no base_url"
                )
            return ApiCompletionProvider(
                base_url=base_url,
                timeout_s=float(config.get("timeout_s", 60.0)),
            )

        raise SettingsValidationError(f"Unknown provider kind: {definition.kind}")
