"""Completion-service side of the prompt engineer.

Kept separate from `prompt_engineering` to keep boundaries clear:
- `llm_completion`: target models, instruction template, providers, settings.
- `prompt_engineering`: session state machine and UI.
"""

from .types import (
    AppSettings,
    CompletionProviderDefinition,
    CompletionRequest,
    ProviderKind,
    TargetModel,
)
from .instruction import build_completion_request, build_system_instruction
from .providers import (
    ApiCompletionProvider,
    CompletionError,
    CompletionProvider,
    GeminiCompletionProvider,
    LocalCompletionProvider,
    MockCompletionProvider,
)
from .settings_store import SettingsStore
from .settings_service import SettingsService, SettingsValidationError

__all__ = [
    "AppSettings",
    "CompletionProviderDefinition",
    "CompletionRequest",
    "ProviderKind",
    "TargetModel",
    "build_completion_request",
    "build_system_instruction",
    "ApiCompletionProvider",
    "CompletionError",
    "CompletionProvider",
    "GeminiCompletionProvider",
    "LocalCompletionProvider",
    "MockCompletionProvider",
    "SettingsStore",
    "SettingsService",
    "SettingsValidationError",
]
