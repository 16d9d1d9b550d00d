from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class TargetModel(str, Enum):
    """Downstream model an engineered prompt is optimized for.

    The value is the display name substituted into the system instruction.
    """

    PRIMARY = "Gemini"
    SECONDARY = "ChatGPT"

    @property
    def display_name(self) -> str:
        return self.value


class ProviderKind(str, Enum):
    GEMINI = "gemini"
    LOCAL = "local"
    API = "api"


@dataclass
class CompletionProviderDefinition:
    """Persisted configuration for a completion provider."""

    provider_id: str
    kind: ProviderKind
    display_name: str
    config: dict[str, Any] = field(default_factory=dict)


@dataclass
class AppSettings:
    """Root persisted object (active provider + provider list + UI timings)."""

    schema_version: int = 1
    active_provider_id: Optional[str] = None
    copy_feedback_ms: int = 2000
    providers: list[CompletionProviderDefinition] = field(default_factory=list)

    def get_provider(self, provider_id: str) -> CompletionProviderDefinition:
        for provider in self.providers:
            if provider.provider_id == provider_id:
                return provider
        raise KeyError(f"Unknown provider_id: {provider_id}")


@dataclass(frozen=True)
class CompletionRequest:
    content: str
    system_instruction: str
