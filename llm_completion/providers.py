from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")


class CompletionError(RuntimeError):
    """The completion service answered, but not with usable text."""


class CompletionProvider(ABC):
    """Bridge implementor: concrete providers implement only text generation."""

    @abstractmethod
    def generate(self, content: str, system_instruction: str) -> str:
        raise NotImplementedError


@dataclass
class MockCompletionProvider(CompletionProvider):
    """Deterministic provider for tests.

    You can provide either a fixed response or a response factory based on
    (content, system_instruction).
    """

    fixed_response: Optional[str] = None
    response_factory: Optional[Callable[[str, str], str]] = None

    def generate(self, content: str, system_instruction: str) -> str:
        if self.response_factory is not None:
            return self.response_factory(content, system_instruction)
        if self.fixed_response is not None:
            return self.fixed_response
        raise ValueError("MockCompletionProvider requires fixed_response or response_factory")


class GeminiCompletionProvider(CompletionProvider):
    """Google Gemini through the `google-genai` SDK.

    The API key is never persisted: it comes from the constructor or from the
    first environment variable in `api_key_env_vars` that is set.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_GEMINI_MODEL,
        api_key: Optional[str] = None,
        api_key_env_vars: Sequence[str] = DEFAULT_API_KEY_ENV_VARS,
        options: Optional[dict[str, Any]] = None,
    ):
        self.model_name = model_name
        self.api_key = api_key
        self.api_key_env_vars = tuple(api_key_env_vars)
        self.options = options

    def resolve_api_key(self) -> str:
        if self.api_key:
            return self.api_key
        for name in self.api_key_env_vars:
            value = (os.environ.get(name) or "").strip()
            if value:
                return value
        raise RuntimeError(
            "No Gemini API key found. Set one of: " + ", ".join(self.api_key_env_vars) + "."
        )

    def generate(self, content: str, system_instruction: str) -> str:
        try:
            from google import genai  # lazy import
        except Exception as e:
            raise RuntimeError(
                "google-genai is not available; cannot use GeminiCompletionProvider"
            ) from e

        client = genai.Client(api_key=self.resolve_api_key())

        config: dict[str, Any] = dict(self.options or {})
        config["system_instruction"] = system_instruction

        response = client.models.generate_content(
            model=self.model_name,
            contents=content,
            config=config,
        )
        text = getattr(response, "text", None)
        if not text:
            raise CompletionError("The model returned an empty response.")
        return text


class LocalCompletionProvider(CompletionProvider):
    """Ollama-served local model."""

    def __init__(
        self,
        model_name: str,
        host: Optional[str] = None,
        options: Optional[dict[str, Any]] = None,
    ):
        self.model_name = model_name
        self.host = host
        self.options = options

    def generate(self, content: str, system_instruction: str) -> str:
        try:
            import ollama  # lazy import
        except Exception as e:
            raise RuntimeError(
                "ollama is not available; cannot use LocalCompletionProvider"
            ) from e

        kwargs: dict[str, Any] = {
            "model": self.model_name,
            "prompt": content,
            "system": system_instruction,
            "options": self.options,
        }
        try:
            if self.host:
                response = ollama.Client(host=self.host).generate(**kwargs)
            else:
                response = ollama.generate(**kwargs)
        except ConnectionError as e:
            host_hint = f" ({self.host})" if self.host else ""
            raise RuntimeError(
                "Failed to connect to Ollama server" + host_hint + ". "
                "Ensure Ollama is installed and running (default: http://localhost:11434)."
            ) from e

        text = response.get("response", "")
        if not text:
            raise CompletionError("The model returned an empty response.")
        return text


class ApiCompletionProvider(CompletionProvider):
    """Generic HTTP endpoint: POST {base_url}/generate {prompt, system}.

    A JSON body with a "response" field is unwrapped; anything else is taken as
    plain text. An empty result raises CompletionError.
    """

    def __init__(self, base_url: str, timeout_s: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def generate(self, content: str, system_instruction: str) -> str:
        try:
            import httpx  # lazy import
        except Exception as e:
            raise RuntimeError(
                "httpx is not available; cannot use ApiCompletionProvider"
            ) from e

        url = f"{self.base_url}/generate"
        with httpx.Client(timeout=self.timeout_s) as client:
            resp = client.post(url, json={"prompt": content, "system": system_instruction})
            resp.raise_for_status()
            data = resp.json() if "application/json" in resp.headers.get("content-type", "") else None
            if isinstance(data, dict) and "response" in data:
                text = "" if data["response"] is None else str(data["response"])
            else:
                text = resp.text

        if not text.strip():
            raise CompletionError("The model returned an empty response.")
        return text
