"""
Session wired to a provider built from a settings file on disk.
The Ollama client is stubbed; everything else is real.
"""

import sys
import types

from llm_completion.settings_service import SettingsService
from llm_completion.settings_store import SettingsStore
from prompt_engineering.session import CopyFeedback, LifecyclePhase, PromptEngineerSession


def _service(tmp_path) -> SettingsService:
    service = SettingsService(store=SettingsStore(file_path=str(tmp_path / "prompt_engineer.json")))
    service.set_active_provider("local-ollama")
    return service


def test_request_and_copy_cycle_through_configured_provider(tmp_path, monkeypatch, scheduler, clipboard):
    calls = []

    def stub_generate(**kwargs):
        calls.append(kwargs)
        return {"response": "You are a master storyteller..."}

    monkeypatch.setitem(sys.modules, "ollama", types.SimpleNamespace(generate=stub_generate))

    service = _service(tmp_path)
    session = PromptEngineerSession(
        provider=service.build_active_provider(),
        scheduler=scheduler,
        clipboard=clipboard,
        copy_feedback_ms=service.copy_feedback_ms(),
    )

    session.submit_request("a story about a robot who discovers music")
    scheduler.finish_work()

    assert session.state.result_text == "You are a master storyteller..."
    assert calls[0]["prompt"] == "a story about a robot who discovers music"
    assert "optimized for the Gemini model" in calls[0]["system"]

    session.copy_result()
    assert clipboard.writes == ["You are a master storyteller..."]
    assert session.state.copy_feedback == CopyFeedback.CONFIRMED

    scheduler.fire_timers()
    assert session.state.copy_feedback == CopyFeedback.NONE


def test_unreachable_server_is_reported_and_session_stays_usable(tmp_path, monkeypatch, scheduler, clipboard):
    def refuse(**kwargs):
        raise ConnectionError("refused")

    monkeypatch.setitem(sys.modules, "ollama", types.SimpleNamespace(generate=refuse))

    service = _service(tmp_path)
    session = PromptEngineerSession(
        provider=service.build_active_provider(),
        scheduler=scheduler,
        clipboard=clipboard,
    )

    session.submit_request("hello")
    scheduler.finish_work()

    assert session.state.phase == LifecyclePhase.IDLE
    assert session.state.last_error.startswith("Failed to connect to Ollama server")
    assert session.state.result_text is None

    monkeypatch.setitem(
        sys.modules, "ollama", types.SimpleNamespace(generate=lambda **kwargs: {"response": "ok"})
    )
    session.submit_request("hello")
    scheduler.finish_work()

    assert session.state.result_text == "ok"
    assert session.state.last_error is None
