import pytest

from llm_completion.types import (
    AppSettings,
    CompletionProviderDefinition,
    ProviderKind,
    TargetModel,
)


def test_target_model_display_names():
    assert [t.display_name for t in TargetModel] == ["Gemini", "ChatGPT"]
    assert TargetModel("Gemini") is TargetModel.PRIMARY


def test_app_settings_defaults():
    settings = AppSettings()
    assert settings.schema_version == 1
    assert settings.active_provider_id is None
    assert settings.copy_feedback_ms == 2000
    assert settings.providers == []


def test_get_provider_raises_for_unknown_id():
    with pytest.raises(KeyError):
        AppSettings().get_provider("missing")


def test_get_provider_returns_matching_definition():
    local = CompletionProviderDefinition("p1", ProviderKind.LOCAL, "Local", {"model_name": "a"})
    api = CompletionProviderDefinition("p2", ProviderKind.API, "Api")
    settings = AppSettings(active_provider_id="p2", providers=[local, api])

    assert settings.get_provider("p2") is api
    assert settings.get_provider("p1").config == {"model_name": "a"}
