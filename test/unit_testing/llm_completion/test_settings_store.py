import json

import pytest

from llm_completion.settings_store import SettingsStore, default_settings
from llm_completion.types import AppSettings, CompletionProviderDefinition, ProviderKind


def test_settings_store_save_and_load_roundtrip(tmp_path):
    path = tmp_path / "prompt_engineer.json"
    store = SettingsStore(file_path=str(path))

    settings = AppSettings(
        schema_version=1,
        active_provider_id="p1",
        copy_feedback_ms=1500,
        providers=[
            CompletionProviderDefinition(
                provider_id="p1",
                kind=ProviderKind.GEMINI,
                display_name="Gemini",
                config={"model_name": "gemini-2.5-flash"},
            )
        ],
    )

    assert store.exists() is False
    store.save(settings)
    assert store.exists() is True

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["providers"][0]["kind"] == "gemini"

    loaded = store.load()
    assert loaded == settings


def test_settings_store_load_applies_defaults(tmp_path):
    path = tmp_path / "prompt_engineer.json"
    path.write_text(
        json.dumps({"providers": [{"provider_id": "p1", "kind": "local"}]}),
        encoding="utf-8",
    )

    loaded = SettingsStore(file_path=str(path)).load()

    assert loaded.schema_version == 1
    assert loaded.active_provider_id is None
    assert loaded.copy_feedback_ms == 2000
    assert loaded.providers[0].display_name == "p1"
    assert loaded.providers[0].config == {}


def test_settings_store_ensure_exists_seeds_defaults(tmp_path):
    path = tmp_path / "sub" / "prompt_engineer.json"
    store = SettingsStore(file_path=str(path))

    created = store.ensure_exists()

    assert path.exists()
    assert created == default_settings()
    assert created.active_provider_id == "gemini"
    assert created.get_provider("gemini").config["model_name"] == "gemini-2.5-flash"


def test_settings_store_ensure_exists_loads_existing_file(tmp_path):
    path = tmp_path / "prompt_engineer.json"
    store = SettingsStore(file_path=str(path))
    store.save(AppSettings(active_provider_id="x"))

    assert store.ensure_exists().active_provider_id == "x"


def test_settings_store_save_leaves_no_temp_files(tmp_path):
    store = SettingsStore(file_path=str(tmp_path / "prompt_engineer.json"))
    store.save(default_settings())
    store.save(default_settings())

    assert [p.name for p in tmp_path.iterdir()] == ["prompt_engineer.json"]


def test_settings_store_failed_write_keeps_previous_file(tmp_path, mocker):
    path = tmp_path / "prompt_engineer.json"
    store = SettingsStore(file_path=str(path))
    store.save(AppSettings(active_provider_id="before"))

    mocker.patch("llm_completion.settings_store.os.replace", side_effect=OSError("disk full"))
    with pytest.raises(OSError, match="disk full"):
        store.save(AppSettings(active_provider_id="after"))

    assert [p.name for p in tmp_path.iterdir()] == ["prompt_engineer.json"]
    assert store.load().active_provider_id == "before"


@pytest.mark.parametrize("content", ["[]", '"gemini"', "null"])
def test_settings_store_rejects_non_object_document(tmp_path, content):
    path = tmp_path / "prompt_engineer.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError, match="JSON object"):
        SettingsStore(file_path=str(path)).load()


def test_settings_store_rejects_unknown_provider_kind(tmp_path):
    path = tmp_path / "prompt_engineer.json"
    path.write_text(
        json.dumps({"providers": [{"provider_id": "p1", "kind": "carrier-pigeon"}]}),
        encoding="utf-8",
    )

    with pytest.raises(ValueError):
        SettingsStore(file_path=str(path)).load()
