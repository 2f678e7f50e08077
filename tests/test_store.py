"""Tests for the persistent config store."""

import json
import os

import pytest

from utils.errors import ConfigError
from utils.store import StoredConfig, Workspace


def _ws(key: str, name: str) -> Workspace:
    return Workspace(api_key=f"lin_api_{key}", team_id=f"id-{key}", team_name=name, team_key=key)


@pytest.mark.unit
class TestPersistence:
    def test_missing_file_gives_defaults(self, store):
        assert store.read() == StoredConfig()
        assert store.get_active_workspace() is None

    def test_corrupt_file_gives_defaults(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json", encoding="utf-8")
        assert store.read() == StoredConfig()

    def test_write_is_private_json(self, store, workspace):
        store.add_workspace(workspace)

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data["workspaces"][0]["team_key"] == "COR"
        assert os.stat(store.path).st_mode & 0o777 == 0o600


@pytest.mark.unit
class TestWorkspaces:
    def test_added_workspace_becomes_active(self, store):
        store.add_workspace(_ws("AAA", "Alpha"))
        store.add_workspace(_ws("BBB", "Beta"))

        assert store.get_active_workspace().team_key == "BBB"
        assert store.get_active_index() == 1

    def test_set_active_out_of_range(self, store):
        store.add_workspace(_ws("AAA", "Alpha"))
        with pytest.raises(ConfigError):
            store.set_active_workspace(3)

    def test_cannot_remove_last_workspace(self, store):
        store.add_workspace(_ws("AAA", "Alpha"))
        with pytest.raises(ConfigError, match="last workspace"):
            store.remove_workspace(0)

    def test_removing_active_last_entry_moves_active_back(self, store):
        store.add_workspace(_ws("AAA", "Alpha"))
        store.add_workspace(_ws("BBB", "Beta"))

        store.remove_workspace(1)

        assert store.get_active_workspace().team_key == "AAA"

    def test_removing_earlier_entry_keeps_active_workspace(self, store):
        for key, name in [("AAA", "Alpha"), ("BBB", "Beta"), ("CCC", "Gamma")]:
            store.add_workspace(_ws(key, name))

        store.remove_workspace(0)

        assert store.get_active_workspace().team_key == "CCC"

    @pytest.mark.parametrize("value, expected", [("2", 1), ("beta", 1), ("aaa", 0), ("ALPHA", 0)])
    def test_find_workspace(self, store, value, expected):
        store.add_workspace(_ws("AAA", "Alpha"))
        store.add_workspace(_ws("BBB", "Beta"))
        assert store.find_workspace(value) == expected

    def test_find_unknown_workspace(self, store):
        store.add_workspace(_ws("AAA", "Alpha"))
        with pytest.raises(ConfigError, match="not found"):
            store.find_workspace("9")


@pytest.mark.unit
class TestDottedKeys:
    @pytest.mark.parametrize("raw, expected", [("true", "true"), ("YES", "true"), ("1", "true"), ("off", "false")])
    def test_ai_enabled(self, store, raw, expected):
        store.set("ai.enabled", raw)
        assert store.get("ai.enabled") == expected

    def test_models_default_to_settings(self, store):
        from config import get_settings

        assert store.get("ai.context-model") == get_settings().default_context_model
        store.set("ai.context-model", "gemini-2.0-flash")
        assert store.get("ai.context-model") == "gemini-2.0-flash"
        assert store.get("ai.description-model") == get_settings().default_description_model

    def test_workspace_active(self, store):
        assert store.get("workspace.active") == "none"
        store.add_workspace(_ws("AAA", "Alpha"))
        store.add_workspace(_ws("BBB", "Beta"))

        assert store.set("workspace.active", "AAA") == "Alpha (AAA)"
        assert store.get("workspace.active") == "1"

    def test_unknown_key(self, store):
        with pytest.raises(ConfigError, match="Available keys"):
            store.set("ai.temperature", "1")
        with pytest.raises(ConfigError):
            store.get("nope")


@pytest.mark.unit
def test_model_api_keys(store, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    assert store.get_model_api_key("gemini") is None
    assert not store.has_model_api_key()

    store.set_model_api_key("gemini", "AIza-stored")

    assert store.get_model_api_key("gemini") == "AIza-stored"
    assert store.has_model_api_key()
    with pytest.raises(ConfigError):
        store.set_model_api_key("cohere", "x")


@pytest.mark.unit
class TestLocking:
    @pytest.mark.parametrize(
        "operation",
        [
            lambda s: s.update(ai_enabled=True),
            lambda s: s.add_workspace(_ws("AAA", "Alpha")),
            lambda s: s.set_model_api_key("openai", "sk-test"),
        ],
    )
    def test_read_happens_under_lock(self, store, operation):
        held = []
        original_read = store.read

        def _read():
            held.append(store.lock.is_locked)
            return original_read()

        store.read = _read
        operation(store)

        assert held == [True]
        assert not store.lock.is_locked

    def test_lock_released_after_failed_update(self, store):
        with pytest.raises(ConfigError):
            store.set_model_api_key("cohere", "x")
        assert not store.lock.is_locked

    def test_interleaved_stores_keep_both_updates(self, store, workspace):
        other = type(store)(store.path)

        store.add_workspace(workspace)
        other.update(ai_enabled=True)

        assert store.read().ai_enabled is True
        assert store.get_active_workspace() == workspace


@pytest.mark.unit
def test_default_models_follow_provider(store):
    from config import get_settings

    assert store.get_context_model("openai") == get_settings().openai_default_model
    assert store.get_description_model("gemini") == get_settings().default_description_model
    store.set("ai.description-model", "custom-model")
    assert store.get_description_model("openai") == "custom-model"
