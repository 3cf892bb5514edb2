import json

import pytest

from kingsdrop.settings import SETTINGS_KEY, JsonFileStore, MemoryStore, PreferenceStore, Preferences


def test_defaults_when_nothing_is_stored():
    store = PreferenceStore(MemoryStore())
    assert store.load() == Preferences()
    assert store.get("auto_click_pay") is False


def test_stored_values_override_defaults():
    backend = MemoryStore({SETTINGS_KEY: json.dumps({"autoClickPay": True, "legacy": 1})})
    assert PreferenceStore(backend).get("auto_click_pay") is True


@pytest.mark.parametrize("raw", ["{not json", json.dumps({"autoClickPay": "perhaps"}), json.dumps([1, 2])])
def test_unreadable_values_fall_back_to_defaults(raw):
    backend = MemoryStore({SETTINGS_KEY: raw})
    assert PreferenceStore(backend).load() == Preferences()


def test_toggle_flips_and_persists_camel_case():
    backend = MemoryStore()
    store = PreferenceStore(backend)

    assert store.toggle("auto_click_pay") is True
    assert json.loads(backend.get(SETTINGS_KEY)) == {"autoClickPay": True}
    assert store.toggle("auto_click_pay") is False
    assert store.get("auto_click_pay") is False


def test_set_returns_the_updated_preferences():
    store = PreferenceStore(MemoryStore())
    assert store.set("auto_click_pay", True).auto_click_pay is True


def test_unknown_preference_names_are_rejected():
    store = PreferenceStore(MemoryStore())
    with pytest.raises(ValueError):
        store.get("autoBuy")
    with pytest.raises(ValueError):
        store.toggle("autoBuy")


def test_custom_key():
    backend = MemoryStore()
    PreferenceStore(backend, key="other").set("auto_click_pay", True)
    assert backend.get(SETTINGS_KEY) is None
    assert backend.get("other") is not None


def test_json_file_store_round_trips_through_disk(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    store = PreferenceStore(JsonFileStore(path))

    store.toggle("auto_click_pay")

    assert json.loads(path.read_text())[SETTINGS_KEY] == '{"autoClickPay":true}'
    assert PreferenceStore(JsonFileStore(path)).get("auto_click_pay") is True
    assert not path.with_suffix(".json.tmp").exists()


def test_json_file_store_ignores_a_corrupt_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{{{")
    store = JsonFileStore(path)

    assert store.get(SETTINGS_KEY) is None
    store.set(SETTINGS_KEY, "{}")
    assert json.loads(path.read_text()) == {SETTINGS_KEY: "{}"}


def test_unknown_stored_keys_survive_a_toggle():
    backend = MemoryStore({SETTINGS_KEY: json.dumps({"autoClickPay": False, "theme": "dark"})})
    store = PreferenceStore(backend)

    assert store.toggle("auto_click_pay") is True

    assert json.loads(backend.get(SETTINGS_KEY)) == {"autoClickPay": True, "theme": "dark"}
