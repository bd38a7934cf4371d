from __future__ import annotations

import pytest
from pydantic import ValidationError

from lotusdash.settings import Settings, SettingsStore, load_yaml, resolve_settings_path


def test_packaged_defaults(tmp_path) -> None:
    settings = SettingsStore(str(tmp_path / "missing.yaml")).settings
    assert settings.server.ip == "localhost"
    assert settings.server.port == 5000
    assert settings.instance == "lotusim"
    assert settings.api_base_url == "http://localhost:5000"
    assert settings.telemetry_uri == "ws://localhost:5000"
    assert settings.map.center == (1.2421, 103.7198)
    assert settings.map.zoom == 15
    assert settings.map.max_zoom == 22


def test_missing_file_loads_as_empty(tmp_path) -> None:
    assert load_yaml(str(tmp_path / "nope.yaml")) == {}


def test_saved_values_survive_reload(tmp_path) -> None:
    path = tmp_path / "nested" / "settings.yaml"
    store = SettingsStore(str(path))
    store.save_address("10.0.0.7", 8080)
    store.save_instance("harbour")

    assert store.settings.api_base_url == "http://10.0.0.7:8080"
    assert load_yaml(str(path)) == {"server": {"ip": "10.0.0.7", "port": 8080}, "instance": "harbour"}

    reloaded = SettingsStore(str(path)).settings
    assert reloaded.server.ip == "10.0.0.7"
    assert reloaded.server.port == 8080
    assert reloaded.instance == "harbour"
    assert reloaded.telemetry_port == 5000


def test_telemetry_port_is_independent(tmp_path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("server:\n  ip: sim.local\ntelemetry_port: 5001\n", encoding="utf-8")
    settings = SettingsStore(str(path)).settings
    assert settings.api_base_url == "http://sim.local:5000"
    assert settings.telemetry_uri == "ws://sim.local:5001"


def test_settings_path_from_environment(tmp_path, monkeypatch) -> None:
    target = tmp_path / "env.yaml"
    monkeypatch.setenv("LOTUSDASH_SETTINGS", str(target))
    assert resolve_settings_path() == str(target)
    assert resolve_settings_path(str(tmp_path / "explicit.yaml")) == str(tmp_path / "explicit.yaml")


def test_invalid_port_is_rejected() -> None:
    settings = Settings()
    with pytest.raises(ValidationError):
        settings.server.port = "http"  # type: ignore[assignment]
