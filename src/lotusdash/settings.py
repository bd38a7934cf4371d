from __future__ import annotations

import copy
import logging
import os
from typing import Any, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config", "default.yaml")
DEFAULT_SETTINGS_PATH = os.path.join("~", ".config", "lotusdash", "settings.yaml")


class ServerAddress(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    ip: str = "localhost"
    port: int = 5000


class MapSettings(BaseModel):
    center: Tuple[float, float] = (1.2421, 103.7198)
    zoom: float = 15
    max_zoom: float = 22


class LoggingSettings(BaseModel):
    level: str = "INFO"
    to_file: bool = True
    log_dir: Optional[str] = None


class Settings(BaseModel):
    """Session configuration, resolved once and shared by reference.

    The REST client, spawn dispatcher and telemetry client all hold the same
    instance, so an address or instance change is seen by the next request.
    """

    model_config = ConfigDict(validate_assignment=True)

    server: ServerAddress = Field(default_factory=ServerAddress)
    telemetry_port: int = 5000
    instance: str = "lotusim"
    api_timeout_s: float = 5.0
    map: MapSettings = Field(default_factory=MapSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def api_base_url(self) -> str:
        return f"http://{self.server.ip}:{self.server.port}"

    @property
    def telemetry_uri(self) -> str:
        return f"ws://{self.server.ip}:{self.telemetry_port}"


def load_yaml(path: str) -> dict:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _merge(base: dict, override: dict) -> dict:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out


def resolve_settings_path(path: Optional[str] = None) -> str:
    return os.path.expanduser(path or os.getenv("LOTUSDASH_SETTINGS") or DEFAULT_SETTINGS_PATH)


class SettingsStore:
    """Operator settings persisted as YAML on top of the packaged defaults.

    Only the values the operator saved are written back; defaults stay in
    ``default.yaml``.
    """

    def __init__(self, path: Optional[str] = None, defaults_path: Optional[str] = None) -> None:
        self.path = resolve_settings_path(path)
        self.defaults_path = defaults_path or DEFAULT_CONFIG_PATH
        self.settings = self.load()

    def load(self) -> Settings:
        data = _merge(load_yaml(self.defaults_path), load_yaml(self.path))
        return Settings.model_validate(data)

    def save_address(self, ip: str, port: int) -> None:
        self.settings.server.ip = ip
        self.settings.server.port = int(port)
        self._persist({"server": {"ip": ip, "port": int(port)}})
        log.info("Saved server address %s:%d", ip, int(port))

    def save_instance(self, instance: str) -> None:
        self.settings.instance = instance
        self._persist({"instance": instance})
        log.info("Saved selected instance %r", instance)

    def _persist(self, update: dict[str, Any]) -> None:
        data = _merge(load_yaml(self.path), update)
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "LoggingSettings",
    "MapSettings",
    "ServerAddress",
    "Settings",
    "SettingsStore",
    "load_yaml",
    "resolve_settings_path",
]
