"""Settings, fixed constants, and YAML config loading."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from questctl.core.errors import ConfigError

LOGGER = logging.getLogger(__name__)

DEFAULT_APP_ID = "com.beatgames.beatsaber"
DEFAULT_LIBS_DIRECTORY = "/sdcard/Android/data/com.beatgames.beatsaber/files/libs"
DEFAULT_MODS_DIRECTORY = "/sdcard/Android/data/com.beatgames.beatsaber/files/mods"
UNITY_PLAYER_ACTIVITY = "com.unity3d.player.UnityPlayerActivity"
LOG_FILE_NAME = "adb.log"
DUMP_FILE_NAME = "dump.zip"

# Launching twice with a pause skips the headset's "restore app" prompt.
RESTART_RELAUNCH_DELAY_S = 1.0


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


def default_config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "questctl" / "config.yaml"


def default_data_dir() -> Path:
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_data / "questctl"


@dataclass(frozen=True)
class ModDirectories:
    libs: str = DEFAULT_LIBS_DIRECTORY
    mods: str = DEFAULT_MODS_DIRECTORY

    @property
    def paths(self) -> tuple[str, str]:
        return (self.libs, self.mods)


@dataclass(frozen=True)
class Settings:
    app_id: str = DEFAULT_APP_ID
    adb_path: str = "adb"
    device_serial: str | None = None
    data_dir: Path = field(default_factory=default_data_dir)
    logs_dir: Path | None = None
    mod_directories: ModDirectories = field(default_factory=ModDirectories)

    @property
    def log_directory(self) -> Path:
        return self.logs_dir if self.logs_dir is not None else self.data_dir / "logs"

    @property
    def log_file(self) -> Path:
        return self.log_directory / LOG_FILE_NAME

    def as_dict(self) -> dict[str, Any]:
        return {
            "app_id": self.app_id,
            "adb_path": self.adb_path,
            "device_serial": self.device_serial,
            "data_dir": str(self.data_dir),
            "logs_dir": str(self.log_directory),
            "mod_directories": {
                "libs": self.mod_directories.libs,
                "mods": self.mod_directories.mods,
            },
        }


def _load_schema_validator() -> Any:
    schema_text = resources.files("questctl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at root")
    return loaded


def _build_settings(doc: dict[str, Any], source: Path) -> Settings:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ConfigError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    data_dir = Path(doc["data_dir"]).expanduser() if "data_dir" in doc else default_data_dir()
    logs_dir = Path(doc["logs_dir"]).expanduser() if "logs_dir" in doc else None
    dirs = doc.get("mod_directories", {})
    return Settings(
        app_id=doc.get("app_id", DEFAULT_APP_ID),
        adb_path=doc.get("adb_path", "adb"),
        device_serial=doc.get("device_serial"),
        data_dir=data_dir,
        logs_dir=logs_dir,
        mod_directories=ModDirectories(
            libs=dirs.get("libs", DEFAULT_LIBS_DIRECTORY),
            mods=dirs.get("mods", DEFAULT_MODS_DIRECTORY),
        ),
    )


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from ``path`` or the default XDG config location.

    A missing default config file means all defaults. A missing file that was
    asked for explicitly is an error.
    """
    source = path if path is not None else default_config_path()
    if not source.exists():
        if path is not None:
            raise ConfigError(f"Config file {source} does not exist")
        LOGGER.debug("No config file at %s, using defaults", source)
        return Settings()

    settings = _build_settings(_read_yaml(source), source)
    LOGGER.debug("Loaded settings from %s", source)
    return settings
