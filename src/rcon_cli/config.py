"""Runtime settings and the per-environment server config file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, RootModel, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rcon_cli.errors import ConfigFileError, UnsupportedConfigExtensionError

DEFAULT_CONFIG_NAME = "rcon.yaml"
DEFAULT_CONFIG_ENV = "default"


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="RCON_CLI_", env_file=".env", extra="ignore")

    config_path: str = Field(
        default=DEFAULT_CONFIG_NAME,
        description="Config file read when --cfg is not given.",
    )
    default_env: str = Field(
        default=DEFAULT_CONFIG_ENV,
        description="Config environment used when --env is not given.",
    )
    log_level: str = "WARNING"
    dial_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 5.0
    telnet_idle_seconds: float = 0.5


class EnvironmentConfig(BaseModel):
    """Connection details stored under one environment name."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    address: str = ""
    password: str = ""
    type: str = ""
    log: str = ""

    @model_validator(mode="before")
    @classmethod
    def empty_block_as_defaults(cls, data: Any) -> Any:
        # `default:` with nothing under it loads as None.
        return {} if data is None else data

    @field_validator("address", "password", "type", "log", mode="before")
    @classmethod
    def empty_value_as_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class ConfigFile(RootModel[dict[str, EnvironmentConfig]]):
    """Mapping of environment name to connection details."""

    root: dict[str, EnvironmentConfig] = Field(default_factory=dict)

    def environment(self, name: str) -> EnvironmentConfig:
        return self.root.get(name) or EnvironmentConfig()


def load_config(path: str | None, *, default_path: str = DEFAULT_CONFIG_NAME) -> ConfigFile:
    """Load the config file at ``path``, or at ``default_path`` when no path is given.

    A missing default file yields an empty config. A missing explicit file, an
    unsupported extension, a parse error or an invalid record raises ``ConfigFileError``.
    """
    if not path:
        target = Path(default_path).expanduser()
        if not target.exists():
            return ConfigFile()
    else:
        target = Path(path).expanduser()

    suffix = target.suffix.lower()
    if suffix not in (".yaml", ".yml", ".json"):
        raise UnsupportedConfigExtensionError(f"unsupported config file extension: {target.name}")

    try:
        text = target.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigFileError(f"unable to read config file {target}: {exc}") from exc

    try:
        raw = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigFileError(f"unable to parse config file {target}: {exc}") from exc

    try:
        return ConfigFile.model_validate(raw or {})
    except ValidationError as exc:
        raise ConfigFileError(f"invalid config file {target}: {exc}") from exc
