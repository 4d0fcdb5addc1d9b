"""Plugin configuration (LLM connection, context size, tracked properties, version pin).

Stored values in <data_dir>/config.json are merged over the defaults, then
environment variables (loaded from .env by the host) override the LLM
connection and the version pin.
"""

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from tale_companion.llm import ProviderFormat

# Property name -> what the summarizer should list for it
TRACKED_PROPERTIES: dict[str, str] = {
    "Inventory": "any items currently in the player's inventory",
    "Skills": "skills that the player has",
    "Location": "player's current location",
    "Actors": "names of people player is interacting with",
}

_CONFIG_DEFAULTS: dict[str, Any] = {
    "llm_connection": {
        "provider_url": "http://localhost:5001",
        "api_key": "",
        "provider_format": "koboldcpp",
        "model": "",
        "timeout": 120.0,
    },
    "context_messages": 4,
    "tracked_properties": TRACKED_PROPERTIES,
    "version": "latest",
    "module_timeout": 10.0,
    "changelog_window": 10,
    "locale": "en",
}

# env var -> (section or None, key)
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "TALE_LLM_URL": ("llm_connection", "provider_url"),
    "TALE_LLM_API_KEY": ("llm_connection", "api_key"),
    "TALE_LLM_FORMAT": ("llm_connection", "provider_format"),
    "TALE_LLM_MODEL": ("llm_connection", "model"),
    "TALE_VERSION": (None, "version"),
}


class LLMConnection(BaseModel):
    provider_url: str
    api_key: str = ""
    provider_format: ProviderFormat = "koboldcpp"
    model: str = ""
    timeout: float = 120.0


class Settings(BaseModel):
    """Validated plugin settings."""

    llm_connection: LLMConnection = Field(
        default_factory=lambda: LLMConnection(**_CONFIG_DEFAULTS["llm_connection"])
    )
    context_messages: int = Field(default=4, ge=1)
    tracked_properties: dict[str, str] = Field(
        default_factory=lambda: dict(TRACKED_PROPERTIES)
    )
    version: str = "latest"
    module_timeout: float = Field(default=10.0, gt=0)
    changelog_window: int = Field(default=10, ge=0)
    locale: str = "en"


def _config_path(data_dir: Path) -> Path:
    return data_dir / "config.json"


def get_config(data_dir: Path) -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    path = _config_path(data_dir)
    if path.is_file():
        stored = json.loads(path.read_text())
        if isinstance(stored.get("llm_connection"), dict):
            config["llm_connection"].update(stored["llm_connection"])
        if "tracked_properties" in stored:
            # replaced wholesale: the summary keys must match the prompt exactly
            config["tracked_properties"] = stored["tracked_properties"]
        for key in ("context_messages", "version", "module_timeout",
                    "changelog_window", "locale"):
            if key in stored:
                config[key] = stored[key]
    return config


def update_config(data_dir: Path, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config."""
    config = get_config(data_dir)
    if isinstance(fields.get("llm_connection"), dict):
        config["llm_connection"].update(fields["llm_connection"])
    if "tracked_properties" in fields:
        config["tracked_properties"] = fields["tracked_properties"]
    for key in ("context_messages", "version", "module_timeout",
                "changelog_window", "locale"):
        if key in fields:
            config[key] = fields[key]
    Settings.model_validate(config)
    data_dir.mkdir(parents=True, exist_ok=True)
    _config_path(data_dir).write_text(json.dumps(config, indent=2))
    return config


def load_settings(data_dir: Path, environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from config.json and environment overrides."""
    environ = os.environ if environ is None else environ
    config = get_config(data_dir)
    for var, (section, key) in _ENV_OVERRIDES.items():
        value = environ.get(var)
        if not value:
            continue
        if section is None:
            config[key] = value
        else:
            config[section][key] = value
    return Settings.model_validate(config)
