"""Configuration loaded from environment (.env), defaults, and the API-key config file."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from dreamgen.constants import DEFAULT_TIMEOUT, DOWNLOAD_TIMEOUT, LUMA_API_BASE
from dreamgen.errors import ConfigError, MissingAPIKeyError

logger = logging.getLogger(__name__)

# Keys that may be stored in config.json, keyed by their environment variable.
ENV_TO_CONFIG_KEY = {
    "LUMA_API_KEY": "luma_api_key",
}
VALID_KEYS = frozenset(ENV_TO_CONFIG_KEY.values())


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    luma_api_key: str | None = None

    dreamgen_base_url: str = LUMA_API_BASE
    dreamgen_timeout: float = DEFAULT_TIMEOUT
    dreamgen_download_timeout: float = DOWNLOAD_TIMEOUT

    # Directory holding config.json (default ~/.config/dreamgen)
    dreamgen_config_dir: str | None = None

    @property
    def config_dir(self) -> Path:
        if self.dreamgen_config_dir:
            return Path(self.dreamgen_config_dir).expanduser()
        return Path.home() / ".config" / "dreamgen"

    @property
    def config_path(self) -> Path:
        return self.config_dir / "config.json"


def get_settings() -> Settings:
    return Settings()


def normalize_key(key: str) -> str:
    """``LUMA_API_KEY`` or ``luma_api_key`` -> ``luma_api_key``; ConfigError for unknown keys."""
    lower = key.strip().lower()
    if lower not in VALID_KEYS:
        raise ConfigError(
            f"unknown key: {key} (valid: {', '.join(sorted(VALID_KEYS))})", code="invalid_key"
        )
    return lower


def load_config_file(path: Path) -> dict[str, str]:
    """Stored keys, or {} if the file does not exist."""
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")
    return {k: v for k, v in data.items() if isinstance(v, str) and v}


def save_config_file(path: Path, data: dict[str, str]) -> None:
    """Write the config file with owner-only permissions."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({k: v for k, v in data.items() if v}, f, indent=2)
        os.chmod(path, 0o600)
    except OSError as e:
        raise ConfigError(f"cannot write config file {path}: {e}") from e


def set_config_value(settings: Settings, key: str, value: str) -> str:
    config_key = normalize_key(key)
    data = load_config_file(settings.config_path)
    data[config_key] = value
    save_config_file(settings.config_path, data)
    logger.info("Stored %s in %s", config_key, settings.config_path)
    return config_key


def unset_config_value(settings: Settings, key: str) -> str:
    config_key = normalize_key(key)
    data = load_config_file(settings.config_path)
    data.pop(config_key, None)
    save_config_file(settings.config_path, data)
    return config_key


def get_config_value(settings: Settings, key: str) -> str:
    return load_config_file(settings.config_path).get(normalize_key(key), "")


def missing_key_message(env_name: str = "LUMA_API_KEY") -> str:
    config_key = ENV_TO_CONFIG_KEY.get(env_name, env_name.lower())
    return f"{env_name} not found. Set it with: dreamgen config set {config_key} <your-key>"


def get_api_key(settings: Settings | None = None) -> str:
    """API key from the environment (or .env), falling back to the config file."""
    settings = settings or get_settings()
    if settings.luma_api_key:
        return settings.luma_api_key
    key = load_config_file(settings.config_path).get("luma_api_key", "")
    if not key:
        raise MissingAPIKeyError(missing_key_message("LUMA_API_KEY"))
    return key


def mask_secret(value: str) -> str:
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"
