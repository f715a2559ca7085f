"""Engine configuration: defaults, YAML file and environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from toolary.config.defaults import (
    CONFIG_FILENAME,
    DATA_DIR_NAME,
    DEFAULT_INSTALL_SEED,
    GEMINI_BASE_URL,
    GEMINI_LITE_MODEL,
    GEMINI_SMART_MODEL,
    RATE_LIMIT_COOLDOWN_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
    RETRY_BASE_DELAY,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY,
)

logger = logging.getLogger(__name__)


def default_data_dir() -> Path:
    return Path.home() / DATA_DIR_NAME


@dataclass
class EngineConfig:
    """Runtime settings for the AI request engine."""

    base_url: str = GEMINI_BASE_URL
    smart_model: str = GEMINI_SMART_MODEL
    lite_model: str = GEMINI_LITE_MODEL

    cooldown_seconds: float = RATE_LIMIT_COOLDOWN_SECONDS
    max_attempts: int = RETRY_MAX_ATTEMPTS
    backoff_base_delay: float = RETRY_BASE_DELAY
    backoff_max_delay: float = RETRY_MAX_DELAY
    request_timeout: float = REQUEST_TIMEOUT_SECONDS

    data_dir: Path = field(default_factory=default_data_dir)
    install_seed: str = DEFAULT_INSTALL_SEED

    @classmethod
    def from_dict(cls, data: dict) -> "EngineConfig":
        """Create config from dict, ignoring unknown keys."""
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "data_dir" in values:
            values["data_dir"] = Path(values["data_dir"]).expanduser()
        return cls(**values)

    def to_dict(self) -> dict:
        return {
            "base_url": self.base_url,
            "smart_model": self.smart_model,
            "lite_model": self.lite_model,
            "cooldown_seconds": self.cooldown_seconds,
            "max_attempts": self.max_attempts,
            "backoff_base_delay": self.backoff_base_delay,
            "backoff_max_delay": self.backoff_max_delay,
            "request_timeout": self.request_timeout,
            "data_dir": str(self.data_dir),
        }


# env var -> (field, converter)
_ENV_OVERRIDES = {
    "TOOLARY_BASE_URL": ("base_url", str),
    "TOOLARY_SMART_MODEL": ("smart_model", str),
    "TOOLARY_LITE_MODEL": ("lite_model", str),
    "TOOLARY_COOLDOWN_SECONDS": ("cooldown_seconds", float),
    "TOOLARY_MAX_ATTEMPTS": ("max_attempts", int),
    "TOOLARY_BACKOFF_BASE_DELAY": ("backoff_base_delay", float),
    "TOOLARY_BACKOFF_MAX_DELAY": ("backoff_max_delay", float),
    "TOOLARY_REQUEST_TIMEOUT": ("request_timeout", float),
    "TOOLARY_DATA_DIR": ("data_dir", lambda v: Path(v).expanduser()),
    "TOOLARY_INSTALL_SEED": ("install_seed", str),
}


def _apply_env_overrides(config: EngineConfig) -> EngineConfig:
    for env_name, (attr, convert) in _ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            setattr(config, attr, convert(raw.strip()))
        except ValueError:
            logger.warning(f"Ignoring invalid value for {env_name}: {raw!r}")
    return config


def load_config(config_path: Optional[Path] = None) -> EngineConfig:
    """Load engine config.

    Precedence (lowest first):
    1. Built-in defaults
    2. ``ai`` section of ``~/.toolary/config.yaml`` (or ``config_path``)
    3. ``TOOLARY_*`` environment variables (``.env`` is read if present)
    """
    load_dotenv()

    config = EngineConfig()
    path = config_path or default_data_dir() / CONFIG_FILENAME
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read config file {path}: {e}")
            data = {}
        if isinstance(data.get("ai"), dict):
            config = EngineConfig.from_dict(data["ai"])

    return _apply_env_overrides(config)


__all__ = ["EngineConfig", "default_data_dir", "load_config"]
