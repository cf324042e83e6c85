"""
Configuration Management
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = Path(__file__).parent.parent.parent / "config" / "pickora.conf"

RESULT_TTL_SECONDS = 86400 * 30

_ENV_SECTIONS = {
    "SERVER_": "server",
    "STORAGE_": "storage",
    "APP_": "app",
}

# Names set by the Vercel KV integration
_KV_ENV_KEYS = {
    "KV_REST_API_URL": "kv_url",
    "KV_REST_API_TOKEN": "kv_token",
}

_TRUTHY = {"1", "true", "yes", "on"}


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from files and environment variables"""
    config: Dict[str, Any] = {}

    path = Path(config_file or os.getenv("PICKORA_CONFIG", "") or DEFAULT_CONFIG_FILE)
    if path.exists():
        try:
            with open(path, 'r', encoding='utf-8') as f:
                config.update(json.load(f))
            logger.info("Loaded configuration from %s", path)
        except (OSError, ValueError) as e:
            logger.error("Error loading config file %s: %s", path, e)
    else:
        logger.debug("Config file %s not found. Will only use environment variables.", path)

    return _apply_env_overrides(config)


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration"""
    for key, value in os.environ.items():
        if key in _KV_ENV_KEYS:
            config.setdefault("storage", {})[_KV_ENV_KEYS[key]] = value
            continue

        for prefix, section in _ENV_SECTIONS.items():
            if key.startswith(prefix):
                config.setdefault(section, {})[key[len(prefix):].lower()] = value
                break

    return config


def get_config_value(config: Dict[str, Any], key_path: str, default=None):
    """Get configuration value by dot-separated key path"""
    keys = key_path.split('.')
    value = config

    try:
        for key in keys:
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default


def _as_bool(value: Any, default: bool) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


@dataclass(frozen=True)
class StorageSettings:
    """Storage wiring, resolved once at startup."""

    kv_url: str = ""
    kv_token: str = ""
    kv_timeout: float = 5.0
    memory_fallback: bool = True
    result_ttl_seconds: int = RESULT_TTL_SECONDS

    @property
    def backend_configured(self) -> bool:
        if not (self.kv_url and self.kv_token):
            return False
        parsed = urlparse(self.kv_url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    @staticmethod
    def from_config(config: Dict[str, Any]) -> "StorageSettings":
        storage = config.get("storage", {}) or {}

        try:
            timeout = float(storage.get("kv_timeout", 5.0))
        except (TypeError, ValueError):
            logger.warning("Invalid storage.kv_timeout %r; using 5s", storage.get("kv_timeout"))
            timeout = 5.0

        try:
            ttl = int(storage.get("result_ttl_seconds", RESULT_TTL_SECONDS))
        except (TypeError, ValueError):
            logger.warning("Invalid storage.result_ttl_seconds %r; using 30 days", storage.get("result_ttl_seconds"))
            ttl = RESULT_TTL_SECONDS

        return StorageSettings(
            kv_url=str(storage.get("kv_url", "") or "").strip().rstrip("/"),
            kv_token=str(storage.get("kv_token", "") or "").strip(),
            kv_timeout=timeout,
            memory_fallback=_as_bool(storage.get("memory_fallback"), True),
            result_ttl_seconds=ttl,
        )
