from __future__ import annotations

import json
import os

import pytest

from pickora.utils.config import RESULT_TTL_SECONDS, StorageSettings, get_config_value, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("KV_REST_API_URL", "KV_REST_API_TOKEN", "PICKORA_CONFIG"):
        monkeypatch.delenv(key, raising=False)
    for key in list(os.environ):
        if key.startswith(("SERVER_", "STORAGE_", "APP_")):
            monkeypatch.delenv(key, raising=False)


def test_file_then_env_overrides(tmp_path, monkeypatch):
    conf = tmp_path / "pickora.conf"
    conf.write_text(json.dumps({"server": {"port": 9000, "host": "127.0.0.1"}}))
    monkeypatch.setenv("SERVER_PORT", "9100")
    monkeypatch.setenv("APP_SITE_URL", "https://raffle.test/")

    config = load_config(str(conf))
    assert get_config_value(config, "server.port") == "9100"
    assert get_config_value(config, "server.host") == "127.0.0.1"
    assert get_config_value(config, "app.site_url") == "https://raffle.test/"
    assert get_config_value(config, "app.missing", "dflt") == "dflt"


def test_kv_env_names(tmp_path, monkeypatch):
    monkeypatch.setenv("KV_REST_API_URL", "https://eu1-kv.upstash.io/")
    monkeypatch.setenv("KV_REST_API_TOKEN", "tok")
    settings = StorageSettings.from_config(load_config(str(tmp_path / "absent.conf")))
    assert settings.kv_url == "https://eu1-kv.upstash.io"
    assert settings.kv_token == "tok"
    assert settings.backend_configured


def test_broken_config_file_is_ignored(tmp_path):
    conf = tmp_path / "pickora.conf"
    conf.write_text("{broken")
    assert load_config(str(conf)) == {}


@pytest.mark.parametrize(
    "storage,configured",
    [
        ({}, False),
        ({"kv_url": "https://kv.test"}, False),
        ({"kv_token": "t"}, False),
        ({"kv_url": "not a url", "kv_token": "t"}, False),
        ({"kv_url": "ftp://kv.test", "kv_token": "t"}, False),
        ({"kv_url": "https://kv.test", "kv_token": "t"}, True),
    ],
)
def test_backend_configured(storage, configured):
    assert StorageSettings.from_config({"storage": storage}).backend_configured is configured


def test_defaults():
    settings = StorageSettings.from_config({})
    assert settings.memory_fallback is True
    assert settings.result_ttl_seconds == RESULT_TTL_SECONDS
    assert settings.kv_timeout == 5.0


@pytest.mark.parametrize("raw,expected", [("false", False), ("0", False), ("true", True), (False, False)])
def test_memory_fallback_flag(raw, expected):
    assert StorageSettings.from_config({"storage": {"memory_fallback": raw}}).memory_fallback is expected


def test_bad_numbers_fall_back_to_defaults():
    settings = StorageSettings.from_config({"storage": {"kv_timeout": "soon", "result_ttl_seconds": "long"}})
    assert settings.kv_timeout == 5.0
    assert settings.result_ttl_seconds == RESULT_TTL_SECONDS
