from __future__ import annotations

import pytest

import langflow_proxy.config as config
from langflow_proxy.config import DEFAULT_TIMEOUT_SECONDS, langflow_config_from_env

pytestmark = pytest.mark.unit

_VARS = [
    "LANGFLOW_BASE_URL",
    "NEXT_PUBLIC_BASE_URL",
    "LANGFLOW_APPLICATION_TOKEN",
    "LANGFLOW_TIMEOUT_SECONDS",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_reads_url_token_and_timeout(monkeypatch) -> None:
    monkeypatch.setenv("LANGFLOW_BASE_URL", "https://langflow.example/")
    monkeypatch.setenv("LANGFLOW_APPLICATION_TOKEN", "secret")
    monkeypatch.setenv("LANGFLOW_TIMEOUT_SECONDS", "12.5")

    cfg = langflow_config_from_env()

    assert cfg.base_url == "https://langflow.example"
    assert cfg.application_token == "secret"
    assert cfg.timeout_seconds == 12.5


def test_falls_back_to_next_public_base_url(monkeypatch) -> None:
    monkeypatch.setenv("NEXT_PUBLIC_BASE_URL", "https://legacy.example")

    assert langflow_config_from_env().base_url == "https://legacy.example"


def test_missing_values_are_not_validated() -> None:
    cfg = langflow_config_from_env()

    assert cfg.base_url == ""
    assert cfg.application_token == ""
    assert cfg.timeout_seconds == DEFAULT_TIMEOUT_SECONDS


def test_bad_timeout_uses_default(monkeypatch) -> None:
    monkeypatch.setenv("LANGFLOW_TIMEOUT_SECONDS", "soon")

    assert langflow_config_from_env().timeout_seconds == DEFAULT_TIMEOUT_SECONDS


@pytest.mark.parametrize("value,expected", [("1", True), ("TRUE", True), ("yes", True), ("0", False), ("off", False)])
def test_load_env_recomputes_debug(monkeypatch, value, expected) -> None:
    monkeypatch.setenv("DEBUG", value)
    monkeypatch.setattr(config, "DEBUG", not expected)

    config.load_env()

    assert config.DEBUG is expected
