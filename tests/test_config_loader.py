"""Tests for upstream configuration loading."""

import pytest

from backoffice.error_handler import ConfigurationError
from backoffice.utils.config_loader import DEFAULT_BASE_URL, license_gate_enabled, load_upstream_config

ENV_VARS = (
    "TSOFT_API_TOKEN",
    "TSOFT_API_BASE_URL",
    "TSOFT_API_DEBUG",
    "TSOFT_HTTP_TIMEOUT_SECONDS",
    "TSOFT_CONFIG_PATH",
    "LICENSE_GATE_ENABLED",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test without upstream settings in the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def yaml_config(tmp_path):
    path = tmp_path / "upstream.yml"
    path.write_text(
        "base_url: https://yaml.example.test/rest1/\n"
        "debug: true\n"
        "timeout_seconds: 12\n"
        "concurrency:\n"
        "  images: 7\n",
        encoding="utf-8",
    )
    return path


def test_missing_token_raises(tmp_path):
    with pytest.raises(ConfigurationError):
        load_upstream_config(tmp_path / "absent.yml")


def test_defaults_without_file(monkeypatch, tmp_path):
    monkeypatch.setenv("TSOFT_API_TOKEN", "abc")
    cfg = load_upstream_config(tmp_path / "absent.yml")
    assert cfg.token == "abc"
    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.debug is False
    assert cfg.concurrency.order_details == 5


def test_yaml_values_are_used(monkeypatch, yaml_config):
    monkeypatch.setenv("TSOFT_API_TOKEN", "abc")
    cfg = load_upstream_config(yaml_config)
    assert cfg.base_url == "https://yaml.example.test/rest1"
    assert cfg.debug is True
    assert cfg.timeout_seconds == 12
    assert cfg.concurrency.images == 7
    assert cfg.concurrency.enhanced_images == 3


def test_environment_overrides_yaml(monkeypatch, yaml_config):
    monkeypatch.setenv("TSOFT_API_TOKEN", "abc")
    monkeypatch.setenv("TSOFT_API_BASE_URL", "https://env.example.test/rest1")
    monkeypatch.setenv("TSOFT_API_DEBUG", "false")
    monkeypatch.setenv("TSOFT_HTTP_TIMEOUT_SECONDS", "3")
    cfg = load_upstream_config(yaml_config)
    assert cfg.base_url == "https://env.example.test/rest1"
    assert cfg.debug is False
    assert cfg.timeout_seconds == 3


def test_config_path_from_environment(monkeypatch, yaml_config):
    monkeypatch.setenv("TSOFT_API_TOKEN", "abc")
    monkeypatch.setenv("TSOFT_CONFIG_PATH", str(yaml_config))
    assert load_upstream_config().concurrency.images == 7


def test_invalid_values_raise(monkeypatch, tmp_path):
    monkeypatch.setenv("TSOFT_API_TOKEN", "abc")
    monkeypatch.setenv("TSOFT_HTTP_TIMEOUT_SECONDS", "-1")
    with pytest.raises(ConfigurationError):
        load_upstream_config(tmp_path / "absent.yml")


def test_license_gate_flag(monkeypatch):
    assert license_gate_enabled() is True
    monkeypatch.setenv("LICENSE_GATE_ENABLED", "0")
    assert license_gate_enabled() is False
    monkeypatch.setenv("LICENSE_GATE_ENABLED", "yes")
    assert license_gate_enabled() is True
