"""
Tests for configuration loading, validation and the lazy settings proxy.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from articleflow.config import BackendsConfig, Config, LazyConfig, MonitoringConfig, RetryConfig, find_config_file
from articleflow.models import Backend, RetryPolicy


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ARTICLEFLOW_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.upper().startswith("ARTICLEFLOW_"):
            monkeypatch.delenv(name)


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.mark.unit
class TestDefaults:
    def test_default_config(self):
        config = Config()
        assert config.retry.to_policy() == RetryPolicy()
        assert config.backends.order == [Backend.STRUCTURED, Backend.EXTRACT_API, Backend.SCRAPER]
        assert config.backends.structured_url is None
        assert config.backends.extract_api_key is None
        assert config.backends.default_timeout_ms == 15000
        assert config.transport.proxy_prefix is None
        assert config.monitoring.log_level == "INFO"
        assert config.monitoring.log_file is None

    def test_top_level_sections(self):
        assert set(Config.model_fields) == {"retry", "backends", "transport", "monitoring"}


@pytest.mark.unit
class TestValidation:
    def test_log_level_is_upper_cased(self):
        assert MonitoringConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            MonitoringConfig(log_level="chatty")

    def test_log_file_parent_is_created(self, tmp_path):
        log_file = tmp_path / "logs" / "nested" / "articleflow.jsonl"
        config = MonitoringConfig(log_file=log_file)
        assert config.log_file == str(log_file)
        assert log_file.parent.is_dir()

    @pytest.mark.parametrize("order", [[], ["scraper", "scraper"]])
    def test_invalid_backend_order(self, order):
        with pytest.raises(ValidationError):
            BackendsConfig(order=order)

    def test_unknown_backend(self):
        with pytest.raises(ValidationError):
            BackendsConfig(order=["carrier-pigeon"])

    def test_backend_order_accepts_values(self):
        assert BackendsConfig(order=["scraper", "mercury"]).order == [Backend.SCRAPER, Backend.STRUCTURED]

    @pytest.mark.parametrize(
        "field, value",
        [("max_attempts", 0), ("base_delay", -1.0), ("backoff_factor", 0.5)],
    )
    def test_invalid_retry_values(self, field, value):
        with pytest.raises(ValidationError):
            RetryConfig(**{field: value})

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            BackendsConfig(default_timeout_ms=0)

    def test_to_policy(self):
        policy = RetryConfig(max_attempts=5, base_delay=0.5, backoff_factor=3.0).to_policy()
        assert policy == RetryPolicy(max_attempts=5, base_delay=0.5, backoff_factor=3.0)


@pytest.mark.unit
class TestEnvironment:
    def test_nested_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ARTICLEFLOW_RETRY__MAX_ATTEMPTS", "5")
        monkeypatch.setenv("ARTICLEFLOW_BACKENDS__EXTRACT_API_KEY", "secret")
        monkeypatch.setenv("ARTICLEFLOW_TRANSPORT__PROXY_PREFIX", "https://proxy.example.com")

        config = Config()

        assert config.retry.max_attempts == 5
        assert config.backends.extract_api_key == "secret"
        assert config.transport.proxy_prefix == "https://proxy.example.com"

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("ARTICLEFLOW_RETRY__MAX_ATTEMPTS", "0")
        with pytest.raises(ValidationError):
            Config()


@pytest.mark.unit
class TestYaml:
    def test_from_yaml(self, tmp_path):
        path = write_yaml(
            tmp_path / "config.yaml",
            {
                "retry": {"max_attempts": 2, "base_delay": 0.25},
                "backends": {
                    "order": ["scraper", "rapidapi"],
                    "extract_api_key": "k",
                    "default_timeout_ms": 5000,
                },
                "monitoring": {"log_level": "warning"},
            },
        )

        config = Config.from_yaml(path)

        assert config.retry.max_attempts == 2
        assert config.retry.base_delay == 0.25
        assert config.retry.backoff_factor == 2.0
        assert config.backends.order == [Backend.SCRAPER, Backend.EXTRACT_API]
        assert config.backends.default_timeout_ms == 5000
        assert config.monitoring.log_level == "WARNING"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert Config.from_yaml(path) == Config()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_values(self, tmp_path):
        path = write_yaml(tmp_path / "config.yaml", {"backends": {"order": []}})
        with pytest.raises(ValidationError):
            Config.from_yaml(path)


@pytest.mark.unit
class TestLazyConfig:
    def test_find_config_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert find_config_file() is None
        (tmp_path / "config.yml").write_text("{}", encoding="utf-8")
        assert find_config_file() == tmp_path / "config.yml"
        (tmp_path / "config.yaml").write_text("{}", encoding="utf-8")
        assert find_config_file() == tmp_path / "config.yaml"

    def test_loads_file_from_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        write_yaml(tmp_path / "config.yaml", {"retry": {"max_attempts": 7}})

        assert LazyConfig().retry.max_attempts == 7

    def test_loaded_once_until_reset(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        path = write_yaml(tmp_path / "config.yaml", {"retry": {"max_attempts": 7}})
        lazy = LazyConfig()
        assert lazy.retry.max_attempts == 7

        write_yaml(path, {"retry": {"max_attempts": 4}})
        assert lazy.retry.max_attempts == 7

        LazyConfig.reset()
        assert lazy.retry.max_attempts == 4

    def test_invalid_file_falls_back_to_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        write_yaml(tmp_path / "config.yaml", {"retry": {"max_attempts": 0}})

        assert LazyConfig().retry.max_attempts == 3

    def test_unparseable_file_falls_back_to_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.yaml").write_text("retry: [unclosed", encoding="utf-8")

        assert LazyConfig().backends.default_timeout_ms == 15000
