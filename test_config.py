"""Tests for configuration loading."""

import pytest
import yaml

from intake.utils.config import Config
from intake.utils.errors import ConfigurationError, ErrorType

ENV_OVERRIDES = ("CLAIMS_API_BASE", "CLAIMS_API_TIMEOUT", "PING_INTERVAL_SECONDS", "UPLOAD_MODE", "LOG_LEVEL")

BASE_CONFIG = {
    "api": {"base_url": "http://claims.example/", "timeout": 15, "ping_timeout": 3},
    "connectivity": {"poll_interval": 5},
    "upload": {"mode": "concurrent", "max_workers": 2, "min_images": 1, "max_images": 4},
    "logging": {"level": "INFO", "format": "%(message)s"},
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def with_section(section, **values):
    data = {key: dict(value) for key, value in BASE_CONFIG.items()}
    data[section].update(values)
    return data


def test_load_reads_yaml(tmp_path):
    config = Config.load(write_config(tmp_path, BASE_CONFIG))

    assert config.api.base_url == "http://claims.example"
    assert config.api.timeout == 15.0
    assert config.api.ping_timeout == 3.0
    assert config.api.rpa_path == "/claims/{claim_id}/rpa"
    assert config.connectivity.poll_interval == 5.0
    assert config.upload.max_workers == 2
    assert config.sandbox.port == 8000


def test_environment_overrides_file(tmp_path, monkeypatch):
    monkeypatch.setenv("CLAIMS_API_BASE", "http://127.0.0.1:8000/")
    monkeypatch.setenv("CLAIMS_API_TIMEOUT", "30")
    monkeypatch.setenv("PING_INTERVAL_SECONDS", "2.5")
    monkeypatch.setenv("UPLOAD_MODE", "Sequential")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = Config.load(write_config(tmp_path, BASE_CONFIG))

    assert config.api.base_url == "http://127.0.0.1:8000"
    assert config.api.timeout == 30.0
    assert config.connectivity.poll_interval == 2.5
    assert config.upload.mode == "sequential"
    assert config.logging.level == "DEBUG"


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError) as excinfo:
        Config.load(str(tmp_path / "absent.yaml"))

    assert excinfo.value.context.error_type == ErrorType.CONFIG_MISSING


def test_missing_section_raises(tmp_path):
    data = {key: value for key, value in BASE_CONFIG.items() if key != "connectivity"}

    with pytest.raises(ConfigurationError) as excinfo:
        Config.load(write_config(tmp_path, data))

    assert excinfo.value.context.error_type == ErrorType.CONFIG_INVALID


@pytest.mark.parametrize("section, values", [
    ("upload", {"mode": "parallel"}),
    ("upload", {"min_images": 6}),
    ("api", {"timeout": "soon"}),
])
def test_invalid_values_raise(tmp_path, section, values):
    with pytest.raises(ConfigurationError):
        Config.load(write_config(tmp_path, with_section(section, **values)))
