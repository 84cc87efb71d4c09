"""Tests for configuration module."""
import pytest
import yaml
from ratedesk.config import API_KEY_ENV, Config
from ratedesk.utils.errors import ConfigurationError


def test_config_load(temp_config_file):
    """Test basic config loading."""
    config = Config(temp_config_file)
    assert config.get('app.name') == 'Test RateDesk'
    assert config.get('app.version') == '0.1.0'


def test_config_api_settings(temp_config_file):
    """Base URL is normalized and numeric settings are converted."""
    config = Config(temp_config_file)
    assert config.api_base_url == 'https://api.example.test/v1'
    assert config.api_timeout == 5.0
    assert config.debounce_seconds == 0.25
    assert config.default_base_currency == 'USD'


def test_config_get_nested(temp_config_file):
    """Test getting nested config values."""
    config = Config(temp_config_file)
    assert config.get('sync.default_base') == 'usd'
    assert config.get('logging.format') == 'text'


def test_config_get_default(temp_config_file):
    """Test default values."""
    config = Config(temp_config_file)
    assert config.get('nonexistent.key', 'default') == 'default'
    assert config.get('app.name.deeper', 'default') == 'default'


def test_config_api_key_from_env(temp_config_file, monkeypatch):
    monkeypatch.setenv(API_KEY_ENV, 'secret-key')
    assert Config(temp_config_file).api_key == 'secret-key'


def test_config_api_key_missing(temp_config_file, monkeypatch):
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    config = Config(temp_config_file)
    assert config.api_key == ''


def test_config_missing_file():
    """Test error on missing config file."""
    with pytest.raises(ConfigurationError):
        Config('nonexistent.yaml')


def test_config_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    with pytest.raises(ConfigurationError, match="Empty configuration"):
        Config(str(path))


def test_config_missing_api_section(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({'app': {'name': 'x'}}))
    with pytest.raises(ConfigurationError, match="api"):
        Config(str(path))


def test_config_invalid_timeout(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({'app': {}, 'api': {'base_url': 'http://x', 'timeout': 'slow'}}))
    with pytest.raises(ConfigurationError):
        Config(str(path))
