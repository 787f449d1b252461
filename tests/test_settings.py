import pytest

from portfolio_audit.config.settings import AppSettings, load_settings
from portfolio_audit.errors import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("GEMINI_API_KEY", "API_KEY", "LOG_LEVEL", "PRIMARY_TIMEOUT_SEC"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_require_api_key_fails_fast(no_key_settings):
    with pytest.raises(ConfigurationError):
        no_key_settings.require_api_key()


def test_require_api_key_returns_key(test_settings):
    assert test_settings.require_api_key() == "test-key-1234567890"


@pytest.mark.parametrize("env_name", ["GEMINI_API_KEY", "API_KEY"])
def test_api_key_is_read_from_either_variable(clean_env, env_name):
    clean_env.setenv(env_name, "env-key")
    assert AppSettings(_env_file=None).gemini_api_key == "env-key"


def test_defaults(clean_env):
    app_settings = AppSettings(_env_file=None)
    assert app_settings.primary_timeout_sec == 35.0
    assert app_settings.fallback_timeout_sec == 35.0
    assert app_settings.audit_max_attempts == 3


def test_timeout_is_tunable_from_env(clean_env):
    clean_env.setenv("PRIMARY_TIMEOUT_SEC", "12.5")
    assert AppSettings(_env_file=None).primary_timeout_sec == 12.5


@pytest.mark.parametrize(("raw", "expected"), [("debug", "DEBUG"), ("Warning", "WARNING"), ("loud", "INFO")])
def test_load_settings_normalizes_log_level(clean_env, raw, expected):
    clean_env.setenv("LOG_LEVEL", raw)
    assert load_settings().log_level == expected
