import pytest

from brex_mcp.config.constants import API_REQUEST_TIMEOUT_SECONDS, DEFAULT_BREX_API_URL
from brex_mcp.config.settings import BrexSettings, ConfigurationError
from brex_mcp.utils.validation import ValidationError


def test_from_env_defaults():
    settings = BrexSettings.from_env({"BREX_API_KEY": "token"})
    assert settings.api_key == "token"
    assert settings.api_url == DEFAULT_BREX_API_URL
    assert settings.log_level == "INFO"
    assert settings.request_timeout == API_REQUEST_TIMEOUT_SECONDS


def test_from_env_reads_all_variables():
    settings = BrexSettings.from_env(
        {
            "BREX_API_KEY": " token ",
            "BREX_API_URL": "https://staging.brexapis.com",
            "LOG_LEVEL": "debug",
            "BREX_REQUEST_TIMEOUT": "5",
        }
    )
    assert settings.api_key == "token"
    assert settings.api_url == "https://staging.brexapis.com"
    assert settings.log_level == "DEBUG"
    assert settings.request_timeout == 5.0


def test_missing_api_key():
    with pytest.raises(ConfigurationError, match="BREX_API_KEY"):
        BrexSettings.from_env({})


@pytest.mark.parametrize(
    "env",
    [
        {"BREX_API_URL": "ftp://brex"},
        {"LOG_LEVEL": "LOUD"},
        {"BREX_REQUEST_TIMEOUT": "soon"},
    ],
)
def test_invalid_values_are_configuration_errors(env):
    with pytest.raises(ConfigurationError):
        BrexSettings.from_env(dict(env, BREX_API_KEY="token"))


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("BREX_API_KEY", "from-env")
    monkeypatch.delenv("BREX_API_URL", raising=False)
    assert BrexSettings.from_env().api_key == "from-env"


def test_with_overrides_skips_none():
    settings = BrexSettings(api_key="token")
    updated = settings.with_overrides(api_url=None, log_level="warning", request_timeout=2)
    assert updated.api_url == DEFAULT_BREX_API_URL
    assert updated.log_level == "WARNING"
    assert updated.request_timeout == 2.0
    assert settings.log_level == "INFO"


def test_with_overrides_validates():
    settings = BrexSettings(api_key="token")
    with pytest.raises(ValidationError):
        settings.with_overrides(api_url="not a url")
    with pytest.raises(ValidationError):
        settings.with_overrides(log_level="chatty")
