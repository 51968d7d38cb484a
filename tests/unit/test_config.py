"""Tests for ForwarderConfig and environment loading."""

import pytest
from pydantic import ValidationError

from logforward.config import (
    DEFAULT_ENDPOINT,
    INSERT_KEY_HEADER,
    LICENSE_KEY_HEADER,
    ForwarderConfig,
    from_env,
)
from logforward.errors import ConfigurationError

ENV_VARS = [
    "LOGFORWARD_ENDPOINT",
    "LOGFORWARD_API_KEY",
    "LOGFORWARD_LICENSE_KEY",
    "LOGFORWARD_MAX_RETRIES",
    "LOGFORWARD_BACKOFF_INITIAL",
    "LOGFORWARD_BACKOFF_MAX",
    "LOGFORWARD_TIMEOUT",
    "LOGFORWARD_CONCURRENT_REQUESTS",
    "LOGFORWARD_PROXY",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Default values."""

    def test_defaults(self):
        config = ForwarderConfig(license_key="k")

        assert config.endpoint == DEFAULT_ENDPOINT
        assert config.max_retries == 3
        assert config.concurrent_requests == 1
        assert config.backoff_max >= 0
        assert config.plugin_type == "logforward"

    def test_frozen(self):
        config = ForwarderConfig(license_key="k")
        with pytest.raises(ValidationError):
            config.max_retries = 5


class TestValidation:
    """Field validation."""

    @pytest.mark.parametrize(
        "values",
        [
            {"max_retries": -1},
            {"backoff_initial": -0.5},
            {"backoff_max": -1},
            {"timeout": 0},
            {"concurrent_requests": 0},
            {"endpoint": "not a url"},
            {"endpoint": "ftp://example.com/logs"},
            {"unknown_option": True},
        ],
    )
    def test_invalid_values_raise_configuration_error(self, values):
        with pytest.raises(ConfigurationError):
            ForwarderConfig.build(license_key="k", **values)

    def test_build_accepts_valid_values(self):
        config = ForwarderConfig.build(license_key="k", max_retries=0, backoff_max=0)

        assert config.max_retries == 0
        assert config.backoff_max == 0

    def test_string_numbers_coerced(self):
        config = ForwarderConfig.build(license_key="k", max_retries="5", timeout="2.5")

        assert config.max_retries == 5
        assert config.timeout == 2.5


class TestCredentials:
    """Credential selection."""

    def test_missing_credentials(self):
        config = ForwarderConfig()
        with pytest.raises(ConfigurationError):
            config.validate_credentials()

    def test_empty_credentials_count_as_missing(self):
        config = ForwarderConfig(api_key="", license_key="")
        with pytest.raises(ConfigurationError):
            config.credential_header()

    def test_api_key_header(self):
        assert ForwarderConfig(api_key="a").credential_header() == (INSERT_KEY_HEADER, "a")

    def test_license_key_header(self):
        assert ForwarderConfig(license_key="l").credential_header() == (LICENSE_KEY_HEADER, "l")

    def test_api_key_wins(self):
        config = ForwarderConfig(api_key="a", license_key="l")
        assert config.credential_header() == ("X-Insert-Key", "a")


class TestFromEnv:
    """Environment-based configuration."""

    def test_reads_environment(self, clean_env):
        clean_env.setenv("LOGFORWARD_ENDPOINT", "https://collector.example.com/log/v1")
        clean_env.setenv("LOGFORWARD_LICENSE_KEY", "license")
        clean_env.setenv("LOGFORWARD_MAX_RETRIES", "0")
        clean_env.setenv("LOGFORWARD_CONCURRENT_REQUESTS", "2")

        config = from_env()

        assert config.endpoint == "https://collector.example.com/log/v1"
        assert config.license_key == "license"
        assert config.max_retries == 0
        assert config.concurrent_requests == 2

    def test_overrides_take_precedence(self, clean_env):
        clean_env.setenv("LOGFORWARD_MAX_RETRIES", "7")

        config = from_env(max_retries=1, api_key="a")

        assert config.max_retries == 1
        assert config.api_key == "a"

    def test_none_overrides_ignored(self, clean_env):
        clean_env.setenv("LOGFORWARD_MAX_RETRIES", "7")

        assert from_env(max_retries=None).max_retries == 7

    def test_no_credentials_still_builds(self, clean_env):
        """Credentials are checked at start-up, not when loading."""
        config = from_env()
        with pytest.raises(ConfigurationError):
            config.validate_credentials()

    def test_invalid_env_value(self, clean_env):
        clean_env.setenv("LOGFORWARD_MAX_RETRIES", "lots")
        with pytest.raises(ConfigurationError):
            from_env()
