"""
Forwarder configuration.

Resolved once by the host and passed to LogForwarder at construction.
Field values are validated by pydantic; the credential requirement is
checked separately at start-up so a config can be built before keys are
known.
"""

import os
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import ConfigurationError

# Default log ingestion endpoint
DEFAULT_ENDPOINT = "https://log-api.newrelic.com/log/v1"

INSERT_KEY_HEADER = "X-Insert-Key"
LICENSE_KEY_HEADER = "X-License-Key"


class ForwarderConfig(BaseModel):
    """Immutable settings for one forwarder instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    endpoint: str = DEFAULT_ENDPOINT
    api_key: str | None = None
    license_key: str | None = None

    # Retry policy
    max_retries: int = Field(3, ge=0)
    backoff_initial: float = Field(1.0, ge=0)
    backoff_max: float = Field(30.0, ge=0)
    backoff_multiplier: float = Field(2.0, ge=1)

    # Transport
    timeout: float = Field(10.0, gt=0)
    concurrent_requests: int = Field(1, ge=1)
    proxy: str | None = None

    plugin_type: str = "logforward"

    @model_validator(mode="after")
    def _check_endpoint(self) -> "ForwarderConfig":
        parsed = urlparse(self.endpoint)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"endpoint must be an http(s) URL, got {self.endpoint!r}")
        return self

    @classmethod
    def build(cls, **values) -> "ForwarderConfig":
        """Construct a config, reporting validation failures as ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    def validate_credentials(self):
        """Raise ConfigurationError unless an api key or license key is set."""
        if not self.api_key and not self.license_key:
            raise ConfigurationError("Either api_key or license_key must be configured")

    def credential_header(self) -> tuple[str, str]:
        """The single authentication header; the api key wins when both are set."""
        self.validate_credentials()
        if self.api_key:
            return INSERT_KEY_HEADER, self.api_key
        return LICENSE_KEY_HEADER, self.license_key


def from_env(**overrides) -> ForwarderConfig:
    """
    Create a ForwarderConfig from environment variables.

    Environment variables:
        LOGFORWARD_ENDPOINT: Ingestion endpoint (optional)
        LOGFORWARD_API_KEY: Insert key (this or the license key is required)
        LOGFORWARD_LICENSE_KEY: License key
        LOGFORWARD_MAX_RETRIES: Retries after the first attempt (default 3)
        LOGFORWARD_BACKOFF_INITIAL: First retry delay in seconds
        LOGFORWARD_BACKOFF_MAX: Maximum retry delay in seconds
        LOGFORWARD_TIMEOUT: HTTP request timeout in seconds
        LOGFORWARD_CONCURRENT_REQUESTS: Number of delivery workers
        LOGFORWARD_PROXY: Proxy URL for outbound requests

    Args:
        **overrides: Values that take precedence over the environment

    Returns:
        Validated ForwarderConfig (credentials are checked at start-up)
    """
    env_fields = {
        "endpoint": "LOGFORWARD_ENDPOINT",
        "api_key": "LOGFORWARD_API_KEY",
        "license_key": "LOGFORWARD_LICENSE_KEY",
        "max_retries": "LOGFORWARD_MAX_RETRIES",
        "backoff_initial": "LOGFORWARD_BACKOFF_INITIAL",
        "backoff_max": "LOGFORWARD_BACKOFF_MAX",
        "timeout": "LOGFORWARD_TIMEOUT",
        "concurrent_requests": "LOGFORWARD_CONCURRENT_REQUESTS",
        "proxy": "LOGFORWARD_PROXY",
    }

    values = {}
    for name, env_var in env_fields.items():
        raw = os.getenv(env_var)
        if raw:
            values[name] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})

    return ForwarderConfig.build(**values)
