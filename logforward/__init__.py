"""
logforward - Size-aware, retrying log forwarder for HTTP log ingestion APIs.

This package provides:
- LogForwarder: Non-blocking batch submission with background delivery
- ForwarderConfig: Validated configuration (from code or environment)
- payload: Normalization, gzip encoding and size-bounded splitting
- resilience: Status classification and exponential backoff

Usage:
    from logforward import LogForwarder, from_env

    with LogForwarder(from_env()) as forwarder:
        forwarder.submit([{"message": "Service started", "service": "billing"}])
"""

from .config import DEFAULT_ENDPOINT, ForwarderConfig, from_env
from .delivery import DeliveryClient, DeliveryOutcome, DeliveryResult
from .errors import (
    ClientError,
    ConfigurationError,
    DeliveryError,
    ForwarderStateError,
    LogForwardError,
    OversizedRecord,
    RateLimitOrTimeout,
    RetriesExhausted,
    ServerError,
    TransportError,
)
from .forwarder import LogForwarder
from .normalize import NormalizedRecord, normalize_batch, normalize_record, normalize_value
from .payload import (
    MAX_PAYLOAD_BYTES,
    Payload,
    PluginInfo,
    SplitResult,
    compress,
    encode_batch,
    split_batch,
)
from .resilience import BackoffConfig, ExponentialBackoff, StatusClass, classify_status
from .version import __version__

__all__ = [
    # Forwarder
    "LogForwarder",
    "ForwarderConfig",
    "from_env",
    "DEFAULT_ENDPOINT",
    # Records and payloads
    "NormalizedRecord",
    "normalize_value",
    "normalize_record",
    "normalize_batch",
    "MAX_PAYLOAD_BYTES",
    "Payload",
    "PluginInfo",
    "SplitResult",
    "encode_batch",
    "compress",
    "split_batch",
    # Delivery
    "DeliveryClient",
    "DeliveryOutcome",
    "DeliveryResult",
    "BackoffConfig",
    "ExponentialBackoff",
    "StatusClass",
    "classify_status",
    # Errors
    "LogForwardError",
    "ConfigurationError",
    "ForwarderStateError",
    "OversizedRecord",
    "DeliveryError",
    "TransportError",
    "RateLimitOrTimeout",
    "ServerError",
    "ClientError",
    "RetriesExhausted",
    "__version__",
]
