"""
Exception taxonomy for logforward.

Only ConfigurationError and ForwarderStateError ever reach the caller.
Delivery errors are raised and handled inside the delivery loop and are
reported through DeliveryResult values and stats.
"""


class LogForwardError(Exception):
    """Base class for all logforward errors."""


class ConfigurationError(LogForwardError):
    """Invalid or incomplete configuration, raised at start-up."""


class ForwarderStateError(LogForwardError):
    """Forwarder used outside its start/drain lifecycle."""


class OversizedRecord(LogForwardError):
    """A single record whose solo payload exceeds the size ceiling."""

    def __init__(self, index: int, compressed_size: int, max_payload_bytes: int):
        self.index = index
        self.compressed_size = compressed_size
        self.max_payload_bytes = max_payload_bytes
        super().__init__(
            f"Record {index} compresses to {compressed_size} bytes "
            f"(limit {max_payload_bytes}), dropping it"
        )


class DeliveryError(LogForwardError):
    """A failed delivery attempt."""

    retryable = False

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class TransportError(DeliveryError):
    """Network or transport failure before a response was received."""

    retryable = True


class RateLimitOrTimeout(DeliveryError):
    """HTTP 408 or 429."""

    retryable = True


class ServerError(DeliveryError):
    """HTTP 5xx."""

    retryable = True


class ClientError(DeliveryError):
    """Any non-retryable, non-2xx status. The payload is dropped."""


class RetriesExhausted(DeliveryError):
    """A retryable failure persisted past max_retries."""

    def __init__(self, attempts: int, last_error: DeliveryError):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Giving up after {attempts} attempts: {last_error}",
            status_code=last_error.status_code,
        )
