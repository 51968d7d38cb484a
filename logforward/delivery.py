"""
HTTP delivery of finished payloads.

One call to DeliveryClient.deliver() runs the whole retry loop for one
payload and always ends in a terminal DeliveryResult. Nothing raised by the
transport escapes it.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import httpx

from .config import ForwarderConfig
from .errors import (
    ClientError,
    DeliveryError,
    RateLimitOrTimeout,
    RetriesExhausted,
    ServerError,
    TransportError,
)
from .payload import Payload
from .resilience import BackoffConfig, ExponentialBackoff, StatusClass, classify_status
from .version import __version__

logger = logging.getLogger(__name__)


class DeliveryOutcome(Enum):
    """Terminal states of a payload."""

    DELIVERED = "delivered"
    REJECTED = "rejected"  # Fatal status, not retried
    RETRIES_EXHAUSTED = "retries_exhausted"


@dataclass(frozen=True)
class DeliveryResult:
    outcome: DeliveryOutcome
    attempts: int
    error: DeliveryError | None = None

    @property
    def delivered(self) -> bool:
        return self.outcome is DeliveryOutcome.DELIVERED


class DeliveryClient:
    """
    Sends payloads to the ingestion endpoint with retry and backoff.

    Transport exceptions, 408, 429 and 5xx are retried up to
    config.max_retries times; 2xx ends the loop successfully and any other
    status drops the payload immediately.
    """

    def __init__(
        self,
        config: ForwarderConfig,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_retry: Callable[[DeliveryError], None] | None = None,
    ):
        """
        Initialize the DeliveryClient.

        Args:
            config: Forwarder configuration (credentials must be present)
            http_client: Client to send with; created from config when omitted
            sleep: Function used to wait between attempts
            on_retry: Called with the failure each time a retry is scheduled
        """
        credential_name, credential_value = config.credential_header()

        self.config = config
        self.headers = {
            "Content-Type": "application/json",
            "Content-Encoding": "gzip",
            "X-Event-Source": "logs",
            "User-Agent": f"logforward/{__version__}",
            credential_name: credential_value,
        }
        self.backoff = ExponentialBackoff(
            BackoffConfig(
                initial_delay=config.backoff_initial,
                max_delay=config.backoff_max,
                multiplier=config.backoff_multiplier,
            )
        )
        self._sleep = sleep
        self._on_retry = on_retry
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=config.timeout, proxy=config.proxy)

    def deliver(self, payload: Payload) -> DeliveryResult:
        """
        Send one payload, retrying transient failures.

        Returns:
            DeliveryResult describing how the payload finished.
        """
        max_attempts = self.config.max_retries + 1
        attempt = 0

        while True:
            attempt += 1
            try:
                self._attempt(payload)
            except DeliveryError as e:
                if not e.retryable:
                    logger.error(
                        f"Payload of {payload.record_count} records from index "
                        f"{payload.first_index} rejected, not retrying: {e}"
                    )
                    return DeliveryResult(DeliveryOutcome.REJECTED, attempt, e)

                if attempt >= max_attempts:
                    exhausted = RetriesExhausted(attempt, e)
                    exhausted.__cause__ = e
                    logger.error(
                        f"Dropping payload of {payload.record_count} records from index "
                        f"{payload.first_index}: {exhausted}"
                    )
                    return DeliveryResult(DeliveryOutcome.RETRIES_EXHAUSTED, attempt, exhausted)

                delay = self.backoff.delay_for(attempt)
                logger.warning(
                    f"Attempt {attempt}/{max_attempts} failed: {e}. "
                    f"Retrying in {delay:.2f} seconds..."
                )
                if self._on_retry:
                    self._on_retry(e)
                if delay > 0:
                    self._sleep(delay)
                continue

            logger.debug(
                f"Delivered payload of {payload.record_count} records "
                f"({payload.size} bytes) on attempt {attempt}"
            )
            return DeliveryResult(DeliveryOutcome.DELIVERED, attempt)

    def _attempt(self, payload: Payload):
        """Perform one POST, raising a DeliveryError unless it succeeded."""
        try:
            response = self._client.post(
                self.config.endpoint,
                content=payload.body,
                headers=self.headers,
            )
        except Exception as e:
            # Any failure before a response counts as transient
            raise TransportError(f"{type(e).__name__}: {e}") from e

        status = response.status_code
        classification = classify_status(status)
        if classification is StatusClass.SUCCESS:
            return

        message = f"HTTP {status}: {response.reason_phrase}"
        if classification is StatusClass.FATAL:
            raise ClientError(message, status_code=status)
        if status >= 500:
            raise ServerError(message, status_code=status)
        raise RateLimitOrTimeout(message, status_code=status)

    def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()
