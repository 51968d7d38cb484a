"""
Resilience patterns for logforward delivery.

Provides the status classification that drives retries, the exponential
backoff schedule used between attempts, and thread-safe delivery metrics.

Usage:
    from logforward.resilience import BackoffConfig, ExponentialBackoff, classify_status

    backoff = ExponentialBackoff(BackoffConfig(initial_delay=1.0, max_delay=30.0))

    for attempt in range(1, max_retries + 2):
        status = send()
        if classify_status(status) is not StatusClass.RETRYABLE:
            break
        time.sleep(backoff.delay_for(attempt))
"""

import logging
import threading
import time
from dataclasses import asdict, dataclass
from enum import Enum

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429})


class StatusClass(Enum):
    """How an HTTP response status affects the delivery loop."""

    SUCCESS = "success"  # 2xx, stop
    RETRYABLE = "retryable"  # 408, 429, 5xx
    FATAL = "fatal"  # Anything else, stop without retrying


def classify_status(status_code: int) -> StatusClass:
    """Classify an HTTP status code for the retry loop."""
    if 200 <= status_code < 300:
        return StatusClass.SUCCESS
    if status_code in RETRYABLE_STATUS_CODES or 500 <= status_code < 600:
        return StatusClass.RETRYABLE
    return StatusClass.FATAL


def is_retryable(status_code: int) -> bool:
    return classify_status(status_code) is StatusClass.RETRYABLE


@dataclass(frozen=True)
class BackoffConfig:
    """Configuration for exponential backoff."""

    initial_delay: float = 1.0  # Delay before the first retry, in seconds
    max_delay: float = 30.0  # Upper bound for any single delay
    multiplier: float = 2.0  # Exponential multiplier


class ExponentialBackoff:
    """
    Exponential backoff without jitter.

    Stateless: the delay is a function of the attempt number only, so one
    instance can be shared by every worker. Delays never decrease as the
    attempt number grows and never exceed max_delay.
    """

    def __init__(self, config: BackoffConfig | None = None):
        self.config = config or BackoffConfig()

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        if attempt < 1 or self.config.initial_delay <= 0:
            return 0.0
        try:
            base_delay = self.config.initial_delay * (self.config.multiplier ** (attempt - 1))
        except OverflowError:
            base_delay = self.config.max_delay
        return max(0.0, min(base_delay, self.config.max_delay))

    def schedule(self, retries: int) -> list[float]:
        """Delays for ``retries`` consecutive retries."""
        return [self.delay_for(attempt) for attempt in range(1, retries + 1)]


@dataclass
class DeliveryMetrics:
    """Counters for monitoring forwarding behavior."""

    submitted_records: int = 0
    payloads_queued: int = 0
    payloads_delivered: int = 0
    payloads_rejected: int = 0
    payloads_exhausted: int = 0
    records_delivered: int = 0
    records_dropped_oversized: int = 0
    retries: int = 0
    last_success_time: float | None = None
    last_failure_time: float | None = None
    last_error: str | None = None


class MetricsRecorder:
    """Thread-safe wrapper around DeliveryMetrics."""

    def __init__(self):
        self._metrics = DeliveryMetrics()
        self._lock = threading.Lock()

    def record_submitted(self, records: int, payloads: int, oversized: int):
        with self._lock:
            self._metrics.submitted_records += records
            self._metrics.payloads_queued += payloads
            self._metrics.records_dropped_oversized += oversized

    def record_retry(self, error: str):
        with self._lock:
            self._metrics.retries += 1
            self._metrics.last_error = error

    def record_delivered(self, records: int):
        with self._lock:
            self._metrics.payloads_delivered += 1
            self._metrics.records_delivered += records
            self._metrics.last_success_time = time.time()

    def record_rejected(self, error: str):
        with self._lock:
            self._metrics.payloads_rejected += 1
            self._metrics.last_failure_time = time.time()
            self._metrics.last_error = error

    def record_exhausted(self, error: str):
        with self._lock:
            self._metrics.payloads_exhausted += 1
            self._metrics.last_failure_time = time.time()
            self._metrics.last_error = error

    def snapshot(self) -> dict:
        with self._lock:
            return asdict(self._metrics)
