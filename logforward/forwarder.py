"""
LogForwarder - the entry point hosts call to ship batches of log events.

Usage:
    from logforward import LogForwarder, ForwarderConfig

    forwarder = LogForwarder(ForwarderConfig(license_key="xxx"))
    forwarder.start()

    forwarder.submit([
        {"message": "Payment processed", "user_id": "u123", "amount": 99.99},
        {"message": "Payment failed", "user_id": "u456"},
    ])

    forwarder.drain()  # Wait for queued payloads, then stop

    # Or as a context manager
    with LogForwarder(config) as forwarder:
        forwarder.submit(events)
"""

import atexit
import logging
import queue
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import httpx

from .config import ForwarderConfig
from .delivery import DeliveryClient, DeliveryOutcome, DeliveryResult
from .errors import DeliveryError, ForwarderStateError
from .normalize import normalize_batch
from .payload import MAX_PAYLOAD_BYTES, Payload, PluginInfo, split_batch
from .resilience import MetricsRecorder
from .version import __version__

logger = logging.getLogger(__name__)

# Queue marker telling a worker to exit
_STOP = object()


class LogForwarder:
    """
    Size-aware, non-blocking log forwarder.

    submit() normalizes and splits on the caller's thread, then hands the
    payloads to background workers through one FIFO queue. Delivery
    failures never propagate back to the caller.
    """

    def __init__(
        self,
        config: ForwarderConfig,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        max_payload_bytes: int = MAX_PAYLOAD_BYTES,
    ):
        """
        Initialize the LogForwarder.

        Args:
            config: Resolved forwarder configuration
            http_client: Optional pre-built HTTP client (used by tests)
            sleep: Function used for backoff waits
            max_payload_bytes: Ceiling on a compressed payload body
        """
        self.config = config
        self.plugin = PluginInfo(type=config.plugin_type, version=__version__)
        self.max_payload_bytes = max_payload_bytes

        self._http_client = http_client
        self._sleep = sleep
        self._client: DeliveryClient | None = None
        self._queue: queue.Queue = queue.Queue()
        self._workers: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._started = False
        self._closed = False
        self._drained = threading.Event()
        self._metrics = MetricsRecorder()

    def start(self):
        """
        Validate credentials and start the delivery workers.

        Raises:
            ConfigurationError: If neither an api key nor a license key is set.
            ForwarderStateError: If the forwarder was already drained.
        """
        with self._lock:
            if self._closed:
                raise ForwarderStateError("Forwarder has been drained and cannot restart")
            if self._started:
                return

            self.config.validate_credentials()
            self._client = DeliveryClient(
                self.config,
                http_client=self._http_client,
                sleep=self._sleep,
                on_retry=self._record_retry,
            )

            for i in range(self.config.concurrent_requests):
                worker = threading.Thread(
                    target=self._worker_loop, name=f"logforward-worker-{i}", daemon=True
                )
                worker.start()
                self._workers.append(worker)

            self._started = True

        atexit.register(self.drain)
        logger.info(
            f"Log forwarder started: endpoint={self.config.endpoint}, "
            f"workers={self.config.concurrent_requests}, max_retries={self.config.max_retries}"
        )

    def submit(self, events: Sequence[Mapping[Any, Any]]):
        """
        Queue a batch of raw events for delivery.

        Returns once the payloads are queued; network work happens on the
        workers.

        Raises:
            ForwarderStateError: If called before start() or after drain().
        """
        with self._lock:
            self._check_running()
        if not events:
            return

        records = normalize_batch(events)
        result = split_batch(records, self.plugin, self.max_payload_bytes)

        # Enqueue under the lock so one call's payloads stay contiguous
        with self._lock:
            self._check_running()
            self._metrics.record_submitted(
                records=len(records),
                payloads=len(result.payloads),
                oversized=len(result.oversized),
            )
            for payload in result.payloads:
                self._queue.put(payload)

    def _check_running(self):
        """Raise unless the forwarder accepts batches. Caller holds the lock."""
        if not self._started:
            raise ForwarderStateError("submit() called before start()")
        if self._closed:
            raise ForwarderStateError("submit() called after drain()")

    def _worker_loop(self):
        """Deliver queued payloads until told to stop."""
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._deliver(item)
            finally:
                self._queue.task_done()

    def _deliver(self, payload: Payload):
        try:
            result = self._client.deliver(payload)
        except Exception as e:
            logger.exception(f"Unexpected error delivering payload: {e}")
            self._metrics.record_exhausted(str(e))
            return
        self._record_result(payload, result)

    def _record_result(self, payload: Payload, result: DeliveryResult):
        if result.outcome is DeliveryOutcome.DELIVERED:
            self._metrics.record_delivered(payload.record_count)
        elif result.outcome is DeliveryOutcome.REJECTED:
            self._metrics.record_rejected(str(result.error))
        else:
            self._metrics.record_exhausted(str(result.error))

    def _record_retry(self, error: DeliveryError):
        self._metrics.record_retry(str(error))

    def drain(self):
        """
        Stop accepting batches and wait for every queued payload to finish.

        Safe to call more than once.
        """
        with self._lock:
            first = not self._closed
            self._closed = True
            started = self._started

        if not first:
            # Another caller is draining; wait until it has finished
            self._drained.wait()
            return

        atexit.unregister(self.drain)
        if not started:
            self._drained.set()
            return

        try:
            self._queue.join()
            for _ in self._workers:
                self._queue.put(_STOP)
            for worker in self._workers:
                worker.join()
            self._workers.clear()
            self._client.close()
        finally:
            self._drained.set()

        logger.info(f"Log forwarder drained: {self.format_status()}")

    @property
    def running(self) -> bool:
        with self._lock:
            return self._started and not self._closed

    def get_stats(self) -> dict:
        """Get forwarding statistics."""
        stats = self._metrics.snapshot()
        stats["pending"] = self._queue.unfinished_tasks
        return stats

    def format_status(self) -> str:
        """Get human-readable status string."""
        stats = self.get_stats()
        parts = [
            f"delivered={stats['payloads_delivered']}/{stats['payloads_queued']}",
            f"records={stats['records_delivered']}/{stats['submitted_records']}",
            f"retries={stats['retries']}",
        ]
        if stats["records_dropped_oversized"]:
            parts.append(f"oversized={stats['records_dropped_oversized']}")
        if stats["last_error"]:
            parts.append(f"last_error='{stats['last_error'][:50]}'")
        return "LogForwarder: " + ", ".join(parts)

    def __enter__(self) -> "LogForwarder":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.drain()
