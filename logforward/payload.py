"""
Payload encoding, compression, and size-bounded splitting.

A payload is one HTTP request body: a gzip-compressed JSON array holding a
single envelope object::

    [{"common": {"attributes": {"plugin": {"type": ..., "version": ...}}},
      "logs": [{"message": ..., "attributes": {...}}, ...]}]

The ingestion API rejects bodies above MAX_PAYLOAD_BYTES once compressed, so
batches are bisected until every slice fits. A record that does not fit on
its own is dropped.
"""

import gzip
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .errors import OversizedRecord
from .normalize import NormalizedRecord

logger = logging.getLogger(__name__)

MAX_PAYLOAD_BYTES = 1_000_000


@dataclass(frozen=True)
class PluginInfo:
    """Producer identity sent in every payload's common attributes."""

    type: str
    version: str


@dataclass(frozen=True)
class Payload:
    """A finished, compressed request body."""

    body: bytes
    record_count: int
    first_index: int = 0

    @property
    def size(self) -> int:
        return len(self.body)


@dataclass
class SplitResult:
    payloads: list[Payload] = field(default_factory=list)
    oversized: list[OversizedRecord] = field(default_factory=list)

    @property
    def record_count(self) -> int:
        return sum(p.record_count for p in self.payloads)


def encode_batch(records: Sequence[NormalizedRecord], plugin: PluginInfo) -> bytes:
    """Serialize records into the JSON envelope, preserving order."""
    envelope = {
        "common": {
            "attributes": {
                "plugin": {"type": plugin.type, "version": plugin.version},
            }
        },
        "logs": [record.to_dict() for record in records],
    }
    return json.dumps([envelope], separators=(",", ":"), allow_nan=False).encode("utf-8")


def compress(data: bytes) -> bytes:
    """Gzip ``data``. mtime is pinned so equal input gives equal output."""
    return gzip.compress(data, mtime=0)


def split_batch(
    records: Sequence[NormalizedRecord],
    plugin: PluginInfo,
    max_payload_bytes: int = MAX_PAYLOAD_BYTES,
) -> SplitResult:
    """
    Partition records into payloads that each fit under the size ceiling.

    The batch is compressed as a whole; if too large it is halved (the first
    half gets the extra record when the count is odd) and each half is
    handled the same way. Payloads come back in record order.

    Args:
        records: Normalized records in delivery order
        plugin: Producer identity for the envelope
        max_payload_bytes: Ceiling on the compressed body size

    Returns:
        SplitResult with the payloads and any dropped oversized records.
    """
    result = SplitResult()
    if not records:
        return result

    for outcome in _split_range(records, plugin, max_payload_bytes, 0, len(records)):
        if isinstance(outcome, Payload):
            result.payloads.append(outcome)
        else:
            logger.warning(str(outcome))
            result.oversized.append(outcome)

    logger.debug(
        f"Split {len(records)} records into {len(result.payloads)} payloads "
        f"carrying {result.record_count} records ({len(result.oversized)} oversized)"
    )
    return result


def _split_range(
    records: Sequence[NormalizedRecord],
    plugin: PluginInfo,
    max_payload_bytes: int,
    start: int,
    end: int,
) -> list[Payload | OversizedRecord]:
    body = compress(encode_batch(records[start:end], plugin))
    if len(body) <= max_payload_bytes:
        return [Payload(body=body, record_count=end - start, first_index=start)]

    if end - start == 1:
        return [OversizedRecord(start, len(body), max_payload_bytes)]

    mid = start + (end - start + 1) // 2
    return _split_range(records, plugin, max_payload_bytes, start, mid) + _split_range(
        records, plugin, max_payload_bytes, mid, end
    )
