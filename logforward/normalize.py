"""
Record normalization.

Turns raw host events into wire-ready records: the message string is carried
verbatim and every other field becomes an attribute restricted to
str / float / bool / None.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

logger = logging.getLogger(__name__)

Value = str | float | bool | None

MESSAGE_KEY = "message"


@dataclass(frozen=True)
class NormalizedRecord:
    """One log line ready for inclusion in a payload."""

    message: str | None = None
    attributes: dict[str, Value] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Wire form; ``message`` is omitted when absent."""
        data: dict[str, Any] = {}
        if self.message is not None:
            data["message"] = self.message
        data["attributes"] = dict(self.attributes)
        return data


def normalize_value(value: Any) -> Value:
    """Collapse a dynamically-typed field value into the closed Value set."""
    # bool is a subclass of int
    if isinstance(value, bool) or value is None or isinstance(value, str):
        return value

    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        # Decimals beyond float range convert to inf rather than raising
        number = float(value)
        return number if math.isfinite(number) else None

    if isinstance(value, int | float):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None

    logger.debug(f"Unsupported attribute type {type(value).__name__}, sending null")
    return None


def _field_name(key: Any) -> str:
    # str.__str__ keeps the underlying value of str-backed enum members
    if isinstance(key, str):
        return str.__str__(key)
    return str(key)


def normalize_record(raw: Mapping[Any, Any]) -> NormalizedRecord:
    message: str | None = None
    attributes: dict[str, Value] = {}

    for key, value in raw.items():
        name = _field_name(key)
        if name == MESSAGE_KEY:
            if value is None:
                continue
            # Never re-parsed, even when it looks like JSON
            message = value if isinstance(value, str) else str(value)
            continue
        attributes[name] = normalize_value(value)

    return NormalizedRecord(message=message, attributes=attributes)


def normalize_batch(events: Iterable[Mapping[Any, Any]]) -> list[NormalizedRecord]:
    """Normalize events, preserving their order."""
    return [normalize_record(event) for event in events]
