"""Prometheus text exposition encoding."""
from __future__ import annotations

import logging
import math
import re
from typing import Iterable, List, Set

from .errors import EncodingError
from .models import MetricReading

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

METRIC_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
LABEL_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")

# Beyond 2**53 floats stop being exact integers; use repr there.
_MAX_EXACT_INT = 2 ** 53


def escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def format_value(value: float) -> str:
    """Render integral values without a decimal point, others with repr."""
    if value.is_integer() and abs(value) < _MAX_EXACT_INT:
        return str(int(value))
    return repr(value)


def validate(item: MetricReading) -> None:
    """Raise :class:`EncodingError` if ``item`` cannot be encoded."""
    if not isinstance(item.name, str) or not METRIC_NAME_RE.fullmatch(item.name):
        raise EncodingError(f"invalid metric name {item.name!r}")
    if isinstance(item.value, bool) or not isinstance(item.value, (int, float)):
        raise EncodingError(f"{item.name}: value {item.value!r} is not a number")
    if math.isinf(item.value):
        raise EncodingError(f"{item.name}: value is infinite")
    seen: Set[str] = set()
    for key, value in item.labels:
        if not isinstance(key, str) or not LABEL_NAME_RE.fullmatch(key) or key.startswith("__"):
            raise EncodingError(f"{item.name}: invalid label name {key!r}")
        if key in seen:
            raise EncodingError(f"{item.name}: duplicate label {key!r}")
        if not isinstance(value, str):
            raise EncodingError(f"{item.name}: label {key} value is not a string")
        seen.add(key)


def encode_line(item: MetricReading) -> str:
    validate(item)
    value = format_value(float(item.value))
    if not item.labels:
        return f"{item.name} {value}"
    labels = ",".join(f'{key}="{escape_label_value(val)}"' for key, val in item.labels)
    return f"{item.name}{{{labels}}} {value}"


def encode(readings: Iterable[MetricReading], metadata: bool = False) -> str:
    """Encode readings in order, one line each.

    NaN readings and readings that fail validation are left out. With
    ``metadata`` each metric name gets ``# HELP``/``# TYPE`` lines before
    its first sample.
    """
    lines: List[str] = []
    described: Set[str] = set()
    for item in readings:
        try:
            if isinstance(item.value, float) and math.isnan(item.value):
                continue
            line = encode_line(item)
        except EncodingError as exc:
            logger.warning("Dropping metric reading: %s", exc)
            continue
        if metadata and item.name not in described:
            described.add(item.name)
            if item.help:
                lines.append(f"# HELP {item.name} {escape_help(item.help)}")
            lines.append(f"# TYPE {item.name} gauge")
        lines.append(line)
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
