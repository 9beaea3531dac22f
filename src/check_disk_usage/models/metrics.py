from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class MetricKind(Enum):
    CRITICAL = "disk.critical"
    WARNING = "disk.warning"
    PERCENT_USED = "disk.percent_used"
    TOTAL_BYTES = "disk.total_bytes"
    USED_BYTES = "disk.used_bytes"
    FREE_BYTES = "disk.free_bytes"


METRIC_HELP: dict[MetricKind, str] = {
    MetricKind.CRITICAL: "non-zero value indicates mountpoint usage is above critical threshold",
    MetricKind.WARNING: "non-zero value indicates mountpoint usage is above warning threshold",
    MetricKind.PERCENT_USED: "Percentage of mounted volume used",
    MetricKind.TOTAL_BYTES: "Total space in bytes of mounted volume",
    MetricKind.USED_BYTES: "Used space in bytes of mounted volume",
    MetricKind.FREE_BYTES: "Free space in bytes of mounted volume",
}


@dataclass(frozen=True)
class MetricSample:
    name: str
    value: float
    timestamp_ms: int
    tags: dict[str, str] = field(default_factory=dict)
