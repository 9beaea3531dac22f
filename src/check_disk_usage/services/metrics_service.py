from __future__ import annotations

import re
from enum import Enum
from typing import Iterator

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily

from check_disk_usage.errors import ConfigurationError
from check_disk_usage.models.common import CheckState
from check_disk_usage.models.filesystem import FilesystemRecord
from check_disk_usage.models.metrics import METRIC_HELP, MetricKind, MetricSample
from check_disk_usage.utils.logger import get_logger

logger = get_logger(__name__)

ALL_MOUNTS = "all"
LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class MetricFormat(str, Enum):
    OPENTSDB_LINE = "opentsdb_line"
    PROMETHEUS_TEXT = "prometheus_text"

    @classmethod
    def parse(cls, value: str | MetricFormat | None) -> MetricFormat:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.debug("Unknown metrics format %r, using %s", value, cls.OPENTSDB_LINE.value)
            return cls.OPENTSDB_LINE


def parse_tags(
    entries: list[str] | tuple[str, ...],
    fmt: MetricFormat | str = MetricFormat.OPENTSDB_LINE,
) -> dict[str, str]:
    """Parse ``key=value`` strings into a tag mapping.

    Keys must be non-empty. For Prometheus output they must also be valid
    label names that are not reserved (``__`` prefix).
    """
    prometheus = MetricFormat.parse(fmt) == MetricFormat.PROMETHEUS_TEXT
    tags: dict[str, str] = {}
    for entry in entries:
        if entry.count("=") != 1:
            raise ConfigurationError(f"invalid tag {entry!r}, expected key=value")
        key, value = (part.strip() for part in entry.split("="))
        if not key:
            raise ConfigurationError(f"invalid tag {entry!r}, empty key")
        if prometheus and (not LABEL_NAME_RE.match(key) or key.startswith("__")):
            raise ConfigurationError(f"invalid tag {entry!r}, {key!r} is not a valid Prometheus label name")
        tags[key] = value
    return tags


class _FamilyCollector:
    def __init__(self, family: GaugeMetricFamily) -> None:
        self.family = family

    def collect(self) -> Iterator[GaugeMetricFamily]:
        yield self.family


class MetricsCollector:
    """Accumulates metric samples for one check run.

    Samples are bucketed by kind so that serialization order is fixed
    (critical, warning, percent used, total, used, free) no matter in
    which order filesystems are added.
    """

    def __init__(self) -> None:
        self._buckets: dict[MetricKind, list[MetricSample]] = {k: [] for k in MetricKind}

    def add_filesystem(
        self,
        record: FilesystemRecord,
        state: CheckState,
        tags: dict[str, str],
        timestamp_ms: int,
    ) -> None:
        merged = {**tags, "mountpoint": record.mountpoint}
        values = {
            MetricKind.CRITICAL: 1.0 if state == CheckState.CRITICAL else 0.0,
            MetricKind.WARNING: 1.0 if state == CheckState.WARNING else 0.0,
            MetricKind.PERCENT_USED: float(record.used_percent),
            MetricKind.TOTAL_BYTES: float(record.total_bytes),
            MetricKind.USED_BYTES: float(record.used_bytes),
            MetricKind.FREE_BYTES: float(record.free_bytes),
        }
        for kind, value in values.items():
            self._add(kind, value, merged, timestamp_ms)

    def add_totals(self, criticals: int, warnings: int, tags: dict[str, str], timestamp_ms: int) -> None:
        merged = {**tags, "mountpoint": ALL_MOUNTS}
        self._add(MetricKind.CRITICAL, float(criticals), merged, timestamp_ms)
        self._add(MetricKind.WARNING, float(warnings), merged, timestamp_ms)

    def samples(self) -> list[MetricSample]:
        return [s for kind in MetricKind for s in self._buckets[kind]]

    def render(self, fmt: MetricFormat | str) -> str:
        fmt = MetricFormat.parse(fmt)
        if fmt == MetricFormat.PROMETHEUS_TEXT:
            return self._render_prometheus()
        return self._render_opentsdb()

    def _add(self, kind: MetricKind, value: float, tags: dict[str, str], timestamp_ms: int) -> None:
        self._buckets[kind].append(
            MetricSample(name=kind.value, value=value, timestamp_ms=int(timestamp_ms), tags=dict(tags))
        )

    def _render_opentsdb(self) -> str:
        lines: list[str] = []
        for s in self.samples():
            line = f"{s.name} {s.timestamp_ms // 1000} {format_value(s.value)}"
            if s.tags:
                line += " " + " ".join(f"{k}={v}" for k, v in s.tags.items())
            lines.append(line)
        return "\n".join(lines) + "\n" if lines else ""

    def _render_prometheus(self) -> str:
        # one registry per family keeps a blank line between groups
        chunks: list[str] = []
        for kind in MetricKind:
            bucket = self._buckets[kind]
            if not bucket:
                continue
            registry = CollectorRegistry()
            registry.register(_FamilyCollector(self._family(kind, bucket)))
            chunks.append(generate_latest(registry).decode("utf-8"))
        return "".join(chunk + "\n" for chunk in chunks)

    @staticmethod
    def _family(kind: MetricKind, bucket: list[MetricSample]) -> GaugeMetricFamily:
        labels: list[str] = []
        for s in bucket:
            labels.extend(k for k in s.tags if k not in labels)

        family = GaugeMetricFamily(prometheus_name(kind.value), METRIC_HELP[kind], labels=labels)
        for s in bucket:
            family.add_metric(
                [s.tags.get(k, "") for k in labels],
                s.value,
                timestamp=s.timestamp_ms / 1000,
            )
        return family


def prometheus_name(name: str) -> str:
    return name.replace(".", "_")


def format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
