from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from check_disk_usage.models.filesystem import FilterConfig, ThresholdConfig
from check_disk_usage.models.metrics import MetricSample

DEFAULT_CHECK_NAME = "check-disk-usage"


class CheckState(IntEnum):
    OK = 0
    WARNING = 1
    CRITICAL = 2


@dataclass(frozen=True)
class CheckConfig:
    filters: FilterConfig = field(default_factory=FilterConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    fail_on_error: bool = False
    human_readable: bool = False
    metrics: bool = False
    metrics_format: str = "opentsdb_line"
    tags: tuple[str, ...] = ()
    name: str = DEFAULT_CHECK_NAME


@dataclass
class RunVerdict:
    """Per-run counters of filesystems found in warning and critical state."""

    criticals: int = 0
    warnings: int = 0

    def record(self, state: CheckState) -> None:
        if state == CheckState.CRITICAL:
            self.criticals += 1
        elif state == CheckState.WARNING:
            self.warnings += 1

    @property
    def state(self) -> CheckState:
        if self.criticals > 0:
            return CheckState.CRITICAL
        if self.warnings > 0:
            return CheckState.WARNING
        return CheckState.OK


@dataclass(frozen=True)
class CheckResult:
    state: CheckState
    error: str | None = None
    criticals: int = 0
    warnings: int = 0
    evaluated: list[str] = field(default_factory=list)
    samples: list[MetricSample] = field(default_factory=list)

