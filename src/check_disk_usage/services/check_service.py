from __future__ import annotations

import sys
import time
from typing import Callable, Protocol, TextIO

from check_disk_usage.collectors.filesystem_collector import FilesystemCollector
from check_disk_usage.errors import CollectorError, ConfigurationError, UsageError
from check_disk_usage.models.common import CheckConfig, CheckResult, CheckState, RunVerdict
from check_disk_usage.models.filesystem import FilesystemRecord, Partition
from check_disk_usage.models.metrics import MetricSample
from check_disk_usage.services.filter_service import FilesystemFilter
from check_disk_usage.services.metrics_service import MetricFormat, MetricsCollector, parse_tags
from check_disk_usage.services.report_service import ReportService
from check_disk_usage.services.threshold_service import ThresholdAdjuster
from check_disk_usage.utils.logger import get_logger

logger = get_logger(__name__)


class FilesystemSource(Protocol):
    def partitions(self) -> list[Partition]: ...

    def usage(self, partition: Partition) -> FilesystemRecord: ...


def classify(used_percent: float, warning: float, critical: float) -> CheckState:
    if used_percent >= critical:
        return CheckState.CRITICAL
    if used_percent >= warning:
        return CheckState.WARNING
    return CheckState.OK


class DiskUsageCheck:
    """One evaluation of disk usage against the configured levels.

    Human-readable lines are written to ``out`` as each filesystem is
    evaluated. In metrics mode nothing is written until the end, when the
    accumulated samples are serialized in the configured format.
    """

    def __init__(
        self,
        config: CheckConfig | None = None,
        collector: FilesystemSource | None = None,
        out: TextIO | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or CheckConfig()
        self.collector = collector or FilesystemCollector(include_pseudo=self.config.filters.include_pseudo)
        self.out = out if out is not None else sys.stdout
        self.clock = clock
        self.filter = FilesystemFilter(self.config.filters)
        self.adjuster = ThresholdAdjuster(self.config.thresholds)
        self.report = ReportService(name=self.config.name, human_readable=self.config.human_readable)

    def check_args(self) -> CheckResult:
        try:
            self.filter.validate()
            t = self.config.thresholds
            if t.warning >= t.critical:
                raise ConfigurationError("--warning value can not be greater than or equal to --critical value")
            self._tags()
        except ConfigurationError as e:
            return CheckResult(state=CheckState.CRITICAL, error=str(e))
        return CheckResult(state=CheckState.OK)

    def run(self) -> CheckResult:
        res = self.check_args()
        if res.error is not None:
            return res
        return self.execute()

    def execute(self) -> CheckResult:
        verdict = RunVerdict()
        evaluated: list[str] = []
        metrics = MetricsCollector() if self.config.metrics else None

        try:
            tags = self._tags()
            parts = self.collector.partitions()
        except (ConfigurationError, CollectorError) as e:
            return CheckResult(state=CheckState.CRITICAL, error=str(e))

        for p in parts:
            if not self.filter.accepts(p):
                logger.debug("Skipping %s (%s): filtered out", p.mountpoint, p.fstype)
                continue

            try:
                record = self.collector.usage(p)
            except UsageError as e:
                if self.config.fail_on_error:
                    return CheckResult(
                        state=CheckState.CRITICAL,
                        error=str(e),
                        criticals=verdict.criticals,
                        warnings=verdict.warnings,
                        evaluated=evaluated,
                    )
                logger.warning("%s", e)
                if metrics is None:
                    self._emit(self.report.format_unknown(p.mountpoint, e.cause))
                continue

            if not self.filter.is_eligible(record):
                logger.debug("Skipping %s: empty filesystem", record.mountpoint)
                continue

            warning, critical = self.adjuster.thresholds(record.total_bytes)
            logger.debug(
                "%s: total=%d used=%.2f%% warning=%.2f%% critical=%.2f%%",
                record.mountpoint,
                record.total_bytes,
                record.used_percent,
                warning,
                critical,
            )
            state = classify(record.used_percent, warning, critical)
            verdict.record(state)
            evaluated.append(record.mountpoint)

            if metrics is not None:
                metrics.add_filesystem(record, state, tags, self._now_ms())
            else:
                self._emit(self.report.format_line(record, state))

        samples: list[MetricSample] = []
        if metrics is not None:
            metrics.add_totals(verdict.criticals, verdict.warnings, tags, self._now_ms())
            self.out.write(metrics.render(self.config.metrics_format))
            self.out.flush()
            samples = metrics.samples()

        return CheckResult(
            state=verdict.state,
            criticals=verdict.criticals,
            warnings=verdict.warnings,
            evaluated=evaluated,
            samples=samples,
        )

    def _emit(self, line: str) -> None:
        self.out.write(line + "\n")
        self.out.flush()

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def _tags(self) -> dict[str, str]:
        fmt = self.config.metrics_format if self.config.metrics else MetricFormat.OPENTSDB_LINE
        return parse_tags(self.config.tags, fmt)
