"""End-to-end tests for the disk usage check.

A fake collector stands in for psutil so that each run sees a fixed set of
mounts; output is captured in a StringIO.
"""

from __future__ import annotations

import io
import logging

import pytest

from check_disk_usage.errors import CollectorError
from check_disk_usage.models.common import CheckConfig, CheckState, RunVerdict
from check_disk_usage.models.filesystem import FilterConfig, ThresholdConfig
from check_disk_usage.services.check_service import DiskUsageCheck, classify

from fakes import GIB, FakeCollector, make_record


def _check(records, out=None, failing=None, **kwargs) -> tuple[DiskUsageCheck, FakeCollector, io.StringIO]:
    out = out or io.StringIO()
    collector = FakeCollector(records, failing=failing)
    check = DiskUsageCheck(CheckConfig(**kwargs), collector=collector, out=out, clock=lambda: 1_700_000_000.5)
    return check, collector, out


@pytest.mark.parametrize(
    "used, expected",
    [
        (0.0, CheckState.OK),
        (84.99, CheckState.OK),
        (85.0, CheckState.WARNING),
        (94.9, CheckState.WARNING),
        (95.0, CheckState.CRITICAL),
        (100.0, CheckState.CRITICAL),
    ],
)
def test_classify(used, expected):
    assert classify(used, 85.0, 95.0) is expected


def test_classify_checks_critical_first():
    assert classify(50.0, 60.0, 40.0) is CheckState.CRITICAL


def test_run_verdict():
    v = RunVerdict()
    assert v.state is CheckState.OK
    v.record(CheckState.OK)
    assert (v.criticals, v.warnings, v.state) == (0, 0, CheckState.OK)
    v.record(CheckState.WARNING)
    assert v.state is CheckState.WARNING
    v.record(CheckState.CRITICAL)
    assert (v.criticals, v.warnings, v.state) == (1, 1, CheckState.CRITICAL)


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"filters": FilterConfig(include_fs_types=("ext4", "xfs}"), exclude_fs_types=("tmpfs", "devtmpfs"))},
         "--include-fs-type and --exclude-fs-type are mutually exclusive"),
        ({"filters": FilterConfig(include_fs_paths=("/", "/home"), exclude_fs_paths=("/tmp",))},
         "--include-fs-path and --exclude-fs-path are mutually exclusive"),
        ({"thresholds": ThresholdConfig(warning=80, critical=70)}, "--warning value"),
        ({"thresholds": ThresholdConfig(warning=90, critical=90)}, "--warning value"),
        ({"tags": ("key1",)}, "invalid tag"),
    ],
)
def test_check_args_rejects(kwargs, message):
    check, collector, out = _check([make_record("/", 10.0)], **kwargs)
    res = check.check_args()
    assert res.state is CheckState.CRITICAL
    assert message in res.error

    res = check.run()
    assert res.state is CheckState.CRITICAL
    assert collector.usage_calls == []
    assert out.getvalue() == ""


def test_check_args_ok():
    check, _, _ = _check([], thresholds=ThresholdConfig(warning=80, critical=90))
    res = check.check_args()
    assert res.state is CheckState.OK
    assert res.error is None


def test_one_critical_one_ok():
    check, _, out = _check([make_record("/", 96.0), make_record("/home", 50.0)])
    res = check.run()
    assert res.state is CheckState.CRITICAL
    assert res.error is None
    assert res.criticals == 1
    assert res.warnings == 0
    assert res.evaluated == ["/", "/home"]

    lines = out.getvalue().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("check-disk-usage CRITICAL: / 96.00% - Total: ")
    assert lines[1].startswith("check-disk-usage       OK: /home 50.00% - Total: ")


def test_warning_verdict():
    check, _, _ = _check([make_record("/", 90.0), make_record("/var", 10.0)])
    res = check.run()
    assert res.state is CheckState.WARNING
    assert (res.criticals, res.warnings) == (0, 1)


def test_all_ok():
    check, _, _ = _check([make_record("/", 10.0)])
    assert check.run().state is CheckState.OK


def test_empty_filesystems_are_skipped():
    check, _, out = _check(
        [make_record("/proc", 100.0, total_bytes=0), make_record("/", 10.0)],
        filters=FilterConfig(include_fs_paths=("/proc", "/")),
    )
    res = check.run()
    assert res.state is CheckState.OK
    assert res.evaluated == ["/"]
    assert "/proc" not in out.getvalue()


def test_filtered_mounts_are_not_measured():
    records = [
        make_record("/", 10.0),
        make_record("/run", 99.0, fstype="tmpfs"),
        make_record("/media/cd", 100.0, fstype="iso9660", opts=frozenset({"ro"})),
        make_record("/boot", 99.0),
    ]
    check, collector, _ = _check(
        records,
        filters=FilterConfig(exclude_fs_types=("tmpfs",), exclude_fs_paths=("/boot",)),
    )
    res = check.run()
    assert res.state is CheckState.OK
    assert collector.usage_calls == ["/"]


def test_read_only_included_when_allowed():
    records = [make_record("/media/cd", 100.0, fstype="iso9660", opts=frozenset({"ro"}))]
    check, _, _ = _check(records, filters=FilterConfig(include_read_only=True))
    assert check.run().state is CheckState.CRITICAL


def test_magic_factor_raises_levels_for_large_filesystems():
    big = make_record("/archive", 88.0, total_bytes=1000 * GIB)
    plain, _, _ = _check([big])
    assert plain.run().state is CheckState.WARNING

    adjusted, _, _ = _check([big], thresholds=ThresholdConfig(magic=0.9))
    assert adjusted.run().state is CheckState.OK


def test_usage_error_is_isolated(caplog):
    caplog.set_level(logging.WARNING)
    check, _, out = _check([make_record("/", 10.0)], failing={"/mnt/nfs": "permission denied"})
    res = check.run()
    assert res.state is CheckState.OK
    assert res.error is None
    assert res.evaluated == ["/"]
    assert "check-disk-usage  UNKNOWN: /mnt/nfs - error: permission denied" in out.getvalue().splitlines()
    assert "failed to get disk usage for /mnt/nfs" in caplog.text


def test_usage_error_fails_fast():
    check, _, out = _check(
        [make_record("/", 99.0)],
        failing={"/mnt/nfs": "permission denied"},
        fail_on_error=True,
    )
    res = check.run()
    assert res.state is CheckState.CRITICAL
    assert res.error == "failed to get disk usage for /mnt/nfs, error: permission denied"
    # lines already written stay written
    assert out.getvalue().startswith("check-disk-usage CRITICAL: / ")


def test_partition_error_is_fatal():
    class Broken(FakeCollector):
        def partitions(self):
            raise CollectorError("failed to get partitions, error: boom")

    out = io.StringIO()
    res = DiskUsageCheck(CheckConfig(), collector=Broken([]), out=out).run()
    assert res.state is CheckState.CRITICAL
    assert "boom" in res.error


def test_metrics_mode_with_tags():
    check, _, out = _check([make_record("/", 50.0)], metrics=True, tags=("key1=val1",))
    res = check.run()
    assert res.state is CheckState.OK

    percent = [s for s in res.samples if s.name == "disk.percent_used"]
    assert len(percent) == 1
    assert percent[0].tags == {"key1": "val1", "mountpoint": "/"}
    assert percent[0].value == 50.0
    assert percent[0].timestamp_ms == 1_700_000_000_500

    lines = out.getvalue().splitlines()
    assert "disk.percent_used 1700000000 50 key1=val1 mountpoint=/" in lines
    assert not any("check-disk-usage" in line for line in lines)


def test_metrics_mode_prometheus_and_totals():
    check, _, out = _check(
        [make_record("/", 96.0), make_record("/home", 90.0)],
        metrics=True,
        metrics_format="prometheus_text",
    )
    res = check.run()
    assert res.state is CheckState.CRITICAL
    text = out.getvalue()
    assert "# TYPE disk_critical gauge" in text
    assert 'disk_critical{mountpoint="all"} 1.0 1700000000500' in text
    assert 'disk_warning{mountpoint="all"} 1.0 1700000000500' in text


def test_metrics_mode_suppresses_unknown_notice():
    check, _, out = _check([make_record("/", 10.0)], failing={"/mnt/nfs": "denied"}, metrics=True)
    res = check.run()
    assert res.state is CheckState.OK
    assert "UNKNOWN" not in out.getvalue()


def test_runs_do_not_share_state():
    check, _, out = _check([make_record("/", 96.0)], metrics=True)
    first = check.run()
    second = check.run()
    assert first.criticals == second.criticals == 1
    assert len(first.samples) == len(second.samples) == 8


def test_invalid_label_name_rejected_for_prometheus_output():
    check, collector, out = _check(
        [make_record("/", 50.0)],
        metrics=True,
        metrics_format="prometheus_text",
        tags=("team-name=ops",),
    )
    res = check.run()
    assert res.state is CheckState.CRITICAL
    assert "team-name" in res.error
    assert collector.usage_calls == []
    assert out.getvalue() == ""


def test_dashed_tag_key_allowed_for_line_output():
    check, _, out = _check([make_record("/", 50.0)], metrics=True, tags=("team-name=ops",))
    res = check.run()
    assert res.state is CheckState.OK
    assert "disk.percent_used 1700000000 50 team-name=ops mountpoint=/" in out.getvalue().splitlines()


def test_empty_tag_key_rejected():
    check, _, _ = _check([make_record("/", 50.0)], metrics=True, tags=("=x",))
    res = check.check_args()
    assert res.state is CheckState.CRITICAL
    assert "empty key" in res.error


def test_extreme_adjustment_settings_do_not_raise():
    check, _, _ = _check(
        [make_record("/big", 90.0, total_bytes=200 * GIB)],
        thresholds=ThresholdConfig(normal_gib=1e-200, magic=2.0),
    )
    res = check.run()
    assert res.error is None
    assert res.state is CheckState.WARNING
