from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence, TextIO

from check_disk_usage.models.common import DEFAULT_CHECK_NAME, CheckConfig
from check_disk_usage.models.filesystem import FilterConfig, ThresholdConfig
from check_disk_usage.services.check_service import DiskUsageCheck, FilesystemSource
from check_disk_usage.services.config_service import ConfigPaths, ConfigService
from check_disk_usage.services.metrics_service import MetricFormat
from check_disk_usage.utils.logger import get_logger, setup_logging

OPTION_DESTS = (
    "include_fs_type",
    "exclude_fs_type",
    "include_fs_path",
    "exclude_fs_path",
    "warning",
    "critical",
    "normal",
    "magic",
    "minimum",
    "include_pseudo_fs",
    "include_read_only",
    "fail_on_error",
    "human_readable",
    "metrics",
    "metrics_format",
    "tags",
)
LIST_DESTS = frozenset({"include_fs_type", "exclude_fs_type", "include_fs_path", "exclude_fs_path", "tags"})
BOOL_DESTS = frozenset({"include_pseudo_fs", "include_read_only", "fail_on_error", "human_readable", "metrics"})

logger = get_logger(__name__)


def _str_list(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _as_list(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(_str_list(value))
    out: list[str] = []
    for v in value:
        out.extend(_str_list(str(v)))
    return tuple(out)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=DEFAULT_CHECK_NAME,
        description="Cross platform disk usage check",
    )
    p.add_argument("-i", "--include-fs-type", type=_str_list, action="extend", default=[],
                   help="Comma separated list of file system types to check")
    p.add_argument("-e", "--exclude-fs-type", type=_str_list, action="extend", default=[],
                   help="Comma separated list of file system types to exclude from checking")
    p.add_argument("-I", "--include-fs-path", type=_str_list, action="extend", default=[],
                   help="Comma separated list of file system paths to check")
    p.add_argument("-E", "--exclude-fs-path", type=_str_list, action="extend", default=[],
                   help="Comma separated list of file system paths to exclude from checking")
    p.add_argument("-w", "--warning", type=float, default=85.0,
                   help="Warning threshold for file system usage (default: %(default)s)")
    p.add_argument("-c", "--critical", type=float, default=95.0,
                   help="Critical threshold for file system usage (default: %(default)s)")
    p.add_argument("-n", "--normal", type=float, default=20.0,
                   help="Value in GiB. Levels are not adapted for filesystems of exactly this size, "
                        "where levels are reduced for smaller filesystems and raised for larger "
                        "filesystems (default: %(default)s)")
    p.add_argument("-m", "--magic", type=float, default=1.0,
                   help="Magic factor to adjust warn/crit thresholds. Example: .9 (default: %(default)s)")
    p.add_argument("-l", "--minimum", type=float, default=100.0,
                   help="Minimum size to adjust (in GiB) (default: %(default)s)")
    p.add_argument("-p", "--include-pseudo-fs", action="store_true",
                   help="Include pseudo-filesystems (e.g. tmpfs)")
    p.add_argument("-r", "--include-read-only", action="store_true",
                   help="Include read-only filesystems")
    p.add_argument("-f", "--fail-on-error", action="store_true",
                   help="Fail and exit on errors getting file system usage (e.g. permission denied)")
    p.add_argument("-H", "--human-readable", action="store_true",
                   help="Print sizes in powers of 1024")
    p.add_argument("-M", "--metrics", action="store_true",
                   help="Output metrics instead of human readable output")
    p.add_argument("--metrics-format", default=MetricFormat.OPENTSDB_LINE.value,
                   help="Metrics output format, one of: "
                        + ", ".join(f.value for f in MetricFormat) + " (default: %(default)s)")
    p.add_argument("-t", "--tags", type=_str_list, action="extend", default=[],
                   help="Comma separated list of additional metrics tags using key=value format")
    p.add_argument("--config", help="JSON file with option defaults")
    p.add_argument("--log-level", default="WARNING", help="Logging level for stderr (default: %(default)s)")
    return p


def config_from_args(args: argparse.Namespace) -> CheckConfig:
    return CheckConfig(
        filters=FilterConfig(
            include_fs_types=_as_list(args.include_fs_type),
            exclude_fs_types=_as_list(args.exclude_fs_type),
            include_fs_paths=_as_list(args.include_fs_path),
            exclude_fs_paths=_as_list(args.exclude_fs_path),
            include_pseudo=bool(args.include_pseudo_fs),
            include_read_only=bool(args.include_read_only),
        ),
        thresholds=ThresholdConfig(
            warning=float(args.warning),
            critical=float(args.critical),
            normal_gib=float(args.normal),
            magic=float(args.magic),
            minimum_gib=float(args.minimum),
        ),
        fail_on_error=bool(args.fail_on_error),
        human_readable=bool(args.human_readable),
        metrics=bool(args.metrics),
        metrics_format=str(args.metrics_format),
        tags=_as_list(args.tags),
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config")
    pre.add_argument("--log-level", default="WARNING")
    known, _ = pre.parse_known_args(argv)
    setup_logging(known.log_level)

    if known.config:
        svc = ConfigService(ConfigPaths(path=Path(known.config)))
    else:
        svc = ConfigService()

    defaults = svc.defaults_for(OPTION_DESTS)
    for key in sorted(BOOL_DESTS.intersection(defaults)):
        if not isinstance(defaults[key], bool):
            logger.warning("Ignoring %s=%r in config file: expected true or false", key, defaults.pop(key))
    for key in LIST_DESTS.intersection(defaults):
        defaults[key] = list(_as_list(defaults[key]))

    parser = build_parser()
    parser.set_defaults(**defaults)
    return parser.parse_args(argv)


def main(
    argv: Sequence[str] | None = None,
    collector: FilesystemSource | None = None,
    out: TextIO | None = None,
) -> int:
    out = out if out is not None else sys.stdout
    config = config_from_args(parse_args(argv))
    check = DiskUsageCheck(config, collector=collector, out=out)

    res = check.check_args()
    if res.error is not None:
        out.write(f"error validating input: {res.error}\n")
        return int(res.state)

    res = check.execute()
    if res.error is not None:
        out.write(f"error executing check: {res.error}\n")
    return int(res.state)


def run() -> None:
    raise SystemExit(main(sys.argv[1:]))


if __name__ == "__main__":
    run()
