from __future__ import annotations

import math

from check_disk_usage.models.common import DEFAULT_CHECK_NAME, CheckState
from check_disk_usage.models.filesystem import FilesystemRecord

SI_UNITS = ("B", "kB", "MB", "GB", "TB", "PB", "EB")
IEC_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")

STATE_LABELS = {
    CheckState.CRITICAL: "CRITICAL",
    CheckState.WARNING: " WARNING",
    CheckState.OK: "      OK",
}


def format_bytes(size: int | float, binary: bool = False) -> str:
    """Render a byte count like ``21 GB`` or ``1.5 GiB``.

    SI units (powers of 1000) by default, IEC units (powers of 1024) when
    ``binary`` is set. One decimal is kept below 10 units.
    """
    if size < 10:
        return f"{int(size)} B"

    base = 1024.0 if binary else 1000.0
    units = IEC_UNITS if binary else SI_UNITS

    value = float(size)
    i = 0
    while value >= base and i < len(units) - 1:
        value /= base
        i += 1

    value = math.floor(value * 10 + 0.5) / 10
    if value < 10:
        return f"{value:.1f} {units[i]}"
    return f"{value:.0f} {units[i]}"


class ReportService:
    def __init__(self, name: str = DEFAULT_CHECK_NAME, human_readable: bool = False) -> None:
        self.name = name
        self.human_readable = bool(human_readable)

    def format_line(self, record: FilesystemRecord, state: CheckState) -> str:
        label = STATE_LABELS.get(state, state.name)
        return (
            f"{self.name} {label}: {record.mountpoint} {record.used_percent:.2f}% - "
            f"Total: {self._bytes(record.total_bytes)}, "
            f"Used: {self._bytes(record.used_bytes)}, "
            f"Free: {self._bytes(record.free_bytes)}"
        )

    def format_unknown(self, mountpoint: str, error: object) -> str:
        return f"{self.name}  UNKNOWN: {mountpoint} - error: {error}"

    def _bytes(self, n: int) -> str:
        return format_bytes(n, binary=self.human_readable)
