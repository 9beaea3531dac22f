"""Size-dependent adjustment of warning and critical levels.

A fixed percentage means very different things on a 20 GiB root volume
and on a 100 TiB archive. The "magic factor" bends the levels with a
power law around a reference ("normal") size: with ``magic < 1`` the
free-space headroom shrinks for filesystems larger than the reference
and grows for smaller ones. ``magic == 1`` leaves levels untouched.
"""

from __future__ import annotations

import math

from check_disk_usage.models.filesystem import ThresholdConfig
from check_disk_usage.utils.logger import get_logger

logger = get_logger(__name__)

GIB = 1024**3


def adjust_percent(total_bytes: float, percent: float, config: ThresholdConfig) -> float:
    """Return ``percent`` adjusted for a filesystem of ``total_bytes``.

    Filesystems at or below ``config.minimum_gib`` are never adjusted.
    The result is not clamped and may fall outside 0..100.
    """
    if not total_bytes > config.minimum_gib * GIB:
        return percent
    if config.normal_gib == 0:
        return percent

    normalized = (total_bytes / GIB) / config.normal_gib
    if normalized <= 0 or not math.isfinite(normalized):
        return percent

    try:
        perceived = normalized**config.magic
    except OverflowError:
        logger.debug("Magic factor %s overflows for normalized size %g, levels unchanged", config.magic, normalized)
        return percent
    scale = perceived / normalized
    return 100.0 - (100.0 - percent) * scale


class ThresholdAdjuster:
    def __init__(self, config: ThresholdConfig | None = None) -> None:
        self.config = config or ThresholdConfig()

    def adjust(self, total_bytes: float, percent: float) -> float:
        return adjust_percent(total_bytes, percent, self.config)

    def thresholds(self, total_bytes: float) -> tuple[float, float]:
        return (
            self.adjust(total_bytes, self.config.warning),
            self.adjust(total_bytes, self.config.critical),
        )
