from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Partition:
    device: str
    mountpoint: str
    fstype: str
    opts: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class FilesystemRecord:
    mountpoint: str
    fstype: str
    total_bytes: int
    used_bytes: int
    free_bytes: int
    used_percent: float
    opts: frozenset[str] = field(default_factory=frozenset)
    device: str = ""


@dataclass(frozen=True)
class FilterConfig:
    include_fs_types: tuple[str, ...] = ()
    exclude_fs_types: tuple[str, ...] = ()
    include_fs_paths: tuple[str, ...] = ()
    exclude_fs_paths: tuple[str, ...] = ()
    include_pseudo: bool = False
    include_read_only: bool = False


@dataclass(frozen=True)
class ThresholdConfig:
    warning: float = 85.0
    critical: float = 95.0
    normal_gib: float = 20.0
    magic: float = 1.0
    minimum_gib: float = 100.0
