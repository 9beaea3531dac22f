from __future__ import annotations

from check_disk_usage.errors import ConfigurationError
from check_disk_usage.models.filesystem import FilesystemRecord, FilterConfig, Partition

READ_ONLY_OPTS = frozenset({"ro", "read-only"})


class FilesystemFilter:
    def __init__(self, config: FilterConfig | None = None) -> None:
        self.config = config or FilterConfig()

    def validate(self) -> None:
        c = self.config
        if c.include_fs_types and c.exclude_fs_types:
            raise ConfigurationError("--include-fs-type and --exclude-fs-type are mutually exclusive")
        if c.include_fs_paths and c.exclude_fs_paths:
            raise ConfigurationError("--include-fs-path and --exclude-fs-path are mutually exclusive")

    def is_valid_fs_type(self, fstype: str) -> bool:
        return self._matches(fstype, self.config.include_fs_types, self.config.exclude_fs_types)

    def is_valid_fs_path(self, path: str) -> bool:
        return self._matches(path, self.config.include_fs_paths, self.config.exclude_fs_paths)

    @staticmethod
    def is_read_only(opts: frozenset[str] | set[str]) -> bool:
        # "ro" on Linux and Windows, "read-only" from mount(8) on macOS
        return not READ_ONLY_OPTS.isdisjoint(opts)

    def accepts(self, mount: Partition | FilesystemRecord) -> bool:
        if not self.is_valid_fs_type(mount.fstype):
            return False
        if not self.is_valid_fs_path(mount.mountpoint):
            return False
        if not self.config.include_read_only and self.is_read_only(mount.opts):
            return False
        return True

    def is_eligible(self, record: FilesystemRecord) -> bool:
        if record.total_bytes == 0:
            return False
        return self.accepts(record)

    @staticmethod
    def _matches(value: str, include: tuple[str, ...], exclude: tuple[str, ...]) -> bool:
        if include:
            return value in include
        if exclude:
            return value not in exclude
        return True
