from __future__ import annotations

import psutil

from check_disk_usage.errors import CollectorError, UsageError
from check_disk_usage.models.filesystem import FilesystemRecord, Partition


class FilesystemCollector:
    def __init__(self, include_pseudo: bool = False) -> None:
        self.include_pseudo = bool(include_pseudo)

    def partitions(self) -> list[Partition]:
        try:
            parts = psutil.disk_partitions(all=self.include_pseudo)
        except OSError as e:
            raise CollectorError(f"failed to get partitions, error: {e}") from e

        rows: list[Partition] = []
        for p in parts:
            rows.append(
                Partition(
                    device=str(p.device),
                    mountpoint=str(p.mountpoint),
                    fstype=str(p.fstype),
                    opts=self._split_opts(p.opts),
                )
            )
        return rows

    def usage(self, partition: Partition) -> FilesystemRecord:
        try:
            u = psutil.disk_usage(partition.mountpoint)
        except OSError as e:
            raise UsageError(partition.mountpoint, e) from e

        return FilesystemRecord(
            mountpoint=partition.mountpoint,
            fstype=partition.fstype,
            total_bytes=int(u.total),
            used_bytes=int(u.used),
            free_bytes=int(u.free),
            used_percent=float(u.percent),
            opts=partition.opts,
            device=partition.device,
        )

    @staticmethod
    def _split_opts(opts: str | None) -> frozenset[str]:
        if not opts:
            return frozenset()
        return frozenset(o.strip() for o in str(opts).split(",") if o.strip())
